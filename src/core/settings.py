"""
업로드 설정: default.yaml `uploads` 섹션 + 환경변수 오버라이드

환경변수 (배포 환경에서 바꾸는 두 값만):
- MEME_UPLOAD_ROOT: 업로드 루트 경로
- MEME_MAX_UPLOAD_BYTES: 필드 하나의 바이트 상한
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from src.domain.constants import (
    DEFAULT_FIELD_NAME,
    DEFAULT_MAX_UPLOAD_BYTES,
    DEFAULT_PUBLIC_PREFIX,
    DEFAULT_UPLOAD_ROOT,
    ENV_MAX_UPLOAD_BYTES,
    ENV_UPLOAD_ROOT,
    default_staging_dir_name,
)


@dataclass(frozen=True)
class UploadSettings:
    """업로드 파이프라인 설정."""
    upload_root: Path
    staging_dir: Path
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    field_name: str = DEFAULT_FIELD_NAME
    public_prefix: str = DEFAULT_PUBLIC_PREFIX
    chunk_timeout: float | None = None  # 청크 대기 상한(초), None이면 전송 계층에 위임
    fsync: bool = True

    @classmethod
    def for_root(cls, upload_root: Path, **overrides: Any) -> "UploadSettings":
        """업로드 루트만으로 생성 (staging은 숨김 형제 디렉토리)."""
        staging_dir = overrides.pop(
            "staging_dir",
            upload_root.parent / default_staging_dir_name(upload_root.name),
        )
        return cls(upload_root=upload_root, staging_dir=staging_dir, **overrides)


def _resolve_path(value: str | Path, base_dir: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def load_upload_settings(
    config: dict,
    base_dir: Path,
    environ: dict[str, str] | None = None,
) -> UploadSettings:
    """
    설정 dict에서 UploadSettings 생성.

    Args:
        config: load_config() 결과
        base_dir: 상대 경로 기준 (프로젝트 루트)
        environ: 환경변수 (None이면 os.environ)

    Returns:
        UploadSettings

    Raises:
        ValueError: 상한이 양수가 아니거나 필드명이 비어있음
    """
    env = os.environ if environ is None else environ
    uploads = config.get("uploads", {}) or {}

    upload_root = _resolve_path(
        env.get(ENV_UPLOAD_ROOT) or uploads.get("root", DEFAULT_UPLOAD_ROOT),
        base_dir,
    )

    staging_value = uploads.get("staging_dir")
    if staging_value:
        staging_dir = _resolve_path(staging_value, base_dir)
    else:
        staging_dir = upload_root.parent / default_staging_dir_name(upload_root.name)

    raw_max = env.get(ENV_MAX_UPLOAD_BYTES) or uploads.get(
        "max_bytes", DEFAULT_MAX_UPLOAD_BYTES
    )
    try:
        max_bytes = int(raw_max)
    except (TypeError, ValueError) as e:
        raise ValueError(f"uploads.max_bytes must be an integer, got {raw_max!r}") from e
    if max_bytes <= 0:
        raise ValueError(f"uploads.max_bytes must be positive, got {max_bytes}")

    field_name = str(uploads.get("field_name", DEFAULT_FIELD_NAME)).strip()
    if not field_name:
        raise ValueError("uploads.field_name must not be empty")

    chunk_timeout = uploads.get("chunk_timeout")

    return UploadSettings(
        upload_root=upload_root,
        staging_dir=staging_dir,
        max_bytes=max_bytes,
        field_name=field_name,
        public_prefix=str(uploads.get("public_prefix", DEFAULT_PUBLIC_PREFIX)),
        chunk_timeout=float(chunk_timeout) if chunk_timeout is not None else None,
        fsync=bool(uploads.get("fsync", True)),
    )
