#!/usr/bin/env python3
"""
purge_staging.py - 오래된 staging 파일 정리 스크립트

업로드 실패는 요청 안에서 staging 파일을 지우지만, 프로세스가 강제 종료되면
(kill -9, OOM, 전원 차단) <name>.part 파일이 staging 디렉토리에 남는다.
default.yaml의 staging.stale_after_seconds보다 오래된 .part 파일만 정리.

진행 중 업로드의 파일은 mtime이 계속 갱신되므로 기준 시간 안쪽이면 건드리지 않음.

사용법:
    # 기본 실행 (dry-run)
    uv run python scripts/purge_staging.py

    # 실제 삭제
    uv run python scripts/purge_staging.py --execute

    # 다른 .env 사용 (기본: 프로젝트 루트의 .env)
    uv run python scripts/purge_staging.py --env-file deploy/.env

    # cron 예시 (매시 정각)
    0 * * * * cd /path/to/project && uv run python scripts/purge_staging.py --execute >> /var/log/purge_staging.log 2>&1
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.settings import load_upload_settings  # noqa: E402
from src.domain.constants import STAGING_SUFFIX  # noqa: E402

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER_SECONDS = 3600


@dataclass
class PurgeResult:
    """Purge 결과."""
    scanned_files: int = 0
    purged_files: int = 0
    purged_bytes: int = 0
    kept_files: int = 0
    errors: list[str] = field(default_factory=list)


def find_stale_files(
    staging_dir: Path,
    stale_after_seconds: float,
    now: float | None = None,
) -> list[Path]:
    """
    기준 시간보다 오래된 .part 파일 목록 (오래된 것 먼저).

    Args:
        staging_dir: staging 디렉토리
        stale_after_seconds: 이 시간(초)보다 mtime이 오래되면 대상
        now: 기준 시각 (epoch 초, 테스트용)
    """
    if not staging_dir.exists():
        return []

    now = time.time() if now is None else now
    cutoff = now - stale_after_seconds

    stale: list[tuple[float, Path]] = []
    for path in staging_dir.iterdir():
        if not path.is_file() or not path.name.endswith(STAGING_SUFFIX):
            continue
        try:
            mtime = path.stat().st_mtime
        except OSError:
            # 검사 중에 업로드가 끝나 사라진 파일
            continue
        if mtime < cutoff:
            stale.append((mtime, path))

    stale.sort()
    return [path for _, path in stale]


def purge_staging(
    staging_dir: Path,
    stale_after_seconds: float,
    execute: bool,
    now: float | None = None,
) -> PurgeResult:
    """staging 디렉토리 정리."""
    result = PurgeResult()

    if not staging_dir.exists():
        logger.warning(f"staging 디렉터리 없음: {staging_dir}")
        return result

    all_parts = [p for p in staging_dir.iterdir() if p.name.endswith(STAGING_SUFFIX)]
    result.scanned_files = len(all_parts)

    stale = find_stale_files(staging_dir, stale_after_seconds, now=now)
    result.kept_files = result.scanned_files - len(stale)

    for path in stale:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0

        if not execute:
            logger.info(f"[DRY-RUN] 삭제 예정: {path} ({size / 1024:.1f} KB)")
            result.purged_files += 1
            result.purged_bytes += size
            continue

        try:
            path.unlink()
            result.purged_files += 1
            result.purged_bytes += size
            logger.info(f"삭제됨: {path} ({size / 1024:.1f} KB)")
        except FileNotFoundError:
            # 다른 정리 작업이 먼저 삭제
            continue
        except OSError as e:
            result.errors.append(f"삭제 실패 {path}: {e}")
            logger.error(f"삭제 실패 {path}: {e}")

    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="오래된 업로드 staging 파일 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 삭제 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="default.yaml",
        help="설정 파일 경로 (기본: default.yaml)",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="배포 환경변수 파일 (기본: .env, 앱과 같은 MEME_* 오버라이드)",
    )
    parser.add_argument(
        "--stale-after",
        type=float,
        default=None,
        help="정리 기준 시간(초), 설정 파일 값보다 우선",
    )

    args = parser.parse_args(argv)

    project_root = Path(__file__).parent.parent
    config_path = project_root / args.config

    # 앱과 같은 업로드 루트를 보도록 .env 먼저 로드 (이미 설정된 환경변수가 우선)
    load_dotenv(project_root / args.env_file)

    config: dict = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    else:
        logger.warning(f"설정 파일 없음, 기본값 사용: {config_path}")

    settings = load_upload_settings(config, base_dir=project_root)
    stale_after = args.stale_after
    if stale_after is None:
        stale_after = (config.get("staging") or {}).get(
            "stale_after_seconds", DEFAULT_STALE_AFTER_SECONDS
        )

    logger.info(f"staging: {settings.staging_dir}, 기준: {stale_after}초")

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 삭제 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    result = purge_staging(settings.staging_dir, stale_after, execute=args.execute)

    logger.info("=" * 50)
    logger.info("Purge 결과:")
    logger.info(f"  스캔: {result.scanned_files} files")
    logger.info(
        f"  정리: {result.purged_files} files ({result.purged_bytes / (1024 * 1024):.2f} MB)"
    )
    logger.info(f"  유지: {result.kept_files} files")
    if result.errors:
        logger.warning(f"  에러: {len(result.errors)}개")
        for err in result.errors[:5]:  # 최대 5개만 출력
            logger.warning(f"    - {err}")

    return 0 if not result.errors else 1


if __name__ == "__main__":
    sys.exit(main())
