"""
Pytest fixtures for the upload pipeline tests.

테스트 구성:
- 업로드 루트 / staging은 tmp_path 아래에 격리
- multipart 본문은 직접 조립해 청크 단위 async 스트림으로 공급
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest

from src.core.settings import UploadSettings

BOUNDARY = "----memeboundary7MA4YWxkTrZu0gW"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

# 작은 PNG 시그니처 + 임의 바이트 (검증은 헤더만 보므로 실제 이미지일 필요 없음)
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


# =============================================================================
# Multipart Helpers
# =============================================================================


def build_multipart(
    parts: list[tuple[str, bytes, str | None, str | None]],
    boundary: str = BOUNDARY,
) -> bytes:
    """
    multipart/form-data 본문 조립.

    Args:
        parts: [(name, payload, content_type, filename), ...]
    """
    body = b""
    for name, payload, content_type, filename in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if content_type is not None:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + payload + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return body


async def stream_chunks(data: bytes, chunk_size: int = 4096) -> AsyncIterator[bytes]:
    """본문을 chunk_size 단위로 흘려보내는 async 스트림."""
    for i in range(0, len(data), chunk_size):
        await asyncio.sleep(0)  # 다른 태스크에 양보 (네트워크 대기 흉내)
        yield data[i : i + chunk_size]


async def aborting_stream(
    data: bytes,
    chunk_size: int,
    fail_after: int,
) -> AsyncIterator[bytes]:
    """fail_after개 청크 후 연결이 끊기는 스트림."""
    for index, i in enumerate(range(0, len(data), chunk_size)):
        if index == fail_after:
            raise ConnectionResetError("client disconnected")
        await asyncio.sleep(0)
        yield data[i : i + chunk_size]


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    """테스트용 업로드 루트."""
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """테스트용 staging 디렉토리."""
    return tmp_path / ".uploads.staging"


@pytest.fixture
def upload_settings(upload_root: Path, staging_dir: Path) -> UploadSettings:
    """기본 업로드 설정 (fsync 생략으로 빠른 테스트)."""
    return UploadSettings(
        upload_root=upload_root,
        staging_dir=staging_dir,
        field_name="meme-file",
        fsync=False,
    )


@pytest.fixture
def make_body() -> Callable[..., bytes]:
    """multipart 본문 빌더."""
    return build_multipart


@pytest.fixture
def png_body() -> bytes:
    """meme-file 필드에 PNG 하나가 담긴 정상 본문."""
    return build_multipart([("meme-file", FAKE_PNG, "image/png", "cat.png")])


@pytest.fixture
def fake_png() -> bytes:
    """png_body에 담긴 파일 바이트."""
    return FAKE_PNG


@pytest.fixture
def boundary() -> str:
    """테스트 본문의 multipart boundary."""
    return BOUNDARY


@pytest.fixture
def multipart_content_type() -> str:
    """boundary를 포함한 요청 Content-Type."""
    return MULTIPART_CONTENT_TYPE


# =============================================================================
# Stream Fixtures
# =============================================================================


@pytest.fixture
def chunked() -> Callable[..., AsyncIterator[bytes]]:
    """본문 → chunk_size 단위 async 스트림 팩토리."""
    return stream_chunks


@pytest.fixture
def aborting() -> Callable[..., AsyncIterator[bytes]]:
    """fail_after개 청크 후 연결이 끊기는 스트림 팩토리."""
    return aborting_stream
