"""
Multipart 스트림 파싱: 지정된 필드 찾기

규칙:
- 본문은 네트워크 청크 단위로 파서에 공급 (전체 버퍼링 없음)
- 이름이 다른 파트는 본문을 버리며 건너뜀
- 첫 번째로 일치하는 필드만 사용, 이후 중복 필드는 읽지 않음
- 프레임 오류 → MALFORMED_REQUEST, 필드 없음 → MISSING_FIELD
- 업스트림 읽기 실패(클라이언트 중단, 타임아웃) → STREAM_ERROR
"""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator
from enum import Enum

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from src.domain.constants import MAX_PART_HEADER_BYTES
from src.domain.errors import ErrorCodes, UploadRejectError
from src.domain.schemas import UploadField

logger = logging.getLogger(__name__)


class _Event(Enum):
    HEADERS = "headers"  # 파트 헤더 완료 (payload: dict[str, str])
    DATA = "data"  # 파트 본문 조각 (payload: bytes)
    PART_END = "part_end"
    END = "end"  # 종료 boundary


def parse_multipart_boundary(content_type: str | None) -> bytes:
    """
    요청 Content-Type에서 boundary 추출.

    Raises:
        UploadRejectError: MALFORMED_REQUEST (multipart/form-data 아님, boundary 없음)
    """
    mime, params = parse_options_header(content_type or "")
    if mime.lower() != b"multipart/form-data":
        raise UploadRejectError(
            ErrorCodes.MALFORMED_REQUEST,
            reason="not_multipart",
            content_type=content_type or "",
        )

    boundary = params.get(b"boundary")
    if not boundary:
        raise UploadRejectError(
            ErrorCodes.MALFORMED_REQUEST,
            reason="missing_boundary",
            content_type=content_type or "",
        )
    return boundary


class MultipartFieldLocator:
    """
    multipart 본문 스트림에서 지정 필드를 찾는다.

    python-multipart의 콜백 파서에 청크를 넣고, 콜백을 이벤트 큐로 모은 뒤
    하나씩 소비한다. 큐에는 최대 네트워크 청크 하나 분량만 쌓인다.

    Usage:
        locator = MultipartFieldLocator(request.stream(), request.headers["content-type"])
        field = await locator.locate("meme-file")
        async for chunk in field.chunks:
            ...
    """

    def __init__(
        self,
        body: AsyncIterable[bytes],
        content_type: str | None,
        chunk_timeout: float | None = None,
    ):
        """
        Args:
            body: 요청 본문 청크 (한 번만 소비 가능)
            content_type: 요청 Content-Type 헤더
            chunk_timeout: 청크 하나를 기다리는 최대 시간(초), None이면 무제한

        Raises:
            UploadRejectError: MALFORMED_REQUEST
        """
        boundary = parse_multipart_boundary(content_type)

        self._body = body.__aiter__()
        self._chunk_timeout = chunk_timeout
        self._events: deque[tuple[_Event, object]] = deque()
        self._body_exhausted = False
        self.bytes_read = 0

        # 현재 파트 헤더 누적 상태
        self._headers: dict[str, str] = {}
        self._header_field = b""
        self._header_value = b""
        self._header_bytes = 0

        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def locate(self, field_name: str) -> UploadField:
        """
        field_name과 일치하는 첫 파트 반환.

        Returns:
            UploadField (chunks는 이 파트의 본문만 생성)

        Raises:
            UploadRejectError: MISSING_FIELD, MALFORMED_REQUEST, STREAM_ERROR
        """
        while True:
            event = await self._next_event()

            if event is None:
                # 종료 boundary 전에 본문이 끝남
                raise UploadRejectError(
                    ErrorCodes.MALFORMED_REQUEST,
                    reason="truncated_body",
                    bytes_read=self.bytes_read,
                )

            kind, payload = event
            if kind is _Event.END:
                raise UploadRejectError(ErrorCodes.MISSING_FIELD, field_name=field_name)
            if kind is not _Event.HEADERS or not isinstance(payload, dict):
                # 건너뛰는 파트의 본문 / 파트 끝
                continue

            disposition = payload.get("content-disposition")
            if disposition is None:
                raise UploadRejectError(
                    ErrorCodes.MALFORMED_REQUEST,
                    reason="missing_content_disposition",
                )

            _, params = parse_options_header(disposition)
            raw_name = params.get(b"name")
            if raw_name is None:
                raise UploadRejectError(
                    ErrorCodes.MALFORMED_REQUEST,
                    reason="missing_field_name",
                )

            name = raw_name.decode("utf-8", errors="replace")
            if name != field_name:
                logger.debug(f"Skipping multipart field '{name}'")
                continue

            raw_filename = params.get(b"filename")
            filename = (
                raw_filename.decode("utf-8", errors="replace")
                if raw_filename is not None
                else None
            )
            if filename == "":
                # 브라우저가 파일 선택 없이 제출하면 빈 filename 파트를 보냄
                raise UploadRejectError(
                    ErrorCodes.MISSING_FIELD,
                    field_name=field_name,
                    reason="empty_filename",
                )

            return UploadField(
                name=name,
                content_type=payload.get("content-type", ""),
                chunks=self._field_chunks(),
                filename=filename,
            )

    # -------------------------------------------------------------------------
    # Event pump
    # -------------------------------------------------------------------------

    async def _field_chunks(self) -> AsyncIterator[bytes]:
        """찾은 파트의 본문 청크를 도착 순서대로 생성."""
        while True:
            event = await self._next_event()
            if event is None:
                raise UploadRejectError(
                    ErrorCodes.STREAM_ERROR,
                    reason="body_ended_mid_field",
                    bytes_read=self.bytes_read,
                )

            kind, payload = event
            if kind is _Event.DATA and isinstance(payload, bytes):
                yield payload
            elif kind in (_Event.PART_END, _Event.END):
                return

    async def _next_event(self) -> tuple[_Event, object] | None:
        while not self._events:
            if self._body_exhausted:
                return None

            chunk = await self._read_body()
            if chunk is None:
                self._body_exhausted = True
                self._parser.finalize()
                continue
            if not chunk:
                continue

            self.bytes_read += len(chunk)
            try:
                self._parser.write(chunk)
            except MultipartParseError as e:
                raise UploadRejectError(
                    ErrorCodes.MALFORMED_REQUEST,
                    reason="parse_error",
                    error=str(e),
                ) from e

        return self._events.popleft()

    async def _read_body(self) -> bytes | None:
        """
        업스트림에서 다음 청크 읽기.

        Returns:
            청크 또는 None (본문 끝)

        Raises:
            UploadRejectError: STREAM_ERROR
        """
        try:
            if self._chunk_timeout is None:
                return await anext(self._body)
            return await asyncio.wait_for(anext(self._body), timeout=self._chunk_timeout)
        except StopAsyncIteration:
            return None
        except TimeoutError as e:
            raise UploadRejectError(
                ErrorCodes.STREAM_ERROR,
                reason="timeout",
                timeout=self._chunk_timeout,
                bytes_read=self.bytes_read,
            ) from e
        except Exception as e:
            # 전송 계층 예외 타입은 서버마다 다름 (ClientDisconnect, OSError 등)
            raise UploadRejectError(
                ErrorCodes.STREAM_ERROR,
                reason="read_failed",
                error=f"{type(e).__name__}: {e}",
                bytes_read=self.bytes_read,
            ) from e

    # -------------------------------------------------------------------------
    # Parser callbacks
    # -------------------------------------------------------------------------

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._header_field = b""
        self._header_value = b""
        self._header_bytes = 0

    def _count_header_bytes(self, size: int) -> None:
        self._header_bytes += size
        if self._header_bytes > MAX_PART_HEADER_BYTES:
            raise UploadRejectError(
                ErrorCodes.MALFORMED_REQUEST,
                reason="part_headers_too_large",
                limit=MAX_PART_HEADER_BYTES,
            )

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._count_header_bytes(end - start)
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._count_header_bytes(end - start)
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").strip().lower()
        # latin-1: parse_options_header가 원래 bytes로 되돌릴 수 있도록 보존
        value = self._header_value.decode("latin-1").strip()
        self._headers[name] = value
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._events.append((_Event.HEADERS, self._headers))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            # 파서가 버퍼를 재사용하므로 즉시 복사
            self._events.append((_Event.DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((_Event.PART_END, None))

    def _on_end(self) -> None:
        self._events.append((_Event.END, None))
