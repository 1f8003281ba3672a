"""
Upload logging: 요청 단위 구조화 이벤트

규칙:
- 전역 print 금지 → 주입 가능한 UploadEventLogger 사용
- 이벤트 필수 컨텍스트: event, upload_id
- 내부 상세(errno, 예외 문자열)는 여기로만 기록, 클라이언트 응답에는 넣지 않음
"""

import logging
from typing import Any

from src.domain.errors import UploadRejectError
from src.domain.schemas import Meme, StoredFile, UploadState

_default_logger = logging.getLogger("src.uploads")


class UploadEventLogger:
    """
    업로드 한 건의 이벤트 기록기.

    logging.Logger를 주입받아 extra 필드로 구조화 컨텍스트를 남긴다.
    포매터가 extra를 출력하지 않아도 메시지만으로 읽을 수 있도록
    핵심 값은 메시지에도 포함.

    Usage:
        events = UploadEventLogger(upload_id, logger=my_logger)
        events.chunk_received(size=8192, total=16384)
    """

    def __init__(self, upload_id: str, logger: logging.Logger | None = None):
        """
        Args:
            upload_id: generate_upload_id()로 만든 ID
            logger: 기록 대상 로거 (None이면 src.uploads)
        """
        self.upload_id = upload_id
        self.logger = logger or _default_logger

    def _emit(self, level: int, event: str, message: str, **fields: Any) -> None:
        extra = {"event": event, "upload_id": self.upload_id, **fields}
        self.logger.log(level, f"[{self.upload_id}] {message}", extra=extra)

    def state_changed(self, previous: UploadState, current: UploadState) -> None:
        self._emit(
            logging.DEBUG,
            "upload.state",
            f"state {previous.value} -> {current.value}",
            previous_state=previous.value,
            state=current.value,
        )

    def field_located(
        self, field_name: str, content_type: str, filename: str | None
    ) -> None:
        self._emit(
            logging.INFO,
            "upload.field_located",
            f"field '{field_name}' located (content_type={content_type!r}, filename={filename!r})",
            field_name=field_name,
            content_type=content_type,
            client_filename=filename,
        )

    def chunk_received(self, size: int, total: int) -> None:
        self._emit(
            logging.DEBUG,
            "upload.chunk",
            f"received {size} bytes (total {total})",
            chunk_size=size,
            total_bytes=total,
        )

    def completed(self, meme: Meme, stored_file: StoredFile) -> None:
        self._emit(
            logging.INFO,
            "upload.completed",
            f"stored {stored_file.name} ({stored_file.size} bytes)",
            stored_name=stored_file.name,
            size=stored_file.size,
            media_type=meme.media_type.value,
            url=meme.url,
        )

    def rejected(self, error: UploadRejectError, leftover: str | None = None) -> None:
        # 파일이 남은 경우만 warning: 수동 정리 필요
        level = logging.WARNING if leftover else logging.INFO
        message = f"rejected {error}"
        if leftover:
            message += f"; partial file left behind: {leftover}"
        self._emit(
            level,
            "upload.rejected",
            message,
            code=error.code,
            context=error.to_dict(),
            leftover_path=leftover,
        )
