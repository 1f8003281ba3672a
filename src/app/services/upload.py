"""
Upload Service: multipart 본문 → 업로드 루트의 새 파일 + Meme

상태 전이:
IDLE → FIELD_LOCATED → TYPE_VALIDATED → STREAMING → COMPLETED
어느 단계든 UploadRejectError → REJECTED (staging 파일 정리 후)

규칙:
- 요청 하나 = 오케스트레이터 하나 (요청 간 공유 상태 없음)
- 청크 처리 순서: 읽기 → 크기 검사 → 쓰기 → 다음 읽기 (in-flight 청크 1개)
- 재시도 없음: 실패는 결과로 반환, 클라이언트가 다시 제출
"""

from collections.abc import AsyncIterable
from datetime import UTC, datetime

from src.core.file_sink import FileSink
from src.core.gallery import build_public_url
from src.core.ids import generate_stored_name, generate_upload_id
from src.core.logging import UploadEventLogger
from src.core.media_types import resolve_media_type
from src.core.multipart import MultipartFieldLocator
from src.core.settings import UploadSettings
from src.core.size_guard import StreamingSizeGuard
from src.domain.errors import UploadRejectError
from src.domain.schemas import (
    MediaType,
    Meme,
    StoredFile,
    UploadField,
    UploadOutcome,
    UploadState,
)


class UploadOrchestrator:
    """
    요청 단위 업로드 처리기.

    Usage:
        orchestrator = UploadOrchestrator(settings)
        outcome = await orchestrator.handle(request.stream(), content_type)
        if outcome.success:
            ...
    """

    def __init__(
        self,
        settings: UploadSettings,
        events: UploadEventLogger | None = None,
    ):
        """
        Args:
            settings: 업로드 설정
            events: 이벤트 로거 (None이면 새 upload_id로 생성)
        """
        self.settings = settings
        self.events = events or UploadEventLogger(generate_upload_id())
        self.state = UploadState.IDLE
        self._sink: FileSink | None = None

    async def handle(
        self,
        body: AsyncIterable[bytes],
        content_type: str | None,
    ) -> UploadOutcome:
        """
        업로드 한 건 처리.

        Args:
            body: 요청 본문 청크 스트림
            content_type: 요청 Content-Type 헤더 (boundary 포함)

        Returns:
            UploadOutcome (성공 또는 거절)
        """
        if self.state is not UploadState.IDLE:
            raise RuntimeError("UploadOrchestrator handles exactly one request")

        try:
            locator = MultipartFieldLocator(
                body,
                content_type,
                chunk_timeout=self.settings.chunk_timeout,
            )
            field = await locator.locate(self.settings.field_name)
            self._transition(UploadState.FIELD_LOCATED)
            self.events.field_located(field.name, field.content_type, field.filename)

            media_type = resolve_media_type(field.content_type)
            self._transition(UploadState.TYPE_VALIDATED)

            stored_file = await self._stream_to_disk(field, media_type)

        except UploadRejectError as e:
            return self._reject(e)

        meme = Meme(
            media_type=media_type,
            url=build_public_url(self.settings.public_prefix, stored_file.name),
            created_at=datetime.now(UTC),
        )
        self._transition(UploadState.COMPLETED)
        self.events.completed(meme, stored_file)

        return UploadOutcome.succeeded(meme, stored_file)

    async def _stream_to_disk(
        self,
        field: UploadField,
        media_type: MediaType,
    ) -> StoredFile:
        """
        필드 본문을 크기 검사하며 새 파일로 기록 후 게시.

        Raises:
            UploadRejectError: PAYLOAD_TOO_LARGE, STORAGE_ERROR, STREAM_ERROR
        """
        guard = StreamingSizeGuard(self.settings.max_bytes)
        self._sink = FileSink(
            upload_root=self.settings.upload_root,
            staging_dir=self.settings.staging_dir,
            name=generate_stored_name(media_type),
            fsync=self.settings.fsync,
        )

        async with self._sink as sink:
            self._transition(UploadState.STREAMING)

            async for chunk in guard.watch(field.chunks):
                await sink.write(chunk)
                self.events.chunk_received(len(chunk), guard.total)

            return await sink.commit()

    def _transition(self, state: UploadState) -> None:
        previous = self.state
        self.state = state
        self.events.state_changed(previous, state)

    def _reject(self, error: UploadRejectError) -> UploadOutcome:
        leftover = self._sink.leftover if self._sink else None
        self._transition(UploadState.REJECTED)
        self.events.rejected(error, str(leftover) if leftover else None)

        return UploadOutcome.rejected(
            error.code,
            context=error.context,
            leftover_path=leftover,
        )
