"""
스트리밍 크기 제한: 청크 단위 누적 합계 검사

규칙:
- 전체 파일을 버퍼링하지 않음 → 메모리는 청크 하나 분량
- 청크를 쓰기 전에 검사 → 디스크에 상한 초과분이 쓰이지 않음
- 상한과 정확히 같은 크기는 허용, 1바이트라도 넘으면 PAYLOAD_TOO_LARGE
"""

from collections.abc import AsyncIterable, AsyncIterator

from src.domain.errors import ErrorCodes, UploadRejectError


class StreamingSizeGuard:
    """
    청크 시퀀스의 누적 바이트 수 감시.

    Usage:
        guard = StreamingSizeGuard(max_bytes=10 * 1024 * 1024)
        async for chunk in guard.watch(field.chunks):
            await sink.write(chunk)
    """

    def __init__(self, max_bytes: int):
        """
        Args:
            max_bytes: 허용 누적 바이트 상한 (양수)
        """
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.max_bytes = max_bytes
        self.total = 0

    @property
    def remaining(self) -> int:
        """상한까지 남은 바이트."""
        return max(self.max_bytes - self.total, 0)

    def add(self, chunk: bytes) -> int:
        """
        청크 크기를 누적.

        Returns:
            갱신된 누적 합계

        Raises:
            UploadRejectError: PAYLOAD_TOO_LARGE (호출자는 즉시 읽기 중단)
        """
        total = self.total + len(chunk)
        if total > self.max_bytes:
            raise UploadRejectError(
                ErrorCodes.PAYLOAD_TOO_LARGE,
                max_bytes=self.max_bytes,
                received=total,
            )
        self.total = total
        return total

    async def watch(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        """청크를 그대로 흘려보내며 누적 검사. 초과 시 더 읽지 않음."""
        async for chunk in chunks:
            self.add(chunk)
            yield chunk
