"""
Error definitions for the upload pipeline.

규칙:
- 조용한 실패 금지 → UploadRejectError로 명시적 실패
- 모든 실패는 요청 경계에서 복구 가능 (프로세스 중단 없음)
- 내부 상세(errno, 예외 문자열)는 로그로만, 클라이언트에는 짧은 메시지
"""

from typing import Any


class UploadRejectError(Exception):
    """
    업로드 파이프라인 단계가 실패했을 때 발생하는 에러.

    오케스트레이터가 잡아서 Rejected 결과로 변환:
    - 필드 누락 / multipart 프레임 오류
    - 지원하지 않는 content-type
    - 크기 상한 초과
    - 업스트림 읽기 실패 (클라이언트 중단, 타임아웃)
    - 디스크 I/O 실패

    Usage:
        raise UploadRejectError("PAYLOAD_TOO_LARGE", max_bytes=10485760, received=n)
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수. 새 코드 추가 시 HTTP_STATUS_BY_CODE, 메시지도 함께 추가."""

    # === Multipart ===
    MISSING_FIELD = "MISSING_FIELD"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"

    # === Validation ===
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # === Transport / Storage ===
    STREAM_ERROR = "STREAM_ERROR"  # 클라이언트 중단, 전송 오류, 타임아웃
    STORAGE_ERROR = "STORAGE_ERROR"  # 파일 생성/쓰기/게시 실패


HTTP_STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.MISSING_FIELD: 400,
    ErrorCodes.MALFORMED_REQUEST: 400,
    ErrorCodes.UNSUPPORTED_MEDIA_TYPE: 400,
    ErrorCodes.PAYLOAD_TOO_LARGE: 413,
    ErrorCodes.STREAM_ERROR: 400,
    ErrorCodes.STORAGE_ERROR: 500,
}


def http_status_for(code: str) -> int:
    """에러 코드 → HTTP 상태 코드 (알 수 없는 코드는 500)."""
    return HTTP_STATUS_BY_CODE.get(code, 500)


def describe_rejection(code: str, context: dict[str, Any]) -> str:
    """
    클라이언트에 보여줄 짧은 메시지 생성.

    errno, 예외 원문 등 내부 상세는 포함하지 않는다.
    """
    from src.utils.units import format_size

    if code == ErrorCodes.MISSING_FIELD:
        field_name = context.get("field_name", "file")
        return f"No file was provided in the '{field_name}' field."
    if code == ErrorCodes.MALFORMED_REQUEST:
        return "The upload request could not be read. Please submit the form again."
    if code == ErrorCodes.UNSUPPORTED_MEDIA_TYPE:
        declared = context.get("content_type") or "unknown"
        return f"Unsupported file type '{declared}'. Only JPEG and PNG images are accepted."
    if code == ErrorCodes.PAYLOAD_TOO_LARGE:
        max_bytes = context.get("max_bytes")
        if isinstance(max_bytes, int):
            return f"File too large! Max size is {format_size(max_bytes)}."
        return "File too large!"
    if code == ErrorCodes.STREAM_ERROR:
        return "The upload was interrupted. Please try again."
    if code == ErrorCodes.STORAGE_ERROR:
        return "The file could not be saved. Please try again later."
    return "Upload failed."
