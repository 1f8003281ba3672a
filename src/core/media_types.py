"""
Content-type 검증: 선언된 MIME 타입 → MediaType

규칙:
- 클라이언트가 보낸 헤더만으로 결정 (바이트 검사 없음)
- 파라미터(; charset=...)는 무시, 대소문자 무시
- 지원하지 않는 타입 → UNSUPPORTED_MEDIA_TYPE (원래 문자열 보존)
"""

from src.domain.errors import ErrorCodes, UploadRejectError
from src.domain.schemas import MEDIA_TYPE_EXTENSIONS, MediaType

# Enum과 확장자 테이블이 어긋나면 import 시점에 실패
_missing = set(MediaType) - set(MEDIA_TYPE_EXTENSIONS)
if _missing:
    raise RuntimeError(f"MediaType without extension: {sorted(m.value for m in _missing)}")


def resolve_media_type(declared: str | None) -> MediaType:
    """
    선언된 content-type을 MediaType으로 변환.

    Args:
        declared: 파트의 Content-Type 헤더 값 (없으면 None)

    Returns:
        MediaType

    Raises:
        UploadRejectError: UNSUPPORTED_MEDIA_TYPE
    """
    essence = (declared or "").split(";", 1)[0].strip().lower()

    try:
        return MediaType(essence)
    except ValueError:
        raise UploadRejectError(
            ErrorCodes.UNSUPPORTED_MEDIA_TYPE,
            content_type=declared or "",
        ) from None


def supported_media_types() -> list[str]:
    """지원 MIME 타입 목록 (폼 accept 속성용)."""
    return [media_type.value for media_type in MediaType]
