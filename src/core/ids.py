"""
ID 생성: upload_id, 저장 파일명

규칙:
- 저장 파일명은 클라이언트 파일명과 무관 (uuid4 기반)
- 파일명 재사용 없음: 충돌 확률은 uuid4 128bit 중 122bit 랜덤으로 무시 가능
"""

import uuid
from datetime import UTC, datetime

from src.domain.constants import UPLOAD_ID_PREFIX
from src.domain.schemas import MediaType


def generate_upload_id() -> str:
    """
    Upload ID 생성 (로그 상관관계용).

    고유성 보장: UUID v4
    포맷: UPL-{timestamp}-{uuid[:8]}

    Returns:
        upload_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"{UPLOAD_ID_PREFIX}{timestamp}-{unique}"


def generate_stored_name(media_type: MediaType) -> str:
    """
    업로드 루트에 저장할 파일명 생성.

    포맷: {uuid4 hex}.{확장자}

    Args:
        media_type: 검증된 MediaType

    Returns:
        파일명 (예: 3f2a...e9.png)
    """
    return f"{uuid.uuid4().hex}.{media_type.extension}"
