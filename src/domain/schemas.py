"""
Data schemas for the upload pipeline.

규칙:
- MediaType은 닫힌 Enum: 새 타입 추가 = Enum + 확장자 테이블 동시 수정
- Meme은 불변 (frozen), 저장 완료 후에만 생성
- UploadOutcome은 성공/거절 중 하나만 표현
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from src.domain.errors import describe_rejection, http_status_for

# =============================================================================
# Media Type
# =============================================================================

class MediaType(str, Enum):
    """
    지원하는 업로드 타입.

    선언된 content-type 헤더로만 결정 (바이트 스니핑 없음).
    """
    JPEG = "image/jpeg"
    PNG = "image/png"

    @property
    def extension(self) -> str:
        """저장 파일명에 쓰는 정규 확장자 (점 제외)."""
        return MEDIA_TYPE_EXTENSIONS[self]


MEDIA_TYPE_EXTENSIONS: dict[MediaType, str] = {
    MediaType.JPEG: "jpg",
    MediaType.PNG: "png",
}


# =============================================================================
# Upload State
# =============================================================================

class UploadState(str, Enum):
    """
    요청 하나의 업로드 상태.

    IDLE → FIELD_LOCATED → TYPE_VALIDATED → STREAMING → COMPLETED
    어느 단계에서든 실패 시 → REJECTED
    """
    IDLE = "idle"
    FIELD_LOCATED = "field_located"
    TYPE_VALIDATED = "type_validated"
    STREAMING = "streaming"
    COMPLETED = "completed"
    REJECTED = "rejected"


# =============================================================================
# Pipeline Schemas
# =============================================================================

@dataclass
class UploadField:
    """
    multipart 본문에서 찾은 필드 하나.

    chunks는 한 번만 소비 가능 (재시작 불가).
    filename은 클라이언트 값이라 로그용으로만 사용.
    """
    name: str
    content_type: str
    chunks: AsyncIterator[bytes]
    filename: str | None = None


@dataclass(frozen=True)
class StoredFile:
    """업로드 루트에 게시된 파일."""
    name: str  # <uuid hex>.<ext>
    size: int
    path: Path


@dataclass(frozen=True)
class Meme:
    """저장 완료된 밈 레코드."""
    media_type: MediaType
    url: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용."""
        return {
            "media_type": self.media_type.value,
            "url": self.url,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class UploadOutcome:
    """
    업로드 결과 (tagged result).

    - success=True: meme, stored_file 채워짐
    - success=False: code, context 채워짐
      leftover_path는 정리에 실패해 남은 부분 파일 경로 (정상이면 None)
    """
    success: bool
    meme: Meme | None = None
    stored_file: StoredFile | None = None
    code: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    leftover_path: Path | None = None

    @classmethod
    def succeeded(cls, meme: Meme, stored_file: StoredFile) -> "UploadOutcome":
        return cls(success=True, meme=meme, stored_file=stored_file)

    @classmethod
    def rejected(
        cls,
        code: str,
        context: dict[str, Any] | None = None,
        leftover_path: Path | None = None,
    ) -> "UploadOutcome":
        return cls(
            success=False,
            code=code,
            context=dict(context or {}),
            leftover_path=leftover_path,
        )

    @property
    def status_code(self) -> int:
        """HTTP 상태 코드."""
        if self.success:
            return 200
        return http_status_for(self.code or "")

    @property
    def message(self) -> str:
        """클라이언트용 메시지."""
        if self.success:
            return "Upload successful!"
        return describe_rejection(self.code or "", self.context)
