"""
Domain Constants: 업로드 파이프라인 전역 상수.

경로 기본값, 크기 상한, 필드명 등 시스템 전반에서 사용되는 값들.
실제 값은 default.yaml / 환경변수로 오버라이드 가능.
"""

# =============================================================================
# Upload Limits (업로드 제한)
# =============================================================================

# 필드 하나의 누적 바이트 상한: 10 MiB
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# 파트 헤더 누적 상한 (헤더는 스트리밍이 아니라 메모리에 모음)
MAX_PART_HEADER_BYTES = 16 * 1024

# =============================================================================
# Form / URL (폼, 공개 URL)
# =============================================================================
# 필드명은 리비전마다 file / meme-file 로 달랐음 → 설정값으로 취급

DEFAULT_FIELD_NAME = "meme-file"
DEFAULT_PUBLIC_PREFIX = "/memes"

# HTMX out-of-band 신호: 업로드 성공 시 갤러리 새로고침
GALLERY_REFRESH_EVENT = "memes-changed"

# =============================================================================
# Filesystem Layout (디렉토리 구조)
# =============================================================================
# <project>/
# ├── uploads/                 # 업로드 루트 (공개, 갤러리 대상)
# │   └── <uuid>.<ext>
# └── .uploads.staging/        # 게시 전 임시 파일 (비공개)
#     └── <uuid>.<ext>.part

DEFAULT_UPLOAD_ROOT = "uploads"
STAGING_SUFFIX = ".part"

# =============================================================================
# Environment Overrides (환경변수)
# =============================================================================

ENV_UPLOAD_ROOT = "MEME_UPLOAD_ROOT"
ENV_MAX_UPLOAD_BYTES = "MEME_MAX_UPLOAD_BYTES"

# =============================================================================
# ID Prefixes
# =============================================================================

UPLOAD_ID_PREFIX = "UPL-"


def default_staging_dir_name(upload_root_name: str) -> str:
    """업로드 루트 옆에 둘 숨김 staging 디렉토리 이름."""
    return f".{upload_root_name}.staging"
