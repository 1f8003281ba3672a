"""
Core layer: 업로드 파이프라인 핵심 모듈.

역할:
- multipart 필드 탐색, content-type 검증, 크기 제한
- staging → publish 파일 저장, 갤러리 조회
"""

from .file_sink import FileSink
from .gallery import build_public_url, list_gallery
from .ids import generate_stored_name, generate_upload_id
from .logging import UploadEventLogger
from .media_types import resolve_media_type, supported_media_types
from .multipart import MultipartFieldLocator, parse_multipart_boundary
from .settings import UploadSettings, load_upload_settings
from .size_guard import StreamingSizeGuard

__all__ = [
    # multipart
    "MultipartFieldLocator",
    "parse_multipart_boundary",
    # media_types
    "resolve_media_type",
    "supported_media_types",
    # size_guard
    "StreamingSizeGuard",
    # file_sink
    "FileSink",
    # gallery
    "list_gallery",
    "build_public_url",
    # ids
    "generate_upload_id",
    "generate_stored_name",
    # logging
    "UploadEventLogger",
    # settings
    "UploadSettings",
    "load_upload_settings",
]
