"""
Application Services.

역할:
- upload: multipart 스트림 → 저장 파일 + Meme
"""

from .upload import UploadOrchestrator

__all__ = [
    "UploadOrchestrator",
]
