"""
FastAPI Routes.

페이지 라우트 (HTML) + HTMX 조각 라우트
"""

from . import memes

__all__ = ["memes"]
