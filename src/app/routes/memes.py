"""
Meme Routes: 업로드 + 갤러리.

- GET / → 업로드 폼 + 갤러리 화면 (HTMX)
- POST /upload → multipart 스트리밍 업로드
- GET /existing-memes → 갤러리 HTML 조각 (HTMX 새로고침용)
"""

import html as html_escape_module
import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from src.app.services.upload import UploadOrchestrator
from src.core.gallery import build_public_url, list_gallery
from src.core.ids import generate_upload_id
from src.core.logging import UploadEventLogger
from src.core.media_types import supported_media_types
from src.core.settings import UploadSettings
from src.domain.constants import GALLERY_REFRESH_EVENT
from src.domain.schemas import UploadOutcome
from src.utils.units import format_size

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = Jinja2Templates(directory=_templates_dir)

router = APIRouter()


def get_upload_settings(request: Request) -> UploadSettings:
    """Request에서 업로드 설정 가져오기."""
    return request.app.state.upload_settings


# =============================================================================
# HTML Generation Helpers
# =============================================================================


def escape_html(text: str) -> str:
    """HTML 이스케이프."""
    return html_escape_module.escape(text)


def build_success_html(outcome: UploadOutcome) -> str:
    """업로드 성공 조각."""
    if outcome.meme is None:
        raise RuntimeError("build_success_html requires a successful outcome")
    url = escape_html(outcome.meme.url)
    return (
        f'<span class="text-green-500">{escape_html(outcome.message)} '
        f'<a class="underline" href="{url}" target="_blank">View meme</a></span>'
    )


def build_error_html(outcome: UploadOutcome) -> str:
    """업로드 실패 조각 (내부 상세 제외)."""
    return f'<span class="text-red-500">{escape_html(outcome.message)}</span>'


def build_gallery_html(names: list[str], public_prefix: str) -> str:
    """갤러리 조각: 엔트리당 <img> 하나."""
    if not names:
        return '<p class="text-gray-500">No memes yet. Be the first!</p>'

    items = [
        f'<img class="w-full rounded shadow" loading="lazy" '
        f'src="{escape_html(build_public_url(public_prefix, name))}" '
        f'alt="{escape_html(name)}">'
        for name in names
    ]
    return '<div class="grid grid-cols-3 gap-2">\n' + "\n".join(items) + "\n</div>"


# =============================================================================
# Page Routes (HTML)
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def index_page(request: Request) -> HTMLResponse:
    """업로드 폼 + 갤러리 화면."""
    settings = get_upload_settings(request)
    return jinja_templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": "Memes",
            "field_name": settings.field_name,
            "accept": ",".join(supported_media_types()),
            "max_size": format_size(settings.max_bytes),
            "refresh_event": GALLERY_REFRESH_EVENT,
        },
    )


# =============================================================================
# Upload / Gallery Routes
# =============================================================================


@router.post("/upload", response_class=HTMLResponse)
async def upload_meme(request: Request) -> HTMLResponse:
    """
    밈 업로드.

    본문을 request.stream()으로 청크 단위 소비 (UploadFile 미사용:
    UploadFile은 본문 전체를 먼저 spool 하므로 크기 상한을 스트리밍으로 강제할 수 없음).

    Returns:
        200 + 성공 조각 + HX-Trigger 헤더, 또는 4xx/5xx + 오류 조각
    """
    settings = get_upload_settings(request)
    events = UploadEventLogger(generate_upload_id(), logger=logger)
    orchestrator = UploadOrchestrator(settings, events=events)

    outcome = await orchestrator.handle(
        request.stream(),
        request.headers.get("content-type"),
    )

    if outcome.success:
        return HTMLResponse(
            content=build_success_html(outcome),
            headers={"HX-Trigger": GALLERY_REFRESH_EVENT},
        )

    return HTMLResponse(
        content=build_error_html(outcome),
        status_code=outcome.status_code,
    )


@router.get("/existing-memes", response_class=HTMLResponse)
async def existing_memes(request: Request) -> HTMLResponse:
    """
    갤러리 목록 (HTML 조각).

    HTMX hx-trigger="load, memes-changed from:body"로 동적 로딩.
    """
    settings = get_upload_settings(request)
    names = list_gallery(settings.upload_root)
    return HTMLResponse(content=build_gallery_html(names, settings.public_prefix))
