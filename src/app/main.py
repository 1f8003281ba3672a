"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import memes
from src.core.settings import UploadSettings, load_upload_settings

PROJECT_ROOT = Path(__file__).parent.parent.parent

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드 (.env도 함께 로드)."""
    load_dotenv()

    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def configure_logging(config: dict) -> None:
    """루트 로거 설정 (이미 핸들러가 있으면 레벨만 맞춤)."""
    level_name = str((config.get("logging") or {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=level_name,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("src").setLevel(level_name)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 로깅 설정, 업로드/staging 디렉토리 준비
    """
    # Startup
    configure_logging(app.state.config)
    settings: UploadSettings = app.state.upload_settings
    settings.upload_root.mkdir(parents=True, exist_ok=True)
    settings.staging_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        f"Uploads: root={settings.upload_root}, field={settings.field_name!r}, "
        f"max_bytes={settings.max_bytes}"
    )

    yield

    # Shutdown
    # (리소스 정리 필요 시 여기에 추가)


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    config: dict | None = None,
    settings: UploadSettings | None = None,
) -> FastAPI:
    """
    FastAPI 앱 생성.

    Args:
        config: 설정 dict (None이면 default.yaml 로드)
        settings: 업로드 설정 (None이면 config에서 생성, 테스트에서 주입)
    """
    if config is None:
        config = load_config()
    if settings is None:
        settings = load_upload_settings(config, base_dir=PROJECT_ROOT)

    app = FastAPI(
        title="Meme Gallery",
        description="밈 이미지 업로드 + 갤러리",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.upload_settings = settings

    # 업로드 루트를 공개 prefix로 서빙 (1:1 매핑), 디렉토리는 lifespan에서 생성
    app.mount(
        settings.public_prefix,
        StaticFiles(directory=settings.upload_root, check_dir=False),
        name="memes",
    )

    app.include_router(memes.router, tags=["Memes"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
