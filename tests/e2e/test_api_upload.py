"""
test_api_upload.py - 업로드/갤러리 API E2E 테스트

엔드포인트:
- GET / (HTML page)
- POST /upload
- GET /existing-memes
- GET /memes/{name} (정적 서빙)
- GET /health
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.app.main import configure_logging, create_app
from src.app.routes.memes import build_error_html, build_success_html
from src.core.settings import UploadSettings
from src.domain.errors import ErrorCodes
from src.domain.schemas import UploadOutcome

# =============================================================================
# Fixtures
# =============================================================================


def _client(settings: UploadSettings):
    return TestClient(create_app(config={}, settings=settings))


@pytest.fixture
def client(upload_settings: UploadSettings):
    """FastAPI TestClient (업로드 루트는 tmp_path)."""
    with _client(upload_settings) as client:
        yield client


@pytest.fixture
def png_files(fake_png: bytes):
    """httpx files= 인자 빌더."""

    def _files(field_name: str = "meme-file", content_type: str = "image/png"):
        return {field_name: ("cat.png", fake_png, content_type)}

    return _files


# =============================================================================
# App Factory
# =============================================================================


class TestCreateApp:
    """create_app / 시작 과정 테스트."""

    def test_no_directories_until_startup(self, tmp_path: Path):
        """앱 생성만으로는 디렉토리를 만들지 않음 (lifespan 시작 시 생성)."""
        settings = UploadSettings(
            upload_root=tmp_path / "fresh" / "uploads",
            staging_dir=tmp_path / "fresh" / ".uploads.staging",
            fsync=False,
        )

        app = create_app(config={}, settings=settings)

        assert not (tmp_path / "fresh").exists()

        with TestClient(app) as client:
            assert settings.upload_root.is_dir()
            assert settings.staging_dir.is_dir()
            assert client.get("/existing-memes").status_code == 200

    @pytest.mark.parametrize("config", [{}, {"logging": None}, {"logging": {}}])
    def test_configure_logging_accepts_sparse_config(self, config):
        """logging 섹션이 없거나 비어 있어도 기본 레벨로 설정."""
        configure_logging(config)

    def test_empty_logging_section_on_startup(self, upload_settings: UploadSettings):
        """YAML의 빈 `logging:` 섹션(None)으로도 앱 시작."""
        app = create_app(config={"logging": None}, settings=upload_settings)

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200


# =============================================================================
# Page Routes (HTML)
# =============================================================================


class TestIndexPage:
    """메인 페이지 테스트."""

    def test_page_loads(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    def test_form_posts_to_upload(self, client):
        response = client.get("/")

        assert 'hx-post="/upload"' in response.text
        assert 'name="meme-file"' in response.text
        assert "image/jpeg,image/png" in response.text
        assert "10.0 MiB" in response.text

    def test_gallery_refreshes_on_event(self, client):
        response = client.get("/")

        assert 'hx-get="/existing-memes"' in response.text
        assert "memes-changed from:body" in response.text


# =============================================================================
# POST /upload
# =============================================================================


class TestUpload:
    """POST /upload 테스트."""

    def test_upload_success(
        self, client, upload_settings: UploadSettings, png_files, fake_png: bytes
    ):
        response = client.post("/upload", files=png_files())

        assert response.status_code == 200
        assert "Upload successful!" in response.text
        assert response.headers["HX-Trigger"] == "memes-changed"

        stored = list(upload_settings.upload_root.iterdir())
        assert len(stored) == 1
        assert stored[0].suffix == ".png"
        assert stored[0].read_bytes() == fake_png

    def test_uploaded_file_served(
        self, client, upload_settings: UploadSettings, png_files, fake_png: bytes
    ):
        """게시된 파일은 /memes/<name>으로 그대로 서빙."""
        client.post("/upload", files=png_files())
        name = next(upload_settings.upload_root.iterdir()).name

        response = client.get(f"/memes/{name}")

        assert response.status_code == 200
        assert response.content == fake_png

    def test_unsupported_type(self, client, upload_settings: UploadSettings, png_files):
        response = client.post("/upload", files=png_files(content_type="image/gif"))

        assert response.status_code == 400
        assert "text-red-500" in response.text
        assert "image/gif" in response.text
        assert "HX-Trigger" not in response.headers
        assert list(upload_settings.upload_root.iterdir()) == []

    def test_missing_field(self, client, png_files):
        response = client.post("/upload", files=png_files(field_name="file"))

        assert response.status_code == 400
        assert "meme-file" in response.text

    def test_not_multipart(self, client):
        response = client.post("/upload", data={"meme-file": "hello"})

        assert response.status_code == 400
        assert "could not be read" in response.text

    def test_too_large(self, upload_settings: UploadSettings, png_files):
        """상한 초과 → 413, 파일 없음."""
        settings = UploadSettings(
            upload_root=upload_settings.upload_root,
            staging_dir=upload_settings.staging_dir,
            max_bytes=100,
            fsync=False,
        )

        with _client(settings) as client:
            response = client.post("/upload", files=png_files())

        assert response.status_code == 413
        assert "File too large! Max size is 100 B." in response.text
        assert list(settings.upload_root.iterdir()) == []
        assert list(settings.staging_dir.iterdir()) == []


# =============================================================================
# GET /existing-memes
# =============================================================================


class TestExistingMemes:
    """갤러리 조각 테스트."""

    def test_empty_gallery(self, client):
        response = client.get("/existing-memes")

        assert response.status_code == 200
        assert "No memes yet" in response.text

    def test_lists_uploads(self, client, png_files):
        for _ in range(3):
            assert client.post("/upload", files=png_files()).status_code == 200

        response = client.get("/existing-memes")

        assert response.text.count("<img") == 3
        assert 'src="/memes/' in response.text

    def test_includes_external_files(
        self, client, upload_settings: UploadSettings, fake_png: bytes
    ):
        """루트에 직접 넣은 파일도 나열."""
        (upload_settings.upload_root / "manual.png").write_bytes(fake_png)

        response = client.get("/existing-memes")

        assert 'src="/memes/manual.png"' in response.text


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# =============================================================================
# HTML Fragments
# =============================================================================


class TestFragments:
    """업로드 결과 조각 빌더 테스트."""

    def test_success_fragment_requires_meme(self):
        """거절 결과로 성공 조각을 만들면 RuntimeError (-O에서도 유지)."""
        outcome = UploadOutcome.rejected(ErrorCodes.MISSING_FIELD, {"field_name": "meme-file"})

        with pytest.raises(RuntimeError):
            build_success_html(outcome)

    def test_error_fragment_escapes_message(self):
        outcome = UploadOutcome.rejected(
            ErrorCodes.UNSUPPORTED_MEDIA_TYPE, {"content_type": "<script>"}
        )

        fragment = build_error_html(outcome)

        assert "<script>" not in fragment
        assert "text-red-500" in fragment
