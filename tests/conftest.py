"""Shared fixtures for catalog tests."""

import io
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.listing_cache import ListingCache
from app.images.manager import ImageManager
from app.images.storage import LocalImageStorage
from app.infrastructure.config import settings
from app.infrastructure.database import Database
from app.main import app

ADMIN_PASSWORD = "test-admin-password"


# ============================================================================
# Image Fixtures
# ============================================================================


def encode_image(
    image_format: str, size: tuple[int, int] = (20, 20), mode: str = "RGB"
) -> bytes:
    """Encode a solid-colour image with Pillow."""
    color = (200, 80, 40, 128)[: len(mode)] if mode in ("RGB", "RGBA") else 128
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """Small real PNG."""
    return encode_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Small real JPEG."""
    return encode_image("JPEG")


@pytest.fixture
def webp_bytes() -> bytes:
    """Small real WebP."""
    return encode_image("WEBP")


@pytest.fixture
def make_image():
    """Factory encoding a solid-colour image of a given format and size."""
    return encode_image


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Directory for locally stored images."""
    return tmp_path / "media"


@pytest.fixture
def images(media_dir: Path) -> ImageManager:
    """Image manager backed by a temporary directory."""
    return ImageManager(LocalImageStorage(media_dir, "/media"))


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    """Connected database with schema, in a temporary SQLite file."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    await database.connect()
    await database.create_schema()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def session(db: Database) -> AsyncIterator[AsyncSession]:
    """Session on the temporary database."""
    async with db.session() as s:
        yield s


@pytest.fixture
def cache() -> ListingCache:
    """Listing cache with a long window."""
    return ListingCache(ttl_seconds=60.0)


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Test client running the app lifespan against temporary storage."""
    monkeypatch.setattr(
        settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"
    )
    monkeypatch.setattr(settings, "image_storage_backend", "local")
    monkeypatch.setattr(settings, "image_storage_dir", str(tmp_path / "media"))
    monkeypatch.setattr(settings, "image_processing_enabled", True)
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "log_json", False)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Bearer headers for a fresh admin session."""
    response = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
