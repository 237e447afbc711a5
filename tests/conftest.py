# tests/conftest.py
import os
import sys
import io
from pathlib import Path

import pytest
from PIL import Image
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from catalog.config import Settings  # noqa: E402
from catalog.core.resolver import ImageResolver  # noqa: E402
from catalog.database import repository_for  # noqa: E402
from catalog.main import create_app  # noqa: E402
from catalog.services.product_store import ProductStore  # noqa: E402
from catalog.utils.images import ImageStorage  # noqa: E402

BASE_URL = "http://testserver.local"
PLACEHOLDER = "https://via.placeholder.com/300x300/4A5568/FFFFFF?text=No+Image"


@pytest.fixture
def settings(tmp_path):
    """
    Settings pointed at an isolated temp directory for data and uploads.
    """
    return Settings(
        DATA_DIR=tmp_path / "data",
        UPLOADS_DIR=tmp_path / "uploads",
        PRODUCTS_FILE="products.json",
        PUBLIC_BASE_URL=BASE_URL,
        PLACEHOLDER_IMAGE_URL=PLACEHOLDER,
        _env_file=None,
    )


@pytest.fixture
def images(settings):
    return ImageStorage(settings.UPLOADS_DIR, url_prefix=settings.UPLOADS_URL_PREFIX, max_bytes=settings.MAX_UPLOAD_BYTES)


@pytest.fixture
def store(settings, images):
    """Store with JSON persistence under the temp data dir."""
    return ProductStore(images, ImageResolver.from_settings(settings), repository_for(settings.products_path))


@pytest.fixture
def memory_store(settings, images):
    """Store without persistence."""
    return ProductStore(images, ImageResolver.from_settings(settings))


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # context manager runs the lifespan (uploads dir + load)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_sample_jpeg_bytes():
    """
    Return a callable that generates JPEG bytes for tests that need image uploads.
    Usage: jpg = make_sample_jpeg_bytes(size=(200,200))
    """
    def _fn(size=(200, 200), color=(180, 120, 60)):
        bio = io.BytesIO()
        im = Image.new("RGB", size, color)
        im.save(bio, format="JPEG", quality=85)
        bio.seek(0)
        return bio.read()
    return _fn


def upload_path(uploads_dir: Path, reference: str) -> Path:
    """'/uploads/product-1.jpg' -> <uploads_dir>/product-1.jpg"""
    return Path(uploads_dir) / reference.rsplit("/", 1)[-1]
