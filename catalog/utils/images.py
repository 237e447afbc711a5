# catalog/utils/images.py
import io
import os
import logging
import random
import time
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from catalog.core.errors import PayloadTooLarge, UnsupportedMediaType
from catalog.core.resolver import is_absolute_url

logger = logging.getLogger(__name__)

# safe image extensions we allow
ALLOWED_EXT = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp"}

# served same-origin from /uploads, so no scriptable image types
BLOCKED_TYPES = {"image/svg+xml"}

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def _ensure_dir(path: Path):
    path.mkdir(parents=True, exist_ok=True)


def _safe_ext(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lower()


def _detect_ext(contents: bytes) -> str:
    try:
        im = Image.open(io.BytesIO(contents))
        return f".{im.format.lower()}" if im.format else ".jpg"
    except (UnidentifiedImageError, OSError, ValueError):
        return ".jpg"


class ImageStorage:
    """
    Stores uploaded product images as flat files under `root` and hands out
    storage-relative references ("/uploads/product-<ms>-<rand>.jpg").
    """

    def __init__(self, root, url_prefix: str = "/uploads/", max_bytes: int = DEFAULT_MAX_BYTES, name_prefix: str = "product"):
        self.root = Path(root)
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"
        self.max_bytes = max_bytes
        self.name_prefix = name_prefix

    def check(self, size: int, content_type: Optional[str]) -> None:
        """Raise before anything touches disk if the attachment is not acceptable."""
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        if not mime.startswith("image/") or mime in BLOCKED_TYPES:
            raise UnsupportedMediaType(f"Expected an image upload, got content type {content_type!r}")
        if size > self.max_bytes:
            raise PayloadTooLarge(f"File size must be less than {self.max_bytes // (1024 * 1024)}MB")

    def _make_filename(self, original_name: str, contents: bytes) -> str:
        ext = _safe_ext(original_name)
        if ext not in ALLOWED_EXT:
            ext = _detect_ext(contents)
        while True:
            unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
            fname = f"{self.name_prefix}-{unique}{ext}"
            if not (self.root / fname).exists():
                return fname

    def save(self, contents: bytes, suggested_name: str, content_type: Optional[str] = "image/jpeg") -> str:
        self.check(len(contents), content_type)
        _ensure_dir(self.root)
        fname = self._make_filename(suggested_name, contents)
        path = self.root / fname
        with open(path, "wb") as f:
            f.write(contents)
        logger.info("Image saved: %s", path)
        return f"{self.url_prefix}{fname}"

    def is_local(self, reference: Optional[str]) -> bool:
        return self.path_for(reference) is not None

    def path_for(self, reference: Optional[str]) -> Optional[Path]:
        """Map a storage reference to its file, or None if it is not one of ours."""
        if not reference or is_absolute_url(reference) or not reference.startswith(self.url_prefix):
            return None
        name = reference[len(self.url_prefix):]
        if not name:
            return None
        root = self.root.resolve()
        path = (root / name).resolve()
        # refuse references that climb out of the uploads root
        if root not in path.parents:
            return None
        return path

    def delete(self, reference: Optional[str]) -> bool:
        """Best-effort removal. Returns False when there was nothing to delete."""
        path = self.path_for(reference)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not delete image file %s: %s", path, e)
            return False
        logger.info("Image file deleted: %s", path)
        return True
