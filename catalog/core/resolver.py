# catalog/core/resolver.py
"""
Image reference resolution. Stored products keep host-independent image
references ("/uploads/product-1.jpg", an absolute URL, or ""); the resolver
turns them into URLs a client can fetch. It is only applied to copies handed
back to callers, never to stored records.
"""
import re
from dataclasses import dataclass
from typing import Optional

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def is_absolute_url(reference: Optional[str]) -> bool:
    if not reference:
        return False
    return bool(_SCHEME_RE.match(reference)) or reference.startswith("data:")


def resolve_image_url(reference: Optional[str], base_url: str, uploads_prefix: str = "/uploads/", placeholder: str = "") -> str:
    if not reference:
        return placeholder
    if is_absolute_url(reference):
        return reference
    if reference.startswith(uploads_prefix):
        return f"{base_url.rstrip('/')}{reference}"
    return reference


@dataclass(frozen=True)
class ImageResolver:
    base_url: str
    uploads_prefix: str = "/uploads/"
    placeholder: str = ""

    @classmethod
    def from_settings(cls, settings) -> "ImageResolver":
        return cls(
            base_url=settings.public_base_url,
            uploads_prefix=settings.UPLOADS_URL_PREFIX,
            placeholder=settings.PLACEHOLDER_IMAGE_URL,
        )

    def __call__(self, reference: Optional[str]) -> str:
        return resolve_image_url(reference, self.base_url, self.uploads_prefix, self.placeholder)
