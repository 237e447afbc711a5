# catalog/core/errors.py
"""
Error taxonomy for the catalog. Every error carries the HTTP status it maps to,
a short `error` label and a human readable `message`; the app's exception
handlers turn them into the `{"success": false, ...}` envelope.
"""
from typing import Any, Dict, Optional


class CatalogError(Exception):
    status_code: int = 500
    error: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "message": self.message}


class ValidationError(CatalogError):
    """A required field is missing or a typed field could not be parsed."""

    status_code = 400
    error = "Validation failed"


class NotFound(CatalogError):
    status_code = 404
    error = "Product not found"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"No product with id '{product_id}'")

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["id"] = self.product_id
        return out


class UnsupportedMediaType(CatalogError):
    status_code = 415
    error = "Only image files are allowed"


class PayloadTooLarge(CatalogError):
    status_code = 413
    error = "File too large"


class PersistenceError(CatalogError):
    """Writing or reading the products file failed. The store logs these, it never raises them to callers."""

    status_code = 500
    error = "Persistence failed"
