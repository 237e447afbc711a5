# catalog/api/deps.py
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from catalog.api.schemas.product import ImageUpload, ProductInput
from catalog.core.errors import PayloadTooLarge, ValidationError
from catalog.services.product_store import ProductStore


def get_store(request: Request) -> ProductStore:
    """
    Dependency that returns the app's product store.
    Usage:
        store: ProductStore = Depends(get_store)
    """
    return request.app.state.store


async def _read_upload(upload: UploadFile, max_bytes: int) -> ImageUpload:
    # read one byte past the ceiling so oversized files are caught without loading them whole
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise PayloadTooLarge(f"File size must be less than {max_bytes // (1024 * 1024)}MB")
    return ImageUpload(filename=upload.filename or "upload", content_type=upload.content_type, data=data)


async def read_product_payload(request: Request) -> Tuple[ProductInput, Optional[ImageUpload]]:
    """
    Decode a create/update body. JSON bodies map straight onto ProductInput;
    multipart and urlencoded forms are flattened, with repeated `tags` fields
    kept as a list and the `image` part returned as the upload.
    """
    content_type = request.headers.get("content-type", "")
    upload: Optional[ImageUpload] = None
    raw: Dict[str, Any] = {}

    if "application/json" in content_type:
        try:
            body = await request.json()
        except ValueError as e:
            raise ValidationError(f"Malformed JSON body: {e}")
        if not isinstance(body, dict):
            raise ValidationError("Expected a JSON object")
        raw = body
    elif "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        for key in form.keys():
            values = form.getlist(key)
            if key == "image":
                value = values[0]
                if isinstance(value, UploadFile):
                    if value.filename:
                        store = get_store(request)
                        upload = await _read_upload(value, store.images.max_bytes)
                    continue
                raw[key] = value
            elif key == "tags" and len(values) > 1:
                raw[key] = [v for v in values if isinstance(v, str)]
            elif not isinstance(values[0], UploadFile):
                raw[key] = values[0]

    try:
        fields = ProductInput.model_validate(raw)
    except PydanticValidationError as e:
        errors = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ValidationError(errors)
    return fields, upload
