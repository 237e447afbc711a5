# catalog/api/routes/products.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from catalog.api.deps import get_store, read_product_payload
from catalog.services.product_store import ProductStore

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
def list_products(store: ProductStore = Depends(get_store)) -> Dict[str, Any]:
    """
    List all products in insertion order, with absolute image URLs.
    """
    products = store.list()
    return {"success": True, "data": products, "count": len(products)}


@router.get("/{product_id}")
def get_product(product_id: str, store: ProductStore = Depends(get_store)) -> Dict[str, Any]:
    return {"success": True, "product": store.get(product_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(request: Request, store: ProductStore = Depends(get_store)):
    """
    Create a product from a JSON body or a multipart form with an optional
    `image` file part. Only `name` is required.
    """
    fields, upload = await read_product_payload(request)
    product = store.create(fields, upload)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"success": True, "message": "Product uploaded successfully", "product": product},
    )


@router.put("/{product_id}")
async def update_product(product_id: str, request: Request, store: ProductStore = Depends(get_store)) -> Dict[str, Any]:
    """
    Partial update: fields left out keep their stored values. A new `image`
    file replaces (and deletes) the previously uploaded one.
    """
    fields, upload = await read_product_payload(request)
    product = store.update(product_id, fields, upload)
    return {"success": True, "message": "Product updated successfully", "product": product}


@router.delete("/{product_id}")
def delete_product(product_id: str, store: ProductStore = Depends(get_store)) -> Dict[str, Any]:
    deleted_id = store.delete(product_id)
    return {"success": True, "message": "Product deleted successfully", "deletedId": deleted_id}
