# catalog/api/routes/health.py
from typing import Any, Dict

from fastapi import APIRouter, Depends

from catalog.api.deps import get_store
from catalog.models.product import utc_timestamp
from catalog.services.product_store import ProductStore

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "health": "GET /api/health",
    "getAllProducts": "GET /api/products",
    "getProduct": "GET /api/products/:id",
    "createProduct": "POST /api/products",
    "updateProduct": "PUT /api/products/:id",
    "deleteProduct": "DELETE /api/products/:id",
}


@router.get("/api/health")
def health(store: ProductStore = Depends(get_store)) -> Dict[str, Any]:
    return {
        "success": True,
        "status": "OK",
        "timestamp": utc_timestamp(),
        **store.health(),
        "message": "Server is running correctly!",
    }


@router.get("/")
def root() -> Dict[str, Any]:
    return {
        "success": True,
        "message": "Product Catalog API Server",
        "endpoints": ENDPOINTS,
        "timestamp": utc_timestamp(),
    }
