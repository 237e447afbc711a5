# catalog/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from contextlib import asynccontextmanager
from typing import Optional

from catalog.config import Settings, get_settings
from catalog.api.routes import health as health_routes
from catalog.api.routes import products as product_routes
from catalog.api.routes.health import ENDPOINTS
from catalog.core.errors import CatalogError, PersistenceError
from catalog.core.resolver import ImageResolver
from catalog.database import repository_for
from catalog.middleware.cors_config import configure_cors
from catalog.services.product_store import ProductStore
from catalog.utils.images import ImageStorage


logger = logging.getLogger("uvicorn.error")


def build_store(settings: Settings) -> ProductStore:
    images = ImageStorage(
        settings.UPLOADS_DIR,
        url_prefix=settings.UPLOADS_URL_PREFIX,
        max_bytes=settings.MAX_UPLOAD_BYTES,
    )
    repository = repository_for(settings.products_path) if settings.PERSISTENCE_ENABLED else None
    return ProductStore(images, ImageResolver.from_settings(settings), repository)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: make sure the uploads directory exists and load persisted
    products. A products file that cannot be read is reported and the store
    starts empty rather than refusing to serve.
    """
    settings: Settings = app.state.settings
    store: ProductStore = app.state.store
    store.images.root.mkdir(parents=True, exist_ok=True)
    logger.info("Uploads directory: %s", store.images.root.resolve())

    if store.repository is None:
        logger.info("Persistence disabled, products are kept in memory only")
    else:
        try:
            count = store.load()
            logger.info("Loaded %d products from %s", count, store.repository.path)
        except PersistenceError as e:
            logger.warning("Starting with an empty catalog: %s", e.message)

    logger.info("API URL: %s/api", settings.public_base_url)
    logger.info("Images URL: %s%s", settings.public_base_url, settings.UPLOADS_URL_PREFIX)
    yield
    logger.info("Shutting down Product Catalog API")


def _failure(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, "message": message, **extra})


def add_exception_handlers(app: FastAPI):
    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _failure(400, "Validation failed", str(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            logger.info("404 - Route not found: %s", request.url.path)
            return _failure(
                404,
                "API endpoint not found",
                str(exc.detail),
                requestedUrl=str(request.url.path),
                availableEndpoints=["GET /"] + list(ENDPOINTS.values()),
            )
        return _failure(exc.status_code, str(exc.detail), str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Server error on %s %s", request.method, request.url.path)
        return _failure(500, "Server error", str(exc))


def create_app(settings: Optional[Settings] = None, store: Optional[ProductStore] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Product Catalog API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or build_store(settings)

    configure_cors(app, settings.cors_origins)
    add_exception_handlers(app)

    app.include_router(health_routes.router)
    app.include_router(product_routes.router)

    # uploaded images; the directory is created at startup
    app.mount(
        settings.UPLOADS_URL_PREFIX.rstrip("/"),
        StaticFiles(directory=str(settings.UPLOADS_DIR), check_dir=False),
        name="uploads",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("catalog.main:app", host="0.0.0.0", port=s.PORT)
