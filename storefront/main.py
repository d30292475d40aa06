# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .catalog import catalog_router
from .catalog.blobs import BlobStore, LocalBlobStore
from .catalog.cache import CacheStore
from .catalog.service import CatalogService
from .catalog.store import InMemoryProductStore, ProductStore
from .config import Settings, get_settings
from .errors import StorefrontError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProductStore] = None,
    blobs: Optional[BlobStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One cache per process, shared by every request handler.
        cache = CacheStore()
        app.state.catalog = CatalogService(
            store=store if store is not None else InMemoryProductStore(),
            blobs=blobs if blobs is not None else LocalBlobStore(settings.media_dir, settings.media_base_url),
            cache=cache,
            page_size=settings.product_per_page,
        )
        logger.info("Catalog ready (page size %d)", settings.product_per_page)
        yield
        cache.clear()
        logger.info("Catalog cache cleared")

    app = FastAPI(
        title="Storefront API",
        description="Product catalogue with a process-local read cache.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "API is working with /api/v1"}

    app.include_router(catalog_router)

    # Photos are served from here only when the base URL is local to this app.
    if settings.media_base_url.startswith("/"):
        settings.media_dir.mkdir(parents=True, exist_ok=True)
        app.mount(
            settings.media_base_url,
            StaticFiles(directory=str(settings.media_dir)),
            name="media",
        )
    return app
