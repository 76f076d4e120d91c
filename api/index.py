"""
Catalog Service - Main FastAPI Application

Single entry point for the catalog HTTP API. The MongoDB client and the
ProductRepository are created in the lifespan handler and closed on shutdown.
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import OperationFailure, PyMongoError

from core.config import Settings
from core.db import DOCUMENT_VALIDATION_FAILURE, create_mongo_client, init_store
from core.errors import (
    ERROR_DOCUMENT_VALIDATION,
    ERROR_INTERNAL,
    ERROR_STORE_UNAVAILABLE,
    CatalogError,
)
from core.logging import get_logger
from core.middleware.timeout import RequestTimeoutMiddleware
from core.routers import products_router
from core.services.repositories import ProductRepository
from core.services.validation import format_errors

logger = get_logger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings: Settings = app.state.settings

    # Repository injected up front (tests, embedding) - nothing to open
    if getattr(app.state, "product_repository", None) is not None:
        yield
        return

    client = create_mongo_client(settings)
    try:
        collection = await init_store(client, settings)
        app.state.product_repository = ProductRepository(
            collection,
            max_page_limit=settings.page_limit_cap,
            default_page_limit=settings.default_page_limit,
        )
        logger.info(
            f"Connected to MongoDB database={settings.mongodb_db} collection={settings.mongodb_collection}"
        )
        yield
    finally:
        app.state.product_repository = None
        await client.close()


# ==================== ERROR HANDLERS ====================

async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": format_errors(exc.errors())})


async def store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    # Writes rejected by the collection's $jsonSchema validator are client errors
    if isinstance(exc, OperationFailure) and exc.code == DOCUMENT_VALIDATION_FAILURE:
        return JSONResponse(status_code=400, content={"error": ERROR_DOCUMENT_VALIDATION})
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": ERROR_STORE_UNAVAILABLE})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": ERROR_INTERNAL})


# ==================== FASTAPI APP ====================

def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[ProductRepository] = None,
) -> FastAPI:
    """Build the catalog application.

    Passing ``repository`` skips MongoDB setup in the lifespan handler.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Catalog Service",
        description="Product catalog with variants, reviews and stock",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.product_repository = repository

    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(products_router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "service": "catalog"}

    return app


app = create_app()


def run() -> None:
    """Run the API with uvicorn (``catalog-api`` console script)."""
    import uvicorn

    uvicorn.run(
        "api.index:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
    )
