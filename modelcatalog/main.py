"""
3D Model Catalog API - Main Application Entry Point.

Catalogs user-submitted 3D models whose binary assets live in an object
store separate from the metadata database.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modelcatalog import __version__
from modelcatalog.config import Settings, get_settings
from modelcatalog.core.exceptions import CatalogAPIException
from modelcatalog.api.v1.router import api_router
from modelcatalog.services.metrics import MetricsMiddleware

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    app_settings: Settings = app.state.settings
    logger.info(f"Starting {app_settings.PROJECT_NAME}")
    logger.info(f"Storage backend: {app_settings.STORAGE_BACKEND}")
    logger.info(f"Dev mode (bypass auth): {app_settings.DEV_MODE}")

    from modelcatalog.db.session import engine, is_using_sqlite_fallback

    # Auto-create tables for SQLite (dev mode)
    if is_using_sqlite_fallback():
        logger.warning("[DEV MODE] Using SQLite fallback database")
        from modelcatalog.db.base import Base
        from modelcatalog.models import ModelRecord, User  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Development database ready")
    else:
        logger.info("Database: PostgreSQL")

    yield

    logger.info(f"Shutting down {app_settings.PROJECT_NAME}")


async def catalog_exception_handler(request: Request, exc: CatalogAPIException) -> JSONResponse:
    """Render catalog errors as {"error", "message", "details"}."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler for unexpected errors.
    Logs the full error but returns a sanitized response.
    """
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
        },
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Assemble the request pipeline once: middleware, error handlers, routes.

    Nothing here mutates shared state after startup; per-request services
    are built from dependencies.
    """
    app_settings = app_settings or settings

    application = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="""
## 3D Model Catalog API

Catalog of user-submitted 3D models.

### Features
- **Models**: create, edit, list and delete catalog entries
- **Files**: upload preview images, videos and model files to the object store
- **Consistency**: replaced or deleted assets are removed from storage
        """,
        version=__version__,
        openapi_tags=[
            {"name": "models", "description": "Model record operations"},
            {"name": "files", "description": "Asset upload and download"},
            {"name": "health", "description": "Service health checks"},
        ],
        lifespan=lifespan,
    )
    application.state.settings = app_settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(MetricsMiddleware)

    application.add_exception_handler(CatalogAPIException, catalog_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)

    application.include_router(api_router, prefix=app_settings.API_V1_PREFIX)

    @application.get("/", include_in_schema=False)
    async def root():
        """Service information."""
        return {
            "name": app_settings.PROJECT_NAME,
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
            "api": app_settings.API_V1_PREFIX,
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "modelcatalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
