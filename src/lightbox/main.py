# src/lightbox/main.py
"""Main entry point for the Lightbox application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from lightbox.api.v1 import (
    media_router,
    public_router,
    site_router,
    stories_router,
    story_images_router,
    system_router,
)
from lightbox.core.settings import settings
from lightbox.services.image_host import get_image_host_client

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Lightbox API",
    description="Content API for a photojournalism portfolio",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(media_router, prefix="/api/v1")
app.include_router(stories_router, prefix="/api/v1")
app.include_router(story_images_router, prefix="/api/v1")
app.include_router(site_router, prefix="/api/v1")
app.include_router(public_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log store failures; the request session is discarded without committing."""
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    if not settings.image_host_configured:
        logger.warning("Image host credentials missing; remote deletes and lookups are disabled")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_image_host_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Content API for a photojournalism portfolio",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("lightbox.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
