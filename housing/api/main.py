"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from housing.api.errors import register_exception_handlers
from housing.api.rate_limit import SlidingWindowRateLimiter
from housing.api.routes import health, housing_shares
from housing.config import settings
from housing.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level)
    logger.info("housing_service_starting", object_store=settings.object_store_backend)
    yield
    logger.info("housing_service_stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Housing Share Service",
        description="Shared student housing listings with photo management.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.create_rate_limiter = SlidingWindowRateLimiter(
        settings.create_rate_limit, settings.create_rate_window_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(housing_shares.router)

    if settings.object_store_backend == "local":
        media_dir = Path(settings.local_media_dir)
        media_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/media", StaticFiles(directory=media_dir), name="media")

    return app


app = create_app()
