"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config.config import Settings, get_settings
from ..repositories.meme_repository import MemeRepository
from ..store.base import MemeStore
from ..store.factory import create_store
from ..utils.logging import get_logger, setup_logging
from .middleware.error_handler import register_exception_handlers
from .middleware.metrics import MetricsMiddleware
from .middleware.rate_limit import ClientRateLimiter, RateLimitConfig, RateLimitMiddleware
from .routers import health, memes, metrics

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[MemeStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; defaults to the environment
        store: Pre-built store; when omitted the configured backend is
            connected on startup

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(settings.log_level, settings.log_json, settings.log_file)
        meme_store = store if store is not None else await create_store(settings)
        app.state.repository = MemeRepository(
            meme_store,
            document_timeout=settings.document_timeout,
            aggregate_timeout=settings.aggregate_timeout,
        )
        logger.info("starting_server", port=settings.port, env=settings.app_env, backend=meme_store.name)
        try:
            yield
        finally:
            await meme_store.close()
            logger.info("stopped_server", port=settings.port)

    app = FastAPI(
        title=settings.app_name,
        description="Catalog of short multimedia records",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    if settings.limiter_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=ClientRateLimiter(
                RateLimitConfig(
                    requests_per_second=settings.limiter_rps,
                    burst_size=settings.limiter_burst,
                )
            ),
        )

    if settings.cors_trusted_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_trusted_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Added last so it is outermost and also counts rate-limited requests.
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)

    app.include_router(metrics.router, tags=["metrics"])
    app.include_router(health.router, prefix="/v1", tags=["health"])
    app.include_router(memes.router, prefix="/v1", tags=["memes"])

    return app
