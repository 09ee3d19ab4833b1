# ABOUTME: FastAPI application factory with service wiring and refresh-loop lifespan.
# ABOUTME: Main entry point for the hn-digest JSON API.

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hn_digest.config import get_settings
from hn_digest.services.container import Services, build_services
from hn_digest.services.scheduler import refresh_loop

logger = structlog.get_logger()


def create_app(services: Services | None = None, schedule: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    services = services or build_services(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Application lifespan: database setup, refresh loop, teardown."""
        logger.info("app_startup")
        await services.start()

        refresher = None
        if schedule and services.settings.fetch_interval_hours > 0:
            refresher = asyncio.create_task(refresh_loop(services))
        yield
        logger.info("app_shutdown")
        if refresher is not None:
            refresher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresher
        await services.close()

    app = FastAPI(
        title="hn-digest",
        description="Trending Hacker News threads with translations and summaries",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"])

    from hn_digest.web.routes import router

    app.include_router(router)

    return app
