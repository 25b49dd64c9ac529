"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from draw_sessions.api.errors import (
    ApiError,
    handle_api_error,
    handle_validation_error,
)
from draw_sessions.api.sessions import router as sessions_router
from draw_sessions.app_logging import configure_logging
from draw_sessions.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        state_container.sweeper.start()
        logger.info(
            "Session sweeper running every %ss",
            state_container.sweeper.interval_seconds,
        )
        yield
        await state_container.sweeper.stop()
        await state_container.session_manager.drain()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(sessions_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
