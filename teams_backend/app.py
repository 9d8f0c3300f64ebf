"""
FastAPI application entry point for the teams backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teams_backend.config import Settings, get_settings
from teams_backend.dependencies import Backends, connect_backends
from teams_backend.errors import install_error_handlers
from teams_backend.routes import router

logger = logging.getLogger(__name__)


def create_app(
    backends: Optional[Backends] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application. Injected ``backends`` are used as-is; otherwise the
    stores are connected on startup and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.backends is None
        if owned:
            app.state.backends = connect_backends(settings)
        try:
            yield
        finally:
            if owned:
                app.state.backends.close()
                app.state.backends = None

    app = FastAPI(title="Teams Backend (FastAPI)", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.backends = backends

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


def main() -> None:
    """Connect the stores, then serve; a failed connection exits the process."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    backends = connect_backends(settings)
    try:
        logger.info("Starting server on http://%s:%d", settings.host, settings.port)
        uvicorn.run(
            create_app(backends=backends, settings=settings),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    finally:
        backends.close()


app = create_app()
