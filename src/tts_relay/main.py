"""
FastAPI Application Entry Point.

Creates and configures the FastAPI application for tts-relay: logging,
request-id correlation, error handling, API routes, startup warnings and
the static frontend.

Usage:
    # Run with uvicorn
    uvicorn tts_relay.main:app --host 0.0.0.0 --port 3000

    # Or through the CLI
    tts-relay --serve
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tts_relay import __version__
from tts_relay.api.dependencies import get_relay_config
from tts_relay.api.routes import router
from tts_relay.core.config import RelayConfig, config_warnings
from tts_relay.core.logging import (
    configure_logging,
    error,
    get_logger,
    info,
    new_request_id,
    set_request_id,
    warn,
)
from tts_relay.services.relay import ErrorCode, RelayError

_LOG = get_logger("tts-relay.main")


def _startup_report(config: RelayConfig) -> None:
    """Log the effective configuration and any misconfiguration warnings."""
    info(
        _LOG,
        "startup",
        version=__version__,
        port=config.server.port,
        model_id=config.upstream.model_id,
        token_ttl_days=config.auth.token_ttl_days,
    )
    for message in config_warnings(config):
        warn(_LOG, message, event="config_warning")


def create_app(config: Optional[RelayConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function:
        1. Configures structured logging
        2. Installs request-id middleware and the RelayError handler
        3. Registers the API router
        4. Mounts the static frontend (if the directory exists)
        5. Logs configuration warnings on startup

    Args:
        config: Explicit configuration. If omitted, configuration is loaded
            from settings.yaml and the environment.

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    resolved = config or get_relay_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup_report(resolved)
        yield
        info(_LOG, "shutdown")

    app = FastAPI(title="tts-relay", version=__version__, lifespan=lifespan)

    if config is not None:
        app.dependency_overrides[get_relay_config] = lambda: config

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        rid = new_request_id()
        set_request_id(rid)
        try:
            response = await call_next(request)
        except Exception as exc:
            # Log internally but don't expose details
            error(_LOG, "unhandled_error", path=request.url.path, error=type(exc).__name__, exc_info=exc)
            response = JSONResponse(
                status_code=500,
                content={
                    "ok": False,
                    "error": ErrorCode.INTERNAL_ERROR,
                    "message": "Internal server error",
                },
            )
        response.headers["X-Request-Id"] = rid
        return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(router)

    # Mounted last so API routes take precedence over the frontend
    static_dir = Path(resolved.server.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
