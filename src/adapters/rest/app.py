"""
FastAPI application — REST adapter for the Meal Planner.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings, configure_logging
from factory import ServiceFactory
from domain.exceptions import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from adapters.rest.dependencies import set_factory
from adapters.rest.routers import auth, users, menus, preferences, schedules, suggestions

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Domain error → HTTP status
_STATUS_BY_ERROR = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (DuplicateEmailError, status.HTTP_409_CONFLICT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (InvalidRequestError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def _make_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app. Settings default to the environment."""
    settings = settings or Settings.from_env(project_root=_src_dir.parent)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize ServiceFactory on startup."""
        configure_logging(settings.log_level)
        factory = ServiceFactory(settings)
        await factory.initialize()
        set_factory(factory)
        app.state.factory = factory
        logger.info("Meal Planner API started (env=%s)", settings.app_env)
        yield
        # No teardown needed — aiosqlite connections are per-operation
        set_factory(None)

    app = FastAPI(
        title="Meal Planner",
        version=VERSION,
        description="Daily breakfast/lunch/dinner suggestions from a curated menu catalog.",
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for error, status_code in _STATUS_BY_ERROR:
        app.add_exception_handler(error, _make_handler(status_code))

    # Register routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(menus.router)
    app.include_router(preferences.router)
    app.include_router(schedules.router)
    app.include_router(suggestions.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
