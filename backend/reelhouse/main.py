"""Reelhouse - Main FastAPI Application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from reelhouse.config import get_settings
from reelhouse.database import init_db
from reelhouse.errors import UnauthorizedError, error_response, register_exception_handlers
from reelhouse.routers import (
    admin,
    auth,
    content,
    health,
    profiles,
    statistics,
    viewing_history,
)
from reelhouse.seed import seed_database
from reelhouse.services.auth import decode_subject

config = get_settings()

logging.basicConfig(
    level=config.log_level.upper(),
    format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Paths that do NOT require authentication
AUTH_EXEMPT_PATHS = {
    "/",
    "/health",
    "/health/ready",
    "/api/auth/login",
    "/api/auth/register",
}
AUTH_EXEMPT_PREFIXES = (
    "/docs",
    "/redoc",
    "/openapi",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    await init_db()
    if config.seed_content_on_startup:
        await seed_database()
    logger.info("%s %s started", config.app_name, config.app_version)
    yield


app = FastAPI(
    title=config.app_name,
    description="Streaming catalog, profiles, viewing progress and statistics API",
    version=config.app_version,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def require_authentication(request: Request, call_next):
    """Reject unauthenticated API calls before they reach a router."""
    path = request.url.path.rstrip("/") or "/"

    if path in AUTH_EXEMPT_PATHS or path.startswith(AUTH_EXEMPT_PREFIXES):
        return await call_next(request)

    if not path.startswith("/api"):
        return await call_next(request)

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return error_response(
            UnauthorizedError.status_code,
            "Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if decode_subject(auth_header[7:]) is None:
        return error_response(
            UnauthorizedError.status_code,
            "Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await call_next(request)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(profiles.router, prefix="/api", tags=["Profiles"])
app.include_router(viewing_history.router, prefix="/api", tags=["Viewing History"])
app.include_router(statistics.router, prefix="/api", tags=["Statistics"])
app.include_router(content.router, prefix="/api/content", tags=["Content"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": config.app_name,
        "version": config.app_version,
        "description": "Streaming catalog, profiles, viewing progress and statistics API",
    }
