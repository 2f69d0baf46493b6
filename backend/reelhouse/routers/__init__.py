"""API routers."""

from reelhouse.routers import (
    admin,
    auth,
    content,
    health,
    profiles,
    statistics,
    viewing_history,
)

__all__ = [
    "admin",
    "auth",
    "content",
    "health",
    "profiles",
    "statistics",
    "viewing_history",
]
