"""Success envelope shared by all API routes."""

from typing import Any

from fastapi.encoders import jsonable_encoder


def success(data: Any = None, message: str = "Success") -> dict:
    """Wrap ``data`` as ``{"success": true, "message": ..., "data": ...}``."""
    return {"success": True, "message": message, "data": jsonable_encoder(data)}
