"""Viewing progress endpoints used by the player to resume playback."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.database import get_db
from reelhouse.responses import success
from reelhouse.schemas import ContentOut, HistoryEntryOut, ProgressIn, ProgressOut
from reelhouse.services import progress
from reelhouse.services.auth import RequestContext, get_request_context

router = APIRouter()
settings = get_settings()


@router.post("/profiles/{profile_id}/viewing-history")
async def save_progress(
    profile_id: int,
    request: ProgressIn,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    record = await progress.save_progress(
        db,
        ctx,
        profile_id,
        request.content_id,
        request.current_time,
        request.duration,
        request.completed,
    )
    return success(ProgressOut.model_validate(record), "Progress saved successfully")


@router.get("/profiles/{profile_id}/viewing-history")
async def get_profile_history(
    profile_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    rows = await progress.get_profile_history(db, ctx, profile_id, limit)
    entries = [
        HistoryEntryOut.model_validate(record).model_copy(
            update={"content": ContentOut.model_validate(content) if content else None}
        )
        for record, content in rows
    ]
    return success(entries, "Viewing history retrieved successfully")


@router.get("/profiles/{profile_id}/viewing-history/{content_id}")
async def get_progress(
    profile_id: int,
    content_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    record = await progress.get_progress(db, ctx, profile_id, content_id)
    if record is None:
        return success({"currentTime": 0, "completed": False}, "No viewing history found")
    return success(ProgressOut.model_validate(record), "Progress retrieved successfully")


@router.delete("/profiles/{profile_id}/viewing-history/{content_id}")
async def delete_progress(
    profile_id: int,
    content_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    await progress.delete_progress(db, ctx, profile_id, content_id)
    return success(None, "Viewing history deleted successfully")
