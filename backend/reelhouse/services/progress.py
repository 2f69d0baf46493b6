"""Viewing progress tracking for resumable playback.

One row per (profile, content) pair. Saves are upserts: the latest write
for a pair wins, and every save moves ``last_watched`` to now.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.errors import NotFoundError
from reelhouse.models.content import Content
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.services.access import get_profile
from reelhouse.services.auth import RequestContext
from reelhouse.services.statistics import invalidate_statistics

logger = logging.getLogger(__name__)

settings = get_settings()


def _now() -> datetime:
    # Local time: statistics bucket views by server-local calendar day
    return datetime.now()


def is_completed(current_time: int, duration: int, threshold: Optional[int] = None) -> bool:
    """A viewing counts as completed within ``threshold`` seconds of the end."""
    if threshold is None:
        threshold = settings.completion_threshold_seconds
    return (duration - current_time) < threshold


async def _find(db: AsyncSession, profile_id: int, content_id: int) -> Optional[ViewingHistory]:
    result = await db.execute(
        select(ViewingHistory).where(
            ViewingHistory.profile_id == profile_id,
            ViewingHistory.content_id == content_id,
        )
    )
    return result.scalar_one_or_none()


async def save_progress(
    db: AsyncSession,
    ctx: RequestContext,
    profile_id: int,
    content_id: int,
    current_time: float,
    duration: float,
    completed: Optional[bool] = None,
) -> ViewingHistory:
    """Upsert the playback position of a profile on a content item."""
    profile = await get_profile(db, ctx, profile_id)

    content_result = await db.execute(select(Content.id).where(Content.id == content_id))
    if content_result.first() is None:
        raise NotFoundError("Content not found")

    position = int(current_time)
    length = int(duration)
    derived = is_completed(position, length)
    if completed is not None and completed != derived:
        logger.debug(
            "Client completed=%s disagrees with derived value for profile %s, content %s",
            completed,
            profile_id,
            content_id,
        )

    values = {
        "current_time": position,
        "duration": length,
        "completed": derived,
        "last_watched": _now(),
    }

    record = await _find(db, profile_id, content_id)
    if record is None:
        record = ViewingHistory(profile_id=profile_id, content_id=content_id, **values)
        db.add(record)
        try:
            await db.commit()
        except IntegrityError:
            # Another request inserted the pair first; overwrite its values.
            await db.rollback()
            record = await _find(db, profile_id, content_id)
            if record is None:
                raise
            for key, value in values.items():
                setattr(record, key, value)
            await db.commit()
    else:
        for key, value in values.items():
            setattr(record, key, value)
        await db.commit()

    await db.refresh(record)
    await invalidate_statistics(profile.user_id)
    logger.info("Viewing progress saved for profile %s, content %s", profile_id, content_id)
    return record


async def get_progress(
    db: AsyncSession, ctx: RequestContext, profile_id: int, content_id: int
) -> Optional[ViewingHistory]:
    """Return the stored row for the pair, or None if it was never saved."""
    await get_profile(db, ctx, profile_id)
    return await _find(db, profile_id, content_id)


async def get_profile_history(
    db: AsyncSession,
    ctx: RequestContext,
    profile_id: int,
    limit: Optional[int] = None,
) -> List[Tuple[ViewingHistory, Optional[Content]]]:
    """Most recently watched rows, each paired with its content (or None)."""
    await get_profile(db, ctx, profile_id)
    if limit is None:
        limit = settings.history_default_limit

    result = await db.execute(
        select(ViewingHistory, Content)
        .outerjoin(Content, Content.id == ViewingHistory.content_id)
        .where(ViewingHistory.profile_id == profile_id)
        .order_by(ViewingHistory.last_watched.desc(), ViewingHistory.id.desc())
        .limit(limit)
    )
    return [(row[0], row[1]) for row in result.all()]


async def delete_progress(
    db: AsyncSession, ctx: RequestContext, profile_id: int, content_id: int
) -> None:
    profile = await get_profile(db, ctx, profile_id)

    record = await _find(db, profile_id, content_id)
    if record is None:
        raise NotFoundError("Viewing history not found")

    await db.delete(record)
    await db.commit()
    await invalidate_statistics(profile.user_id)
    logger.info("Viewing history deleted for profile %s, content %s", profile_id, content_id)


async def delete_profile_history(db: AsyncSession, profile_id: int, commit: bool = True) -> int:
    """Remove every viewing history row of a profile. Returns the row count."""
    result = await db.execute(
        delete(ViewingHistory).where(ViewingHistory.profile_id == profile_id)
    )
    if commit:
        await db.commit()
    return result.rowcount or 0
