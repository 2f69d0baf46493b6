"""External (OMDB) ratings stored alongside catalog entries."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.errors import AppError
from reelhouse.models.content import Content
from reelhouse.services.catalog import get_content
from reelhouse.services.omdb import OmdbService, extract_ratings

logger = logging.getLogger(__name__)

settings = get_settings()


async def _apply_ratings(
    db: AsyncSession, content: Content, imdb_id: str, omdb: OmdbService
) -> Content:
    data = await omdb.get_title(imdb_id)
    content.imdb_id = imdb_id
    content.omdb_ratings = extract_ratings(data)
    content.omdb_updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(content)
    return content


async def update_content_rating(
    db: AsyncSession, content_id: int, imdb_id: str, omdb: OmdbService
) -> Content:
    """Link a catalog entry to an IMDB id and store its current ratings."""
    content = await get_content(db, content_id)
    content = await _apply_ratings(db, content, imdb_id, omdb)
    logger.info("Ratings for content %s updated from %s", content_id, imdb_id)
    return content


async def _run_batch(
    db: AsyncSession,
    items: Iterable[tuple],
    omdb: OmdbService,
    delay: Optional[float],
) -> Dict[str, Any]:
    if delay is None:
        delay = settings.omdb_request_delay_seconds

    result: Dict[str, Any] = {"updated": 0, "failed": 0, "errors": []}
    for index, (content_id, imdb_id) in enumerate(items):
        if index and delay:
            await asyncio.sleep(delay)

        name = None
        try:
            content = await get_content(db, content_id)
            name = content.name
            await _apply_ratings(db, content, imdb_id, omdb)
            result["updated"] += 1
        except AppError as exc:
            await db.rollback()
            logger.warning("Rating update failed for content %s: %s", content_id, exc.message)
            result["failed"] += 1
            result["errors"].append({"content_id": content_id, "name": name, "error": exc.message})
    return result


async def sync_all_ratings(
    db: AsyncSession, omdb: OmdbService, delay: Optional[float] = None
) -> Dict[str, Any]:
    """Refresh ratings for every catalog entry that has an IMDB id."""
    rows = await db.execute(
        select(Content.id, Content.imdb_id)
        .where(Content.imdb_id.is_not(None))
        .order_by(Content.id)
    )
    items = [(content_id, imdb_id) for content_id, imdb_id in rows.all()]
    result = await _run_batch(db, items, omdb, delay)
    logger.info(
        "Ratings sync finished: %d updated, %d failed", result["updated"], result["failed"]
    )
    return result


async def batch_update_ratings(
    db: AsyncSession,
    updates: Iterable[Dict[str, Any]],
    omdb: OmdbService,
    delay: Optional[float] = None,
) -> Dict[str, Any]:
    """Apply ``{"content_id", "imdb_id"}`` pairs; failures are reported per item."""
    items = [(update["content_id"], update["imdb_id"]) for update in updates]
    return await _run_batch(db, items, omdb, delay)
