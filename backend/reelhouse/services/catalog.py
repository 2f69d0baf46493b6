"""Catalog browsing plus admin maintenance of catalog entries."""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.errors import NotFoundError, ValidationError
from reelhouse.models.content import Content, split_genres
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.schemas import ContentUpdate, ContentWrite
from reelhouse.services.access import get_profile
from reelhouse.services.auth import RequestContext

logger = logging.getLogger(__name__)

settings = get_settings()

# sort option -> (field, descending)
SORT_OPTIONS: Dict[str, Tuple[str, bool]] = {
    "name-asc": ("name", False),
    "name-desc": ("name", True),
    "year-asc": ("year", False),
    "year-desc": ("year", True),
    "rating-desc": ("rating", True),
    "rating": ("rating", True),
}


def _sort_key(field: str):
    if field == "name":
        return lambda content: (content.name or "").lower()
    if field == "year":
        return lambda content: content.year or 0
    if field == "rating":
        return lambda content: content.rating_value
    raise ValidationError(f"Unsupported sort field: {field}")


def sort_content(items: List[Content], field: str, descending: bool) -> List[Content]:
    # Id order first so equal keys stay deterministic
    ordered = sorted(items, key=lambda content: content.id)
    return sorted(ordered, key=_sort_key(field), reverse=descending)


def paginate(items: List[Content], page: int, limit: int) -> Tuple[List[Content], dict]:
    total_count = len(items)
    total_pages = math.ceil(total_count / limit) if limit else 0
    start = (page - 1) * limit
    return items[start:start + limit], {
        "page": page,
        "limit": limit,
        "total_count": total_count,
        "total_pages": total_pages,
        "has_more": page < total_pages,
    }


async def _watched_ids(db: AsyncSession, profile_id: int) -> Set[int]:
    result = await db.execute(
        select(ViewingHistory.content_id).where(ViewingHistory.profile_id == profile_id)
    )
    return {row[0] for row in result.all()}


async def _load(
    db: AsyncSession, genre: Optional[str] = None, content_type: Optional[str] = None
) -> List[Content]:
    query = select(Content)
    if content_type:
        query = query.where(Content.type == content_type)
    if genre:
        query = query.where(Content.genre.icontains(genre.strip(), autoescape=True))
    result = await db.execute(query)
    items = list(result.scalars().all())
    if genre:
        # Whole-token match: "Action" must not match "Action-Adventure"
        items = [content for content in items if content.has_genre(genre)]
    return items


async def _browse(
    db: AsyncSession,
    ctx: RequestContext,
    genre: Optional[str],
    content_type: Optional[str],
    sort_field: str,
    descending: bool,
    page: int,
    limit: int,
    watched: str,
    profile_id: Optional[int],
) -> Tuple[List[Content], dict]:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    if watched not in ("all", "watched", "unwatched"):
        raise ValidationError("watched must be one of: all, watched, unwatched")
    if watched != "all" and profile_id is None:
        raise ValidationError("profileId is required to filter by watched status")

    items = await _load(db, genre, content_type)

    if profile_id is not None and watched != "all":
        await get_profile(db, ctx, profile_id)
        seen = await _watched_ids(db, profile_id)
        if watched == "watched":
            items = [content for content in items if content.id in seen]
        else:
            items = [content for content in items if content.id not in seen]

    items = sort_content(items, sort_field, descending)
    return paginate(items, page, limit)


async def filter_content(
    db: AsyncSession,
    ctx: RequestContext,
    genre: Optional[str] = None,
    content_type: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    sort: str = "name-asc",
    watched: str = "all",
    profile_id: Optional[int] = None,
) -> Tuple[List[Content], dict]:
    """Filter, sort and paginate the catalog.

    Returns the page of content and a pagination dict with ``page``,
    ``limit``, ``total_count``, ``total_pages`` and ``has_more``.
    """
    if sort not in SORT_OPTIONS:
        raise ValidationError(f"Unsupported sort option: {sort}")
    field, descending = SORT_OPTIONS[sort]
    return await _browse(
        db, ctx, genre, content_type, field, descending,
        page, limit or settings.items_per_page, watched, profile_id,
    )


async def content_by_genre(
    db: AsyncSession,
    ctx: RequestContext,
    genre: str,
    page: int = 1,
    limit: Optional[int] = None,
    sort_by: str = "rating",
    order: str = "desc",
    watched: str = "all",
    profile_id: Optional[int] = None,
) -> Tuple[List[Content], dict]:
    """Genre page listing with separate sort field and direction."""
    if sort_by not in ("rating", "name", "year"):
        raise ValidationError("sortBy must be one of: rating, name, year")
    if order not in ("asc", "desc"):
        raise ValidationError("order must be asc or desc")
    return await _browse(
        db, ctx, genre, None, sort_by, order == "desc",
        page, limit or settings.items_per_page, watched, profile_id,
    )


async def list_content(db: AsyncSession) -> List[Content]:
    result = await db.execute(select(Content).order_by(Content.id))
    return list(result.scalars().all())


async def get_content(db: AsyncSession, content_id: int) -> Content:
    result = await db.execute(select(Content).where(Content.id == content_id))
    content = result.scalar_one_or_none()
    if not content:
        raise NotFoundError("Content not found")
    return content


async def list_genres(db: AsyncSession) -> List[str]:
    """Sorted distinct genre tokens across the catalog."""
    result = await db.execute(select(Content.genre).distinct())
    tokens = set()
    for (genre,) in result.all():
        tokens.update(split_genres(genre))
    return sorted(tokens)


async def similar_content(
    db: AsyncSession, content_id: int, limit: Optional[int] = None
) -> List[Content]:
    """Other entries that share the primary genre of ``content_id``."""
    current = await get_content(db, content_id)
    primary = current.primary_genre
    if not primary:
        return []
    if limit is None:
        limit = settings.similar_content_limit

    candidates = await _load(db, genre=primary)
    matches = sorted(
        (content for content in candidates if content.id != content_id),
        key=lambda content: content.id,
    )
    return matches[:limit]


async def newest_by_genre(
    db: AsyncSession, per_genre: Optional[int] = None
) -> Dict[str, List[Content]]:
    """Newest entries (by year, then creation time) for every genre token."""
    if per_genre is None:
        per_genre = settings.newest_per_genre

    items = await list_content(db)
    grouped: Dict[str, List[Content]] = {}
    for content in items:
        for genre in content.genres:
            grouped.setdefault(genre, []).append(content)

    return {
        genre: sorted(
            grouped[genre],
            key=lambda content: (content.year or 0, content.created_at or datetime.min),
            reverse=True,
        )[:per_genre]
        for genre in sorted(grouped)
    }


async def create_content(db: AsyncSession, payload: ContentWrite) -> Content:
    """Add a catalog entry with the next free id."""
    max_result = await db.execute(select(func.max(Content.id)))
    next_id = (max_result.scalar() or 0) + 1

    data = payload.model_dump(exclude={"genres", "type"})
    content = Content(id=next_id, type=payload.type.value, **data)
    content.genres = payload.genres
    db.add(content)
    await db.commit()
    await db.refresh(content)

    logger.info("Content %s created: %s", content.id, content.name)
    return content


async def update_content(db: AsyncSession, content_id: int, payload: ContentUpdate) -> Content:
    content = await get_content(db, content_id)

    changes = payload.model_dump(exclude_unset=True, exclude={"genres", "type"})
    for key, value in changes.items():
        setattr(content, key, value)
    if payload.type is not None:
        content.type = payload.type.value
    if payload.genres is not None:
        content.genres = payload.genres

    if content.type == "series" and (content.episodes is None or content.seasons is None):
        await db.rollback()
        raise ValidationError("Series require episodes and seasons")
    if content.type == "movie" and not content.duration:
        await db.rollback()
        raise ValidationError("Movies require a duration")

    await db.commit()
    await db.refresh(content)
    logger.info("Content %s updated", content_id)
    return content


async def delete_content(db: AsyncSession, content_id: int) -> None:
    """Remove a catalog entry. Viewing history rows that reference it stay."""
    content = await get_content(db, content_id)
    await db.delete(content)
    await db.commit()
    logger.info("Content %s deleted", content_id)
