"""Per-profile likes and global like counts."""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.models.content import Content
from reelhouse.models.profile import Profile
from reelhouse.services.access import get_profile
from reelhouse.services.auth import RequestContext

logger = logging.getLogger(__name__)

settings = get_settings()


async def get_likes(db: AsyncSession, ctx: RequestContext, profile_id: int) -> List[int]:
    profile = await get_profile(db, ctx, profile_id)
    return list(profile.likes or [])


async def like(db: AsyncSession, ctx: RequestContext, profile_id: int, content_id: int) -> List[int]:
    """Add ``content_id`` to the profile's likes. Liking twice is a no-op."""
    profile = await get_profile(db, ctx, profile_id)
    likes = list(profile.likes or [])
    if content_id not in likes:
        # Assign a new list so the JSON column is flagged as modified
        profile.likes = likes + [content_id]
        await db.commit()
        logger.info("Profile %s liked content %s", profile_id, content_id)
    return list(profile.likes)


async def unlike(db: AsyncSession, ctx: RequestContext, profile_id: int, content_id: int) -> List[int]:
    """Remove ``content_id`` from the profile's likes if present."""
    profile = await get_profile(db, ctx, profile_id)
    likes = list(profile.likes or [])
    if content_id in likes:
        profile.likes = [liked for liked in likes if liked != content_id]
        await db.commit()
        logger.info("Profile %s unliked content %s", profile_id, content_id)
    return list(profile.likes or [])


async def _count_likes(db: AsyncSession) -> Counter:
    result = await db.execute(select(Profile.likes))
    counts: Counter = Counter()
    for (likes,) in result.all():
        # A profile counts once per content id
        counts.update(set(likes or []))
    return counts


async def global_like_counts(db: AsyncSession) -> Dict[int, int]:
    """Number of profiles, across all users, that like each content id."""
    counts = await _count_likes(db)
    return dict(sorted(counts.items()))


async def popular_content(
    db: AsyncSession, limit: Optional[int] = None
) -> List[Tuple[Content, int]]:
    """Most liked content with its like count, most liked first.

    Liked ids that no longer exist in the catalog are left out.
    """
    if limit is None:
        limit = settings.popular_content_limit

    counts = await _count_likes(db)
    if not counts:
        return []

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    result = await db.execute(select(Content).where(Content.id.in_([cid for cid, _ in ranked])))
    catalog = {content.id: content for content in result.scalars().all()}

    return [(catalog[cid], total) for cid, total in ranked if cid in catalog]
