"""Profile management: listing, creation limits, renames and deletion."""

import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.errors import ConflictError, NotFoundError, ValidationError
from reelhouse.models.profile import Profile
from reelhouse.services import progress
from reelhouse.services.access import get_profile, get_user
from reelhouse.services.auth import RequestContext
from reelhouse.services.statistics import invalidate_statistics

logger = logging.getLogger(__name__)

settings = get_settings()


async def list_profiles(db: AsyncSession, ctx: RequestContext, user_id: int) -> List[Profile]:
    await get_user(db, ctx, user_id)
    result = await db.execute(
        select(Profile).where(Profile.user_id == user_id).order_by(Profile.id)
    )
    return list(result.scalars().all())


async def _name_taken(
    db: AsyncSession, user_id: int, name: str, exclude_id: Optional[int] = None
) -> bool:
    query = select(Profile.id).where(Profile.user_id == user_id, Profile.name == name)
    if exclude_id is not None:
        query = query.where(Profile.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def create_profile(
    db: AsyncSession, ctx: RequestContext, user_id: int, name: str, avatar: str
) -> Profile:
    """Create a profile, enforcing the per-user limit and unique names."""
    await get_user(db, ctx, user_id)

    count_result = await db.execute(
        select(func.count(Profile.id)).where(Profile.user_id == user_id)
    )
    profile_count = count_result.scalar() or 0
    if profile_count >= settings.max_profiles_per_user:
        raise ValidationError(
            f"Maximum of {settings.max_profiles_per_user} profiles per user reached"
        )

    if await _name_taken(db, user_id, name):
        raise ConflictError("Profile name already exists for this user")

    profile = Profile(user_id=user_id, name=name, avatar=avatar, likes=[])
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Profile name already exists for this user")
    await db.refresh(profile)

    logger.info("Profile %s created for user %s", profile.id, user_id)
    return profile


async def update_profile(
    db: AsyncSession,
    ctx: RequestContext,
    user_id: int,
    profile_id: int,
    name: Optional[str] = None,
    avatar: Optional[str] = None,
) -> Profile:
    profile = await get_profile(db, ctx, profile_id)
    if profile.user_id != user_id:
        raise NotFoundError("Profile not found")

    if name is not None and name != profile.name:
        if await _name_taken(db, user_id, name, exclude_id=profile.id):
            raise ConflictError("Profile name already exists for this user")
        profile.name = name
    if avatar is not None:
        profile.avatar = avatar

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Profile name already exists for this user")
    await db.refresh(profile)

    logger.info("Profile %s updated", profile.id)
    return profile


async def delete_profile(
    db: AsyncSession, ctx: RequestContext, user_id: int, profile_id: int
) -> int:
    """Delete a profile together with its viewing history.

    Returns the number of viewing history rows removed.
    """
    profile = await get_profile(db, ctx, profile_id)
    if profile.user_id != user_id:
        raise NotFoundError("Profile not found")

    removed = await progress.delete_profile_history(db, profile.id, commit=False)
    await db.delete(profile)
    await db.commit()
    await invalidate_statistics(user_id)

    logger.info("Profile %s deleted (%d viewing history rows removed)", profile_id, removed)
    return removed
