"""Lookups that enforce ownership of users and profiles."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.errors import NotFoundError
from reelhouse.models.profile import Profile
from reelhouse.models.user import User
from reelhouse.services.auth import RequestContext


async def get_user(db: AsyncSession, ctx: RequestContext, user_id: int) -> User:
    """Load a user the caller is allowed to see."""
    ctx.ensure_owner(user_id)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_profile(db: AsyncSession, ctx: RequestContext, profile_id: int) -> Profile:
    """Load a profile and re-validate that the caller owns it."""
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Profile not found")
    ctx.ensure_owner(profile.user_id)
    return profile
