"""Profile management and like endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.responses import success
from reelhouse.schemas import LikeRequest, LikesOut, ProfileCreate, ProfileOut, ProfileUpdate
from reelhouse.services import likes as likes_service
from reelhouse.services import profiles as profile_service
from reelhouse.services.auth import RequestContext, get_request_context

router = APIRouter()


# --- Profiles ---

@router.get("/users/{user_id}/profiles")
async def get_profiles(
    user_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    profiles = await profile_service.list_profiles(db, ctx, user_id)
    return success(
        [ProfileOut.model_validate(profile) for profile in profiles],
        "Profiles retrieved successfully",
    )


@router.post("/users/{user_id}/profiles", status_code=status.HTTP_201_CREATED)
async def create_profile(
    user_id: int,
    request: ProfileCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.create_profile(db, ctx, user_id, request.name, request.avatar)
    return success(ProfileOut.model_validate(profile), "Profile created successfully")


@router.put("/users/{user_id}/profiles/{profile_id}")
async def update_profile(
    user_id: int,
    profile_id: int,
    request: ProfileUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.update_profile(
        db, ctx, user_id, profile_id, name=request.name, avatar=request.avatar
    )
    return success(ProfileOut.model_validate(profile), "Profile updated successfully")


@router.delete("/users/{user_id}/profiles/{profile_id}")
async def delete_profile(
    user_id: int,
    profile_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    await profile_service.delete_profile(db, ctx, user_id, profile_id)
    return success(None, "Profile deleted successfully")


# --- Likes ---

@router.get("/profiles/{profile_id}/likes")
async def get_likes(
    profile_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    liked = await likes_service.get_likes(db, ctx, profile_id)
    return success(LikesOut(likes=liked), "Likes retrieved successfully")


@router.post("/profiles/{profile_id}/like")
async def like_content(
    profile_id: int,
    request: LikeRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    liked = await likes_service.like(db, ctx, profile_id, request.content_id)
    return success(LikesOut(likes=liked), "Content liked successfully")


@router.post("/profiles/{profile_id}/unlike")
@router.delete("/profiles/{profile_id}/like")
async def unlike_content(
    profile_id: int,
    request: LikeRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    liked = await likes_service.unlike(db, ctx, profile_id, request.content_id)
    return success(LikesOut(likes=liked), "Content unliked successfully")
