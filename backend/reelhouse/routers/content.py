"""Catalog endpoints: browsing, filtering, genres and like counts."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.models.content import ContentType
from reelhouse.responses import success
from reelhouse.schemas import (
    ContentOut,
    ContentPage,
    Pagination,
    PopularContentOut,
    SortOption,
    WatchedFilter,
)
from reelhouse.services import catalog
from reelhouse.services import likes as likes_service
from reelhouse.services.auth import RequestContext, get_request_context

router = APIRouter()


def _page(items, pagination: dict) -> ContentPage:
    return ContentPage(
        content=[ContentOut.model_validate(content) for content in items],
        pagination=Pagination(**pagination),
    )


@router.get("")
async def get_all_content(
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog.list_content(db)
    return success([ContentOut.model_validate(content) for content in items])


@router.get("/likes")
async def get_global_like_counts(
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Number of profiles that like each content id."""
    counts = await likes_service.global_like_counts(db)
    return success(
        {str(content_id): count for content_id, count in counts.items()},
        "Global like counts retrieved successfully",
    )


@router.get("/popular")
async def get_popular_content(
    limit: Optional[int] = Query(None, ge=1, le=50),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    ranked = await likes_service.popular_content(db, limit)
    data = [
        PopularContentOut(
            **ContentOut.model_validate(content).model_dump(),
            content_id=content.id,
            total_likes=total,
        )
        for content, total in ranked
    ]
    return success(data)


@router.get("/filter")
async def get_filtered_content(
    genre: Optional[str] = Query(None),
    type: Optional[ContentType] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    sort: SortOption = Query("name-asc"),
    watched: WatchedFilter = Query("all"),
    profile_id: Optional[int] = Query(None, alias="profileId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    items, pagination = await catalog.filter_content(
        db,
        ctx,
        genre=genre or None,
        content_type=type.value if type else None,
        page=page,
        limit=limit,
        sort=sort,
        watched=watched,
        profile_id=profile_id,
    )
    return success(_page(items, pagination))


@router.get("/genres")
async def get_genres(
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    return success(await catalog.list_genres(db))


@router.get("/newest-by-genre")
async def get_newest_by_genre(
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    grouped = await catalog.newest_by_genre(db)
    return success(
        {
            "genres": list(grouped),
            "content": {
                genre: [ContentOut.model_validate(content) for content in items]
                for genre, items in grouped.items()
            },
        }
    )


@router.get("/genre/{genre}")
async def get_content_by_genre(
    genre: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    sort_by: str = Query("rating", alias="sortBy"),
    order: str = Query("desc"),
    watched: WatchedFilter = Query("all"),
    profile_id: Optional[int] = Query(None, alias="profileId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    items, pagination = await catalog.content_by_genre(
        db,
        ctx,
        genre,
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=order,
        watched=watched,
        profile_id=profile_id,
    )
    return success(_page(items, pagination))


@router.get("/{content_id}")
async def get_content(
    content_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    content = await catalog.get_content(db, content_id)
    return success(ContentOut.model_validate(content))


@router.get("/{content_id}/similar")
async def get_similar_content(
    content_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog.similar_content(db, content_id)
    return success([ContentOut.model_validate(content) for content in items])
