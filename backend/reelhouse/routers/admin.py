"""Admin catalog maintenance. JSON bodies only; media files are managed elsewhere."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.models.user import User
from reelhouse.responses import success
from reelhouse.schemas import (
    ContentOut,
    ContentUpdate,
    ContentWrite,
    OmdbRatings,
    OmdbSearchResult,
    OmdbTitleOut,
    RatingBatchRequest,
    RatingSyncResult,
    RatingUpdateRequest,
)
from reelhouse.services import catalog, ratings
from reelhouse.services.auth import require_admin
from reelhouse.services.omdb import OmdbService, extract_ratings, get_omdb_service

router = APIRouter()


@router.get("/content")
async def list_content(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog.list_content(db)
    return success([ContentOut.model_validate(content) for content in items])


@router.post("/content", status_code=status.HTTP_201_CREATED)
async def create_content(
    request: ContentWrite,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    content = await catalog.create_content(db, request)
    return success(ContentOut.model_validate(content), "Content created successfully")


@router.put("/content/{content_id}")
async def update_content(
    content_id: int,
    request: ContentUpdate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    content = await catalog.update_content(db, content_id, request)
    return success(ContentOut.model_validate(content), "Content updated successfully")


@router.delete("/content/{content_id}")
async def delete_content(
    content_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.delete_content(db, content_id)
    return success(None, "Content deleted successfully")


# --- OMDB ratings ---

@router.get("/omdb/search")
async def search_omdb(
    title: str = Query(..., min_length=1),
    year: Optional[int] = Query(None, ge=1878, le=2100),
    _admin: User = Depends(require_admin),
    omdb: OmdbService = Depends(get_omdb_service),
):
    found = await omdb.search(title, year)
    results = [
        OmdbSearchResult(
            imdb_id=item.get("imdbID", ""),
            title=item.get("Title", ""),
            year=item.get("Year", ""),
            type=item.get("Type", ""),
            poster=item.get("Poster") if item.get("Poster") not in (None, "N/A") else None,
        )
        for item in found
    ]
    return success({"results": results, "count": len(results)})


@router.get("/omdb/{imdb_id}")
async def get_omdb_title(
    imdb_id: str,
    _admin: User = Depends(require_admin),
    omdb: OmdbService = Depends(get_omdb_service),
):
    data = await omdb.get_title(imdb_id)
    return success(
        OmdbTitleOut(
            imdb_id=data.get("imdbID", imdb_id),
            title=data.get("Title"),
            year=data.get("Year"),
            type=data.get("Type"),
            ratings=OmdbRatings(**extract_ratings(data)),
            plot=data.get("Plot"),
            poster=data.get("Poster") if data.get("Poster") not in (None, "N/A") else None,
        )
    )


@router.post("/content/ratings/sync")
async def sync_ratings(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    omdb: OmdbService = Depends(get_omdb_service),
):
    result = await ratings.sync_all_ratings(db, omdb)
    return success(RatingSyncResult(**result), "Ratings sync finished")


@router.post("/content/ratings/batch")
async def batch_update_ratings(
    request: RatingBatchRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    omdb: OmdbService = Depends(get_omdb_service),
):
    updates = [item.model_dump() for item in request.updates]
    result = await ratings.batch_update_ratings(db, updates, omdb)
    return success(RatingSyncResult(**result), "Batch ratings update finished")


@router.put("/content/{content_id}/ratings")
async def update_content_ratings(
    content_id: int,
    request: RatingUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    omdb: OmdbService = Depends(get_omdb_service),
):
    content = await ratings.update_content_rating(db, content_id, request.imdb_id, omdb)
    return success(ContentOut.model_validate(content), "Ratings updated successfully")
