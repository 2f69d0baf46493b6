"""Per-user viewing statistics endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.responses import success
from reelhouse.services.auth import RequestContext, get_request_context
from reelhouse.services.statistics import StatisticsProvider, get_statistics_provider

router = APIRouter()


@router.get("/users/{user_id}/statistics")
async def get_statistics(
    user_id: int,
    ctx: RequestContext = Depends(get_request_context),
    provider: StatisticsProvider = Depends(get_statistics_provider),
    db: AsyncSession = Depends(get_db),
):
    """Daily views per profile over the trailing window and genre popularity."""
    stats = await provider.get_statistics(db, ctx, user_id)
    message = "Statistics retrieved successfully" if stats.daily_views else "No profiles found"
    return success(stats, message)
