"""Per-user viewing statistics.

Two views are derived from raw viewing history on every call:

* daily views: for each of the user's profiles, the number of history rows
  last watched on each day of a trailing window (today included), with
  explicit zero days;
* genre popularity: every history row adds one to each genre token of its
  content, sorted by count.

Callers go through a :class:`StatisticsProvider` so a cached strategy can be
swapped in without touching them.
"""

import json
import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from redis import asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.models.content import Content, split_genres
from reelhouse.models.profile import Profile
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.schemas import DailyCount, DailyViewSeries, GenreCount, StatisticsOut
from reelhouse.services.access import get_user
from reelhouse.services.auth import RequestContext

logger = logging.getLogger(__name__)

settings = get_settings()


def _today() -> date:
    return datetime.now().date()


def date_axis(today: date, days: int) -> List[str]:
    """``days`` consecutive ISO dates ending with ``today``, oldest first."""
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def build_daily_views(
    profiles: Sequence[Tuple[int, str]],
    views: Iterable[Tuple[int, datetime]],
    axis: List[str],
) -> List[DailyViewSeries]:
    """Bucket ``(profile_id, last_watched)`` pairs into zero-filled series."""
    buckets: Counter = Counter()
    for profile_id, watched_at in views:
        buckets[(profile_id, watched_at.date().isoformat())] += 1

    return [
        DailyViewSeries(
            profile_id=profile_id,
            profile_name=name,
            dates=[DailyCount(date=day, count=buckets.get((profile_id, day), 0)) for day in axis],
        )
        for profile_id, name in profiles
    ]


def build_genre_popularity(
    content_ids: Iterable[int],
    genres_by_content: Dict[int, List[str]],
) -> List[GenreCount]:
    """Count one view per genre token for every history row.

    Rows whose content is unknown are skipped. Ties keep first-seen order.
    """
    counts: Dict[str, int] = {}
    for content_id in content_ids:
        for genre in genres_by_content.get(content_id, ()):
            counts[genre] = counts.get(genre, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [GenreCount(genre=genre, count=count) for genre, count in ranked]


async def compute_statistics(
    db: AsyncSession,
    ctx: RequestContext,
    user_id: int,
    window_days: Optional[int] = None,
) -> StatisticsOut:
    """Recompute daily views and genre popularity from raw history."""
    await get_user(db, ctx, user_id)
    if window_days is None:
        window_days = settings.stats_window_days

    profile_result = await db.execute(
        select(Profile.id, Profile.name).where(Profile.user_id == user_id).order_by(Profile.id)
    )
    profiles = [(row.id, row.name) for row in profile_result.all()]
    if not profiles:
        return StatisticsOut()

    profile_ids = [profile_id for profile_id, _ in profiles]
    today = _today()
    axis = date_axis(today, window_days)
    window_start = datetime.combine(today - timedelta(days=window_days - 1), time.min)

    recent_result = await db.execute(
        select(ViewingHistory.profile_id, ViewingHistory.last_watched)
        .where(ViewingHistory.profile_id.in_(profile_ids))
        .where(ViewingHistory.last_watched >= window_start)
    )
    daily_views = build_daily_views(profiles, recent_result.all(), axis)

    history_result = await db.execute(
        select(ViewingHistory.content_id)
        .where(ViewingHistory.profile_id.in_(profile_ids))
        .order_by(ViewingHistory.id)
    )
    content_ids = [row[0] for row in history_result.all()]
    if not content_ids:
        return StatisticsOut(daily_views=daily_views)

    content_result = await db.execute(
        select(Content.id, Content.genre).where(Content.id.in_(set(content_ids)))
    )
    genres_by_content = {row.id: split_genres(row.genre) for row in content_result.all()}

    missing = set(content_ids) - set(genres_by_content)
    if missing:
        logger.debug("Skipping %d history rows with missing content", len(missing))

    return StatisticsOut(
        daily_views=daily_views,
        genre_popularity=build_genre_popularity(content_ids, genres_by_content),
    )


class StatisticsProvider:
    """Recomputes statistics on every request."""

    async def get_statistics(
        self, db: AsyncSession, ctx: RequestContext, user_id: int
    ) -> StatisticsOut:
        return await compute_statistics(db, ctx, user_id)

    async def invalidate(self, user_id: int) -> None:
        """Drop any stored result for ``user_id``. Nothing is stored here."""
        return None


class CachedStatisticsProvider(StatisticsProvider):
    """Serves statistics from Redis for ``ttl_seconds`` before recomputing.

    Cache failures are logged and fall through to a fresh computation.
    """

    def __init__(self, redis_url: str, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._redis = aioredis.from_url(redis_url, decode_responses=True)

    @staticmethod
    def cache_key(user_id: int) -> str:
        return f"reelhouse:statistics:{user_id}:{_today().isoformat()}"

    async def get_statistics(
        self, db: AsyncSession, ctx: RequestContext, user_id: int
    ) -> StatisticsOut:
        # Ownership is checked before any cached payload is returned
        await get_user(db, ctx, user_id)
        key = self.cache_key(user_id)

        try:
            cached = await self._redis.get(key)
        except Exception as exc:
            logger.warning("Statistics cache read failed: %s", exc)
            cached = None

        if cached:
            try:
                return StatisticsOut.model_validate(json.loads(cached))
            except ValueError as exc:
                logger.warning("Discarding unreadable statistics cache entry %s: %s", key, exc)

        stats = await compute_statistics(db, ctx, user_id)
        try:
            await self._redis.set(key, stats.model_dump_json(), ex=self.ttl_seconds)
        except Exception as exc:
            logger.warning("Statistics cache write failed: %s", exc)
        return stats

    async def invalidate(self, user_id: int) -> None:
        try:
            await self._redis.delete(self.cache_key(user_id))
        except Exception as exc:
            logger.warning("Statistics cache invalidation failed for user %s: %s", user_id, exc)


@lru_cache
def get_statistics_provider() -> StatisticsProvider:
    """Statistics strategy selected by configuration."""
    if settings.redis_url and settings.stats_cache_ttl_seconds > 0:
        logger.info("Statistics cache enabled (ttl=%ss)", settings.stats_cache_ttl_seconds)
        return CachedStatisticsProvider(settings.redis_url, settings.stats_cache_ttl_seconds)
    return StatisticsProvider()


async def invalidate_statistics(user_id: int) -> None:
    """Forget cached statistics of a user after their viewing history changed."""
    await get_statistics_provider().invalidate(user_id)
