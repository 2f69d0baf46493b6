from datetime import date, datetime, timedelta

import pytest

from conftest import add_history
from reelhouse.errors import ForbiddenError, NotFoundError
from reelhouse.models.user import User
from reelhouse.services import profiles, progress, statistics
from reelhouse.services.auth import RequestContext

TODAY = date(2026, 3, 15)


@pytest.fixture(autouse=True)
def fixed_today(monkeypatch):
    monkeypatch.setattr(statistics, "_today", lambda: TODAY)


def test_date_axis_is_thirty_days_ending_today():
    axis = statistics.date_axis(TODAY, 30)

    assert len(axis) == 30
    assert axis[0] == "2026-02-14"
    assert axis[-1] == "2026-03-15"
    assert axis == sorted(axis)


def test_build_daily_views_zero_fills_every_day():
    axis = statistics.date_axis(TODAY, 30)
    views = [
        (1, datetime(2026, 3, 15, 9, 30)),
        (1, datetime(2026, 3, 15, 22, 10)),
        (1, datetime(2026, 3, 1, 0, 5)),
    ]

    series = statistics.build_daily_views([(1, "Alice"), (2, "Kids")], views, axis)

    alice, kids = series
    assert [point.date for point in alice.dates] == axis
    assert alice.dates[-1].count == 2
    assert next(p.count for p in alice.dates if p.date == "2026-03-01") == 1
    assert sum(p.count for p in alice.dates) == 3
    assert len(kids.dates) == 30
    assert all(point.count == 0 for point in kids.dates)


def test_genre_popularity_counts_every_genre_of_a_row():
    genres = {
        2: ["Comedy", "Drama", "Mystery"],
        1: ["Comedy"],
    }

    ranked = statistics.build_genre_popularity([2, 1, 2, 404], genres)

    assert [(g.genre, g.count) for g in ranked] == [
        ("Comedy", 3),
        ("Drama", 2),
        ("Mystery", 2),
    ]
    # Three rows with known content produce at least three increments
    assert sum(g.count for g in ranked) >= 3


@pytest.mark.asyncio
async def test_user_without_profiles_gets_empty_views(seeded, db):
    db.add(User(id=3, username="carol", email="carol@example.com", hashed_password="x"))
    await db.commit()
    carol = RequestContext(user_id=3, username="carol")

    stats = await statistics.compute_statistics(db, carol, 3)

    assert stats.daily_views == []
    assert stats.genre_popularity == []


@pytest.mark.asyncio
async def test_profiles_without_history_get_zero_filled_series(seeded, db, alice):
    stats = await statistics.compute_statistics(db, alice, 1)

    assert [series.profile_name for series in stats.daily_views] == ["Alice", "Kids"]
    for series in stats.daily_views:
        assert len(series.dates) == 30
        assert all(point.count == 0 for point in series.dates)
    assert stats.genre_popularity == []


@pytest.mark.asyncio
async def test_statistics_combine_window_counts_and_all_time_genres(seeded, db, alice):
    noon = datetime.combine(TODAY, datetime.min.time()) + timedelta(hours=12)
    await add_history(seeded, 1, 2, noon)                          # Comedy, Drama, Mystery
    await add_history(seeded, 1, 1, noon - timedelta(hours=3))     # Comedy
    await add_history(seeded, 2, 2, noon - timedelta(days=2))      # Comedy, Drama, Mystery
    await add_history(seeded, 2, 5, noon - timedelta(days=45))     # Drama, Action; outside window
    await add_history(seeded, 2, 404, noon - timedelta(days=1))    # deleted content
    await add_history(seeded, 3, 3, noon)                          # another user's profile

    stats = await statistics.compute_statistics(db, alice, 1)

    by_profile = {series.profile_id: series for series in stats.daily_views}
    assert by_profile[1].dates[-1].count == 2
    assert sum(p.count for p in by_profile[1].dates) == 2
    kids_counts = {p.date: p.count for p in by_profile[2].dates}
    assert kids_counts["2026-03-13"] == 1
    assert kids_counts["2026-03-14"] == 1
    assert sum(kids_counts.values()) == 2

    popularity = {g.genre: g.count for g in stats.genre_popularity}
    assert popularity == {"Comedy": 3, "Drama": 3, "Mystery": 2, "Action": 1}
    counts = [g.count for g in stats.genre_popularity]
    assert counts == sorted(counts, reverse=True)


@pytest.mark.asyncio
async def test_statistics_check_user_ownership(seeded, db, alice):
    with pytest.raises(ForbiddenError):
        await statistics.compute_statistics(db, alice, 2)

    admin = RequestContext(user_id=1, username="alice", is_admin=True)
    with pytest.raises(NotFoundError, match="User not found"):
        await statistics.compute_statistics(db, admin, 42)


class _FakeRedis:
    def __init__(self):
        self.store = {}
        self.set_calls = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.set_calls.append((key, ex))
        self.store[key] = value

    async def delete(self, key):
        self.store.pop(key, None)


@pytest.mark.asyncio
async def test_cached_provider_serves_second_call_from_redis(seeded, db, alice, monkeypatch):
    provider = statistics.CachedStatisticsProvider("redis://localhost:6379/0", ttl_seconds=60)
    fake_redis = _FakeRedis()
    provider._redis = fake_redis

    calls = {"count": 0}
    original = statistics.compute_statistics

    async def counting_compute(*args, **kwargs):
        calls["count"] += 1
        return await original(*args, **kwargs)

    monkeypatch.setattr(statistics, "compute_statistics", counting_compute)

    first = await provider.get_statistics(db, alice, 1)
    second = await provider.get_statistics(db, alice, 1)

    assert calls["count"] == 1
    assert second == first
    assert fake_redis.set_calls == [("reelhouse:statistics:1:2026-03-15", 60)]


@pytest.mark.asyncio
async def test_cached_provider_falls_back_when_redis_fails(seeded, db, alice, caplog):
    class _BrokenRedis:
        async def get(self, key):
            raise ConnectionError("redis down")

        async def set(self, key, value, ex=None):
            raise ConnectionError("redis down")

    provider = statistics.CachedStatisticsProvider("redis://localhost:6379/0", ttl_seconds=60)
    provider._redis = _BrokenRedis()

    with caplog.at_level("WARNING"):
        stats = await provider.get_statistics(db, alice, 1)

    assert len(stats.daily_views) == 2
    assert "Statistics cache read failed" in caplog.text


@pytest.mark.asyncio
async def test_window_starts_at_midnight_of_the_first_day(seeded, db, alice):
    first_day = datetime(2026, 2, 14, 0, 0, 0)
    await add_history(seeded, 1, 1, first_day)
    await add_history(seeded, 1, 2, first_day - timedelta(minutes=1))  # 2026-02-13 23:59

    stats = await statistics.compute_statistics(db, alice, 1)

    series = stats.daily_views[0]
    assert series.dates[0].date == "2026-02-14"
    assert series.dates[0].count == 1
    assert sum(point.count for point in series.dates) == 1
    # Both rows still count toward all-time genre popularity
    assert {g.genre: g.count for g in stats.genre_popularity}["Comedy"] == 2


@pytest.mark.asyncio
async def test_history_writes_drop_cached_statistics(seeded, db, alice, monkeypatch):
    provider = statistics.CachedStatisticsProvider("redis://localhost:6379/0", ttl_seconds=600)
    fake_redis = _FakeRedis()
    provider._redis = fake_redis
    monkeypatch.setattr(statistics, "get_statistics_provider", lambda: provider)
    key = statistics.CachedStatisticsProvider.cache_key(1)

    before = await provider.get_statistics(db, alice, 1)
    assert key in fake_redis.store
    assert before.genre_popularity == []

    await progress.save_progress(db, alice, 2, 1, 100, 6000)
    assert key not in fake_redis.store

    after = await provider.get_statistics(db, alice, 1)
    assert [(g.genre, g.count) for g in after.genre_popularity] == [("Comedy", 1)]

    await progress.delete_progress(db, alice, 2, 1)
    assert key not in fake_redis.store

    await provider.get_statistics(db, alice, 1)
    await profiles.delete_profile(db, alice, 1, 2)
    assert key not in fake_redis.store


@pytest.mark.asyncio
async def test_default_provider_invalidation_is_a_no_op():
    await statistics.StatisticsProvider().invalidate(1)
