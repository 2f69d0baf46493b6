from datetime import datetime

import pytest

from conftest import add_history
from reelhouse.errors import NotFoundError, ValidationError
from reelhouse.models.content import split_genres
from reelhouse.schemas import ContentUpdate, ContentWrite
from reelhouse.services import catalog


def test_split_genres_trims_tokens_and_drops_blanks():
    assert split_genres(" Comedy ,Drama,, Mystery ") == ["Comedy", "Drama", "Mystery"]
    assert split_genres("") == []


@pytest.mark.asyncio
async def test_genre_filter_matches_whole_tokens_only(seeded, db, alice):
    items, pagination = await catalog.filter_content(db, alice, genre="Action")

    assert sorted(content.id for content in items) == [3, 5]
    assert pagination["total_count"] == 2

    adventure, _ = await catalog.filter_content(db, alice, genre="action-adventure")
    assert [content.id for content in adventure] == [4]


@pytest.mark.asyncio
async def test_filter_sorts_and_paginates(seeded, db, alice):
    page_one, pagination = await catalog.filter_content(db, alice, sort="year-desc", page=1, limit=2)
    assert [content.id for content in page_one] == [4, 2]
    assert pagination == {
        "page": 1,
        "limit": 2,
        "total_count": 5,
        "total_pages": 3,
        "has_more": True,
    }

    last_page, pagination = await catalog.filter_content(db, alice, sort="year-desc", page=3, limit=2)
    assert [content.id for content in last_page] == [3]
    assert pagination["has_more"] is False

    by_rating, _ = await catalog.filter_content(db, alice, sort="rating-desc")
    assert [content.id for content in by_rating] == [5, 2, 4, 1, 3]

    by_name, _ = await catalog.filter_content(db, alice, sort="name-asc", content_type="series")
    assert [content.name for content in by_name] == ["After Hours", "Quiet Town"]


@pytest.mark.asyncio
async def test_filter_by_watched_status_uses_profile_history(seeded, db, alice):
    await add_history(seeded, 1, 2, datetime(2026, 3, 1, 12, 0))
    await add_history(seeded, 1, 3, datetime(2026, 3, 1, 13, 0))

    watched, _ = await catalog.filter_content(db, alice, watched="watched", profile_id=1)
    unwatched, _ = await catalog.filter_content(db, alice, watched="unwatched", profile_id=1)

    assert sorted(content.id for content in watched) == [2, 3]
    assert sorted(content.id for content in unwatched) == [1, 4, 5]

    with pytest.raises(ValidationError):
        await catalog.filter_content(db, alice, watched="watched")


@pytest.mark.asyncio
async def test_content_by_genre_applies_sort_and_order(seeded, db, alice):
    items, pagination = await catalog.content_by_genre(db, alice, "Drama", sort_by="year", order="asc")

    assert [content.id for content in items] == [5, 2]
    assert pagination["total_pages"] == 1


@pytest.mark.asyncio
async def test_genres_are_distinct_sorted_tokens(seeded, db):
    assert await catalog.list_genres(db) == [
        "Action",
        "Action-Adventure",
        "Comedy",
        "Drama",
        "Mystery",
    ]


@pytest.mark.asyncio
async def test_similar_content_shares_primary_genre(seeded, db):
    similar = await catalog.similar_content(db, 2)  # primary genre Comedy
    assert [content.id for content in similar] == [1]

    similar = await catalog.similar_content(db, 5)  # primary genre Drama
    assert [content.id for content in similar] == [2]

    with pytest.raises(NotFoundError):
        await catalog.similar_content(db, 404)


@pytest.mark.asyncio
async def test_newest_by_genre_groups_by_token(seeded, db):
    grouped = await catalog.newest_by_genre(db)

    assert list(grouped) == ["Action", "Action-Adventure", "Comedy", "Drama", "Mystery"]
    assert [content.id for content in grouped["Action"]] == [5, 3]
    assert [content.id for content in grouped["Comedy"]] == [2, 1]


@pytest.mark.asyncio
async def test_admin_create_assigns_next_id_and_update_validates_type(seeded, db):
    created = await catalog.create_content(
        db,
        ContentWrite(
            name="New Arrival",
            year=2026,
            genres=["Sci-Fi", " Drama "],
            type="movie",
            duration="1h 30m",
            rating="7.5",
            description="Fresh",
            image="/images/6.jpg",
        ),
    )
    assert created.id == 6
    assert created.genre == "Sci-Fi, Drama"
    assert created.genres == ["Sci-Fi", "Drama"]

    with pytest.raises(ValidationError, match="Series require episodes and seasons"):
        await catalog.update_content(db, 6, ContentUpdate(type="series"))

    updated = await catalog.update_content(db, 6, ContentUpdate(genres=["Thriller"], rating="8.0"))
    assert updated.genre == "Thriller"
    assert updated.rating == "8.0"

    await catalog.delete_content(db, 6)
    with pytest.raises(NotFoundError):
        await catalog.get_content(db, 6)
