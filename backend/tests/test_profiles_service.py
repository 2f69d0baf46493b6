from datetime import datetime

import pytest
from sqlalchemy import select

from conftest import add_history
from reelhouse.errors import ConflictError, ForbiddenError, ValidationError
from reelhouse.models.profile import Profile
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.services import profiles
from reelhouse.services.auth import RequestContext


@pytest.mark.asyncio
async def test_create_profile_enforces_limit_of_five(seeded, db, alice):
    for name in ("Guest", "Mum", "Dad"):
        await profiles.create_profile(db, alice, 1, name, "profile_pic_4.png")

    with pytest.raises(ValidationError, match="Maximum of 5 profiles"):
        await profiles.create_profile(db, alice, 1, "Sixth", "profile_pic_1.png")

    assert len(await profiles.list_profiles(db, alice, 1)) == 5


@pytest.mark.asyncio
async def test_profile_names_are_unique_per_user(seeded, db, alice):
    with pytest.raises(ConflictError):
        await profiles.create_profile(db, alice, 1, "Kids", "profile_pic_1.png")

    with pytest.raises(ConflictError):
        await profiles.update_profile(db, alice, 1, 1, name="Kids")

    # Same name under another account is fine
    bob = RequestContext(user_id=2, username="bob")
    created = await profiles.create_profile(db, bob, 2, "Kids", "profile_pic_1.png")
    assert created.user_id == 2


@pytest.mark.asyncio
async def test_profiles_of_other_users_are_forbidden(seeded, db, alice):
    with pytest.raises(ForbiddenError):
        await profiles.list_profiles(db, alice, 2)

    with pytest.raises(ForbiddenError):
        await profiles.update_profile(db, alice, 2, 3, name="Mine")


@pytest.mark.asyncio
async def test_delete_profile_removes_its_viewing_history(seeded, db, alice):
    await add_history(seeded, 2, 1, datetime(2026, 3, 1, 12, 0))
    await add_history(seeded, 2, 2, datetime(2026, 3, 1, 13, 0))
    await add_history(seeded, 1, 2, datetime(2026, 3, 1, 14, 0))

    removed = await profiles.delete_profile(db, alice, 1, 2)

    assert removed == 2
    assert await db.get(Profile, 2) is None
    remaining = await db.execute(select(ViewingHistory.profile_id))
    assert [row[0] for row in remaining.all()] == [1]
