"""Load the packaged catalog and demo accounts into the database.

``seed_*`` only writes into empty tables; ``reseed_*`` clears the tables
first. At startup only the catalog is seeded; accounts are loaded with
``reelhouse-seed --users``.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.database import AsyncSessionLocal, init_db
from reelhouse.models.content import Content
from reelhouse.models.profile import Profile
from reelhouse.models.user import User
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.schemas import ContentWrite, ProfileCreate
from reelhouse.services.auth import get_password_hash

logger = logging.getLogger(__name__)

settings = get_settings()

DATA_DIR = Path(__file__).parent / "data"


def _load(name: str, data_dir: Optional[Path] = None) -> List[Dict[str, Any]]:
    if data_dir is None:
        data_dir = Path(settings.seed_data_dir) if settings.seed_data_dir else DATA_DIR
    with open(data_dir / name, encoding="utf-8") as handle:
        return json.load(handle)


async def _count(db: AsyncSession, column) -> int:
    result = await db.execute(select(func.count(column)))
    return result.scalar() or 0


async def _insert_content(db: AsyncSession, rows: List[Dict[str, Any]]) -> int:
    for row in rows:
        payload = ContentWrite.model_validate(row)
        content = Content(
            id=row["id"],
            type=payload.type.value,
            imdb_id=row.get("imdbId"),
            **payload.model_dump(exclude={"genres", "type"}),
        )
        content.genres = payload.genres
        db.add(content)
    await db.commit()
    return len(rows)


async def seed_content(db: AsyncSession, data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Insert the packaged catalog unless content already exists."""
    existing = await _count(db, Content.id)
    if existing:
        logger.info("Content already seeded (%d items found). Skipping seed.", existing)
        return {"seeded": False, "count": existing}

    count = await _insert_content(db, _load("content.json", data_dir))
    logger.info("Seeded %d content items", count)
    return {"seeded": True, "count": count}


async def reseed_content(db: AsyncSession, data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Replace the catalog with the packaged one. Viewing history is kept."""
    rows = _load("content.json", data_dir)
    await db.execute(delete(Content))
    count = await _insert_content(db, rows)
    logger.info("Reseeded %d content items", count)
    return {"seeded": True, "count": count}


async def _insert_users(db: AsyncSession, rows: List[Dict[str, Any]]) -> Dict[str, int]:
    users = profiles = 0
    for row in rows:
        user = User(
            username=row["username"],
            email=row["email"].strip().lower(),
            hashed_password=get_password_hash(row["password"]),
            is_admin=row.get("isAdmin", False),
        )
        db.add(user)
        await db.flush()
        users += 1

        for profile_row in row.get("profiles", []):
            profile = ProfileCreate.model_validate(profile_row)
            db.add(
                Profile(
                    user_id=user.id,
                    name=profile.name,
                    avatar=profile.avatar,
                    likes=list(profile_row.get("likes", [])),
                )
            )
            profiles += 1
    await db.commit()
    return {"user_count": users, "profile_count": profiles}


async def seed_users(db: AsyncSession, data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Create the demo accounts and their profiles unless users exist."""
    existing = await _count(db, User.id)
    if existing:
        logger.info("Users already seeded (%d users found). Skipping seed.", existing)
        return {
            "seeded": False,
            "user_count": existing,
            "profile_count": await _count(db, Profile.id),
        }

    counts = await _insert_users(db, _load("users.json", data_dir))
    logger.info("Seeded %(user_count)d users and %(profile_count)d profiles", counts)
    return {"seeded": True, **counts}


async def reseed_users(db: AsyncSession, data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Replace all accounts, profiles and viewing history with the demo set."""
    rows = _load("users.json", data_dir)
    await db.execute(delete(ViewingHistory))
    await db.execute(delete(Profile))
    await db.execute(delete(User))
    counts = await _insert_users(db, rows)
    logger.info("Reseeded %(user_count)d users and %(profile_count)d profiles", counts)
    return {"seeded": True, **counts}


async def seed_database() -> None:
    """Startup hook: fill an empty catalog."""
    async with AsyncSessionLocal() as db:
        await seed_content(db)


async def _run(reseed: bool, users: bool) -> None:
    await init_db()
    async with AsyncSessionLocal() as db:
        if reseed:
            await reseed_content(db)
        else:
            await seed_content(db)
        if users:
            if reseed:
                await reseed_users(db)
            else:
                await seed_users(db)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the Reelhouse database")
    parser.add_argument("--reseed", action="store_true",
                        help="Clear existing rows before loading the seed data")
    parser.add_argument("--users", action="store_true",
                        help="Also load the demo users and profiles")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper())
    asyncio.run(_run(args.reseed, args.users))


if __name__ == "__main__":
    main()
