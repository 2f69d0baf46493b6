from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import reelhouse.models  # noqa: F401
from reelhouse.database import Base, get_db
from reelhouse.models.content import Content
from reelhouse.models.profile import Profile
from reelhouse.models.user import User
from reelhouse.models.viewing_history import ViewingHistory
from reelhouse.services.auth import RequestContext, create_access_token


CATALOG = [
    dict(id=1, name="Laugh Track", year=2019, genre="Comedy", type="movie", duration="1h 40m", rating="7.1"),
    dict(id=2, name="Quiet Town", year=2021, genre="Comedy, Drama, Mystery", type="series", episodes=8, seasons=1, rating="8.4"),
    dict(id=3, name="Full Throttle", year=2015, genre="Action", type="movie", duration="2h 05m", rating="6.2"),
    dict(id=4, name="Jungle Run", year=2023, genre="Action-Adventure", type="movie", duration="1h 55m", rating="7.8"),
    dict(id=5, name="After Hours", year=2018, genre="Drama, Action", type="series", episodes=10, seasons=2, rating="9.0"),
]


def make_content(**fields) -> Content:
    fields.setdefault("description", f"About {fields['name']}")
    fields.setdefault("image", f"/images/{fields['id']}.jpg")
    return Content(**fields)


def auth_header(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reelhouse.db'}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_maker):
    """Two users, three profiles and a small catalog.

    alice (id 1) owns profiles 1 "Alice" and 2 "Kids"; bob (id 2) owns
    profile 3 "Bob".
    """
    async with session_maker() as session:
        session.add_all(
            [
                User(id=1, username="alice", email="alice@example.com", hashed_password="x"),
                User(id=2, username="bob", email="bob@example.com", hashed_password="x"),
            ]
        )
        await session.flush()
        session.add_all(
            [
                Profile(id=1, user_id=1, name="Alice", avatar="profile_pic_1.png", likes=[]),
                Profile(id=2, user_id=1, name="Kids", avatar="profile_pic_2.png", likes=[]),
                Profile(id=3, user_id=2, name="Bob", avatar="profile_pic_3.png", likes=[]),
            ]
        )
        session.add_all([make_content(**row) for row in CATALOG])
        await session.commit()
    return session_maker


@pytest.fixture
def alice():
    return RequestContext(user_id=1, username="alice")


@pytest_asyncio.fixture
async def client(seeded):
    from reelhouse.main import app

    async def override_get_db():
        async with seeded() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.pop(get_db, None)


async def add_history(session_maker, profile_id: int, content_id: int, last_watched: datetime, **fields):
    async with session_maker() as session:
        session.add(
            ViewingHistory(
                profile_id=profile_id,
                content_id=content_id,
                current_time=fields.get("current_time", 100),
                duration=fields.get("duration", 3600),
                completed=fields.get("completed", False),
                last_watched=last_watched,
            )
        )
        await session.commit()
