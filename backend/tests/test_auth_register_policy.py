from datetime import datetime

import pytest

from conftest import auth_header
from reelhouse.errors import ConflictError, ValidationError
from reelhouse.models.user import User
from reelhouse.routers import auth


class _FakeScalars:
    def __init__(self, first_value):
        self._first_value = first_value

    def first(self):
        return self._first_value


class _FakeResult:
    def __init__(self, scalar_value=None, first_value=None):
        self._scalar_value = scalar_value
        self._first_value = first_value

    def scalar(self):
        return self._scalar_value

    def scalars(self):
        return _FakeScalars(self._first_value)


class _FakeSession:
    def __init__(self, execute_results):
        self._execute_results = list(execute_results)
        self.added_user = None
        self.committed = False
        self.refreshed = False

    async def execute(self, _query):
        if not self._execute_results:
            raise AssertionError("Unexpected extra db.execute() call")
        return self._execute_results.pop(0)

    def add(self, user):
        self.added_user = user

    async def commit(self):
        self.committed = True

    async def refresh(self, user):
        self.refreshed = True
        user.id = 1
        user.created_at = datetime.utcnow()


def _request(**overrides):
    fields = dict(
        username="newuser",
        email="NewUser@Example.com",
        password="password123",
        confirm_password="password123",
    )
    fields.update(overrides)
    return auth.RegisterRequest(**fields)


@pytest.mark.asyncio
async def test_register_rejects_mismatched_passwords():
    db = _FakeSession([])

    with pytest.raises(ValidationError, match="Passwords do not match"):
        await auth.register(_request(confirm_password="different"), db)

    assert db.added_user is None


@pytest.mark.asyncio
async def test_register_rejects_existing_email():
    existing = User(id=7, username="someone", email="newuser@example.com", hashed_password="x")
    db = _FakeSession([_FakeResult(first_value=existing)])

    with pytest.raises(ConflictError, match="Email already exists"):
        await auth.register(_request(), db)


@pytest.mark.asyncio
async def test_register_rejects_existing_username():
    existing = User(id=7, username="newuser", email="other@example.com", hashed_password="x")
    db = _FakeSession([_FakeResult(first_value=existing)])

    with pytest.raises(ConflictError, match="Username already exists"):
        await auth.register(_request(), db)


@pytest.mark.asyncio
async def test_first_registered_user_becomes_admin(monkeypatch):
    monkeypatch.setattr(auth, "get_password_hash", lambda raw: f"hashed::{raw}")

    db = _FakeSession(
        [
            _FakeResult(first_value=None),  # existing user check
            _FakeResult(scalar_value=0),  # total users
        ]
    )

    response = await auth.register(_request(), db)

    assert response["success"] is True
    assert response["data"]["email"] == "newuser@example.com"
    assert response["data"]["isAdmin"] is True
    assert db.added_user.hashed_password == "hashed::password123"
    assert db.committed is True
    assert db.refreshed is True


@pytest.mark.asyncio
async def test_register_login_and_me_over_http(client, monkeypatch):
    monkeypatch.setattr(auth, "get_password_hash", lambda raw: f"hashed::{raw}")
    monkeypatch.setattr(auth, "verify_password", lambda raw, hashed: hashed == f"hashed::{raw}")

    registered = await client.post(
        "/api/auth/register",
        json={
            "username": "carol",
            "email": "carol@example.com",
            "password": "secret123",
            "confirmPassword": "secret123",
        },
    )
    assert registered.status_code == 201
    assert registered.json()["data"]["isAdmin"] is False

    wrong = await client.post(
        "/api/auth/login", json={"email": "carol@example.com", "password": "nope"}
    )
    assert wrong.status_code == 401
    assert wrong.json() == {"success": False, "error": "Incorrect password"}

    unknown = await client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"}
    )
    assert unknown.status_code == 404

    login = await client.post(
        "/api/auth/login", json={"email": "Carol@Example.com", "password": "secret123"}
    )
    assert login.status_code == 200
    token = login.json()["data"]["accessToken"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["username"] == "carol"


@pytest.mark.asyncio
async def test_me_with_token_for_seeded_user(client):
    response = await client.get("/api/auth/me", headers=auth_header(2))

    assert response.status_code == 200
    assert response.json()["data"] == {
        "id": 2,
        "username": "bob",
        "email": "bob@example.com",
        "isAdmin": False,
    }
