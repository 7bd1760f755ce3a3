"""Test fixtures: a fresh in-memory database per test.

Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite database (aiosqlite + StaticPool,
   so every session shares the one connection that holds the data)
2. The schema is created from the ORM models, no migrations involved
3. The app is built with create_app() and handed the Database directly,
   the same way the lifespan would at startup

Auth is NOT mocked: API tests register real users and send real tokens,
because the session allow-list is the thing under test.
"""

import os

# Cheap bcrypt for tests; must be set before tasktrack.config is imported.
os.environ.setdefault("TASKTRACK_BCRYPT_ROUNDS", "4")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from tasktrack.db.engine import Database
from tasktrack.main import create_app

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture()
async def database():
    db = Database(TEST_DB_URL, poolclass=StaticPool)
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture()
async def db_session(database):
    """A session for service-level tests (don't mix with `client`)."""
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app(database):
    app = create_app()
    app.state.db = database
    return app


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def make_user(client):
    """Factory: register a user through the API.

    Returns a dict with the user JSON, the token, and ready-made auth headers.
    """

    async def _make(name: str = "Test User", password: str = "password_123"):
        email = f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return {
            "user": body["user"],
            "email": email,
            "password": password,
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _make
