"""Test fixtures — a fresh database per test, real auth pipeline.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own Database (engine + session factory). By default
   that's a throwaway SQLite file under tmp_path via aiosqlite; set
   MESSAGELY_TEST_DATABASE_URL to run against Postgres instead.
2. Tables are created from the ORM metadata and dropped afterwards.
3. The app's get_db is overridden to hand out sessions from that Database,
   one per request, just like production.
4. Auth is NOT mocked. Tests register users and send real bearer tokens.

bcrypt rounds are lowered before the app is imported so hashing is fast.
"""

import os

os.environ.setdefault("MESSAGELY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("MESSAGELY_JWT_SECRET", "messagely-test-secret-0123456789abcdef")
os.environ.setdefault("MESSAGELY_LOG_LEVEL", "WARNING")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from messagely.db.engine import Database, get_db  # noqa: E402
from messagely.db.models import Base  # noqa: E402
from messagely.main import app  # noqa: E402


@pytest_asyncio.fixture()
async def database(tmp_path):
    url = os.environ.get(
        "MESSAGELY_TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'messagely.db'}",
    )
    db = Database(url)
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield db
    finally:
        async with db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await db.dispose()


@pytest_asyncio.fixture()
async def db_session(database):
    """A session for calling services directly (no HTTP)."""
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(database):
    """HTTP client with get_db pointed at the per-test database."""

    async def override_get_db():
        async with database.session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _register(client, username: str, password: str) -> dict:
    """Register a user over HTTP and return bearer auth headers for them."""
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "username": username,
            "password": password,
            "first_name": username.title(),
            "last_name": "Tester",
            "phone": "555-0100",
        },
    )
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest_asyncio.fixture()
async def alice(client):
    return await _register(client, "alice", "secret1")


@pytest_asyncio.fixture()
async def bob(client):
    return await _register(client, "bob", "secret2")


@pytest_asyncio.fixture()
async def carol(client):
    return await _register(client, "carol", "secret3")


@pytest_asyncio.fixture()
async def register_user(client):
    """Factory: await register_user("dave", "pw") → auth headers."""

    async def _make(username: str, password: str = "password_123") -> dict:
        return await _register(client, username, password)

    return _make
