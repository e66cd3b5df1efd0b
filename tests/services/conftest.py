"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with FK enforcement on
    - get_db dependency overridden to use test DB sessions
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features are not exercised here)
    - Profiles seeded directly: alice and bob are users, gandalf is admin
"""

from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from fellowship.core.domain_types import Role
from fellowship.core.identity import Identity, guest_identity
from fellowship.db.base import Base
from fellowship.infrastructure.database import (
    get_db, DatabaseSessionManager, enable_sqlite_foreign_keys,
)
from fellowship.models.profile import Profile
import fellowship.infrastructure.database as db_module
from fellowship.main import app

ALICE_ID = UUID("00000000-0000-0000-0000-00000000a11c")
BOB_ID = UUID("00000000-0000-0000-0000-000000000b0b")
GANDALF_ID = UUID("00000000-0000-0000-0000-0000000000ad")


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def profiles(test_session_factory):
    """Seed alice, bob (users) and gandalf (admin)."""
    async with test_session_factory() as session:
        session.add_all([
            Profile(id=ALICE_ID, username="alice", role=Role.USER.value),
            Profile(id=BOB_ID, username="bob", role=Role.USER.value),
            Profile(id=GANDALF_ID, username="gandalf", role=Role.ADMIN.value),
        ])
        await session.commit()
    return {"alice": ALICE_ID, "bob": BOB_ID, "gandalf": GANDALF_ID}


@pytest.fixture
def alice() -> Identity:
    return Identity(id=ALICE_ID, username="alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(id=BOB_ID, username="bob")


@pytest.fixture
def admin() -> Identity:
    return Identity(id=GANDALF_ID, username="gandalf", role=Role.ADMIN)


@pytest.fixture
def guest() -> Identity:
    return guest_identity("1234567")


@pytest.fixture
def as_user():
    """Header builder: as_user(profile_id) or as_user(guest="1234567")."""
    def _headers(profile_id: UUID | None = None, guest: str | None = None) -> dict:
        if profile_id is not None:
            return {"X-User-Id": str(profile_id)}
        return {"X-Guest-Username": guest}
    return _headers


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
