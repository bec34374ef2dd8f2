"""Service test fixtures — async DB, FastAPI test client, in-memory fakes.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory on a StaticPool: every session shares one connection,
      so rows seeded through test_db are visible to request sessions
    - Partial unique indexes are declared with sqlite_where, so pair
      uniqueness is enforced by SQLite exactly as by PostgreSQL
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
import app.infrastructure.database as db_module
import app.models  # noqa: F401
from app.models.neighborhood import Neighborhood
from app.models.user import User
from app.models.user_neighborhood import UserNeighborhood
from app.main import app
from app.services.connection_service import ConnectionService
from app.services.recommendation_service import RecommendationService
from tests.services.fake_stores import InMemoryEdgeStore, InMemoryUserDirectory

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
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


# ─── SQL seeding ────────────────────────────────────────────────

@pytest.fixture
def seed(test_db):
    """Factory inserting users, neighborhoods and primary memberships."""

    class _Seeder:
        counter = 0

        async def neighborhood(self, name="Lekki Phase 1", parent=None, lga=None):
            hood = Neighborhood(
                id=uuid4(), name=name, parent_neighborhood_id=parent, lga_id=lga,
            )
            test_db.add(hood)
            await test_db.commit()
            return hood.id

        async def user(
            self, first_name="Ada", last_name="Obi", neighborhood=None,
            interests=None, email_verified=False,
        ):
            _Seeder.counter += 1
            user = User(
                id=uuid4(), first_name=first_name, last_name=last_name,
                interests=interests or [], is_email_verified=email_verified,
                created_at=BASE_TIME + timedelta(days=_Seeder.counter),
            )
            test_db.add(user)
            if neighborhood is not None:
                test_db.add(UserNeighborhood(
                    id=uuid4(), user_id=user.id,
                    neighborhood_id=neighborhood, is_primary=True,
                ))
            await test_db.commit()
            return user.id

    return _Seeder()


# ─── In-memory fakes ────────────────────────────────────────────

@pytest.fixture
def edge_store():
    return InMemoryEdgeStore()


@pytest.fixture
def directory():
    return InMemoryUserDirectory()


@pytest.fixture
def connection_service(edge_store, directory):
    return ConnectionService(edge_store, directory)


@pytest.fixture
def recommendation_service(edge_store, directory):
    return RecommendationService(edge_store, directory)
