"""Pytest configuration and fixtures."""

import os
import tempfile

# Configure settings before anything imports taskhub
os.environ.setdefault("TASKHUB_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TASKHUB_DATA_DIR", tempfile.mkdtemp(prefix="taskhub-tests-"))

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from taskhub.models import Base
from taskhub.main import create_app
from taskhub.database import get_db, session_scope
from taskhub.observers import register_observers
from taskhub.services.cache import cache


@pytest.fixture(autouse=True)
def fresh_cache():
    """Start every test with observers attached and an empty cache."""
    register_observers()
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    """Create a test client with overridden database."""

    async def override_get_db():
        async with session_scope(session_maker) as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
