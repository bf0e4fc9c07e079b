"""
Shared fixtures: an in-memory SQLite database per test and an ASGI client
wired to it.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auth.jwt import TokenIssuer
from database.models import Base
from database.session import get_db_session
from database.stores import AccountStore, IdentityStore

TEST_SECRET = "test-secret"


@pytest_asyncio.fixture
async def engine():
    # StaticPool keeps a single connection so every session sees the same
    # in-memory database.
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def identities(session):
    return IdentityStore(session)


@pytest.fixture
def accounts(session):
    return AccountStore(session)


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_SECRET, expiry_seconds=3600)


@pytest_asyncio.fixture
async def client(session_factory, issuer):
    from main import create_app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app(token_issuer=issuer)
    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
