"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable (so no .env file is loaded) and
points every external dependency at an in-process stand-in.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDENTITY_PROVIDER", "memory")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("AUTH_JWT_KEY", "test-signing-secret")
os.environ.setdefault("AUTH_JWT_ALGORITHM", "HS256")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator, Callable, Generator
from unittest.mock import Mock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 - register models with Base
from app.adapters.identity.in_memory import InMemoryIdentityDirectory
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.app_factory import create_app
from app.core.database import Base
from app.core.identity import get_identity_directory
from app.core.rate_limit import get_rate_limiter
from app.schemas.user import DirectoryUser, ExternalAccount

TEST_JWT_KEY = "test-signing-secret"

ALICE = DirectoryUser(
    id="user_alice",
    username="alice",
    first_name="Alice",
    last_name="Liddell",
    image_url="https://img.example.com/alice.png",
    external_accounts=[ExternalAccount(provider="oauth_github", username="alice-gh")],
)
BOB = DirectoryUser(
    id="user_bob",
    username="bob",
    image_url="https://img.example.com/bob.png",
)


def make_token(user_id: str, **claims) -> str:
    """Sign a session token the way the identity provider would."""
    return jwt.encode({"sub": user_id, **claims}, TEST_JWT_KEY, algorithm="HS256")


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def directory() -> InMemoryIdentityDirectory:
    return InMemoryIdentityDirectory([ALICE, BOB])


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def limiter(clock: Mock) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)


@pytest.fixture
def client(
    directory: InMemoryIdentityDirectory,
    limiter: InMemorySlidingWindowRateLimiter,
) -> Generator[TestClient, None, None]:
    """Test client over a fresh app and a fresh in-memory database."""
    application = create_app()
    application.dependency_overrides[get_identity_directory] = lambda: directory
    application.dependency_overrides[get_rate_limiter] = lambda: limiter
    with TestClient(application) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
