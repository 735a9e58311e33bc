"""
Shared test fixtures and configuration.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dropview.core.cache import CacheManager
from dropview.core.storage import asset_key_for
from dropview.database import Base, get_db
from dropview.dependencies import get_asset_store, get_cache
from dropview.main import create_app
from dropview.models import Comment, CommentLike, Post, PostLike, User  # noqa: F401


class FakeAssetStore:
    """In-memory stand-in for the S3 asset store."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.original_names: Dict[str, str] = {}
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False

    async def put(
        self,
        file_content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        original_filename: Optional[str] = None,
    ):
        if self.fail_uploads:
            raise ConnectionError("S3 upload failed: InternalError")
        key = asset_key_for(filename)
        self.objects[key] = file_content
        self.original_names[key] = original_filename or filename
        return {"url": f"https://assets.test/{key}", "key": key}

    async def delete(self, key: str) -> bool:
        if self.fail_deletes:
            raise ConnectionError("asset store unavailable")
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None


@pytest.fixture
def mock_db():
    """Mock database session."""
    return AsyncMock()


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = AsyncMock()
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.get = AsyncMock(return_value=None)
    redis_mock.setex = AsyncMock(return_value=True)
    redis_mock.delete = AsyncMock(return_value=1)
    redis_mock.keys = AsyncMock(return_value=[])
    return redis_mock


@pytest.fixture
def mock_cache_manager(mock_redis):
    """Cache manager wired to the mocked Redis client."""
    cache = CacheManager()
    cache.redis_client = mock_redis
    return cache


@pytest.fixture
def offline_cache():
    """Cache manager without a Redis connection (every call is a miss/no-op)."""
    return CacheManager()


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    """Database session on the in-memory test database."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def asset_store():
    return FakeAssetStore()


@pytest.fixture
def app(session_factory, asset_store, offline_cache):
    """Application with the database, asset store and cache replaced."""
    application = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_asset_store] = lambda: asset_store
    application.dependency_overrides[get_cache] = lambda: offline_cache

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    """HTTP client talking to the app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


def signup_payload(**overrides) -> Dict[str, Any]:
    """A complete, valid signup body."""
    payload = {
        "username": "jane@example.com",
        "password": "s3cret-pass",
        "name": "Jane Doe",
        "phone": "555-0100",
        "street": "1 Main St",
        "city": "Springfield",
        "zip": "12345",
        "age_range": "25-34",
        "marital_status": "single",
        "style_preference": "casual",
        "gender_identity": "female",
        "family_size": "2",
        "occupation": "designer",
        "purchase_priorities": "quality",
        "product_preferences": ["skincare", "snacks"],
        "try_frequency": "weekly",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client):
    """Register a user through the API and return the signup response body."""

    async def _register(**overrides) -> Dict[str, Any]:
        response = await client.post("/api/auth/user/signup", json=signup_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def signup_data():
    """Factory for signup bodies, e.g. ``signup_data(username="bob@example.com")``."""
    return signup_payload


def build_user(**overrides) -> User:
    """A detached User with a complete profile."""
    fields = {
        "id": 1,
        "username": "jane@example.com",
        "hashed_password": "$2b$04$notarealhashnotarealhashnotarealhashnotarealhash",
        "phone": "555-0100",
        "name": "Jane Doe",
        "street": "1 Main St",
        "city": "Springfield",
        "zip_code": "12345",
        "age_range": "25-34",
        "marital_status": "single",
        "style_preference": "casual",
        "gender_identity": "female",
        "family_size": "2",
        "product_preferences": ["skincare"],
        "try_frequency": "weekly",
        "referral_code": "JANE1234",
        "referrals_count": 0,
        "login_streak": 0,
        "last_login": None,
        "community_actions": 0,
        "reward_unlocked": False,
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def user_factory():
    return build_user
