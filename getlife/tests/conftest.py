"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from getlife.app.main import app
from getlife.app.db.session import get_db, Base
from getlife.app.core.redis_client import get_redis
from getlife.app.core.security import get_password_hash
from getlife.app.domain.billing.clock import FrozenClock, get_clock
from getlife.app.models.account import Account
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType
from getlife.app.models.user import User
import getlife.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

SESSION_START = datetime(2026, 1, 5, 8, 0, 0, tzinfo=timezone.utc)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Point the app at the test database and the in-memory Redis for the whole run."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def clock():
    """Server clock frozen at SESSION_START; advance it to simulate work."""
    frozen = FrozenClock(SESSION_START)
    app.dependency_overrides[get_clock] = lambda: frozen
    yield frozen
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(client, db_session):
    """Create admin user and return its id and auth headers."""
    admin_user = User(
        email="admin@test.com",
        username="admin",
        hashed_password=get_password_hash("admin123"),
        role=UserRole.ADMIN,
        full_name="Admin",
        status=ProfileStatus.ACTIVE,
        is_active=True,
        is_superuser=True
    )
    db_session.add(admin_user)
    await db_session.commit()

    response = await client.post("/v1/auth/login", json={
        "username": "admin",
        "password": "admin123"
    })
    assert response.status_code == 200
    return {"id": admin_user.id, "headers": bearer(response.json()["access_token"])}


@pytest.fixture
async def customer(client):
    """Register a customer through the API."""
    response = await client.post("/v1/auth/register", json={
        "email": "customer@test.com",
        "username": "customer",
        "password": "password123",
        "full_name": "Siti Customer",
        "address": "Jl. Sudirman 10"
    })
    assert response.status_code == 201
    data = response.json()
    return {"id": data["user_id"], "headers": bearer(data["access_token"])}


@pytest.fixture
def make_mitra(client, db_session):
    """Factory creating a verified mitra with a given balance and logging it in."""
    async def _make(username="mitra", balance=50000, expertise=ServiceType.GET_CLEAN, blocked=False):
        mitra = User(
            email=f"{username}@test.com",
            username=username,
            hashed_password=get_password_hash("mitra123"),
            role=UserRole.MITRA,
            full_name=f"Mitra {username}",
            expertise=expertise,
            status=ProfileStatus.VERIFIED,
            is_active=True,
            is_superuser=False
        )
        db_session.add(mitra)
        await db_session.flush()
        db_session.add(Account(
            user_id=mitra.id,
            balance=balance,
            outstanding_debt=max(0, -balance),
            blocked=blocked,
            version=1
        ))
        await db_session.commit()

        response = await client.post("/v1/auth/login", json={
            "username": username,
            "password": "mitra123"
        })
        assert response.status_code == 200
        return {"id": mitra.id, "headers": bearer(response.json()["access_token"])}

    return _make
