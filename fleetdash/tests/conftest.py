"""
Centralized Test Configuration.
"""

import asyncio
import queue
from collections import defaultdict

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from fleetdash.app.main import app
from fleetdash.app.db.session import get_db, Base
from fleetdash.app.core.config import settings
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.core.security import get_password_hash
import fleetdash.app.core.redis_client as redis_client_module
from fleetdash.app.models.auth_account import AuthAccount
from fleetdash.app.models.user import User
from fleetdash.app.models.vehicle import Vehicle
from fleetdash.app.models.enums import UserRole, DriverStatus, VehicleStatus

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

PASSWORD = "password123"


class MockPubSub:
    """Pub/sub handle reading from the channels a MockRedis has published on."""

    def __init__(self, redis):
        self.redis = redis
        self.channels = set()

    async def subscribe(self, *channels):
        self.channels.update(channels)

    async def unsubscribe(self, *channels):
        self.channels.difference_update(channels)

    async def get_message(self, ignore_subscribe_messages=False, timeout=0.0):
        for channel in sorted(self.channels):
            try:
                data = self.redis.channels[channel].get_nowait()
            except queue.Empty:
                continue
            return {"type": "message", "channel": channel, "data": data}
        await asyncio.sleep(0.01)
        return None

    async def aclose(self):
        self.channels = set()


# Mock Redis for reliability in CI/CD
class MockRedis:
    """In-memory stand-in recording everything published on the change feed."""

    def __init__(self):
        self.store = {}
        self.published = []
        self.channels = defaultdict(queue.Queue)
        self.fail_publish = False
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def publish(self, channel, message):
        if self.fail_publish or self._closed:
            raise ConnectionError("Redis unavailable")
        self.published.append((channel, message))
        self.channels[channel].put(message)
        return 1

    def pubsub(self):
        return MockPubSub(self)

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(mock_redis, monkeypatch):
    """Point the app at the in-memory database and the mock Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)
    monkeypatch.setattr(settings, "profile_fetch_retry_delay_seconds", 0)

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test; disposing the static pool drops the in-memory DB."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sync_client():
    """Synchronous client; WebSocket sessions run the app on its own thread."""
    return TestClient(app)


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """Factory inserting an account together with its profile."""
    async def _make_user(email: str, role: UserRole = UserRole.DRIVER, name: str = None) -> User:
        account = AuthAccount(
            email=email,
            hashed_password=get_password_hash(PASSWORD),
            meta_name=name,
            meta_role=role.value,
            is_active=True,
        )
        db_session.add(account)
        await db_session.flush()
        user = User(id=account.id, email=email, name=name or email.split("@")[0], role=role,
                    status=DriverStatus.AVAILABLE)
        db_session.add(user)
        await db_session.commit()
        return user
    return _make_user


@pytest.fixture
def make_vehicle(db_session):
    async def _make_vehicle(license_plate: str = "FLT-001", status: VehicleStatus = VehicleStatus.AVAILABLE) -> Vehicle:
        vehicle = Vehicle(make="Ford", model="Transit", year=2021, license_plate=license_plate, status=status)
        db_session.add(vehicle)
        await db_session.commit()
        return vehicle
    return _make_vehicle


@pytest.fixture
def login_as(client):
    """Log in with the shared test password and return auth headers."""
    async def _login_as(email: str) -> dict:
        response = await client.post("/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login_as


@pytest.fixture
def fetch():
    """Read a row through a fresh session, bypassing any identity map."""
    async def _fetch(model, record_id):
        async with TestingSessionLocal() as session:
            return await session.get(model, record_id)
    return _fetch


@pytest.fixture
async def admin_user(make_user):
    return await make_user("admin@fleet.io", role=UserRole.ADMIN, name="Fleet Admin")


@pytest.fixture
async def driver_user(make_user):
    return await make_user("driver@fleet.io", name="Dana Driver")


@pytest.fixture
async def vehicle(make_vehicle):
    return await make_vehicle()


@pytest.fixture
async def admin_headers(login_as, admin_user):
    return await login_as(admin_user.email)


@pytest.fixture
async def driver_headers(login_as, driver_user):
    return await login_as(driver_user.email)


@pytest.fixture
def assign_trip(client, admin_headers):
    """Factory assigning a trip through the admin API and returning its JSON."""
    async def _assign_trip(driver_id: int, vehicle_id: int, **overrides) -> dict:
        payload = {
            "driver_id": driver_id,
            "vehicle_id": vehicle_id,
            "start_location": "Depot North",
            "end_location": "Harbour Gate 4",
            "distance": 12.5,
            "estimated_duration": 30,
        }
        payload.update(overrides)
        response = await client.post("/v1/admin/trips", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _assign_trip
