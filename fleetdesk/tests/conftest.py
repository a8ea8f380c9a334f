"""
Centralized Test Configuration.
"""

import io

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleetdesk.app.main import app
from fleetdesk.app.db.session import get_db, Base
from fleetdesk.app.core.exceptions import StorageError
from fleetdesk.app.core.jwt import create_access_token
from fleetdesk.app.core.security import get_password_hash
from fleetdesk.app.models.enums import AppRole, VehicleStatus
from fleetdesk.app.models.profile import Profile
from fleetdesk.app.models.user import User
from fleetdesk.app.models.user_role import UserRoleAssignment
from fleetdesk.app.models.vehicle import Vehicle
from fleetdesk.app.services.object_store import get_object_store
import fleetdesk.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def setex(self, key, seconds, value):
        self.store[key] = value
        return True

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def flushdb(self):
        self.store = {}


class InMemoryObjectStore:
    """Stands in for the MinIO bucket; keeps uploads in a dict."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False

    async def upload(self, bucket, path, data, content_type):
        if self.fail_uploads:
            raise StorageError()
        self.objects[(bucket, path)] = (data, content_type)
        return path

    def get_public_url(self, bucket, path):
        return f"http://storage.test/{bucket}/{path}"

    async def delete(self, bucket, path):
        self.objects.pop((bucket, path), None)
        self.deleted.append((bucket, path))


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture(autouse=True)
def apply_overrides(mock_redis, object_store):
    """Patch Redis and the object store; the database is overridden by ``client``."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis

    app.dependency_overrides[get_object_store] = lambda: object_store
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def client(session_factory):
    """Async client for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def create_user(db, email, roles, full_name=None, password=TEST_PASSWORD, with_profile=True):
    """Insert an identity with a profile and the given role labels."""
    user = User(email=email, hashed_password=get_password_hash(password), is_active=True)
    db.add(user)
    await db.flush()
    if with_profile:
        db.add(Profile(id=user.id, full_name=full_name or email.split("@")[0].title(), email=email))
    for role in roles:
        db.add(UserRoleAssignment(user_id=user.id, role=role))
    await db.commit()
    return user


def auth_headers(user):
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


def make_jpeg(size=(800, 600), color=(40, 120, 200)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
async def admin(db_session):
    return await create_user(db_session, "admin@fleetdesk.test", [AppRole.ADMIN], "Ada Admin")


@pytest.fixture
async def manager(db_session):
    return await create_user(db_session, "manager@fleetdesk.test", [AppRole.VEHICLE_MANAGER], "Max Manager")


@pytest.fixture
async def employee(db_session):
    return await create_user(db_session, "emma@fleetdesk.test", [AppRole.EMPLOYEE], "Emma Employee")


@pytest.fixture
async def vehicle(db_session):
    car = Vehicle(name="Toyota Innova", number_plate="KA-01-1234", status=VehicleStatus.AVAILABLE)
    db_session.add(car)
    await db_session.commit()
    return car
