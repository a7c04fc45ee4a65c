"""
Shared test fixtures for the immigration CRM backend test suite.

Sets up an async SQLite database file, overrides FastAPI dependencies,
and provides pre-authenticated HTTP clients for admin, manager and staff
roles.
"""

import os
import tempfile
import uuid

import factory
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# ---- Environment overrides MUST come before any app imports ----
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"immicrm-test-{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminPass123!"
os.environ["ENVIRONMENT"] = "test"

from immicrm.auth.models import User, UserRole  # noqa: E402
from immicrm.auth.service import create_access_token, hash_password  # noqa: E402
from immicrm.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from immicrm.main import app  # noqa: E402

# ---------------------------------------------------------------------------
# Async engine & session factory for the test database
# ---------------------------------------------------------------------------
# A file database with NullPool: every connection is opened on the running
# test's event loop, so nothing is shared between loops.
test_engine = create_async_engine(os.environ["DATABASE_URL"], echo=False, poolclass=NullPool)
TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
enable_sqlite_foreign_keys(test_engine)


# ---------------------------------------------------------------------------
# Database lifecycle
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Create all tables before each test, drop them afterward."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """Provide a DB session for direct service-layer tests and row counts."""
    async with TestSession() as session:
        yield session


# ---------------------------------------------------------------------------
# Dependency override
# ---------------------------------------------------------------------------
async def _override_get_db():
    async with TestSession() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def client() -> AsyncClient:
    """Unauthenticated httpx async client wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Helper: create a user directly in the database
# ---------------------------------------------------------------------------
async def _create_test_user(
    username: str,
    password: str,
    role: UserRole,
    full_name: str = "Test User",
    email: str | None = None,
) -> User:
    """Insert a user into the test database and return it."""
    user = User(
        username=username,
        email=email or f"{username}@immicrm-test.com",
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
    )
    async with TestSession() as session:
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Authenticated client helpers
# ---------------------------------------------------------------------------
def _auth_header(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.username, user.role.value)
    return {"Authorization": f"Bearer {token}"}


async def _authenticated_client(user: User):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers.update(_auth_header(user))
        yield ac


@pytest_asyncio.fixture
async def admin_user() -> User:
    return await _create_test_user("admin", "AdminPass123!", UserRole.admin, full_name="Admin Tester")


@pytest_asyncio.fixture
async def manager_user() -> User:
    return await _create_test_user("manager", "ManagerPass123!", UserRole.manager, full_name="Mona Manager")


@pytest_asyncio.fixture
async def staff_user() -> User:
    return await _create_test_user("staff", "StaffPass123!", UserRole.staff, full_name="Sam Staff")


@pytest_asyncio.fixture
async def other_staff_user() -> User:
    return await _create_test_user("staff2", "StaffPass456!", UserRole.staff, full_name="Olga Other")


@pytest_asyncio.fixture
async def admin_client(admin_user: User) -> AsyncClient:
    """AsyncClient pre-authenticated as an admin."""
    async for ac in _authenticated_client(admin_user):
        yield ac


@pytest_asyncio.fixture
async def manager_client(manager_user: User) -> AsyncClient:
    async for ac in _authenticated_client(manager_user):
        yield ac


@pytest_asyncio.fixture
async def staff_client(staff_user: User) -> AsyncClient:
    async for ac in _authenticated_client(staff_user):
        yield ac


@pytest_asyncio.fixture
async def other_staff_client(other_staff_user: User) -> AsyncClient:
    async for ac in _authenticated_client(other_staff_user):
        yield ac


# ---------------------------------------------------------------------------
# Factory Boy factories
# ---------------------------------------------------------------------------
class UserFactory(factory.Factory):
    class Meta:
        model = dict

    username = factory.LazyFunction(lambda: f"user-{uuid.uuid4().hex[:8]}")
    email = factory.LazyFunction(lambda: f"user-{uuid.uuid4().hex[:8]}@immicrm-test.com")
    password = "SecurePass123!"
    full_name = factory.Faker("name")
    role = "staff"


class ClientFactory(factory.Factory):
    class Meta:
        model = dict

    name = factory.Faker("name")
    email = factory.LazyFunction(lambda: f"client-{uuid.uuid4().hex[:8]}@immicrm-test.com")
    phone = "+1 555 0100"
    nationality = "Canadian"
    passport_number = factory.LazyFunction(lambda: f"P{uuid.uuid4().hex[:8].upper()}")


class CaseFactory(factory.Factory):
    class Meta:
        model = dict

    case_type = "H-1B Visa"
    status = "Open"
    priority = "Medium"


class TaskFactory(factory.Factory):
    class Meta:
        model = dict

    title = factory.Sequence(lambda n: f"Follow up #{n}")
    description = "Call the client about missing paperwork"
    priority = "High"


# ---------------------------------------------------------------------------
# Convenience fixtures: records already in the DB
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def sample_client(admin_client: AsyncClient) -> dict:
    """Create and return a sample client via the API."""
    resp = await admin_client.post("/api/clients", json=ClientFactory())
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def sample_case(admin_client: AsyncClient, sample_client: dict, staff_user: User) -> dict:
    """Create and return a case for the sample client, assigned to the staff user."""
    data = CaseFactory(client_id=sample_client["id"], assigned_to=staff_user.id)
    resp = await admin_client.post("/api/cases", json=data)
    assert resp.status_code == 201
    return resp.json()
