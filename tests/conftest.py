"""
Shared test fixtures and configuration for pytest.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Awaitable, Callable, List, Optional, Tuple

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ADMIN_REGISTRATION_KEY"] = "test-admin-key"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import get_settings
from app.core.auth import hash_password
from app.db.database import Base, get_db_session
from app.db.models import (
    BrokerProfileModel,
    JobModel,
    TruckerProfileModel,
    UserModel,
)
from app.services.email_service import EmailService, get_email_service


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
BASE_URL = "http://testserver"
DEFAULT_PASSWORD = "secret123"


class RecordingMailer(EmailService):
    """Email service that renders messages but keeps them instead of sending."""

    def __init__(self):
        super().__init__(get_settings())
        self.sent: List[Tuple[str, str, str]] = []
        self.fail = False

    def send(self, to_email: str, subject: str, body: str, html: Optional[str] = None) -> bool:
        if self.fail:
            return False
        self.sent.append((to_email, subject, body))
        return True


@pytest.fixture
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
async def make_client(db_session, mailer) -> AsyncGenerator[Callable[[], Awaitable[AsyncClient]], None]:
    """
    Factory for test clients sharing the test database session.

    Each client has its own cookie jar, so several users can be logged in at once.
    """

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_session
    app.dependency_overrides[get_email_service] = lambda: mailer

    clients: List[AsyncClient] = []

    async def _make() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def test_client(make_client) -> AsyncClient:
    """Anonymous test client."""
    return await make_client()


# ============ User Fixtures ============

@pytest.fixture
def create_user(db_session) -> Callable[..., Awaitable[UserModel]]:
    """Factory inserting a user (and its role profile) directly in the database."""

    async def _create(
        username: str,
        user_type: str = "trucker",
        status: str = "approved",
        password: str = DEFAULT_PASSWORD,
        **fields,
    ) -> UserModel:
        user = UserModel(
            username=username,
            password_hash=hash_password(password),
            email=fields.pop("email", f"{username}@example.com"),
            first_name=fields.pop("first_name", username.capitalize()),
            last_name=fields.pop("last_name", "Tester"),
            phone=fields.pop("phone", "555-0100"),
            user_type=user_type,
            status=status,
            **fields,
        )
        db_session.add(user)
        await db_session.flush()

        if user_type == "trucker":
            db_session.add(TruckerProfileModel(user_id=user.id))
        elif user_type == "broker":
            db_session.add(
                BrokerProfileModel(
                    user_id=user.id,
                    company_name=f"{username.capitalize()} Freight",
                    company_address="1 Dock St",
                    company_city="Manila",
                    company_state="NCR",
                    company_zip="1000",
                )
            )
        await db_session.flush()
        return user

    return _create


@pytest.fixture
def create_job(db_session) -> Callable[..., Awaitable[JobModel]]:
    """Factory inserting a job owned by ``broker``."""

    async def _create(broker: UserModel, **fields) -> JobModel:
        values = {
            "title": "Pallets to Cebu",
            "description": "20 pallets of dry goods",
            "origin_city": "Manila",
            "origin_state": "NCR",
            "destination_city": "Cebu City",
            "destination_state": "Cebu",
            "price": 45000,
            "cargo_type": "Dry goods",
            "load_type": "Full truckload",
            "pickup_date": datetime.now(timezone.utc) + timedelta(days=3),
            "status": "active",
        }
        values.update(fields)
        job = JobModel(broker_id=broker.id, **values)
        db_session.add(job)
        await db_session.flush()
        return job

    return _create


async def login(client: AsyncClient, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Log ``client`` in; the session cookie stays in its jar."""
    response = await client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def login_as() -> Callable[..., Awaitable[dict]]:
    """The login helper, for tests that log in their own clients."""
    return login


@pytest.fixture
async def trucker(create_user) -> UserModel:
    return await create_user("trucker1", user_type="trucker")


@pytest.fixture
async def broker(create_user) -> UserModel:
    return await create_user("broker1", user_type="broker")


@pytest.fixture
async def admin(create_user) -> UserModel:
    return await create_user("admin1", user_type="admin")


@pytest.fixture
async def trucker_client(make_client, trucker) -> AsyncClient:
    client = await make_client()
    await login(client, trucker.username)
    return client


@pytest.fixture
async def broker_client(make_client, broker) -> AsyncClient:
    client = await make_client()
    await login(client, broker.username)
    return client


@pytest.fixture
async def admin_client(make_client, admin) -> AsyncClient:
    client = await make_client()
    await login(client, admin.username)
    return client
