"""
Shared test fixtures for the marketplace auth test suite.

Each test gets a fresh in-memory aiosqlite database with the default
roles seeded, an httpx AsyncClient bound to the app, and a recording
mail service in place of SMTP.
"""

import os
import sys
from typing import AsyncGenerator, Generator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production-use-0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db, get_mail_service
from app.db.session import create_tables
from app.main import app
from app.services.mail import MailService
from app.services.roles import seed_default_roles

API = "/api/v1"


class RecordingMailService(MailService):
    """Captures reset emails instead of sending them."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[tuple[str, str]] = []

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        self.sent.append((to_email, token))
        return True


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh database per test, roles seeded, wired into the app."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        await seed_default_roles(session)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
def mail_outbox() -> Generator[RecordingMailService, None, None]:
    mail = RecordingMailService()
    app.dependency_overrides[get_mail_service] = lambda: mail
    yield mail
    app.dependency_overrides.pop(get_mail_service, None)


@pytest.fixture
async def async_client(
    session_factory, mail_outbox
) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


# ── Helpers ─────────────────────────────────────────────────────────
async def signup_user(
    client: AsyncClient,
    email: str = "buyer@test.com",
    password: str = "secret123",
    role: str = "buyer",
    name: str = "Test User",
):
    return await client.post(
        f"{API}/auth/signup",
        json={"name": name, "email": email, "password": password, "role": role},
    )


async def login_user(
    client: AsyncClient, email: str = "buyer@test.com", password: str = "secret123"
):
    return await client.post(f"{API}/auth/login", json={"email": email, "password": password})


@pytest.fixture
def auth_headers(async_client: AsyncClient):
    """Factory: sign up + log in a user with ``role`` and return bearer headers."""

    async def _make(role: str = "buyer", email: str | None = None) -> dict[str, str]:
        email = email or f"{role}@test.com"
        resp = await signup_user(async_client, email=email, role=role)
        assert resp.status_code == 201, resp.text
        resp = await login_user(async_client, email=email)
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['accessToken']}"}

    return _make
