"""
Pytest configuration and fixtures for testing
"""
import os

# Settings are read at import time, so the environment must be set first
os.environ["WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-slimpath-tests"
os.environ["ADMIN_EMAILS"] = "admin@slimpath.test"
os.environ["PROFILE_WAIT_ATTEMPTS"] = "0"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("APP_URL", None)
os.environ.pop("NEXT_PUBLIC_APP_URL", None)

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import database_models  # noqa: E402,F401
from auth_utils import create_jwt  # noqa: E402
from backend.identity.local import LocalIdentityProvider  # noqa: E402
from backend.identity.providers import get_identity_provider  # noqa: E402
from backend.program.rules import utcnow  # noqa: E402
from database import Base, enable_sqlite_savepoints, get_db  # noqa: E402
from database_models import User, UserOnboarding  # noqa: E402

WEBHOOK_SECRET = "test-webhook-secret"
ADMIN_EMAIL = "admin@slimpath.test"


class RecordingMailer:
    """Stands in for SmtpMailer; keeps every message instead of sending it."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.sent = []

    def send(self, to: str, subject: str, body: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "body": body})
        return self.accept


@pytest.fixture
async def test_engine():
    """
    Fresh in-memory database for each test.
    StaticPool keeps the single connection, and so the data, alive between sessions.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """
    Session for repository and service tests that do not go through HTTP.
    Do not combine with the client fixture: both would share one connection.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
async def client(session_factory, mailer):
    """
    HTTP client against the app with the test database and a local identity
    provider that records outgoing email.
    """
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def override_identity_provider(db: AsyncSession = Depends(get_db)):
        return LocalIdentityProvider(db, mailer=mailer)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = override_identity_provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_jwt(user_id)}"}


@pytest.fixture
def make_member(session_factory):
    """
    Factory that inserts a subscribed member (identity + profile) and
    optionally a completed onboarding. Returns the user id.
    """
    async def _make(
        email: str = "member@example.com",
        password: Optional[str] = "Member123!",
        profile_type: str = "hormonal",
        onboarded: bool = False,
        completed_at: Optional[datetime] = None,
        slim_points: int = 0,
        status: str = "active",
        current_weight_kg: float = 80.0,
    ) -> str:
        async with session_factory() as session:
            identity = await LocalIdentityProvider(session).create_identity(
                email, password=password, email_confirmed=True
            )
            session.add(User(
                id=identity.id,
                email=email,
                profile_type=profile_type,
                status=status,
                subscription_plan="monthly",
                current_day=1,
                slim_points=slim_points,
                bonus_unlocked=False,
            ))
            session.add(UserOnboarding(
                user_id=identity.id,
                age=35,
                height_cm=170.0,
                current_weight_kg=current_weight_kg,
                target_weight_kg=70.0,
                medications=[],
                physical_limitations=[],
                dietary_restrictions=[],
                diet_history="yoyo" if onboarded else None,
                onboarding_completed=onboarded,
                completed_at=(completed_at or utcnow()) if onboarded else None,
            ))
            await session.commit()
            return identity.id

    return _make
