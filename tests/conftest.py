"""Shared test infrastructure for the House Hunt Agent test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- sms_service_mock: mock SMSService capturing outbound messages
- make_buyer: factory for Buyer rows
- make_otp: factory for OtpCode rows
- api_client: HTTPX AsyncClient wired to the auth + agent routers
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from house_hunt.infra.database import Base

import house_hunt.domain.models  # noqa: F401

from house_hunt.domain.models import Buyer, OtpCode
from house_hunt.services.otp_service import utcnow


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# SMS service mock
# ---------------------------------------------------------------------------

@pytest.fixture
def sms_service_mock():
    """Mock SMSService that captures outbound messages.

    Returns a MagicMock with send_sms patched to append
    (to_number, message) tuples to a .sent list.
    """
    mock = MagicMock()
    mock.sent = []
    mock.configured = True

    async def _capture_send(to_number: str, message: str):
        mock.sent.append((to_number, message))
        return {"ok": True}

    mock.send_sms = AsyncMock(side_effect=_capture_send)
    return mock


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_buyer(db_session):
    """Factory that creates a Buyer row.

    Usage:
        buyer = await make_buyer(phone="+13185551234")
    """
    async def _factory(
        phone: str = "+13185551234",
        phone_verified: bool = False,
    ) -> Buyer:
        buyer = Buyer(
            id=str(uuid.uuid4()),
            phone=phone,
            phone_verified=phone_verified,
        )
        db_session.add(buyer)
        await db_session.flush()
        return buyer

    return _factory


@pytest.fixture
def make_otp(db_session):
    """Factory that creates an OtpCode row expiring ``expires_in`` from now.

    Usage:
        otp = await make_otp(code="123456", expires_in=timedelta(minutes=-1))
    """
    async def _factory(
        phone: str = "+13185551234",
        code: str = "123456",
        expires_in: timedelta = timedelta(minutes=10),
        used: bool = False,
    ) -> OtpCode:
        otp = OtpCode(
            id=str(uuid.uuid4()),
            phone=phone,
            code=code,
            expires_at=utcnow() + expires_in,
            used=used,
        )
        db_session.add(otp)
        await db_session.flush()
        return otp

    return _factory


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client(db_session, sms_service_mock):
    """Build an HTTPX AsyncClient wired to a test FastAPI app.

    Uses a fresh FastAPI app with only the auth and agent routers, the test
    session, and the SMS mock (lifespan does not run under ASGITransport).
    """
    from house_hunt.app.routes.agent import router as agent_router
    from house_hunt.app.routes.auth import get_sms_service, router as auth_router
    from house_hunt.infra.database import get_db

    test_app = FastAPI()
    test_app.include_router(auth_router)
    test_app.include_router(agent_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db
    test_app.dependency_overrides[get_sms_service] = lambda: sms_service_mock

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )
