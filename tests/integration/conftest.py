"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

OTP emails are intercepted: the gateway's email client is patched and the
last OTP sent to each address is kept in ``sent_otps``.
"""

import uuid
from collections.abc import Awaitable, Callable
from unittest.mock import patch

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text

from src.bm_common.database import async_session_factory
from src.bm_gateway.api import router as auth_router
from src.bm_gateway.auth.password import hash_password
from src.main import app

PASSWORD = "TestPass123"

_INSERT_ADMIN_SQL = text("""
    INSERT INTO users (name, email, password_hash, role, is_active)
    VALUES (:name, :email, :password_hash, 'admin', TRUE)
    ON CONFLICT (email) DO NOTHING
""")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def sent_otps() -> dict[str, str]:
    otps: dict[str, str] = {}

    async def capture(email: str, otp: str) -> None:
        otps[email] = otp

    with patch.object(auth_router._service._email, "send_otp", side_effect=capture):
        yield otps


async def _login(client: AsyncClient, email: str) -> dict[str, str]:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def register_user(
    client: AsyncClient, sent_otps: dict[str, str]
) -> Callable[[str], Awaitable[dict[str, str]]]:
    """Register a fresh user of ``role`` through the OTP flow; returns auth headers."""

    async def _register(role: str) -> dict[str, str]:
        email = f"{role}_{uuid.uuid4().hex[:8]}@example.com"
        resp = await client.post(
            "/api/v1/auth/register",
            json={"name": f"{role} user", "email": email, "password": PASSWORD, "role": role},
        )
        assert resp.status_code == 202, resp.text
        resp = await client.post(
            "/api/v1/auth/verify-otp", json={"email": email, "otp": sent_otps[email]}
        )
        assert resp.status_code == 201, resp.text
        return await _login(client, email)

    return _register


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Admins cannot self-register; seed one directly."""
    email = f"admin_{uuid.uuid4().hex[:8]}@example.com"
    async with async_session_factory() as db:
        await db.execute(
            _INSERT_ADMIN_SQL,
            {"name": "Admin", "email": email, "password_hash": hash_password(PASSWORD)},
        )
        await db.commit()
    return await _login(client, email)
