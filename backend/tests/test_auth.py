"""Tests for authentication endpoints."""
import uuid

import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock, patch, MagicMock

from podcast_cms.core.config import settings
from podcast_cms.core.deps import get_current_user
from podcast_cms.core.security import create_access_token, decode_token
from podcast_cms.db.session import get_session
from podcast_cms.main import app


# ─── Fixtures ─────────────────────────────────────────────────────────────────

class FakeUser:
    """Minimal user stub returned by DB mock."""

    id = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
    email = "admin@example.com"
    name = "Admin User"
    role = "admin"
    is_active = True
    deleted_at = None
    password_hash = "$2b$12$placeholder"  # will be mocked


def _session_returning(user):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = user

    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(return_value=mock_result)
    mock_session.add = MagicMock()

    async def override_get_session():
        yield mock_session

    return mock_session, override_get_session


# ─── Login Tests ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_valid_credentials_returns_jwt():
    """POST /api/v1/auth/login with valid credentials should return access_token."""
    mock_session, override = _session_returning(FakeUser())

    with patch("podcast_cms.api.v1.auth.verify_password", return_value=True):
        app.dependency_overrides[get_session] = override
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post(
                    "/api/v1/auth/login",
                    data={"username": "admin@example.com", "password": "changeme123"},
                )
        finally:
            app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    payload = decode_token(data["access_token"])
    assert payload["sub"] == str(FakeUser.id)
    assert payload["role"] == "admin"
    # login is audited and committed
    mock_session.add.assert_called_once()
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_login_invalid_credentials_returns_401():
    """POST /api/v1/auth/login with an unknown email should return 401."""
    _, override = _session_returning(None)

    app.dependency_overrides[get_session] = override
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/api/v1/auth/login",
                data={"username": "nobody@example.com", "password": "wrong"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_disabled_account_returns_403():
    user = FakeUser()
    user.is_active = False
    _, override = _session_returning(user)

    with patch("podcast_cms.api.v1.auth.verify_password", return_value=True):
        app.dependency_overrides[get_session] = override
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post(
                    "/api/v1/auth/login",
                    data={"username": "admin@example.com", "password": "changeme123"},
                )
        finally:
            app.dependency_overrides.clear()

    assert response.status_code == 403


# ─── /me ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_me_returns_current_user():
    async def override_user():
        return FakeUser()

    app.dependency_overrides[get_current_user] = override_user
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/auth/me")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["email"] == "admin@example.com"


@pytest.mark.asyncio
async def test_me_without_token_returns_401():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


def test_access_token_round_trip():
    token = create_access_token(subject="user-1", role="member")
    payload = decode_token(token)
    assert payload["sub"] == "user-1"
    assert payload["type"] == "access"


@pytest.mark.asyncio
async def test_login_records_last_login_and_expiry():
    user = FakeUser()
    _, override = _session_returning(user)

    with patch("podcast_cms.api.v1.auth.verify_password", return_value=True):
        app.dependency_overrides[get_session] = override
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post(
                    "/api/v1/auth/login",
                    data={"username": " Admin@Example.com ", "password": "changeme123"},
                )
        finally:
            app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["expires_in"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert response.json()["role"] == "admin"
    assert user.last_login_at is not None
