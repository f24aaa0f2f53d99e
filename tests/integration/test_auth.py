"""Integration tests: admin login and bearer authentication."""

import pytest
from httpx import AsyncClient

from tests.conftest import SUPERADMIN_LOGIN, SUPERADMIN_PASSWORD, requires_db

pytestmark = requires_db


@pytest.mark.asyncio
async def test_login_returns_token(async_client: AsyncClient, api_base: str, superadmin):
    resp = await async_client.post(
        f"{api_base}/auth/login",
        json={"login_id": SUPERADMIN_LOGIN, "password": SUPERADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["role"] == "superadmin"
    assert data["admin_id"] == str(superadmin.id)


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, api_base: str, superadmin):
    resp = await async_client.post(
        f"{api_base}/auth/login",
        json={"login_id": SUPERADMIN_LOGIN, "password": "wrong-password"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_missing_fields(async_client: AsyncClient, api_base: str):
    resp = await async_client.post(f"{api_base}/auth/login", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_me(async_client: AsyncClient, api_base: str, auth_headers: dict):
    resp = await async_client.get(f"{api_base}/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["login_id"] == SUPERADMIN_LOGIN


@pytest.mark.asyncio
async def test_me_requires_token(async_client: AsyncClient, api_base: str):
    resp = await async_client.get(f"{api_base}/auth/me")
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token(async_client: AsyncClient, api_base: str):
    resp = await async_client.get(f"{api_base}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_of_deleted_admin_is_refused(
    async_client: AsyncClient, api_base: str, auth_headers: dict
):
    invite = await async_client.post(
        f"{api_base}/admins",
        json={"login_id": "teacher1", "password": "Password123!", "display_name": "Teacher One"},
        headers=auth_headers,
    )
    assert invite.status_code == 200
    assert invite.json()["data"]["session_invalidated"] is False
    admin_id = invite.json()["data"]["admin"]["id"]

    login = await async_client.post(
        f"{api_base}/auth/login", json={"login_id": "teacher1", "password": "Password123!"}
    )
    teacher_headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

    resp = await async_client.request(
        "DELETE", f"{api_base}/admins/{admin_id}", json={"confirmation": "teacher1"}, headers=auth_headers
    )
    assert resp.json()["data"]["performed"] is True

    resp = await async_client.get(f"{api_base}/auth/me", headers=teacher_headers)
    assert resp.status_code == 401
