import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_pagination_options_is_public(client: AsyncClient):
    response = await client.get("/api/v1/pagination/options")
    assert response.status_code == 200
    assert response.json() == {
        "per_page_options": [10, 25, 50, 100],
        "default_per_page": 10,
        "max_per_page": 100,
    }


@pytest.mark.asyncio
async def test_logo_constraints(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/uploads/logo-constraints", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["max_size_mb"] == 2
    assert data["min_width"] == 100
    assert data["max_height"] == 2000


@pytest.mark.asyncio
async def test_oversized_request_rejected(client: AsyncClient, auth_headers: dict):
    body = b"x" * (8 * 1024 * 1024 + 1)
    response = await client.post(
        "/api/v1/companies",
        headers={**auth_headers, "Content-Type": "application/octet-stream"},
        content=body,
    )
    assert response.status_code == 413
    assert response.json()["message"] == "File upload too large."


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    data = response.json()
    assert data["message"] == "Not found."
    assert data["status"] == 404


@pytest.mark.asyncio
async def test_invalid_page_rejected(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/companies?page=0", headers=auth_headers)
    assert response.status_code == 422
    assert "page" in response.json()["errors"]


@pytest.mark.asyncio
async def test_stored_logo_is_served(client: AsyncClient, auth_headers: dict, png_logo: bytes):
    created = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Logo Co"},
        files={"logo": ("logo.png", png_logo, "image/png")},
    )
    response = await client.get(f"/storage/{created.json()['logo']}")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
