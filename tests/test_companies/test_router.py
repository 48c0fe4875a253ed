import pytest
from httpx import AsyncClient

from minicrm.companies.models import Company
from minicrm.employees.models import Employee


@pytest.mark.asyncio
async def test_create_company(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        json={"name": "Globex", "email": "hello@globex.com", "website": "https://globex.test"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Globex"
    assert data["email"] == "hello@globex.com"
    assert data["logo"] is None
    assert data["logo_url"] is None
    assert data["employees"] == []


@pytest.mark.asyncio
async def test_create_company_publishes_event(client: AsyncClient, auth_headers: dict, app):
    await client.post("/api/v1/companies", headers=auth_headers, json={"name": "Initech"})
    assert app.state.event_bus.pending == 1


@pytest.mark.asyncio
async def test_create_company_with_logo(client: AsyncClient, auth_headers: dict, png_logo: bytes, storage_root):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Logo Co"},
        files={"logo": ("logo.png", png_logo, "image/png")},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["logo"].startswith("logos/company_logo_")
    assert data["logo"].endswith(".png")
    assert data["logo_url"].endswith(f"/storage/{data['logo']}")
    assert (storage_root / data["logo"]).is_file()


@pytest.mark.asyncio
async def test_create_company_requires_name(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        json={"email": "not-an-email", "website": "nope"},
    )
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["name"] == ["Company name is required."]
    assert errors["email"] == ["Please provide a valid email address."]
    assert errors["website"] == ["Website must be a valid URL."]


@pytest.mark.asyncio
async def test_create_company_duplicate_email(client: AsyncClient, auth_headers: dict, company):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        json={"name": "Copycat", "email": "info@acme.com"},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["This email is already taken."]


@pytest.mark.asyncio
async def test_create_company_rejects_non_image_logo(
    client: AsyncClient, auth_headers: dict, storage_root, app
):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Bad Logo"},
        files={"logo": ("logo.png", b"definitely not an image", "image/png")},
    )
    assert response.status_code == 422
    assert "Logo must be an image file." in response.json()["errors"]["logo"]
    assert not (storage_root / "logos").exists()
    assert app.state.event_bus.pending == 0


@pytest.mark.asyncio
async def test_create_company_rejects_large_logo(
    client: AsyncClient, auth_headers: dict, oversized_logo: bytes, db
):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Heavy Logo"},
        files={"logo": ("logo.png", oversized_logo, "image/png")},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["logo"] == ["Logo must not exceed 2MB."]
    assert await db.get(Company, 1) is None


@pytest.mark.asyncio
async def test_list_companies_paginated(client: AsyncClient, auth_headers: dict, db):
    db.add_all([Company(name=f"Company {i:02d}") for i in range(1, 26)])
    await db.commit()

    response = await client.get("/api/v1/companies?page=2", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [c["name"] for c in data["data"]] == [f"Company {i:02d}" for i in range(11, 21)]
    pagination = data["pagination"]
    assert pagination["current_page"] == 2
    assert pagination["last_page"] == 3
    assert pagination["per_page"] == 10
    assert pagination["total"] == 25
    assert pagination["from"] == 11
    assert pagination["to"] == 20
    assert pagination["has_more_pages"] is True
    assert pagination["on_first_page"] is False
    assert data["message"] == "Companies retrieved successfully"


@pytest.mark.asyncio
async def test_list_companies_past_last_page(client: AsyncClient, auth_headers: dict, company):
    response = await client.get("/api/v1/companies?page=5", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["data"] == []
    assert data["pagination"]["total"] == 1
    assert data["pagination"]["has_more_pages"] is False


@pytest.mark.asyncio
async def test_list_companies_embeds_employee_summary(client: AsyncClient, auth_headers: dict, company, db):
    db.add(Employee(first_name="Ada", last_name="Lovelace", email="ada@acme.com", company_id=company.id))
    await db.commit()

    response = await client.get("/api/v1/companies", headers=auth_headers)
    employees = response.json()["data"][0]["employees"]
    assert employees == [
        {
            "id": 1,
            "company_id": company.id,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@acme.com",
        }
    ]


@pytest.mark.asyncio
async def test_list_companies_custom_per_page(client: AsyncClient, auth_headers: dict, db):
    db.add_all([Company(name=f"Company {i}") for i in range(5)])
    await db.commit()

    response = await client.get("/api/v1/companies?per_page=2", headers=auth_headers)
    assert len(response.json()["data"]) == 2
    assert response.json()["pagination"]["last_page"] == 3


@pytest.mark.asyncio
async def test_get_company(client: AsyncClient, auth_headers: dict, company):
    response = await client.get(f"/api/v1/companies/{company.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Acme Corp"


@pytest.mark.asyncio
async def test_get_company_not_found(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/companies/999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Company not found."


@pytest.mark.asyncio
async def test_update_company_partial(client: AsyncClient, auth_headers: dict, company):
    response = await client.put(
        f"/api/v1/companies/{company.id}",
        headers=auth_headers,
        json={"website": "https://acme.example"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["website"] == "https://acme.example"
    assert data["name"] == "Acme Corp"


@pytest.mark.asyncio
async def test_update_company_keeps_own_email(client: AsyncClient, auth_headers: dict, company):
    response = await client.patch(
        f"/api/v1/companies/{company.id}",
        headers=auth_headers,
        json={"name": "Acme Inc", "email": "info@acme.com"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Acme Inc"


@pytest.mark.asyncio
async def test_update_company_rejects_null_name(client: AsyncClient, auth_headers: dict, company):
    response = await client.put(
        f"/api/v1/companies/{company.id}",
        headers=auth_headers,
        json={"name": None},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["name"] == ["Company name is required."]


@pytest.mark.asyncio
async def test_update_company_replaces_logo(
    client: AsyncClient, auth_headers: dict, png_logo: bytes, jpeg_logo: bytes, storage_root
):
    created = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Logo Co"},
        files={"logo": ("first.png", png_logo, "image/png")},
    )
    company = created.json()
    old_logo = company["logo"]

    response = await client.post(
        f"/api/v1/companies/{company['id']}",
        headers=auth_headers,
        data={"_method": "PUT", "name": "Logo Co"},
        files={"logo": ("second.jpg", jpeg_logo, "image/jpeg")},
    )
    assert response.status_code == 200
    new_logo = response.json()["logo"]
    assert new_logo != old_logo
    assert new_logo.endswith(".jpg")
    assert (storage_root / new_logo).is_file()
    assert not (storage_root / old_logo).exists()


@pytest.mark.asyncio
async def test_method_override_rejects_unknown_method(client: AsyncClient, auth_headers: dict, company):
    response = await client.post(
        f"/api/v1/companies/{company.id}",
        headers=auth_headers,
        data={"_method": "DELETE"},
    )
    assert response.status_code == 405
    data = response.json()
    assert data["message"] == "Method not allowed."
    assert "PUT" in data["allowed_methods"]


@pytest.mark.asyncio
async def test_delete_company_cascades(client: AsyncClient, auth_headers: dict, company, db):
    db.add(Employee(first_name="Ada", last_name="Lovelace", company_id=company.id))
    await db.commit()

    response = await client.delete(f"/api/v1/companies/{company.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Company deleted successfully"}

    db.expunge_all()
    assert await db.get(Company, company.id) is None
    assert await db.get(Employee, 1) is None


@pytest.mark.asyncio
async def test_delete_company_removes_logo(
    client: AsyncClient, auth_headers: dict, png_logo: bytes, storage_root
):
    created = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Logo Co"},
        files={"logo": ("logo.png", png_logo, "image/png")},
    )
    logo = created.json()["logo"]

    response = await client.delete(f"/api/v1/companies/{created.json()['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert not (storage_root / logo).exists()


@pytest.mark.asyncio
async def test_companies_require_auth(client: AsyncClient):
    response = await client.get("/api/v1/companies")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_email_reusable_after_company_deleted(client: AsyncClient, auth_headers: dict, company):
    response = await client.delete(f"/api/v1/companies/{company.id}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        json={"name": "Acme Reborn", "email": "info@acme.com"},
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_create_company_rejects_decompression_bomb_logo(
    client: AsyncClient, auth_headers: dict, decompression_bomb: bytes, storage_root
):
    response = await client.post(
        "/api/v1/companies",
        headers=auth_headers,
        data={"name": "Huge"},
        files={"logo": ("huge.png", decompression_bomb, "image/png")},
    )
    assert response.status_code == 422
    assert "Logo must be an image file." in response.json()["errors"]["logo"]
    assert not (storage_root / "logos").exists()
