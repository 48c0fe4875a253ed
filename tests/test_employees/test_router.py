import pytest
from httpx import AsyncClient

from minicrm.companies.models import Company
from minicrm.employees.models import Employee


@pytest.mark.asyncio
async def test_create_employee(client: AsyncClient, auth_headers: dict, company):
    response = await client.post(
        "/api/v1/employees",
        headers=auth_headers,
        json={
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "grace@acme.com",
            "phone": "+1-555-0101",
            "company_id": company.id,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["full_name"] == "Grace Hopper"
    assert data["company_id"] == company.id
    assert data["company"]["name"] == "Acme Corp"
    assert data["company"]["website"] == "https://acme.test"


@pytest.mark.asyncio
async def test_create_employee_unknown_company(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/v1/employees",
        headers=auth_headers,
        json={"first_name": "Grace", "last_name": "Hopper", "company_id": 999},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["company_id"] == ["Selected company does not exist."]


@pytest.mark.asyncio
async def test_create_employee_required_fields(client: AsyncClient, auth_headers: dict):
    response = await client.post("/api/v1/employees", headers=auth_headers, json={"phone": "1" * 21})
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["first_name"] == ["First name is required."]
    assert errors["last_name"] == ["Last name is required."]
    assert errors["company_id"] == ["Company selection is required."]
    assert errors["phone"] == ["Phone number must not exceed 20 characters."]


@pytest.mark.asyncio
async def test_create_employee_from_form(client: AsyncClient, auth_headers: dict, company):
    response = await client.post(
        "/api/v1/employees",
        headers=auth_headers,
        data={"first_name": "Alan", "last_name": "Turing", "email": "", "company_id": str(company.id)},
    )
    assert response.status_code == 201
    assert response.json()["email"] is None


@pytest.mark.asyncio
async def test_create_employee_duplicate_email(client: AsyncClient, auth_headers: dict, company, db):
    db.add(Employee(first_name="Ada", last_name="Lovelace", email="ada@acme.com", company_id=company.id))
    await db.commit()

    response = await client.post(
        "/api/v1/employees",
        headers=auth_headers,
        json={"first_name": "Ada", "last_name": "Byron", "email": "ada@acme.com", "company_id": company.id},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == [
        "This email address is already in use by another employee."
    ]


@pytest.mark.asyncio
async def test_list_employees_filtered_by_company(client: AsyncClient, auth_headers: dict, company, db):
    other = Company(name="Other Ltd")
    db.add(other)
    await db.commit()
    db.add_all(
        [
            Employee(first_name="Ada", last_name="Lovelace", company_id=company.id),
            Employee(first_name="Alan", last_name="Turing", company_id=other.id),
        ]
    )
    await db.commit()

    response = await client.get(f"/api/v1/employees?company_id={company.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Employees retrieved successfully"
    assert data["pagination"]["total"] == 1
    employee = data["data"][0]
    assert employee["first_name"] == "Ada"
    assert employee["company"] == {"id": company.id, "name": "Acme Corp", "email": "info@acme.com"}


@pytest.mark.asyncio
async def test_get_employee_not_found(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/employees/42", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Employee not found."


@pytest.mark.asyncio
async def test_update_employee_keeps_own_email(client: AsyncClient, auth_headers: dict, company, db):
    employee = Employee(first_name="Ada", last_name="Lovelace", email="ada@acme.com", company_id=company.id)
    db.add(employee)
    await db.commit()

    response = await client.put(
        f"/api/v1/employees/{employee.id}",
        headers=auth_headers,
        json={"email": "ada@acme.com", "phone": "555-0199"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "555-0199"
    assert data["first_name"] == "Ada"


@pytest.mark.asyncio
async def test_update_employee_rejects_null_company(client: AsyncClient, auth_headers: dict, company, db):
    employee = Employee(first_name="Ada", last_name="Lovelace", company_id=company.id)
    db.add(employee)
    await db.commit()

    response = await client.patch(
        f"/api/v1/employees/{employee.id}",
        headers=auth_headers,
        json={"company_id": None},
    )
    assert response.status_code == 422
    assert response.json()["errors"]["company_id"] == ["Company selection is required."]


@pytest.mark.asyncio
async def test_delete_employee_keeps_company(client: AsyncClient, auth_headers: dict, company, db):
    employee = Employee(first_name="Ada", last_name="Lovelace", company_id=company.id)
    db.add(employee)
    await db.commit()

    response = await client.delete(f"/api/v1/employees/{employee.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Employee deleted successfully"}

    response = await client.get(f"/api/v1/companies/{company.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["employees"] == []
