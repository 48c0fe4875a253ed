from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.models import User
from minicrm.database import get_db
from minicrm.dependencies import get_current_user
from minicrm.employees.models import Employee
from minicrm.employees.schemas import EmployeeListItem, EmployeeListResponse, EmployeeResponse
from minicrm.employees.service import (
    create_employee,
    delete_employee,
    employees_query,
    get_employee_by_id,
    update_employee,
)
from minicrm.employees.validation import EMPLOYEE_MESSAGES, validate_employee
from minicrm.errors import NotFoundError, ValidationFailed
from minicrm.pagination import PageParams, page_envelope, page_params, paginate
from minicrm.schemas import MessageResponse
from minicrm.validation import read_request_data

router = APIRouter(prefix="/employees", tags=["employees"])


async def _get_employee_or_404(db: AsyncSession, employee_id: int) -> Employee:
    employee = await get_employee_by_id(db, employee_id)
    if not employee:
        raise NotFoundError("Employee")
    return employee


def _integrity_error(exc: IntegrityError) -> ValidationFailed:
    if "FOREIGN KEY" in str(exc.orig).upper():
        return ValidationFailed({"company_id": [EMPLOYEE_MESSAGES["company_id.exists"]]})
    return ValidationFailed({"email": [EMPLOYEE_MESSAGES["email.unique"]]})


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    request: Request,
    company_id: int | None = Query(None),
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    page = await paginate(db, employees_query(company_id), params.page, params.per_page)
    data = [EmployeeListItem.model_validate(e) for e in page.items]
    return page_envelope(request, page, data, "Employees retrieved successfully")


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    fields, _ = await read_request_data(request)
    data = await validate_employee(db, fields)
    try:
        employee = await create_employee(db, data)
    except IntegrityError as e:
        await db.rollback()
        raise _integrity_error(e)
    return EmployeeResponse.model_validate(employee)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    employee = await _get_employee_or_404(db, employee_id)
    return EmployeeResponse.model_validate(employee)


@router.put("/{employee_id}", response_model=EmployeeResponse)
@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update(
    employee_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    employee = await _get_employee_or_404(db, employee_id)
    fields, _ = await read_request_data(request)
    data = await validate_employee(db, fields, employee_id=employee.id)
    try:
        updated = await update_employee(db, employee, data)
    except IntegrityError as e:
        await db.rollback()
        raise _integrity_error(e)
    return EmployeeResponse.model_validate(updated)


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete(
    employee_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    employee = await _get_employee_or_404(db, employee_id)
    await delete_employee(db, employee)
    return MessageResponse(message="Employee deleted successfully")
