import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from minicrm.employees.models import Employee
from minicrm.employees.schemas import EmployeeCreate, EmployeeUpdate

logger = structlog.get_logger()


def employees_query(company_id: int | None = None) -> Select:
    query = select(Employee).options(selectinload(Employee.company)).order_by(Employee.id)
    if company_id is not None:
        query = query.where(Employee.company_id == company_id)
    return query


async def get_employee_by_id(db: AsyncSession, employee_id: int) -> Employee | None:
    result = await db.execute(
        select(Employee)
        .options(selectinload(Employee.company))
        .where(Employee.id == employee_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def email_taken(db: AsyncSession, email: str, ignore_id: int | None = None) -> bool:
    query = select(Employee.id).where(Employee.email == email)
    if ignore_id is not None:
        query = query.where(Employee.id != ignore_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def create_employee(db: AsyncSession, data: EmployeeCreate) -> Employee:
    employee = Employee(**data.model_dump())
    db.add(employee)
    await db.commit()
    logger.info("employee_created", employee_id=employee.id, company_id=employee.company_id)
    return await get_employee_by_id(db, employee.id)


async def update_employee(db: AsyncSession, employee: Employee, data: EmployeeUpdate) -> Employee:
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(employee, field, value)
    await db.commit()
    logger.info("employee_updated", employee_id=employee.id, fields=sorted(update_data))
    return await get_employee_by_id(db, employee.id)


async def delete_employee(db: AsyncSession, employee: Employee) -> None:
    employee_id = employee.id
    await db.delete(employee)
    await db.commit()
    logger.info("employee_deleted", employee_id=employee_id)
