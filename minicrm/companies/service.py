import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from minicrm.companies.models import Company
from minicrm.companies.schemas import CompanyCreate, CompanyUpdate

logger = structlog.get_logger()


def companies_query() -> Select:
    return select(Company).options(selectinload(Company.employees)).order_by(Company.id)


async def get_company_by_id(db: AsyncSession, company_id: int) -> Company | None:
    result = await db.execute(
        select(Company)
        .options(selectinload(Company.employees))
        .where(Company.id == company_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def company_exists(db: AsyncSession, company_id: int) -> bool:
    result = await db.execute(select(Company.id).where(Company.id == company_id))
    return result.scalar_one_or_none() is not None


async def email_taken(db: AsyncSession, email: str, ignore_id: int | None = None) -> bool:
    query = select(Company.id).where(Company.email == email)
    if ignore_id is not None:
        query = query.where(Company.id != ignore_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def create_company(db: AsyncSession, data: CompanyCreate, logo: str | None = None) -> Company:
    company = Company(
        name=data.name,
        email=data.email,
        website=data.website,
        logo=logo,
    )
    db.add(company)
    await db.commit()
    logger.info("company_created", company_id=company.id, has_logo=logo is not None)
    return await get_company_by_id(db, company.id)


async def update_company(
    db: AsyncSession, company: Company, data: CompanyUpdate, logo: str | None = None
) -> Company:
    update_data = data.model_dump(exclude_unset=True)
    if logo is not None:
        update_data["logo"] = logo
    for field, value in update_data.items():
        setattr(company, field, value)
    await db.commit()
    logger.info("company_updated", company_id=company.id, fields=sorted(update_data))
    return await get_company_by_id(db, company.id)


async def delete_company(db: AsyncSession, company: Company) -> None:
    company_id = company.id
    employee_count = len(company.employees)
    await db.delete(company)
    await db.commit()
    logger.info("company_deleted", company_id=company_id, employees_deleted=employee_count)
