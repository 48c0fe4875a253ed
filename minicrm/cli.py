"""Maintenance commands.

Usage:
    minicrm create-tables
    minicrm create-test-data
    minicrm send-test-notification
"""

import argparse
import asyncio
from datetime import datetime, timezone

import structlog
from sqlalchemy import select

from minicrm.auth.service import create_user, get_user_by_email
from minicrm.companies.models import Company
from minicrm.companies.schemas import CompanyCreate
from minicrm.companies.service import create_company
from minicrm.config import settings
from minicrm.database import async_session_factory, engine
from minicrm.employees.models import Employee
from minicrm.events.types import CompanyCreated
from minicrm.models.base import Base
from minicrm.notifications.handlers import build_channels
from minicrm.notifications.mail import build_mail_transport
from minicrm.notifications.service import notify_company_created

logger = structlog.get_logger()

ADMIN_NAME = "Admin User"
ADMIN_EMAIL = "admin@minicrm.com"
ADMIN_PASSWORD = "password123"
TEST_COMPANY_EMAIL = "contact@testcompany.com"


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("tables_created", database=settings.DATABASE_URL.split("@")[-1])


async def create_test_data() -> None:
    async with async_session_factory() as db:
        admin = await get_user_by_email(db, ADMIN_EMAIL)
        if admin is None:
            admin = await create_user(db, ADMIN_NAME, ADMIN_EMAIL, ADMIN_PASSWORD)
            logger.info("admin_user_created", email=ADMIN_EMAIL)

        existing = await db.execute(select(Company).where(Company.email == TEST_COMPANY_EMAIL))
        company = existing.scalar_one_or_none()
        if company is None:
            company = await create_company(
                db,
                CompanyCreate(name="Test Company", email=TEST_COMPANY_EMAIL, website="https://testcompany.com"),
            )
            db.add(
                Employee(
                    first_name="John",
                    last_name="Doe",
                    email="john.doe@testcompany.com",
                    phone="+1-555-0100",
                    company_id=company.id,
                )
            )
            await db.commit()
            logger.info("test_company_created", company_id=company.id)

    print(f"Login with {ADMIN_EMAIL} / {ADMIN_PASSWORD}")


async def send_test_notification() -> None:
    async with async_session_factory() as db:
        admin = await get_user_by_email(db, ADMIN_EMAIL)
        if admin is None:
            raise SystemExit("Admin user not found, run 'minicrm create-test-data' first")
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        company = await create_company(
            db,
            CompanyCreate(name=f"Test Notification Company {stamp}", email=f"test{stamp}@example.com"),
        )
        event = CompanyCreated(company_id=company.id, actor_id=admin.id)

    channels = build_channels(build_mail_transport(settings))
    result = await notify_company_created(async_session_factory, channels, event)
    print(f"Notifications delivered: {result['delivered']}, failed: {result['failed']}")


COMMANDS = {
    "create-tables": create_tables,
    "create-test-data": create_test_data,
    "send-test-notification": send_test_notification,
}


async def _run(command: str) -> None:
    try:
        await COMMANDS[command]()
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="minicrm", description="Mini CRM maintenance commands")
    parser.add_argument("command", choices=sorted(COMMANDS))
    args = parser.parse_args(argv)
    asyncio.run(_run(args.command))


if __name__ == "__main__":
    main()
