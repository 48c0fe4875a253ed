from abc import ABC, abstractmethod
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.companies.models import Company
from minicrm.employees.models import Employee
from minicrm.notifications.company_created import CompanyCreatedNotification, CompanyStats, Recipient
from minicrm.notifications.mail import MailTransport
from minicrm.notifications.models import Notification


class NotificationChannel(ABC):
    name: str

    @abstractmethod
    async def send(self, db: AsyncSession, recipient: Recipient, notification: CompanyCreatedNotification) -> None:
        """Deliver ``notification`` to ``recipient`` or raise."""


class DatabaseChannel(NotificationChannel):
    name = "database"

    async def send(self, db: AsyncSession, recipient: Recipient, notification: CompanyCreatedNotification) -> None:
        db.add(
            Notification(
                user_id=recipient.id,
                type=notification.type,
                data=notification.to_database(recipient),
            )
        )
        await db.commit()


async def company_stats(db: AsyncSession) -> CompanyStats:
    start_of_day = datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)
    total_companies = (await db.execute(select(func.count(Company.id)))).scalar_one()
    total_employees = (await db.execute(select(func.count(Employee.id)))).scalar_one()
    companies_today = (
        await db.execute(
            select(func.count(Company.id)).where(
                Company.created_at >= start_of_day,
                Company.created_at < start_of_day + timedelta(days=1),
            )
        )
    ).scalar_one()
    return CompanyStats(
        total_companies=total_companies,
        total_employees=total_employees,
        companies_today=companies_today,
    )


class MailChannel(NotificationChannel):
    name = "mail"

    def __init__(self, transport: MailTransport):
        self.transport = transport

    async def send(self, db: AsyncSession, recipient: Recipient, notification: CompanyCreatedNotification) -> None:
        # Counts are taken when the mail is rendered, not when the event fired
        stats = await company_stats(db)
        await self.transport.send(notification.to_mail(recipient, stats))
