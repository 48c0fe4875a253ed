"""Event handler registration. Every subscription of the application is listed here."""

from sqlalchemy.ext.asyncio import async_sessionmaker

from minicrm.events.bus import EventBus
from minicrm.events.types import CompanyCreated
from minicrm.notifications.channels import DatabaseChannel, MailChannel, NotificationChannel
from minicrm.notifications.mail import MailTransport
from minicrm.notifications.service import notify_company_created


def build_channels(mail_transport: MailTransport) -> dict[str, NotificationChannel]:
    channels = [DatabaseChannel(), MailChannel(mail_transport)]
    return {channel.name: channel for channel in channels}


def register_handlers(
    bus: EventBus,
    session_factory: async_sessionmaker,
    mail_transport: MailTransport,
) -> None:
    channels = build_channels(mail_transport)

    async def send_company_created_notification(event: CompanyCreated) -> None:
        await notify_company_created(session_factory, channels, event)

    bus.subscribe(CompanyCreated, send_company_created_notification)
