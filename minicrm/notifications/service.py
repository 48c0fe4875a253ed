import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from minicrm.auth.service import get_all_users, get_user_by_id
from minicrm.companies.service import get_company_by_id
from minicrm.events.types import CompanyCreated
from minicrm.notifications.channels import NotificationChannel
from minicrm.notifications.company_created import CompanyCreatedNotification, Recipient
from minicrm.notifications.models import Notification

logger = structlog.get_logger()


async def send_notification(
    db: AsyncSession,
    recipients: list[Recipient],
    notification: CompanyCreatedNotification,
    channels: dict[str, NotificationChannel],
) -> dict[str, int]:
    """Deliver to every recipient over every channel the notification asks for.

    Channels and recipients are independent: a failure is logged and the
    remaining deliveries still run.
    """
    delivered = failed = 0
    for recipient in recipients:
        for channel_name in notification.via(recipient):
            channel = channels.get(channel_name)
            if channel is None:
                logger.warning("notification_channel_missing", channel=channel_name)
                failed += 1
                continue
            try:
                await channel.send(db, recipient, notification)
                delivered += 1
            except Exception as exc:
                await db.rollback()
                failed += 1
                logger.error(
                    "notification_delivery_failed",
                    channel=channel_name,
                    recipient_id=recipient.id,
                    notification=notification.type,
                    error=str(exc),
                )
    return {"delivered": delivered, "failed": failed}


async def notify_company_created(
    session_factory: async_sessionmaker,
    channels: dict[str, NotificationChannel],
    event: CompanyCreated,
) -> dict[str, int]:
    async with session_factory() as db:
        company = await get_company_by_id(db, event.company_id)
        if company is None:
            logger.warning("company_created_company_missing", company_id=event.company_id)
            return {"delivered": 0, "failed": 0}

        actor = await get_user_by_id(db, event.actor_id)
        if actor is None:
            logger.warning("company_created_actor_missing", actor_id=event.actor_id)
            return {"delivered": 0, "failed": 0}

        notification = CompanyCreatedNotification.from_models(company, actor)
        # Every registered user is notified, the creator included
        recipients = [Recipient.from_user(user) for user in await get_all_users(db)]
        result = await send_notification(db, recipients, notification, channels)

    logger.info(
        "company_created_notified",
        company_id=event.company_id,
        recipients=len(recipients),
        **result,
    )
    return result


def notifications_query(user_id: int, unread: bool | None = None) -> Select:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread is True:
        query = query.where(Notification.read_at.is_(None))
    elif unread is False:
        query = query.where(Notification.read_at.is_not(None))
    return query.order_by(Notification.created_at.desc(), Notification.id)


async def get_notification(db: AsyncSession, notification_id: uuid.UUID, user_id: int) -> Notification | None:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def mark_as_read(db: AsyncSession, notification: Notification) -> Notification:
    """unread -> read; a notification already read keeps its original read_at."""
    if notification.read_at is not None:
        return notification
    notification.read_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
        .values(read_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return result.rowcount or 0
