from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.models import User
from minicrm.database import get_db
from minicrm.dependencies import get_current_user
from minicrm.errors import NotFoundError
from minicrm.notifications.schemas import MarkAllReadResponse, NotificationListResponse, NotificationResponse
from minicrm.notifications.service import get_notification, mark_all_as_read, mark_as_read, notifications_query
from minicrm.pagination import PageParams, page_envelope, page_params, paginate

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    request: Request,
    unread: bool | None = Query(None),
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    page = await paginate(db, notifications_query(user.id, unread), params.page, params.per_page)
    data = [NotificationResponse.model_validate(n) for n in page.items]
    return page_envelope(request, page, data, "Notifications retrieved successfully")


@router.post("/read-all", response_model=MarkAllReadResponse)
async def read_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await mark_all_as_read(db, user.id)
    return MarkAllReadResponse(message="Notifications marked as read", updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await get_notification(db, notification_id, user.id)
    if notification is None:
        raise NotFoundError("Notification")
    return NotificationResponse.model_validate(await mark_as_read(db, notification))
