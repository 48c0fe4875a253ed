from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from minicrm.pagination import Pagination


class NotificationResponse(BaseModel):
    id: UUID
    type: str
    data: dict
    read_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    data: list[NotificationResponse]
    pagination: Pagination
    message: str
    timestamp: datetime


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int
