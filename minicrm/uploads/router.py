from fastapi import APIRouter, Depends
from pydantic import BaseModel

from minicrm.auth.models import User
from minicrm.dependencies import get_current_user, get_upload_service
from minicrm.uploads.service import FileUploadService

router = APIRouter(prefix="/uploads", tags=["uploads"])


class LogoConstraintsResponse(BaseModel):
    max_size_mb: float
    min_width: int
    min_height: int
    max_width: int
    max_height: int
    allowed_types: list[str]


@router.get("/logo-constraints", response_model=LogoConstraintsResponse)
async def logo_constraints(
    user: User = Depends(get_current_user),
    uploads: FileUploadService = Depends(get_upload_service),
):
    return LogoConstraintsResponse(**uploads.get_upload_constraints())
