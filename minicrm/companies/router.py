import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.models import User
from minicrm.companies.models import Company
from minicrm.companies.schemas import CompanyListItem, CompanyListResponse, CompanyResponse
from minicrm.companies.service import (
    companies_query,
    create_company,
    delete_company,
    get_company_by_id,
    update_company,
)
from minicrm.companies.validation import COMPANY_MESSAGES, validate_company
from minicrm.database import get_db
from minicrm.dependencies import get_current_user, get_event_bus, get_upload_service
from minicrm.errors import NotFoundError, ValidationFailed
from minicrm.events.bus import EventBus
from minicrm.events.types import CompanyCreated
from minicrm.pagination import PageParams, page_envelope, page_params, paginate
from minicrm.schemas import MessageResponse
from minicrm.uploads.service import FileUploadService
from minicrm.validation import read_request_data

logger = structlog.get_logger()
router = APIRouter(prefix="/companies", tags=["companies"])

OVERRIDE_METHODS = {"PUT", "PATCH"}


async def _get_company_or_404(db: AsyncSession, company_id: int) -> Company:
    company = await get_company_by_id(db, company_id)
    if not company:
        raise NotFoundError("Company")
    return company


def _duplicate_email(uploads: FileUploadService, stored_logo: str | None) -> ValidationFailed:
    # Lost a race with a concurrent request using the same email
    if stored_logo:
        uploads.delete_file_quietly(stored_logo)
    return ValidationFailed({"email": [COMPANY_MESSAGES["email.unique"]]})


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    request: Request,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    page = await paginate(db, companies_query(), params.page, params.per_page)
    data = [CompanyListItem.model_validate(c) for c in page.items]
    return page_envelope(request, page, data, "Companies retrieved successfully")


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    uploads: FileUploadService = Depends(get_upload_service),
    bus: EventBus = Depends(get_event_bus),
):
    fields, files = await read_request_data(request)
    data, logo_file = await validate_company(db, fields, files, uploads)

    logo = uploads.upload_logo(logo_file) if logo_file else None
    try:
        company = await create_company(db, data, logo)
    except IntegrityError:
        await db.rollback()
        raise _duplicate_email(uploads, logo)

    bus.publish(CompanyCreated(company_id=company.id, actor_id=user.id))
    return CompanyResponse.model_validate(company)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company = await _get_company_or_404(db, company_id)
    return CompanyResponse.model_validate(company)


async def _update(
    company_id: int, fields: dict, files: dict, db: AsyncSession, uploads: FileUploadService
) -> CompanyResponse:
    company = await _get_company_or_404(db, company_id)
    data, logo_file = await validate_company(db, fields, files, uploads, company_id=company.id)

    # The previous logo is removed by the upload, before the row changes
    logo = uploads.upload_logo(logo_file, company.logo) if logo_file else None
    try:
        updated = await update_company(db, company, data, logo)
    except IntegrityError:
        await db.rollback()
        raise _duplicate_email(uploads, logo)
    return CompanyResponse.model_validate(updated)


@router.put("/{company_id}", response_model=CompanyResponse)
@router.patch("/{company_id}", response_model=CompanyResponse)
async def update(
    company_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    uploads: FileUploadService = Depends(get_upload_service),
):
    fields, files = await read_request_data(request)
    return await _update(company_id, fields, files, db, uploads)


@router.post("/{company_id}", response_model=CompanyResponse)
async def update_with_method_override(
    company_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    uploads: FileUploadService = Depends(get_upload_service),
):
    """Multipart clients cannot PUT files; they POST with ``_method=PUT``."""
    fields, files = await read_request_data(request)
    method = str(fields.get("_method") or "").upper()
    if method not in OVERRIDE_METHODS:
        logger.info("method_override_rejected", company_id=company_id, method=method or None)
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            headers={"Allow": "GET, PUT, PATCH, DELETE"},
        )
    return await _update(company_id, fields, files, db, uploads)


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete(
    company_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    uploads: FileUploadService = Depends(get_upload_service),
):
    company = await _get_company_or_404(db, company_id)
    if company.logo:
        uploads.delete_file_quietly(company.logo)
    await delete_company(db, company)
    return MessageResponse(message="Company deleted successfully")
