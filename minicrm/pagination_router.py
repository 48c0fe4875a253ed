from fastapi import APIRouter

from minicrm.config import settings
from minicrm.schemas import PaginationOptionsResponse

router = APIRouter(prefix="/pagination", tags=["pagination"])


@router.get("/options", response_model=PaginationOptionsResponse)
async def pagination_options():
    return PaginationOptionsResponse(
        per_page_options=settings.per_page_options,
        default_per_page=settings.DEFAULT_PER_PAGE,
        max_per_page=settings.MAX_PER_PAGE,
    )
