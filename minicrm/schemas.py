from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class PaginationOptionsResponse(BaseModel):
    per_page_options: list[int]
    default_per_page: int
    max_per_page: int
