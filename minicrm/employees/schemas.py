from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, computed_field

from minicrm.companies.schemas import CompanyBrief, CompanyRecord
from minicrm.pagination import Pagination


class EmployeeCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    company_id: int
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)

    model_config = {"str_strip_whitespace": True}


class EmployeeUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    company_id: int | None = None
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)

    model_config = {"str_strip_whitespace": True}


class EmployeeRecord(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    company_id: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class EmployeeResponse(EmployeeRecord):
    company: CompanyRecord | None = None


class EmployeeListItem(EmployeeRecord):
    company: CompanyBrief | None = None


class EmployeeListResponse(BaseModel):
    data: list[EmployeeListItem]
    pagination: Pagination
    message: str
    timestamp: datetime
