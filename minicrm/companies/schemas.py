from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from minicrm.config import settings
from minicrm.pagination import Pagination
from minicrm.uploads.storage import public_url
from minicrm.validation import check_url


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    website: str | None = Field(None, max_length=255)

    model_config = {"str_strip_whitespace": True}

    @field_validator("website")
    @classmethod
    def validate_website(cls, value: str | None) -> str | None:
        return check_url(value)


class CompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    website: str | None = Field(None, max_length=255)

    model_config = {"str_strip_whitespace": True}

    @field_validator("website")
    @classmethod
    def validate_website(cls, value: str | None) -> str | None:
        return check_url(value)


class EmployeeSummary(BaseModel):
    id: int
    company_id: int | None
    first_name: str
    last_name: str
    email: str | None

    model_config = {"from_attributes": True}


class CompanyEmployee(BaseModel):
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


class CompanyRecord(BaseModel):
    id: int
    name: str
    email: str | None
    website: str | None
    logo: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def logo_url(self) -> str | None:
        if not self.logo:
            return None
        return public_url(settings.APP_URL, self.logo)


class CompanyResponse(CompanyRecord):
    employees: list[CompanyEmployee] = []


class CompanyListItem(CompanyRecord):
    employees: list[EmployeeSummary] = []


class CompanyBrief(BaseModel):
    id: int
    name: str
    email: str | None

    model_config = {"from_attributes": True}


class CompanyListResponse(BaseModel):
    data: list[CompanyListItem]
    pagination: Pagination
    message: str
    timestamp: datetime
