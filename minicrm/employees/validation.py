from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.companies.service import company_exists
from minicrm.employees.schemas import EmployeeCreate, EmployeeUpdate
from minicrm.employees.service import email_taken
from minicrm.validation import add_error, collect_errors, raise_if_errors, reject_nulls

EMPLOYEE_MESSAGES = {
    "first_name.required": "First name is required.",
    "first_name.max": "First name must not exceed 50 characters.",
    "last_name.required": "Last name is required.",
    "last_name.max": "Last name must not exceed 50 characters.",
    "company_id.required": "Company selection is required.",
    "company_id.integer": "Company selection is required.",
    "company_id.exists": "Selected company does not exist.",
    "email.format": "Please provide a valid email address.",
    "email.unique": "This email address is already in use by another employee.",
    "phone.max": "Phone number must not exceed 20 characters.",
}

REQUIRED_ON_UPDATE = ("first_name", "last_name", "company_id")


async def validate_employee(
    db: AsyncSession, fields: dict, employee_id: int | None = None
) -> EmployeeCreate | EmployeeUpdate:
    schema = EmployeeCreate if employee_id is None else EmployeeUpdate
    payload = {k: v for k, v in fields.items() if k != "_method"}
    errors: dict[str, list[str]] = {}
    data = None

    if employee_id is not None:
        reject_nulls(payload, REQUIRED_ON_UPDATE, EMPLOYEE_MESSAGES, errors)
    try:
        data = schema.model_validate(payload)
    except ValidationError as exc:
        for field, messages in collect_errors(exc, EMPLOYEE_MESSAGES).items():
            for message in messages:
                add_error(errors, field, message)

    if data is not None:
        company_id, email = data.company_id, data.email
    else:
        company_id, email = _plain_value(payload, "company_id"), _plain_value(payload, "email")

    if "company_id" not in errors and isinstance(company_id, int) and not await company_exists(db, company_id):
        add_error(errors, "company_id", EMPLOYEE_MESSAGES["company_id.exists"])
    if email and "email" not in errors and await email_taken(db, email, ignore_id=employee_id):
        add_error(errors, "email", EMPLOYEE_MESSAGES["email.unique"])

    raise_if_errors(errors)
    return data


def _plain_value(payload: dict, field: str):
    value = payload.get(field)
    if isinstance(value, str):
        value = value.strip()
        if field == "company_id":
            return int(value) if value.isdigit() else None
    return value
