from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.companies.schemas import CompanyCreate, CompanyUpdate
from minicrm.companies.service import email_taken
from minicrm.uploads.service import FileUploadService
from minicrm.validation import UploadedFile, add_error, collect_errors, raise_if_errors, reject_nulls

COMPANY_MESSAGES = {
    "name.required": "Company name is required.",
    "name.string": "Company name must be a string.",
    "email.format": "Please provide a valid email address.",
    "email.unique": "This email is already taken.",
    "website.format": "Website must be a valid URL.",
    "logo.image": "Logo must be an image file.",
}

# Sent as form fields by method-override requests; never persisted
IGNORED_FIELDS = ("_method", "logo")


async def validate_company(
    db: AsyncSession,
    fields: dict,
    files: dict[str, UploadedFile],
    uploads: FileUploadService,
    company_id: int | None = None,
) -> tuple[CompanyCreate | CompanyUpdate, UploadedFile | None]:
    """Validate a create (``company_id`` is None) or update request.

    Returns the normalized fields and the logo upload, or raises
    ``ValidationFailed`` listing every failing field.
    """
    schema = CompanyCreate if company_id is None else CompanyUpdate
    payload = {k: v for k, v in fields.items() if k not in IGNORED_FIELDS}
    errors: dict[str, list[str]] = {}
    data = None

    if company_id is not None:
        reject_nulls(payload, ("name",), COMPANY_MESSAGES, errors)
    try:
        data = schema.model_validate(payload)
    except ValidationError as exc:
        for field, messages in collect_errors(exc, COMPANY_MESSAGES).items():
            for message in messages:
                add_error(errors, field, message)

    email = data.email if data is not None else _plain_email(payload)
    if email and "email" not in errors and await email_taken(db, email, ignore_id=company_id):
        add_error(errors, "email", COMPANY_MESSAGES["email.unique"])

    logo = files.get("logo")
    if logo is not None:
        for message in uploads.validate_logo(logo):
            add_error(errors, "logo", message)
    elif fields.get("logo") is not None:
        add_error(errors, "logo", COMPANY_MESSAGES["logo.image"])

    raise_if_errors(errors)
    return data, logo


def _plain_email(payload: dict) -> str | None:
    value = payload.get("email")
    return value.strip() if isinstance(value, str) else None
