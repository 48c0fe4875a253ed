"""Request validation helpers shared by the resource validators.

Resource validators run the pydantic schema, then the database-backed rules
(uniqueness, existence), and raise a single ``ValidationFailed`` carrying every
failing field so that nothing is persisted from a partially valid request.
"""

import json
from dataclasses import dataclass

from fastapi import Request
from pydantic import AnyUrl, TypeAdapter, ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from minicrm.errors import ValidationFailed

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

# pydantic error type -> rule name used to look up a message
PYDANTIC_RULES = {
    "missing": "required",
    "string_too_short": "required",
    "string_too_long": "max",
    "string_type": "string",
    "int_parsing": "integer",
    "int_type": "integer",
    "int_from_float": "integer",
    "value_error": "format",
}

DEFAULT_RULE_MESSAGES = {
    "required": "The {field} field is required.",
    "max": "The {field} field must not be greater than {max_length} characters.",
    "string": "The {field} field must be a string.",
    "integer": "The {field} field must be an integer.",
    "format": "The {field} field format is invalid.",
}

_url_adapter = TypeAdapter(AnyUrl)


@dataclass
class UploadedFile:
    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def check_url(value: str | None) -> str | None:
    """Validate an absolute URL but keep the caller's spelling of it."""
    if value is None:
        return value
    try:
        url = _url_adapter.validate_python(value)
    except ValidationError:
        raise ValueError("invalid url")
    if not url.host:
        raise ValueError("invalid url")
    return value


async def read_request_data(request: Request) -> tuple[dict, dict[str, UploadedFile]]:
    """Return (fields, files) from a JSON, urlencoded or multipart body.

    Empty form strings are treated as absent values.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields: dict = {}
        files: dict[str, UploadedFile] = {}
        for key, value in form.multi_items():
            if isinstance(value, StarletteUploadFile):
                if value.filename:
                    files[key] = UploadedFile(
                        filename=value.filename,
                        content_type=value.content_type,
                        data=await value.read(),
                    )
                continue
            fields[key] = value if value != "" else None
        return fields, files

    body = await request.body()
    if not body:
        return {}, {}
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationFailed({"body": ["The request body must be valid JSON."]})
    if not isinstance(data, dict):
        raise ValidationFailed({"body": ["The request body must be a JSON object."]})
    return data, {}


def _humanize(field: str) -> str:
    return field.replace("_id", "").replace("_", " ")


def collect_errors(exc: ValidationError, messages: dict[str, str]) -> dict[str, list[str]]:
    """Turn a pydantic ValidationError into ``{field: [message]}``.

    ``messages`` maps ``"<field>.<rule>"`` to a human message; anything not
    listed falls back to a generic message for the rule.
    """
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "body"
        rule = PYDANTIC_RULES.get(err["type"], "format")
        message = messages.get(f"{field}.{rule}")
        if message is None:
            template = DEFAULT_RULE_MESSAGES[rule]
            message = template.format(field=_humanize(field), **(err.get("ctx") or {}))
        add_error(errors, field, message)
    return errors


def add_error(errors: dict[str, list[str]], field: str, message: str) -> None:
    bucket = errors.setdefault(field, [])
    if message not in bucket:
        bucket.append(message)


def reject_nulls(data: dict, fields: tuple[str, ...], messages: dict[str, str], errors: dict[str, list[str]]) -> None:
    """Fields that may be omitted on update but must not be sent as null."""
    for field in fields:
        if field in data and data[field] is None:
            message = messages.get(f"{field}.required") or DEFAULT_RULE_MESSAGES["required"].format(field=_humanize(field))
            add_error(errors, field, message)


def raise_if_errors(errors: dict[str, list[str]]) -> None:
    if errors:
        raise ValidationFailed(errors)
