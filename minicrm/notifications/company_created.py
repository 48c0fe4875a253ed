"""The notification sent to every user when a company is created."""

import html
from dataclasses import dataclass
from datetime import datetime

from minicrm.auth.models import User
from minicrm.companies.models import Company
from minicrm.config import settings
from minicrm.notifications.mail import MailMessage

ACTION = "company_created"


@dataclass(frozen=True)
class Recipient:
    id: int
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "Recipient":
        return cls(id=user.id, name=user.name, email=user.email)


@dataclass(frozen=True)
class CompanyStats:
    total_companies: int
    total_employees: int
    companies_today: int


def format_timestamp(value: datetime) -> str:
    """e.g. ``October 19, 2026 at 5:04 PM``."""
    hour = value.hour % 12 or 12
    return f"{value:%B} {value.day}, {value.year} at {hour}:{value:%M} {value:%p}"


class CompanyCreatedNotification:
    type = ACTION

    def __init__(
        self,
        company_id: int,
        company_name: str,
        company_email: str | None,
        company_website: str | None,
        company_has_logo: bool,
        company_created_at: datetime,
        created_by_id: int,
        created_by_name: str,
    ):
        self.company_id = company_id
        self.company_name = company_name
        self.company_email = company_email
        self.company_website = company_website
        self.company_has_logo = company_has_logo
        self.company_created_at = company_created_at
        self.created_by_id = created_by_id
        self.created_by_name = created_by_name

    @classmethod
    def from_models(cls, company: Company, created_by: User) -> "CompanyCreatedNotification":
        return cls(
            company_id=company.id,
            company_name=company.name,
            company_email=company.email,
            company_website=company.website,
            company_has_logo=bool(company.logo),
            company_created_at=company.created_at,
            created_by_id=created_by.id,
            created_by_name=created_by.name,
        )

    def via(self, recipient: Recipient) -> list[str]:
        return ["mail", "database"]

    @property
    def message(self) -> str:
        return f'New company "{self.company_name}" was created by {self.created_by_name}'

    @property
    def company_url(self) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/companies/{self.company_id}"

    def to_database(self, recipient: Recipient) -> dict:
        return {
            "company_id": self.company_id,
            "company_name": self.company_name,
            "company_email": self.company_email,
            "created_by_id": self.created_by_id,
            "created_by_name": self.created_by_name,
            "action": ACTION,
            "message": self.message,
            "created_at": self.company_created_at.isoformat(),
        }

    def to_mail(self, recipient: Recipient, stats: CompanyStats) -> MailMessage:
        subject = f"New Company Created: {self.company_name}"
        details = [
            ("Name", self.company_name),
            ("Email", self.company_email or "Not provided"),
            ("Website", self.company_website or "Not provided"),
            ("Created by", self.created_by_name),
            ("Created at", format_timestamp(self.company_created_at)),
        ]
        summary = [
            ("Total Companies", stats.total_companies),
            ("Total Employees", stats.total_employees),
            ("Companies added today", stats.companies_today),
        ]
        logo_note = "The company has uploaded a logo which you can view in the system."

        text_lines = [
            f"Hello {recipient.name},",
            "",
            "A new company has been added to the CRM system.",
            "",
            *(f"{label}: {value}" for label, value in details),
        ]
        if self.company_has_logo:
            text_lines += ["", logo_note]
        text_lines += [
            "",
            f"View Company Details: {self.company_url}",
            "",
            "Recent Activity Summary:",
            *(f"- {label}: {value}" for label, value in summary),
            "",
            f"Thanks for using {settings.APP_NAME}!",
        ]

        e = html.escape
        detail_rows = "".join(f"<li><strong>{e(label)}:</strong> {e(str(value))}</li>" for label, value in details)
        summary_rows = "".join(f"<li>{e(label)}: {value}</li>" for label, value in summary)
        logo_html = f"<h2>Company Logo</h2><p>{logo_note}</p>" if self.company_has_logo else ""
        body = f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #374151; max-width: 600px; margin: 0 auto;">
    <h1>New Company Created</h1>
    <p>Hello {e(recipient.name)},</p>
    <p>A new company has been added to the CRM system.</p>
    <h2>Company Details</h2>
    <ul>{detail_rows}</ul>
    {logo_html}
    <p><a href="{e(self.company_url)}">View Company Details</a></p>
    <div style="background-color: #F9FAFB; padding: 16px; border-radius: 8px;">
        <strong>Recent Activity Summary:</strong>
        <ul>{summary_rows}</ul>
    </div>
    <p>Thanks for using {e(settings.APP_NAME)}!</p>
    <p style="color: #6B7280; font-size: 12px;">If you're having trouble clicking the "View Company Details" link,
    copy and paste this URL into your web browser: {e(self.company_url)}</p>
</body>
</html>"""
        return MailMessage(to=recipient.email, subject=subject, html=body, text="\n".join(text_lines))
