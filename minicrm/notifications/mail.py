"""Mail transports used by the mail notification channel."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage

import aiosmtplib
import structlog

from minicrm.config import Settings

logger = structlog.get_logger()


@dataclass
class MailMessage:
    to: str
    subject: str
    html: str
    text: str


class MailTransport(ABC):
    @abstractmethod
    async def send(self, message: MailMessage) -> None:
        """Deliver ``message`` or raise."""


class LogMailTransport(MailTransport):
    """Writes mail to the log instead of delivering it (local development)."""

    async def send(self, message: MailMessage) -> None:
        logger.info("mail_logged", to=message.to, subject=message.subject)


class SmtpMailTransport(MailTransport):
    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        from_name: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 30,
    ):
        self.host = host
        self.port = port
        self.from_address = from_address
        self.from_name = from_name
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = f"{self.from_name} <{self.from_address}>"
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.text)
        email.add_alternative(message.html, subtype="html")
        return email

    async def send(self, message: MailMessage) -> None:
        await aiosmtplib.send(
            self.build(message),
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
            timeout=self.timeout,
        )
        logger.info("mail_sent", to=message.to, subject=message.subject)


def build_mail_transport(config: Settings) -> MailTransport:
    if config.MAIL_TRANSPORT == "smtp":
        return SmtpMailTransport(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            from_address=config.MAIL_FROM_ADDRESS,
            from_name=config.MAIL_FROM_NAME,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            use_tls=config.SMTP_USE_TLS,
        )
    return LogMailTransport()
