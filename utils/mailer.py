"""
SMTP Mail Sender

Sends the backup report email over SMTP with implicit TLS (SMTPS) and
password authentication. Delivery problems are returned as a failed
MailResult instead of being raised, so a mail outage never fails a backup.
"""

import logging
import smtplib
import ssl
from collections.abc import Callable
from email.message import EmailMessage

from utils.config import Settings
from utils.errors import MailError
from utils.schemas import MailMessage, MailResult

logger = logging.getLogger(__name__)


class MailSender:
    """Deliver report emails through a pre-configured SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        timeout: float = 30,
        smtp_factory: Callable[..., smtplib.SMTP_SSL] = smtplib.SMTP_SSL,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.smtp_factory = smtp_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailSender":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            timeout=settings.SMTP_TIMEOUT,
        )

    @staticmethod
    def build_message(message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = message.sender
        email["To"] = message.to
        email.set_content(message.text_body, charset="utf-8")
        email.add_alternative(message.html_body, subtype="html", charset="utf-8")
        return email

    def send(self, message: MailMessage) -> MailResult:
        """
        Send `message`.

        Returns:
            MailResult.success(), or a failure carrying the MailError
        """
        email = self.build_message(message)

        try:
            with self.smtp_factory(
                self.host,
                self.port,
                timeout=self.timeout,
                context=ssl.create_default_context(),
            ) as smtp:
                smtp.login(self.username, self.password)
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            return MailResult.failure(MailError(f"Mail error: {e}"))

        logger.info("Mail sent to %s", message.to)
        return MailResult.success()
