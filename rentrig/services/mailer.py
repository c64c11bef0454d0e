"""Outbound email over SMTP."""

from email.message import EmailMessage
from typing import Optional, Protocol

import aiosmtplib

from rentrig.utils.config import MailConfig
from rentrig.utils.errors import NotificationError
from rentrig.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)


class MailTransport(Protocol):
    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        attachment: Optional[bytes] = None,
        filename: str = "rentrig-invoice.pdf",
    ) -> None:
        ...


class SmtpMailer:
    """Sends plain-text mail with an optional PDF attachment."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        secure: Optional[bool] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.host = host or MailConfig.SMTP_HOST
        self.port = port or MailConfig.SMTP_PORT
        self.secure = MailConfig.SMTP_SECURE if secure is None else secure
        self.user = user or MailConfig.SMTP_USER
        self.password = password or MailConfig.SMTP_PASS
        self.sender = sender or MailConfig.SMTP_FROM
        self.timeout = timeout

    def build_message(
        self,
        to: str,
        subject: str,
        text: str,
        attachment: Optional[bytes] = None,
        filename: str = "rentrig-invoice.pdf",
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        if attachment is not None:
            message.add_attachment(attachment, maintype="application", subtype="pdf", filename=filename)
        return message

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        attachment: Optional[bytes] = None,
        filename: str = "rentrig-invoice.pdf",
    ) -> None:
        if not self.host or not self.sender:
            raise NotificationError("SMTP_HOST and SMTP_FROM must be set", reason="mail_not_configured")

        message = self.build_message(to, subject, text, attachment, filename)
        try:
            # implicit TLS when secure, otherwise STARTTLS if the server offers it
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.user or None,
                password=self.password if self.user else None,
                use_tls=self.secure,
                start_tls=False if self.secure else None,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Email failed: {e}", reason="email_failed")

        logger.info("Email sent", to=mask_email(to), subject=subject)
