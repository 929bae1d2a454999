"""SMTP email transport for portal notifications."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Protocol

from billing_portal.core.config import Config, get_config
from billing_portal.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text_body: str
    html_body: str
    reply_to: str | None = None


@dataclass(frozen=True)
class SendReceipt:
    message_id: str
    accepted: list[str] = field(default_factory=list)
    response: str | None = None


class EmailTransport(Protocol):
    def send(self, message: EmailMessage) -> SendReceipt:
        ...


class EmailSender:
    """Transport handle constructed once and injected into dispatchers.

    In sandbox mode messages are kept in ``outbox`` and no SMTP connection is
    opened. Every delivery failure surfaces as NotificationError.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.outbox: list[EmailMessage] = []

    @property
    def from_address(self) -> str:
        return formataddr((self.config.SMTP_FROM_NAME, self.config.SMTP_USERNAME or "noreply@billing.local"))

    def _connect(self) -> smtplib.SMTP:
        if not self.config.SMTP_SERVER:
            raise NotificationError("SMTP server is not configured.", code="ECONFIG")
        if self.config.SMTP_USE_SSL:
            server: smtplib.SMTP = smtplib.SMTP_SSL(self.config.SMTP_SERVER, self.config.SMTP_PORT, timeout=30)
        else:
            server = smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT, timeout=30)
            server.starttls()
        if self.config.SMTP_USERNAME:
            server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD or "")
        return server

    def _build_mime(self, message: EmailMessage, message_id: str) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = self.from_address
        mime["To"] = message.to
        mime["Message-ID"] = message_id
        if message.reply_to:
            mime["Reply-To"] = message.reply_to
        mime.attach(MIMEText(message.text_body, "plain", "utf-8"))
        mime.attach(MIMEText(message.html_body, "html", "utf-8"))
        return mime

    def send(self, message: EmailMessage) -> SendReceipt:
        message_id = make_msgid(domain="billing.local")
        if self.config.SMTP_SANDBOX_MODE:
            self.outbox.append(message)
            logger.info("email.sandbox.sent", extra={"event": "email.sandbox.sent", "to_email": message.to})
            return SendReceipt(message_id=message_id, accepted=[message.to], response="sandbox")

        try:
            with self._connect() as server:
                refused = server.send_message(self._build_mime(message, message_id))
        except NotificationError:
            raise
        except smtplib.SMTPResponseException as exc:
            detail = exc.smtp_error.decode("utf-8", "replace") if isinstance(exc.smtp_error, bytes) else str(exc.smtp_error)
            raise NotificationError(str(exc), code=exc.smtp_code, response=detail) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(str(exc) or exc.__class__.__name__, code=exc.__class__.__name__) from exc

        if message.to in refused:
            code, reply = refused[message.to]
            raise NotificationError(f"Recipient refused: {message.to}", code=code, response=reply.decode("utf-8", "replace"))
        return SendReceipt(message_id=message_id, accepted=[message.to])
