"""
notify/mailer.py -- Outbound email for confirmation links and help requests.

Two notifiers share one contract (send(message) -> None, raises
NotificationError):
  SmtpNotifier -- real delivery through smtplib with STARTTLS and a socket
                  timeout, so a dead mail server fails fast instead of hanging
                  the request.
  LogNotifier  -- development fallback when SMTP_HOST is not configured. Logs
                  the recipient and subject so confirmation links can be
                  copied from the console.

No retries: a failed send surfaces immediately to the caller.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("taskpro.notify")


class NotificationError(RuntimeError):
    """Raised when an email could not be handed to the mail server."""


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str = ""


class Notifier(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class SmtpNotifier:
    """Deliver EmailMessage objects over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
        from_name: str = "TaskPro",
    ) -> None:
        self.host = host
        self.port = port
        self.from_email = from_email
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_name = from_name

    def send(self, message: EmailMessage) -> None:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f"{self.from_name} <{self.from_email}>"
        mime["To"] = message.to
        if message.text:
            mime.attach(MIMEText(message.text, "plain", "utf-8"))
        mime.attach(MIMEText(message.html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.from_email, [message.to], mime.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery to %s failed: %s", message.to, exc)
            raise NotificationError(f"Failed to send email to {message.to}") from exc
        logger.info("Email sent to %s (%s)", message.to, message.subject)


class LogNotifier:
    """Log emails instead of sending them. Used when SMTP is not configured."""

    def send(self, message: EmailMessage) -> None:
        logger.info("[EMAIL] to=%s subject=%r\n%s", message.to, message.subject, message.text or message.html)


def build_notifier(settings: Settings) -> Notifier:
    """Return an SmtpNotifier when SMTP is configured, else a LogNotifier."""
    if not settings.smtp_enabled:
        logger.warning("SMTP_HOST not configured -- emails will be logged, not sent")
        return LogNotifier()
    return SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        from_email=settings.smtp_from_email,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
    )
