from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Protocol

from stock_tracker.core.config import Settings
from stock_tracker.core.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    html: str


class MailSender(Protocol):
    async def send(self, message: MailMessage) -> None: ...


class SmtpMailSender:
    """Delivers HTML mail over SMTP with STARTTLS and login."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        from_address: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_address=settings.mail_from,
            use_tls=settings.smtp_use_tls,
        )

    def _build(self, message: MailMessage) -> MIMEText:
        mime = MIMEText(message.html, "html", "utf-8")
        mime["Subject"] = message.subject
        mime["From"] = self.from_address
        mime["To"] = message.to
        return mime

    def _send_sync(self, message: MailMessage) -> None:
        mime = self._build(message)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            server.login(self.username, self.password)
            server.sendmail(self.from_address, [message.to], mime.as_string())

    async def send(self, message: MailMessage) -> None:
        if not (self.username and self.password):
            raise DeliveryError("SMTP credentials not configured")
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {message.to} failed: {exc}") from exc
        logger.info("Email sent to %s", message.to)
