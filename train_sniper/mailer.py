from __future__ import annotations

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from .config import Settings

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """The message could not be handed to the mail server."""


class Mailer(ABC):
    @abstractmethod
    def send_mail(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> None:
        """Deliver one message; raise ``MailDeliveryError`` on failure."""


class SmtpMailer(Mailer):
    """Send messages through an SMTP server.

    ``use_tls=True`` opens a plain connection and upgrades it with
    ``STARTTLS``; otherwise an implicit TLS (``SMTP_SSL``) connection is used,
    which is what port 465 expects.
    """

    def __init__(
        self,
        smtp_host: str,
        smtp_user: str,
        smtp_pass: str,
        *,
        port: int = 465,
        use_tls: bool = False,
        sender_name: str = "Train Sniper",
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.port = port
        self.use_tls = use_tls
        self.sender_name = sender_name

    def build_message(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.smtp_user))
        msg["To"] = to
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def send_mail(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> None:
        msg = self.build_message(to, subject, text, html)
        try:
            if self.use_tls:
                with smtplib.SMTP(self.smtp_host, self.port) as smtp:
                    smtp.starttls(context=ssl.create_default_context())
                    if self.smtp_user:
                        smtp.login(self.smtp_user, self.smtp_pass)
                    smtp.send_message(msg)
            else:
                ctx = ssl.create_default_context()
                with smtplib.SMTP_SSL(self.smtp_host, self.port, context=ctx) as smtp:
                    if self.smtp_user:
                        smtp.login(self.smtp_user, self.smtp_pass)
                    smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"Failed to send mail to {to}: {exc}") from exc


class LogMailer(Mailer):
    """Dry-run transport: logs the message instead of sending it."""

    def send_mail(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> None:
        logger.info("[DRY-RUN] Mail to %s – %s", to, subject)
        for line in (text or "").splitlines():
            logger.info("[DRY-RUN] %s", line)


def mailer_from_settings(settings: Settings) -> Mailer:
    if settings.mail_dry_run:
        return LogMailer()
    return SmtpMailer(
        settings.smtp_host,
        settings.email_user,
        settings.email_pass,
        port=settings.smtp_port,
        use_tls=settings.smtp_use_tls,
    )


__all__ = [
    "LogMailer",
    "MailDeliveryError",
    "Mailer",
    "SmtpMailer",
    "mailer_from_settings",
]
