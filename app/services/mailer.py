"""Outgoing account emails (welcome, password reset) over SMTP. Delivery is best-effort."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Callable
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import TYPE_CHECKING, Any, Protocol

from app.core.config import get_settings
from app.core.i18n import translate

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    """Plain snapshot of the user fields an email needs; safe to use after the DB session closes."""

    email: str
    name: str
    locale: str
    account_type: str = "user"

    @classmethod
    def from_user(cls, user: User) -> Recipient:
        return cls(
            email=user.email,
            name=user.name,
            locale=user.locale,
            account_type=user.account_type,
        )


class Mailer(Protocol):
    def send_welcome(self, recipient: Recipient) -> None: ...

    def send_password_reset(self, recipient: Recipient, token: str) -> None: ...


class SmtpMailer:
    """Mailer that renders localized plain-text emails and sends them with smtplib."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.settings.EMAIL_FROM_NAME, self.settings.EMAIL_FROM))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send(self, msg: EmailMessage) -> None:
        s = self.settings
        if not s.SMTP_HOST:
            logger.info(
                "SMTP_HOST not set; email not sent",
                extra={"subject": msg["Subject"]},
            )
            return
        with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SEC) as server:
            if s.SMTP_USE_TLS:
                server.starttls()
            if s.SMTP_USERNAME and s.SMTP_PASSWORD is not None:
                server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD.get_secret_value())
            server.send_message(msg)
        logger.info("Email sent", extra={"subject": msg["Subject"]})

    def send_welcome(self, recipient: Recipient) -> None:
        lang = recipient.locale
        body = "\n\n".join(
            [
                translate(lang, "email.welcome.greeting", {"name": recipient.name}),
                translate(lang, "email.welcome.message", {"type": recipient.account_type}),
                translate(lang, "email.welcome.signature"),
            ]
        )
        subject = translate(lang, "email.welcome.subject")
        self._send(self._message(recipient.email, subject, body))

    def send_password_reset(self, recipient: Recipient, token: str) -> None:
        lang = recipient.locale
        reset_url = f"{self.settings.FRONTEND_URL}/reset-password?token={token}"
        minutes = str(self.settings.RESET_TOKEN_EXPIRE_MINUTES)
        body = "\n\n".join(
            [
                translate(lang, "email.password_reset.greeting", {"name": recipient.name}),
                translate(lang, "email.password_reset.message", {"minutes": minutes}),
                reset_url,
                translate(lang, "email.password_reset.ignore"),
                translate(lang, "email.password_reset.signature"),
            ]
        )
        subject = translate(lang, "email.password_reset.subject")
        self._send(self._message(recipient.email, subject, body))


def get_mailer() -> Mailer:
    """Dependency: SMTP mailer configured from settings."""
    return SmtpMailer(get_settings())


def dispatch(send: Callable[..., Any], *args: Any) -> bool:
    """
    Call a mailer method, logging instead of raising on failure.

    Email is fire-and-forget relative to the request that triggered it.
    Returns True if the send completed.
    """
    try:
        send(*args)
        return True
    except Exception:
        logger.exception("Email delivery failed")
        return False
