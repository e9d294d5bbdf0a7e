"""
Mail service: sends account mails through the Mailgun HTTP API.
"""
import logging
from typing import List, Optional

import httpx

from costventures.core.config import Settings
from costventures.core.errors import MailNotSentError

logger = logging.getLogger(__name__)


def activation_mail_body(username: str, token: str) -> str:
    return (
        f"<p>Hi {username},</p>"
        f"<p>welcome to Costventures! Your activation code is:</p>"
        f"<h2>{token}</h2>"
        f"<p>The code is valid for a limited time only.</p>"
    )


def confirmation_mail_body(username: str) -> str:
    return (
        f"<p>Hi {username},</p>"
        f"<p>your account has been activated. Have a nice trip!</p>"
    )


def password_reset_mail_body(username: str, token: str) -> str:
    return (
        f"<p>Hi {username},</p>"
        f"<p>you have requested a password reset. Your reset code is:</p>"
        f"<h2>{token}</h2>"
        f"<p>If you did not request a password reset, please ignore this email.</p>"
    )


def password_reset_confirmation_mail_body(username: str) -> str:
    return (
        f"<p>Hi {username},</p>"
        f"<p>your password has been reset.</p>"
        f"<p>Please contact our support team if you did not request this.</p>"
    )


class MailManager:
    """
    Mailgun client with a fixed number of attempts per mail.

    Each send is tried ``MAIL_RETRY_COUNT`` times without backoff; when all
    attempts fail a ``MailNotSentError`` is raised. Callers treat that as a
    degraded result, not as a failure of the operation that sent the mail.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(timeout=settings.MAIL_TIMEOUT_SECONDS)

    @property
    def enabled(self) -> bool:
        return bool(self.settings.MAILGUN_API_KEY)

    @property
    def messages_url(self) -> str:
        return f"{self.settings.MAILGUN_API_BASE.rstrip('/')}/{self.settings.MAILGUN_DOMAIN}/messages"

    def _post(self, recipients: List[str], subject: str, html: str):
        response = self.client.post(
            self.messages_url,
            auth=("api", self.settings.MAILGUN_API_KEY),
            data={
                "from": self.settings.MAIL_SENDER,
                "to": recipients,
                "subject": subject,
                "html": html,
            },
        )
        response.raise_for_status()

    def send_mail(self, recipients: List[str], subject: str, html: str):
        if not self.enabled:
            logger.info("MAILGUN_API_KEY is not configured, skipping mail '%s' to %s", subject, recipients)
            return

        attempts = max(1, self.settings.MAIL_RETRY_COUNT)
        for attempt in range(1, attempts + 1):
            try:
                self._post(recipients, subject, html)
                return
            except httpx.HTTPError as e:
                logger.warning("Sending mail '%s' failed (attempt %s/%s): %s", subject, attempt, attempts, e)

        logger.error("Giving up on mail '%s' to %s after %s attempts", subject, recipients, attempts)
        raise MailNotSentError()

    def send_activation_mail(self, email: str, username: str, token: str):
        self.send_mail([email], "Activate your Costventures account", activation_mail_body(username, token))

    def send_confirmation_mail(self, email: str, username: str):
        self.send_mail([email], "Your Costventures account is active", confirmation_mail_body(username))

    def send_password_reset_mail(self, email: str, username: str, token: str):
        self.send_mail([email], "Reset your Costventures password", password_reset_mail_body(username, token))

    def send_password_reset_confirmation_mail(self, email: str, username: str):
        self.send_mail(
            [email], "Your Costventures password was reset", password_reset_confirmation_mail_body(username)
        )

    def close(self):
        self.client.close()
