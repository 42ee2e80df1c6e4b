"""Outgoing email. Only the console provider exists: messages are written to the log."""

import logging
from abc import ABC, abstractmethod
from urllib.parse import urlencode

from app.core.config import Settings, get_settings
from app.services.templates import PASSWORD_RESET_TEMPLATE, ChainedTemplateSource, RenderedTemplate

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when a sender cannot hand a message off."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmailSender(ABC):
    @abstractmethod
    def send(self, to_email: str, message: RenderedTemplate) -> None:
        raise NotImplementedError


class ConsoleEmailSender(EmailSender):
    """Development sender; logs the rendered text body instead of delivering it."""

    def send(self, to_email: str, message: RenderedTemplate) -> None:
        logger.info(
            "Email to %s\nSubject: %s\n\n%s",
            to_email,
            message.subject,
            message.text_content,
            extra={"to_email": to_email, "email_subject": message.subject},
        )


def get_email_sender() -> EmailSender:
    """FastAPI dependency; picks the sender for EMAIL_PROVIDER."""
    provider = get_settings().EMAIL_PROVIDER
    if provider == "console":
        return ConsoleEmailSender()
    raise ValueError(f"Unsupported EMAIL_PROVIDER: {provider}")


def reset_url(raw_token: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    return f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': raw_token})}"


def send_password_reset(
    sender: EmailSender,
    source: ChainedTemplateSource,
    to_email: str,
    raw_token: str,
    settings: Settings | None = None,
) -> None:
    """Render password_reset through the template chain and send it."""
    settings = settings or get_settings()
    message = source.render(
        PASSWORD_RESET_TEMPLATE,
        {
            "ResetURL": reset_url(raw_token, settings),
            "CompanyName": settings.COMPANY_NAME,
        },
    )
    sender.send(to_email, message)
    logger.info("Password reset email sent", extra={"to_email": to_email})
