"""Credential and profile rules, built once from settings and injected into handlers."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import phonenumbers

from app.core.errors import ValidationFailedError

if TYPE_CHECKING:
    from app.core.config import Settings

# Region used to read numbers written without a +<country code> prefix.
DEFAULT_PHONE_REGION = "ID"


@dataclass(frozen=True)
class CredentialRules:
    """Length limits for passwords and display names, and the home phone region."""

    password_min_len: int = 8
    password_max_len: int = 128
    name_min_len: int = 2
    name_max_len: int = 255
    phone_region: str = DEFAULT_PHONE_REGION

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CredentialRules":
        return cls(
            password_min_len=settings.PASSWORD_MIN_LEN,
            password_max_len=settings.PASSWORD_MAX_LEN,
            name_min_len=settings.NAME_MIN_LEN,
            phone_region=settings.PHONE_DEFAULT_REGION,
        )

    def check_password(self, password: str) -> None:
        if not (self.password_min_len <= len(password) <= self.password_max_len):
            raise ValidationFailedError(
                f"Password must be {self.password_min_len}-{self.password_max_len} characters."
            )

    def check_name(self, name: str) -> str:
        """Return the trimmed name or raise if its length is out of range."""
        trimmed = name.strip()
        if not (self.name_min_len <= len(trimmed) <= self.name_max_len):
            raise ValidationFailedError(
                f"Name must be {self.name_min_len}-{self.name_max_len} characters."
            )
        return trimmed


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store them trimmed and lower-cased."""
    return email.strip().lower()


def normalize_phone(phone: str, region: str = DEFAULT_PHONE_REGION) -> str:
    """
    Parse a phone number against region and return it in E.164 form.
    Raises ValidationFailedError when it cannot be parsed or is not a valid number.
    """
    try:
        parsed = phonenumbers.parse(phone.strip(), region)
    except phonenumbers.NumberParseException as e:
        raise ValidationFailedError("Invalid phone number format") from e
    if not phonenumbers.is_valid_number(parsed):
        raise ValidationFailedError("Invalid phone number format")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def normalize_optional_text(value: str | None) -> str | None:
    """Trim; empty strings become None so the column is cleared."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None
