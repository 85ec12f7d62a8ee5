"""Per-platform link validation, redirect formatting and ordering rules."""

import re
from typing import Callable, Dict, Iterable, Optional

from ..core.enums import Platform
from ..core.errors import ValidationError

WHATSAPP_URL = re.compile(r"^https?://(wa\.me|api\.whatsapp\.com)/\d+$", re.IGNORECASE)
WHATSAPP_NUMBER = re.compile(r"^\+?\d{7,15}$")
EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE = re.compile(r"^[\d\s\-+()]+$")
HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)

_NON_DIGITS = re.compile(r"\D")


def _digits(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def _invalid(platform: Platform, value: str, expected: str) -> ValidationError:
    return ValidationError(
        f"Invalid {platform.value} link '{value}': {expected}",
        field="url",
        platform=platform.value,
    )


def _validate_whatsapp(value: str) -> str:
    if WHATSAPP_URL.match(value):
        return value
    if WHATSAPP_NUMBER.match(value):
        return f"https://wa.me/{_digits(value)}"
    raise _invalid(
        Platform.WHATSAPP, value, "expected a wa.me URL or a phone number with 7-15 digits"
    )


def _validate_email(value: str) -> str:
    if not EMAIL.match(value):
        raise _invalid(Platform.EMAIL, value, "expected an email address")
    return value


def _validate_phone(value: str) -> str:
    if not PHONE.match(value) or not _digits(value):
        raise _invalid(Platform.PHONE, value, "expected digits and separators only")
    return value


def _web_validator(platform: Platform) -> Callable[[str], str]:
    def validate(value: str) -> str:
        if not HTTP_URL.match(value):
            raise _invalid(platform, value, "expected a URL starting with http:// or https://")
        return value

    return validate


VALIDATORS: Dict[Platform, Callable[[str], str]] = {
    Platform.WHATSAPP: _validate_whatsapp,
    Platform.EMAIL: _validate_email,
    Platform.PHONE: _validate_phone,
    Platform.WEBSITE: _web_validator(Platform.WEBSITE),
    Platform.LINKEDIN: _web_validator(Platform.LINKEDIN),
    Platform.INSTAGRAM: _web_validator(Platform.INSTAGRAM),
    Platform.TWITTER: _web_validator(Platform.TWITTER),
    Platform.GITHUB: _web_validator(Platform.GITHUB),
}


def validate_link(platform, raw_url: Optional[str]) -> str:
    """Validate and normalize a link value for storage.

    Args:
        platform: Platform enum member or its string value
        raw_url: Value submitted by the client

    Returns:
        The normalized value to persist

    Raises:
        ValidationError: If the value does not fit the platform
    """
    try:
        platform = Platform(platform)
    except ValueError:
        raise ValidationError(f"Unsupported platform '{platform}'", field="platform")

    value = (raw_url or "").strip()
    if not value:
        raise ValidationError(f"A value is required for {platform.value}", field="url")
    return VALIDATORS[platform](value)


def redirect_url(platform, stored_url: str) -> str:
    """Format a stored link value as the URL a click should open."""
    platform = Platform(platform)
    if platform == Platform.PHONE:
        return f"tel:{_digits(stored_url)}"
    if platform == Platform.EMAIL:
        return f"mailto:{stored_url}"
    if platform == Platform.WHATSAPP:
        return f"https://wa.me/{_digits(stored_url.rsplit('/', 1)[-1])}"
    return stored_url


def next_order(existing_orders: Iterable[int]) -> int:
    """Order value for a link appended after ``existing_orders``."""
    return max(max(existing_orders, default=0), 0) + 1
