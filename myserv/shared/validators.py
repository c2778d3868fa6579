"""Shared validation utilities"""

import re
from datetime import date, datetime, time
from typing import Optional

from ..config import DEFAULT_PHONE_COUNTRY_CODE

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_phone(phone: Optional[str], country_code: str = DEFAULT_PHONE_COUNTRY_CODE) -> Optional[str]:
    """
    Normalize a phone number to E.164 format.

    Args:
        phone: Phone number string in various formats, e.g. "(11) 99999-1234"
        country_code: Country code prepended to 10/11 digit national numbers

    Returns:
        Normalized phone number in E.164 format (+5511999991234)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if digits.startswith(country_code) and len(digits) in (12, 13):
        return f"+{digits}"

    # National numbers: area code + 8 or 9 digit subscriber number
    if len(digits) in (10, 11):
        return f"+{country_code}{digits}"

    raise ValueError("Phone number must have 10 or 11 digits including area code")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (a full ISO datetime is accepted and truncated)"""
    value = (value or "").strip()
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def parse_hhmm(value: str) -> time:
    """Parse a 24h HH:MM string"""
    match = TIME_PATTERN.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))
