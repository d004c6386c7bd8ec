"""
Phone number validation utilities.

Provides centralized phone number cleaning and validation logic
for consistent validation across the application.
"""

import re
from typing import Optional

from core.constants import PHONE_MIN_DIGITS, PHONE_MAX_DIGITS


def clean_phone_number(phone: str) -> str:
    """
    Clean phone number by removing separators and the Japanese country code.

    Args:
        phone: Phone number string (may contain spaces, dashes, parentheses, +81 prefix)

    Returns:
        Cleaned phone number, e.g. "+81 90-1234-5678" -> "09012345678"
    """
    cleaned = re.sub(r'[-\s()]', '', phone)
    if cleaned.startswith('+81'):
        cleaned = '0' + cleaned[3:]
    return cleaned


def validate_japanese_phone(phone: str) -> str:
    """
    Validate and clean a Japanese phone number (10 or 11 digits starting with 0).

    Args:
        phone: Phone number string to validate

    Returns:
        Cleaned phone number (digits only)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone or not phone.strip():
        raise ValueError('電話番号を入力してください。')

    cleaned = clean_phone_number(phone)

    if not cleaned.isdigit():
        raise ValueError('電話番号は数字で入力してください。')

    if not (PHONE_MIN_DIGITS <= len(cleaned) <= PHONE_MAX_DIGITS):
        raise ValueError(f'電話番号は{PHONE_MIN_DIGITS}〜{PHONE_MAX_DIGITS}桁で入力してください。')

    if not cleaned.startswith('0'):
        raise ValueError('電話番号は0から始まる番号を入力してください。')

    return cleaned


def phone_numbers_match(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two phone numbers after cleaning. Blank numbers never match."""
    if not left or not right:
        return False
    return clean_phone_number(left) == clean_phone_number(right)
