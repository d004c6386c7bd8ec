"""
Patient field validation utilities.

Provides centralized validation logic for booking input (date, time and
patient fields) for consistent validation across the API and chat tools.
Each validator returns the normalized value or raises ValueError with a
message that can be shown to the patient as-is.
"""

import calendar
import re
from typing import Optional

from core.constants import EMAIL_MAX_LENGTH, PATIENT_NAME_MAX_LENGTH, SYMPTOM_MAX_LENGTH

_EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')


def validate_date_field(value: Optional[str]) -> str:
    """
    Validate a booking date and normalize it to "yyyy/M/d".

    Both "2026/01/27" and "2026-01-27" are accepted.

    Raises:
        ValueError: If the value is not a calendar date between 2000 and 2100
    """
    if not value or not value.strip():
        raise ValueError('日付を入力してください。')

    trimmed = value.strip()
    parts = trimmed.replace('-', '/').split('/')
    if len(parts) != 3:
        raise ValueError('日付はYYYY/M/D形式で入力してください（例: 2026/1/27）')
    if not all(part.isdigit() for part in parts):
        raise ValueError('日付は数字で入力してください。')

    year, month, day = (int(part) for part in parts)
    if year < 2000 or year > 2100:
        raise ValueError('年は2000〜2100の範囲で入力してください。')
    if month < 1 or month > 12:
        raise ValueError('月は1〜12の範囲で入力してください。')
    if day < 1 or day > 31:
        raise ValueError('日は1〜31の範囲で入力してください。')

    days_in_month = calendar.monthrange(year, month)[1]
    if day > days_in_month:
        raise ValueError(f'{month}月は{days_in_month}日までです。')

    return f'{year}/{month}/{day}'


def validate_time_field(value: Optional[str]) -> str:
    """
    Validate a booking time and normalize it to "H:mm".

    A seconds component is dropped ("09:30:00" -> "9:30").

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if not value or not value.strip():
        raise ValueError('時刻を入力してください。')

    time_part = ':'.join(value.strip().split(':')[:2])
    match = _TIME_PATTERN.match(time_part)
    if not match:
        raise ValueError('時刻はH:mm形式で入力してください（例: 9:30）')

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23:
        raise ValueError('時は0〜23の範囲で入力してください。')
    if minute > 59:
        raise ValueError('分は0〜59の範囲で入力してください。')

    return f'{hour}:{minute:02d}'


def validate_patient_name(value: Optional[str]) -> str:
    """Validate the patient name (required, single line, bounded length)."""
    if not value or not value.strip():
        raise ValueError('お名前を入力してください。')

    trimmed = value.strip()
    if len(trimmed) > PATIENT_NAME_MAX_LENGTH:
        raise ValueError(f'お名前は{PATIENT_NAME_MAX_LENGTH}文字以内で入力してください。')
    if '\n' in trimmed or '\r' in trimmed:
        raise ValueError('お名前に改行は使用できません。')

    return trimmed


def validate_email_field(value: Optional[str]) -> str:
    """
    Validate an optional email address.

    Returns:
        Lower-cased address, or "" when no address was given
    """
    if not value or not value.strip():
        return ''

    trimmed = value.strip()
    if len(trimmed) > EMAIL_MAX_LENGTH:
        raise ValueError(f'メールアドレスは{EMAIL_MAX_LENGTH}文字以内で入力してください。')
    if not _EMAIL_PATTERN.match(trimmed):
        raise ValueError('メールアドレスの形式が正しくありません。')

    return trimmed.lower()


def validate_symptom_field(value: Optional[str]) -> str:
    if not value or not value.strip():
        return ''

    trimmed = value.strip()
    if len(trimmed) > SYMPTOM_MAX_LENGTH:
        raise ValueError(f'ご来院の目的は{SYMPTOM_MAX_LENGTH}文字以内で入力してください。')
    return trimmed
