# pyright: reportMissingTypeStubs=false
"""
Tool for resolving the weekday of a date.

Models are unreliable at computing weekdays, so the prompt tells them to
call this tool whenever the patient mentions a date.
"""

import logging

from agents import function_tool, RunContextWrapper

from clinic_agents.context import ToolContext
from utils.datetime_utils import parse_sheet_date, weekday_char
from utils.patient_validators import validate_date_field

logger = logging.getLogger(__name__)

_RELATIVE_DAY_LABELS = {0: "（今日）", 1: "（明日）", 2: "（明後日）"}


async def get_date_info_impl(wrapper: RunContextWrapper[ToolContext], date: str) -> str:
    """
    Core implementation for describing a date relative to today.

    Returns:
        e.g. "2026/1/27は火曜日です（明日）"
    """
    try:
        normalized = validate_date_field(date)
    except ValueError:
        return "日付の形式が正しくありません。YYYY/M/D形式で指定してください（例: 2026/1/27）"

    target = parse_sheet_date(normalized)
    diff_days = (target - wrapper.context.today).days

    if diff_days in _RELATIVE_DAY_LABELS:
        relative = _RELATIVE_DAY_LABELS[diff_days]
    elif diff_days > 0:
        relative = f"（{diff_days}日後）"
    else:
        relative = "（過去の日付）"

    return f"{normalized}は{weekday_char(target)}曜日です{relative}"


@function_tool
async def get_date_info(wrapper: RunContextWrapper[ToolContext], date: str) -> str:
    """
    Get the weekday of a date and how far it is from today. Call this whenever the patient mentions a date.

    Args:
        date: Date in YYYY/M/D format (e.g. 2026/1/27)
    """
    return await get_date_info_impl(wrapper, date)
