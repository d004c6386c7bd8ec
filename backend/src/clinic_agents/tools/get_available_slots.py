# pyright: reportMissingTypeStubs=false
"""
Tool for listing the free slots of a day.

Rejects past dates and dates beyond the clinic's booking window before
touching the appointment sheet.
"""

import logging
from datetime import timedelta

from agents import function_tool, RunContextWrapper

from clinic_agents.context import ToolContext
from services.sheet_store import SheetStoreError
from utils.datetime_utils import format_date_with_weekday, parse_sheet_date
from utils.patient_validators import validate_date_field

logger = logging.getLogger(__name__)


async def get_available_slots_impl(wrapper: RunContextWrapper[ToolContext], date: str) -> str:
    """
    Core implementation for describing slot availability on one date.

    Args:
        wrapper: Context wrapper (auto-injected)
        date: Date string from the model

    Returns:
        Availability summary, e.g.
        "【2026/1/27（火）の予約状況】\\n空き枠: 9:00, 9:30(残2)\\n予約済み: 10:00"
    """
    context = wrapper.context

    try:
        normalized = validate_date_field(date)
    except ValueError as e:
        return str(e)

    target = parse_sheet_date(normalized)
    today = context.today
    if target < today:
        return f"{normalized}は過去の日付です。本日以降の日付をお選びください。"

    try:
        config = await context.engine.settings.get_clinic_settings(context.spreadsheet_id)
        if (target - today).days > config.max_advance_days:
            max_date = today + timedelta(days=config.max_advance_days)
            return (
                f"{normalized}は予約可能期間外です。{config.max_advance_days}日先"
                f"（{format_date_with_weekday(max_date)}）までの日付をお選びください。"
            )

        slots = await context.engine.availability.get_available_slots(context.spreadsheet_id, target)
    except SheetStoreError as e:
        logger.exception(f"Failed to load slots for {normalized}: {e}")
        return "予約状況を確認できませんでした。しばらくしてから再度お試しください。"

    label = format_date_with_weekday(target)
    if not slots:
        return f"【{label}】休診日のため予約枠がありません。別の日をお選びください。"

    available = [slot for slot in slots if slot.available]
    booked = [slot for slot in slots if not slot.available]
    if not available:
        return f"【{label}】全ての枠が予約済みです。別の日をお選びください。"

    free_list = ", ".join(
        f"{slot.time}(残{slot.remaining_slots})" if slot.remaining_slots > 1 else slot.time
        for slot in available
    )
    booked_list = ", ".join(slot.time for slot in booked) if booked else "なし"

    logger.debug(f"📅 [get_available_slots] {normalized}: {len(available)} free, {len(booked)} booked")
    return f"【{label}の予約状況】\n空き枠: {free_list}\n予約済み: {booked_list}"


@function_tool
async def get_available_slots(wrapper: RunContextWrapper[ToolContext], date: str) -> str:
    """
    Get the free appointment slots for a date. Use when the patient says which day they want to visit.

    Args:
        date: Date in YYYY/M/D format (e.g. 2026/1/27)
    """
    return await get_available_slots_impl(wrapper, date)
