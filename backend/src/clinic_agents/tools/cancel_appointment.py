# pyright: reportMissingTypeStubs=false
"""
Tool for cancelling an appointment from the chat.

The caller must give the phone number used at booking; the appointment is
only cancelled when an active booking at that date and time carries the
same number.
"""

import logging

from agents import function_tool, RunContextWrapper

from clinic_agents.context import ToolContext
from services.sheet_store import SheetStoreError
from utils.patient_validators import validate_date_field, validate_time_field
from utils.phone_validator import phone_numbers_match, validate_japanese_phone

logger = logging.getLogger(__name__)


async def cancel_appointment_impl(
    wrapper: RunContextWrapper[ToolContext],
    date: str,
    time: str,
    patient_phone: str
) -> str:
    """Core implementation for a phone-verified cancellation."""
    context = wrapper.context
    handle = context.spreadsheet_id

    try:
        normalized_date = validate_date_field(date)
        normalized_time = validate_time_field(time)
    except ValueError as e:
        return str(e)

    try:
        phone_digits = validate_japanese_phone(patient_phone)
    except ValueError as e:
        return f"ご予約時にお伝えいただいた電話番号を再度ご確認ください。{e}"

    try:
        appointment = await context.engine.appointments.find_cancellable_appointment(
            handle, normalized_date, normalized_time
        )
        if appointment is None or not phone_numbers_match(appointment.patient_phone, phone_digits):
            return f"{normalized_date} {normalized_time}のご予約が見つかりません。日時と電話番号をご確認ください。"

        result = await context.engine.appointments.cancel_appointment(handle, normalized_date, normalized_time)
    except SheetStoreError as e:
        logger.exception(f"Failed to cancel appointment {normalized_date} {normalized_time}: {e}")
        return "キャンセル処理中にエラーが発生しました。しばらくしてから再度お試しください。"

    if not result.success:
        return f"キャンセルに失敗しました: {result.message}"

    logger.info(f"🗑️ [cancel_appointment] Cancelled {normalized_date} {normalized_time} via chat")
    return f"{normalized_date} {normalized_time}のご予約をキャンセルしました。またのご利用をお待ちしております。"


@function_tool
async def cancel_appointment(
    wrapper: RunContextWrapper[ToolContext],
    date: str,
    time: str,
    patient_phone: str
) -> str:
    """
    Cancel an existing appointment after confirming the phone number used when booking.

    Args:
        date: Date in YYYY/M/D format
        time: Time in H:mm format
        patient_phone: Phone number given at booking
    """
    return await cancel_appointment_impl(wrapper, date=date, time=time, patient_phone=patient_phone)
