# pyright: reportMissingTypeStubs=false
"""
Tool for booking an appointment from the chat.

Validates every argument, rejects a second booking by the same phone number
on the same day, asks for doctor / patient card number when the clinic uses
them, then books through the scheduling engine and sends a confirmation
email when the patient gave an address.
"""

import logging
from typing import Optional

from agents import function_tool, RunContextWrapper

from clinic_agents.context import ToolContext
from core.constants import BOOKED_VIA_CHATBOT
from models.scheduling import AppointmentCandidate
from services.notification_service import AppointmentEmailData
from services.sheet_store import SheetStoreError
from utils.datetime_utils import parse_sheet_date
from utils.patient_validators import (
    validate_date_field, validate_time_field, validate_patient_name,
    validate_email_field, validate_symptom_field,
)
from utils.phone_validator import phone_numbers_match, validate_japanese_phone
from utils.sanitizers import normalize_optional_value, sanitize_for_sheet

logger = logging.getLogger(__name__)


async def create_appointment_impl(
    wrapper: RunContextWrapper[ToolContext],
    date: str,
    time: str,
    patient_name: str,
    patient_phone: str,
    patient_email: Optional[str] = None,
    patient_card_number: Optional[str] = None,
    doctor: Optional[str] = None,
    symptom: Optional[str] = None
) -> str:
    """Core implementation for booking an appointment from chat arguments."""
    context = wrapper.context
    handle = context.spreadsheet_id

    try:
        normalized_date = validate_date_field(date)
        normalized_time = validate_time_field(time)
        phone_digits = validate_japanese_phone(patient_phone)
        name = validate_patient_name(patient_name)
        email = validate_email_field(patient_email)
        symptom_text = validate_symptom_field(symptom)
    except ValueError as e:
        return str(e)

    try:
        config = await context.engine.settings.get_clinic_settings(handle)

        same_day = await context.engine.queries.get_appointments_by_date(
            handle, parse_sheet_date(normalized_date)
        )
        duplicate = next(
            (apt for apt in same_day if phone_numbers_match(apt.patient_phone, phone_digits)),
            None
        )
        if duplicate is not None:
            return (
                f"同じ電話番号（{patient_phone}）で{normalized_date}に既に{duplicate.time}の"
                f"ご予約があります。別の日程をご希望ですか？"
            )

        if config.offers_doctor_selection and not doctor:
            return (
                f"担当医の確認が必要です。「{'、'.join(config.doctor_list)}」の中からご希望を確認するか、"
                f"特にご希望がなければ「なし」と入力してください。"
            )
        if config.use_patient_card_number and not patient_card_number:
            return (
                "診察券番号の確認が必要です。「診察券番号をお持ちでしたらお伝えください。"
                "初診の方や番号がわからない場合は『なし』で大丈夫です」と確認してください。"
            )

        normalized_doctor = normalize_optional_value(doctor or '')
        candidate = AppointmentCandidate(
            date=normalized_date,
            time=normalized_time,
            patient_name=sanitize_for_sheet(name),
            patient_phone=phone_digits,
            patient_email=sanitize_for_sheet(email),
            patient_card_number=sanitize_for_sheet(normalize_optional_value(patient_card_number or '')),
            doctor=sanitize_for_sheet(normalized_doctor),
            symptom=sanitize_for_sheet(symptom_text),
            booked_via=BOOKED_VIA_CHATBOT,
        )
        result = await context.engine.appointments.create_appointment(handle, candidate)
    except SheetStoreError as e:
        logger.exception(f"Failed to create appointment for {normalized_date} {normalized_time}: {e}")
        return "予約処理中にエラーが発生しました。しばらくしてから再度お試しください。"

    if not result.success:
        return f"予約に失敗しました: {result.message}"

    message = f"予約が完了しました。日時: {normalized_date} {normalized_time}、患者名: {name}"
    if normalized_doctor:
        message += f"、担当医: {normalized_doctor}"

    if email:
        sent = await context.notifications.send_appointment_confirmation(AppointmentEmailData(
            patient_name=name,
            patient_email=email,
            date=normalized_date,
            time=normalized_time,
            clinic_name=config.clinic_name,
            symptom=symptom_text,
        ))
        if context.notifications.enabled and not sent:
            message += "（確認メールの送信に失敗しました）"

    logger.info(f"✅ [create_appointment] Booked {normalized_date} {normalized_time} via chat")
    return message


@function_tool
async def create_appointment(
    wrapper: RunContextWrapper[ToolContext],
    date: str,
    time: str,
    patient_name: str,
    patient_phone: str,
    patient_email: Optional[str] = None,
    patient_card_number: Optional[str] = None,
    doctor: Optional[str] = None,
    symptom: Optional[str] = None
) -> str:
    """
    Book an appointment. Use once the patient's name, phone number, date and time are all known.

    Args:
        date: Date in YYYY/M/D format (e.g. 2026/1/27)
        time: Time in H:mm format (e.g. 9:30)
        patient_name: Patient's full name
        patient_phone: Patient's phone number
        patient_email: Email address for the confirmation mail, if given
        patient_card_number: Patient card number, or なし for first visits
        doctor: Preferred doctor, or なし when there is no preference
        symptom: Reason for the visit
    """
    return await create_appointment_impl(
        wrapper,
        date=date,
        time=time,
        patient_name=patient_name,
        patient_phone=patient_phone,
        patient_email=patient_email,
        patient_card_number=patient_card_number,
        doctor=doctor,
        symptom=symptom,
    )
