"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # Next.js dev server (marketing site / dashboard)
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Spreadsheet sheet names
SHEET_SETTINGS = "設定"
SHEET_APPOINTMENTS = "予約表"
SHEET_HOLIDAYS = "休診日"

# Spreadsheet ranges (A1 notation). The appointment sheet has one header row,
# so data rows start at row 2.
SETTINGS_RANGE = f"{SHEET_SETTINGS}!A2:B20"
APPOINTMENTS_RANGE = f"{SHEET_APPOINTMENTS}!A2:J1000"
APPOINTMENTS_APPEND_RANGE = f"{SHEET_APPOINTMENTS}!A:J"
HOLIDAYS_RANGE = f"{SHEET_HOLIDAYS}!A2:A100"
APPOINTMENTS_HEADER_ROWS = 1
APPOINTMENT_STATUS_COLUMN = "I"

# Appointment row column indexes (0-based)
COL_DATE = 0
COL_TIME = 1
COL_PATIENT_NAME = 2
COL_PATIENT_PHONE = 3
COL_PATIENT_EMAIL = 4
COL_PATIENT_CARD_NUMBER = 5
COL_DOCTOR = 6
COL_SYMPTOM = 7
COL_STATUS = 8
COL_BOOKED_VIA = 9
APPOINTMENT_COLUMN_COUNT = 10

# Persisted status literals
STATUS_CONFIRMED_LITERAL = "確定"
STATUS_CANCELLED_LITERAL = "キャンセル"

# Booking channels
BOOKED_VIA_DEFAULT = "Bot"
BOOKED_VIA_CHATBOT = "ChatBot"

# Settings sheet keys
SETTING_CLINIC_NAME = "医院名"
SETTING_START_TIME = "診療開始時間"
SETTING_END_TIME = "診療終了時間"
SETTING_BREAK_START = "昼休み開始"
SETTING_BREAK_END = "昼休み終了"
SETTING_SLOT_DURATION = "1枠の時間（分）"
SETTING_MAX_ADVANCE_DAYS = "予約可能日数（何日先まで）"
SETTING_MAX_PATIENTS_PER_SLOT = "同時間帯の最大予約数"
SETTING_CLOSED_DAYS_LEGACY = "休診曜日"
SETTING_CLOSED_DAYS_FULL_DAY = "休診曜日（終日）"
SETTING_CLOSED_DAYS_MORNING = "休診曜日（午前）"
SETTING_CLOSED_DAYS_AFTERNOON = "休診曜日（午後）"
SETTING_USE_PATIENT_CARD_NUMBER = "診察券番号を使用"
SETTING_USE_DOCTOR_SELECTION = "担当医選択を使用"
SETTING_DOCTOR_LIST = "担当医リスト"

# Literals accepted as "true" for boolean settings
TRUTHY_SETTING_VALUES = frozenset({"はい", "あり", "する", "有", "true", "TRUE", "yes", "YES"})

# Component-level defaults for individual settings
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"
DEFAULT_BREAK_START = "12:00"
DEFAULT_BREAK_END = "13:00"
DEFAULT_SLOT_DURATION_MINUTES = 30
DEFAULT_MAX_ADVANCE_DAYS = 30
DEFAULT_MAX_PATIENTS_PER_SLOT = 1

# Input limits for patient-supplied values
PATIENT_NAME_MAX_LENGTH = 50
SYMPTOM_MAX_LENGTH = 500
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 11
EMAIL_MAX_LENGTH = 254

# Reminder scheduler settings
REMINDER_SCHEDULER_MAX_INSTANCES = 1  # Prevent overlapping scheduler runs
