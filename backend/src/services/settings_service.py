"""
Clinic settings resolver.

Reads the key/value settings sheet of a clinic's spreadsheet and turns it into
a ClinicConfiguration. Results are cached per tenant handle for a fixed TTL;
nothing invalidates an entry when the sheet changes, so edits become visible
once the cached entry expires.

Closed days come in two layouts. Current sheets use three keys
(終日 / 午前 / 午後); older sheets use a single 休診曜日 key where the half-day
closures are written inline ("日,祝,水の午後"). The parser variant is chosen by
which keys are present.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

from core.config import SETTINGS_CACHE_TTL_SECONDS
from core.constants import (
    SETTINGS_RANGE,
    SETTING_CLINIC_NAME, SETTING_START_TIME, SETTING_END_TIME,
    SETTING_BREAK_START, SETTING_BREAK_END, SETTING_SLOT_DURATION,
    SETTING_MAX_ADVANCE_DAYS, SETTING_MAX_PATIENTS_PER_SLOT,
    SETTING_CLOSED_DAYS_LEGACY, SETTING_CLOSED_DAYS_FULL_DAY,
    SETTING_CLOSED_DAYS_MORNING, SETTING_CLOSED_DAYS_AFTERNOON,
    SETTING_USE_PATIENT_CARD_NUMBER, SETTING_USE_DOCTOR_SELECTION, SETTING_DOCTOR_LIST,
    TRUTHY_SETTING_VALUES,
    DEFAULT_START_TIME, DEFAULT_END_TIME, DEFAULT_BREAK_START, DEFAULT_BREAK_END,
    DEFAULT_SLOT_DURATION_MINUTES, DEFAULT_MAX_ADVANCE_DAYS, DEFAULT_MAX_PATIENTS_PER_SLOT,
)
from models.scheduling import ClinicConfiguration, Weekday
from services.sheet_store import SheetStoreError, TabularStore
from utils.datetime_utils import format_sheet_time, parse_time_string, time_to_minutes
from utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

# Separators between weekday tokens in free-text labels
_TOKEN_SEPARATORS = re.compile(r'[,、・/\s]+')
_LIST_SEPARATORS = re.compile(r'[,、・]+')

_WEEKDAY_BY_CHAR: Dict[str, Weekday] = {weekday.value: weekday for weekday in Weekday}

_CLOSED_DAY_KEYS = (
    SETTING_CLOSED_DAYS_FULL_DAY,
    SETTING_CLOSED_DAYS_MORNING,
    SETTING_CLOSED_DAYS_AFTERNOON,
)


@dataclass
class ClosedDays:
    """Closure sets extracted from the settings sheet."""
    full_day: Set[Weekday] = field(default_factory=set)
    morning: Set[Weekday] = field(default_factory=set)
    afternoon: Set[Weekday] = field(default_factory=set)


def build_fallback_configuration() -> ClinicConfiguration:
    """Hard-coded configuration used when the settings sheet cannot be read."""
    return ClinicConfiguration(
        clinic_name="",
        start_time=DEFAULT_START_TIME,
        end_time=DEFAULT_END_TIME,
        break_start=DEFAULT_BREAK_START,
        break_end=DEFAULT_BREAK_END,
        slot_duration_minutes=DEFAULT_SLOT_DURATION_MINUTES,
        max_advance_days=DEFAULT_MAX_ADVANCE_DAYS,
        max_patients_per_slot=DEFAULT_MAX_PATIENTS_PER_SLOT,
    )


def rows_to_settings_map(rows: List[List[str]]) -> Dict[str, str]:
    """Collect trimmed key/value pairs, ignoring rows with a blank key or value."""
    settings: Dict[str, str] = {}
    for row in rows:
        if len(row) < 2:
            continue
        key = (row[0] or '').strip()
        value = (row[1] or '').strip()
        if key and value:
            settings[key] = value
    return settings


def extract_weekdays(label: str) -> Set[Weekday]:
    """
    Extract weekday tokens from a free-text label.

    Each token is matched on its leading character, so "日", "日曜日",
    "水の午後" and "土の午前" all resolve to their weekday; a token starting
    with 祝 ("祝", "祝日") resolves to the public-holiday pseudo-weekday.
    """
    weekdays: Set[Weekday] = set()
    for token in _TOKEN_SEPARATORS.split(label or ''):
        token = token.strip()
        if not token:
            continue
        weekday = _WEEKDAY_BY_CHAR.get(token[0])
        if weekday is not None:
            weekdays.add(weekday)
    return weekdays


def parse_split_closed_days(settings: Dict[str, str]) -> ClosedDays:
    """Parser for sheets with separate full-day / morning / afternoon keys."""
    return ClosedDays(
        full_day=extract_weekdays(settings.get(SETTING_CLOSED_DAYS_FULL_DAY, '')),
        morning=extract_weekdays(settings.get(SETTING_CLOSED_DAYS_MORNING, '')),
        afternoon=extract_weekdays(settings.get(SETTING_CLOSED_DAYS_AFTERNOON, '')),
    )


def parse_legacy_closed_days(value: str) -> ClosedDays:
    """
    Parser for the single legacy 休診曜日 key.

    Tokens mentioning 午後 go to the afternoon set, tokens mentioning 午前 go
    to the morning set, everything else is a full-day closure.
    """
    closed = ClosedDays()
    for token in _TOKEN_SEPARATORS.split(value or ''):
        token = token.strip()
        if not token:
            continue
        if '午後' in token:
            closed.afternoon |= extract_weekdays(token)
        elif '午前' in token:
            closed.morning |= extract_weekdays(token)
        else:
            closed.full_day |= extract_weekdays(token)
    return closed


def parse_closed_days(settings: Dict[str, str]) -> ClosedDays:
    """Pick the closed-day parser variant by key presence."""
    if any(key in settings for key in _CLOSED_DAY_KEYS):
        return parse_split_closed_days(settings)
    return parse_legacy_closed_days(settings.get(SETTING_CLOSED_DAYS_LEGACY, ''))


def parse_bool_setting(value: Optional[str]) -> bool:
    return (value or '').strip() in TRUTHY_SETTING_VALUES


def parse_int_setting(value: Optional[str], default: int, minimum: int) -> int:
    """Parse an integer setting, falling back to the default when malformed or below minimum."""
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        logger.warning(f"Invalid numeric setting value {value!r}, using default {default}")
        return default
    if parsed < minimum:
        logger.warning(f"Numeric setting value {parsed} below {minimum}, using default {default}")
        return default
    return parsed


def parse_time_setting(value: Optional[str], default: str) -> str:
    """Normalize a time setting to HH:MM, falling back to the default when malformed."""
    if value is None:
        return default
    try:
        parsed = parse_time_string(value)
    except ValueError:
        logger.warning(f"Invalid time setting value {value!r}, using default {default}")
        return default
    return f"{parsed.hour:02d}:{parsed.minute:02d}"


def parse_doctor_list(value: Optional[str]) -> List[str]:
    return [name.strip() for name in _LIST_SEPARATORS.split(value or '') if name.strip()]


def _minutes(value: str) -> int:
    return time_to_minutes(parse_time_string(value))


def parse_clinic_configuration(settings: Dict[str, str]) -> ClinicConfiguration:
    """
    Build a ClinicConfiguration from a key/value settings map.

    Individual malformed values fall back to their component defaults; an
    inverted hours or break window falls back to the default pair.
    """
    start_time = parse_time_setting(settings.get(SETTING_START_TIME), DEFAULT_START_TIME)
    end_time = parse_time_setting(settings.get(SETTING_END_TIME), DEFAULT_END_TIME)
    if _minutes(start_time) >= _minutes(end_time):
        logger.warning(
            f"Opening hours {start_time}-{end_time} are inverted, "
            f"using {DEFAULT_START_TIME}-{DEFAULT_END_TIME}"
        )
        start_time, end_time = DEFAULT_START_TIME, DEFAULT_END_TIME

    break_start = parse_time_setting(settings.get(SETTING_BREAK_START), DEFAULT_BREAK_START)
    break_end = parse_time_setting(settings.get(SETTING_BREAK_END), DEFAULT_BREAK_END)
    if _minutes(break_start) > _minutes(break_end):
        logger.warning(
            f"Break {break_start}-{break_end} is inverted, "
            f"using {DEFAULT_BREAK_START}-{DEFAULT_BREAK_END}"
        )
        break_start, break_end = DEFAULT_BREAK_START, DEFAULT_BREAK_END

    closed = parse_closed_days(settings)

    return ClinicConfiguration(
        clinic_name=settings.get(SETTING_CLINIC_NAME, ''),
        start_time=start_time,
        end_time=end_time,
        break_start=break_start,
        break_end=break_end,
        slot_duration_minutes=parse_int_setting(
            settings.get(SETTING_SLOT_DURATION), DEFAULT_SLOT_DURATION_MINUTES, minimum=1
        ),
        max_advance_days=parse_int_setting(
            settings.get(SETTING_MAX_ADVANCE_DAYS), DEFAULT_MAX_ADVANCE_DAYS, minimum=0
        ),
        closed_days_full_day=frozenset(closed.full_day),
        closed_days_morning_only=frozenset(closed.morning),
        closed_days_afternoon_only=frozenset(closed.afternoon),
        max_patients_per_slot=parse_int_setting(
            settings.get(SETTING_MAX_PATIENTS_PER_SLOT), DEFAULT_MAX_PATIENTS_PER_SLOT, minimum=1
        ),
        use_patient_card_number=parse_bool_setting(settings.get(SETTING_USE_PATIENT_CARD_NUMBER)),
        use_doctor_selection=parse_bool_setting(settings.get(SETTING_USE_DOCTOR_SELECTION)),
        doctor_list=parse_doctor_list(settings.get(SETTING_DOCTOR_LIST)),
    )


def sorted_weekdays(days: FrozenSet[Weekday]) -> List[str]:
    """Weekday glyphs in calendar order (日 first, 祝 last)."""
    order = list(Weekday)
    return [day.value for day in sorted(days, key=order.index)]


def format_closed_days(config: ClinicConfiguration) -> str:
    """
    Describe the closure sets for user-facing messages.

    Example: "日・祝、水の午後"
    """
    def _join(days: FrozenSet[Weekday]) -> str:
        return '・'.join(sorted_weekdays(days))

    parts: List[str] = []
    if config.closed_days_full_day:
        parts.append(_join(config.closed_days_full_day))
    if config.closed_days_morning_only:
        parts.append(f"{_join(config.closed_days_morning_only)}の午前")
    if config.closed_days_afternoon_only:
        parts.append(f"{_join(config.closed_days_afternoon_only)}の午後")
    return '、'.join(parts) if parts else 'なし'


class ClinicSettingsService:
    """
    Service for resolving clinic configuration per tenant handle.

    The cache is injected so TTL and clock are controlled by the caller; the
    application shares one instance across requests.
    """

    def __init__(self, store: TabularStore, cache: Optional[TTLCache[ClinicConfiguration]] = None):
        self.store = store
        self.cache: TTLCache[ClinicConfiguration] = cache if cache is not None else TTLCache(SETTINGS_CACHE_TTL_SECONDS)

    async def get_clinic_settings(self, handle: str) -> ClinicConfiguration:
        """
        Get the clinic configuration for a tenant.

        Args:
            handle: Tenant handle (spreadsheet ID)

        Returns:
            Cached or freshly parsed configuration. When the settings sheet
            cannot be read, the hard-coded fallback is returned and nothing is
            cached so the next call retries the sheet.
        """
        cached = self.cache.get(handle)
        if cached is not None:
            return cached

        try:
            rows = await self.store.read_range(handle, SETTINGS_RANGE)
        except SheetStoreError as e:
            logger.warning(f"Failed to read settings for {handle}, using defaults: {e}")
            return build_fallback_configuration()

        config = parse_clinic_configuration(rows_to_settings_map(rows))
        self.cache.set(handle, config)
        logger.debug(
            f"Loaded settings for {handle}: {config.start_time}-{config.end_time}, "
            f"{config.slot_duration_minutes}min slots"
        )
        return config

    def invalidate(self, handle: Optional[str] = None) -> None:
        """Drop the cached configuration for one tenant, or for all tenants."""
        self.cache.invalidate(handle)


def describe_clinic(config: ClinicConfiguration) -> str:
    """Multi-line clinic summary used by chat tools and reminder messages."""
    lines = [
        f"医院名: {config.clinic_name}",
        f"診療時間: {format_sheet_time(parse_time_string(config.start_time))}〜"
        f"{format_sheet_time(parse_time_string(config.end_time))}",
    ]
    if config.has_break:
        lines.append(
            f"昼休み: {format_sheet_time(parse_time_string(config.break_start))}〜"
            f"{format_sheet_time(parse_time_string(config.break_end))}"
        )
    lines.append(f"1枠: {config.slot_duration_minutes}分")
    lines.append(f"休診: {format_closed_days(config)}")
    if config.max_patients_per_slot > 1:
        lines.append(f"同時間帯予約可能数: {config.max_patients_per_slot}名")
    if config.offers_doctor_selection:
        lines.append(f"担当医: {'、'.join(config.doctor_list)}")
    if config.use_patient_card_number:
        lines.append("※再診の方は診察券番号をお伝えください")
    return '\n'.join(lines)
