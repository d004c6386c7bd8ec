"""
Sanitizers for values written to the spreadsheet.

Cells are written with USER_ENTERED, so a value starting with "=" would be
evaluated as a formula. Patient-supplied text goes through sanitize_for_sheet
before it is appended.
"""

import re

# Leading characters the spreadsheet interprets as a formula
_FORMULA_PREFIX = re.compile(r'^[=@+\-]')

# Replies that mean "nothing to enter" for optional fields
NONE_EQUIVALENT_VALUES = frozenset({
    'なし', '無し', 'ナシ', '特になし', '特にない', '特にありません',
    'ない', 'ありません', 'なし。', '-', '',
})


def sanitize_for_sheet(value: str) -> str:
    """Trim and neutralize a leading formula character with a quote prefix."""
    if not value:
        return ''
    trimmed = value.strip()
    if _FORMULA_PREFIX.match(trimmed):
        return f"'{trimmed}"
    return trimmed


def normalize_optional_value(value: str) -> str:
    """
    Map "none" replies to an empty string.

    Example: "特になし" -> "", " 山田先生 " -> "山田先生"
    """
    if not value:
        return ''
    trimmed = value.strip()
    if trimmed.lower() in NONE_EQUIVALENT_VALUES:
        return ''
    return trimmed
