"""
Supervision number rendering.

Format: SSS[.T]/LHP/PM.00.02/JI-24/DD/MM_ROMAN/YYYY
- SSS: base sequence, zero-padded to 3 digits
- .T: tie-break index, omitted for the first request of a date
- LHP/PM.00.02/JI-24: fixed administrative codes
- DD/MM_ROMAN/YYYY: supervision date with the month as a Roman numeral
"""
from datetime import date, datetime
from typing import Union

from app.numbering.domain.errors import InvalidDate, InvalidMonth, OutOfRange

DOCUMENT_CODE = "LHP"
CLASSIFICATION_CODE = "PM.00.02"
UNIT_CODE = "JI-24"

MAX_BASE_SEQUENCE = 999

ROMAN_MONTHS = {
    1: "I", 2: "II", 3: "III", 4: "IV", 5: "V", 6: "VI",
    7: "VII", 8: "VIII", 9: "IX", 10: "X", 11: "XI", 12: "XII",
}


def to_roman_month(month: int) -> str:
    try:
        return ROMAN_MONTHS[month]
    except (KeyError, TypeError):
        raise InvalidMonth(f"Month must be between 1 and 12, got {month!r}") from None


def parse_supervision_date(value: Union[str, date]) -> date:
    """Accept a date, a datetime (its calendar day) or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"Supervision date must be a date, got {type(value).__name__}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDate(f"Invalid supervision date: {value!r}") from None


def format_number(base_sequence: int, tie_break_index: int, supervision_date: date) -> str:
    """
    Render the generated number for a resolved sequence position.

    Every part is validated before anything is rendered, so a failure
    never yields a partially formatted number.
    """
    if isinstance(supervision_date, datetime) or not isinstance(supervision_date, date):
        raise InvalidDate(
            f"Supervision date must be a date, got {type(supervision_date).__name__}"
        )
    if base_sequence < 1 or base_sequence > MAX_BASE_SEQUENCE:
        raise OutOfRange(
            f"Base sequence {base_sequence} does not fit the 3-digit number format"
        )
    if tie_break_index < 0:
        raise OutOfRange(f"Tie-break index cannot be negative, got {tie_break_index}")

    month_roman = to_roman_month(supervision_date.month)
    suffix = f".{tie_break_index}" if tie_break_index > 0 else ""

    return (
        f"{base_sequence:03d}{suffix}"
        f"/{DOCUMENT_CODE}/{CLASSIFICATION_CODE}/{UNIT_CODE}"
        f"/{supervision_date.day:02d}/{month_roman}/{supervision_date.year:04d}"
    )
