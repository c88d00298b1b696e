"""
Calendar-month helpers for YYYY-MM identifiers.

All window arithmetic is done on calendar months, never on day counts: the
difference between 2024-06 and 2024-05 is exactly one month regardless of which
day of June it is.
"""

import re
from datetime import date
from typing import Optional, Tuple

from referral_compass.services.exceptions import MalformedInput


YEAR_MONTH_PATTERN = re.compile(r"(\d{4})-(0[1-9]|1[0-2])")


def parse_year_month(value: object, field: str = "yearMonth") -> Tuple[int, int]:
    """
    Parse a YYYY-MM string into (year, month).

    Raises:
        MalformedInput: If value is not a string matching YYYY-MM with month 01-12.
    """
    if not isinstance(value, str):
        raise MalformedInput(
            f"{field} must be a YYYY-MM string, got {type(value).__name__}",
            field=field,
            value=value,
        )

    match = YEAR_MONTH_PATTERN.fullmatch(value)
    if match is None:
        raise MalformedInput(
            f"{field} '{value}' is not a valid YYYY-MM month",
            field=field,
            value=value,
        )

    return int(match.group(1)), int(match.group(2))


def month_index(value: str) -> int:
    """Absolute month number (year * 12 + zero-based month) for a YYYY-MM string."""
    year, month = parse_year_month(value)
    return year * 12 + (month - 1)


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def months_between(now: str, month: str) -> int:
    """
    Calendar-month offset of month relative to now.

    0 for the same month, positive for months in the past, negative for
    months after now.
    """
    return month_index(now) - month_index(month)


def in_trailing_window(now: str, month: str, window_months: int) -> bool:
    """True iff 0 <= months_between(now, month) < window_months."""
    offset = months_between(now, month)
    return 0 <= offset < window_months


def current_year_month(today: Optional[date] = None) -> str:
    """
    YYYY-MM for today's date.

    Only request handlers call this; the scoring engine always receives
    its reference month explicitly.
    """
    today = today or date.today()
    return format_year_month(today.year, today.month)


__all__ = [
    "YEAR_MONTH_PATTERN",
    "parse_year_month",
    "month_index",
    "format_year_month",
    "months_between",
    "in_trailing_window",
    "current_year_month",
]
