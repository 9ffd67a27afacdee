"""Date normalization for spreadsheet cells.

Contract sheets mix several US-style text layouts, spreadsheet serial numbers
and native date objects in the same column. Everything here is total: bad
input yields ``None`` (or a neutral default) and, for unparseable text, a
warning in the log. Nothing raises.
"""

from __future__ import annotations

import calendar
import logging
import math
import numbers
import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100
TWO_DIGIT_YEAR_PIVOT = 30
FISCAL_YEAR_START_MONTH = 10

SPREADSHEET_EPOCH = date(1900, 1, 1)
UNIX_EPOCH = date(1970, 1, 1)
DAYS_BETWEEN_EPOCHS = (UNIX_EPOCH - SPREADSHEET_EPOCH).days
# One for the one-based day count, one for the phantom 1900-02-29.
SERIAL_CORRECTION = 2

NA_TOKENS = {"", "n/a"}

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

Components = Tuple[int, int, int]


def _expand_two_digit_year(value: int) -> int:
    return 2000 + value if value <= TWO_DIGIT_YEAR_PIVOT else 1900 + value


# (name, pattern, extractor -> (year, month, day)); order is priority.
DATE_PATTERNS: List[Tuple[str, Pattern[str], Callable[["re.Match[str]"], Components]]] = [
    (
        "MM/DD/YYYY",
        re.compile(r"^([0-9]{1,2})[/-]([0-9]{1,2})[/-]([0-9]{4})$"),
        lambda m: (int(m.group(3)), int(m.group(1)), int(m.group(2))),
    ),
    (
        "YYYY-MM-DD",
        re.compile(r"^([0-9]{4})[/-]([0-9]{1,2})[/-]([0-9]{1,2})$"),
        lambda m: (int(m.group(1)), int(m.group(2)), int(m.group(3))),
    ),
    (
        "MM/DD/YY",
        re.compile(r"^([0-9]{1,2})[/-]([0-9]{1,2})[/-]([0-9]{2})$"),
        lambda m: (_expand_two_digit_year(int(m.group(3))), int(m.group(1)), int(m.group(2))),
    ),
]

# Text the ordered patterns own outright; the free-text fallback would
# otherwise happily swap day and month on these.
_NUMERIC_DATE_RE = re.compile(r"^[0-9]{1,4}[/-][0-9]{1,2}[/-][0-9]{1,4}$")
_BARE_NUMBER_RE = re.compile(r"^[+-]?[0-9]+(\.[0-9]+)?$")
# Leading N/N/N group of longer text ("13.12.2024 10:00"); the generic parser
# must agree with month-first (or year-first) order on it.
_LEADING_NUMERIC_RE = re.compile(r"^([0-9]{1,4})[/.-]([0-9]{1,2})[/.-]([0-9]{1,4})(?![0-9])")
# Keywords pandas resolves against the clock.
RELATIVE_DATE_WORDS = {"today", "now"}


@dataclass(frozen=True)
class DateValidationResult:
    is_valid: bool
    date: Optional[date] = None
    error: Optional[str] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "date": self.date.isoformat() if self.date is not None else None,
            "error": self.error,
            "warning": self.warning,
        }


def is_missing(value: Any) -> bool:
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def is_valid_date_components(year: Any, month: Any, day: Any) -> bool:
    try:
        year, month, day = int(year), int(month), int(day)
    except (TypeError, ValueError, OverflowError):
        return False
    if year < MIN_YEAR or year > MAX_YEAR:
        return False
    if month < 1 or month > 12:
        return False
    if day < 1 or day > 31:
        return False
    return day <= calendar.monthrange(year, month)[1]


def parse_excel_serial(serial: Any) -> Optional[date]:
    """Convert a spreadsheet serial day number (1 == 1900-01-01) to a date.

    The spreadsheet numbering counts a 1900-02-29 that never existed, so the
    offset from the Unix epoch carries a fixed two day correction. Fractions
    are a time of day and are dropped.
    """
    if isinstance(serial, bool) or not isinstance(serial, numbers.Real):
        return None
    try:
        value = float(serial)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    target_days = value - DAYS_BETWEEN_EPOCHS - SERIAL_CORRECTION
    try:
        return UNIX_EPOCH + timedelta(days=math.floor(target_days))
    except (OverflowError, ValueError):
        return None


def _match_patterns(text: str) -> Optional[date]:
    for _name, pattern, extract in DATE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        year, month, day = extract(match)
        if is_valid_date_components(year, month, day):
            return date(year, month, day)
    return None


def _keeps_field_order(text: str, parsed: pd.Timestamp) -> bool:
    match = _LEADING_NUMERIC_RE.match(text)
    if not match:
        return True
    first, second, third = (int(g) for g in match.groups())
    if len(match.group(1)) == 4:
        return (parsed.year, parsed.month, parsed.day) == (first, second, third)
    return (parsed.month, parsed.day) == (first, second)


def _parse_free_text(text: str) -> Optional[date]:
    if _NUMERIC_DATE_RE.match(text) or _BARE_NUMBER_RE.match(text):
        return None
    if text.lower() in RELATIVE_DATE_WORDS:
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce", dayfirst=False)
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    if not _keeps_field_order(text, parsed):
        return None
    if not is_valid_date_components(parsed.year, parsed.month, parsed.day):
        return None
    return date(parsed.year, parsed.month, parsed.day)


def parse_date(value: Any) -> Optional[date]:
    """Parse a raw cell into a calendar date, or ``None``.

    Text is tried as MM/DD/YYYY, then YYYY-MM-DD, then MM/DD/YY, each match
    re-validated before it is accepted, and only then handed to a generic
    parser. Numbers are spreadsheet serials.
    """
    if is_missing(value):
        return None
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
        if value is pd.NaT:
            return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return parse_excel_serial(value)

    try:
        text = str(value).strip()
    except Exception:
        logger.warning("Unable to parse date from %s value", type(value).__name__)
        return None
    if text.lower() in NA_TOKENS:
        return None

    parsed = _match_patterns(text)
    if parsed is None:
        parsed = _parse_free_text(text)
    if parsed is None:
        logger.warning('Unable to parse date: "%s"', text)
    return parsed


def _as_datetime(value: Any) -> Optional[datetime]:
    if is_missing(value):
        return None
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
        if value is pd.NaT:
            return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return None


def _as_date(value: Any) -> Optional[date]:
    dt = _as_datetime(value)
    return dt.date() if dt is not None else None


def format_date(value: Any, mode: str = "short") -> str:
    d = _as_date(value)
    if d is None:
        return ""
    if mode == "long":
        return f"{MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"
    if mode == "iso":
        return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
    if mode == "custom":
        return f"{d.month:02d}/{d.day:02d}/{d.year}"
    return f"{d.month}/{d.day}/{d.year}"


def days_between(start: Any, end: Any) -> int:
    """Whole days from ``start`` to ``end``, rounded up; 0 if either is invalid."""
    a = _as_datetime(start)
    b = _as_datetime(end)
    if a is None or b is None:
        return 0
    delta = b - a
    return delta.days + (1 if (delta.seconds or delta.microseconds) else 0)


def days_remaining(end: Any, *, today: Optional[date] = None) -> int:
    end_day = _as_date(end)
    if end_day is None:
        return 0
    return days_between(today or date.today(), end_day)


def is_date_in_range(value: Any, start: Any, end: Any) -> bool:
    d = _as_datetime(value)
    lo = _as_datetime(start)
    hi = _as_datetime(end)
    if d is None or lo is None or hi is None:
        return False
    return lo <= d <= hi


def is_overdue(value: Any, *, today: Optional[date] = None) -> bool:
    d = _as_datetime(value)
    if d is None:
        return False
    end_of_day = datetime.combine(today or date.today(), time.max)
    return d < end_of_day


def is_approaching(value: Any, threshold_days: int = 30, *, today: Optional[date] = None) -> bool:
    if _as_datetime(value) is None:
        return False
    remaining = days_remaining(value, today=today)
    return 0 <= remaining <= threshold_days


def fiscal_year(value: Any) -> Optional[int]:
    """Fiscal year starting October 1: Oct-Dec belong to the next year."""
    d = _as_date(value)
    if d is None:
        return None
    return d.year + 1 if d.month >= FISCAL_YEAR_START_MONTH else d.year


def validate_date(value: Any, field_name: str = "date", *, today: Optional[date] = None) -> DateValidationResult:
    if is_missing(value):
        return DateValidationResult(is_valid=False, error=f"{field_name} is empty or null")

    parsed = parse_date(value)
    if parsed is None:
        return DateValidationResult(is_valid=False, error=f'{field_name} could not be parsed: "{value}"')

    current_year = (today or date.today()).year
    warning = None
    if parsed.year < 1990:
        warning = f"{field_name} is unusually old: {parsed.year}"
    elif parsed.year > current_year + 10:
        warning = f"{field_name} is far in the future: {parsed.year}"
    return DateValidationResult(is_valid=True, date=parsed, warning=warning)


def date_sort_key(value: Any) -> int:
    """Epoch milliseconds of the parsed calendar day; unparseable sorts as 0."""
    d = parse_date(value)
    if d is None:
        return 0
    return calendar.timegm(d.timetuple()) * 1000
