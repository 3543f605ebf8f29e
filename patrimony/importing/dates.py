from __future__ import annotations

import logging
import math
import re
import warnings
from datetime import date, timedelta

import pandas as pd

"""Lenient acquisition-date normalization.

Spreadsheets and hand-written CSV files carry dates in many shapes. Every
value is turned into canonical `YYYY-MM-DD`; when nothing matches, today's
date is used so the row is still imported. The resolution order is:

1. numeric text -> spreadsheet serial number (1900 date system)
2. D/M/YYYY or D/M/YY
3. dash-delimited (length <= 10): YYYY-M-D, or D-M-YY[YY]
4. generic parsing (day first), then today's date
"""

__all__ = [
    "normalize_date",
    "decode_spreadsheet_serial",
    "expand_two_digit_year",
    "is_numeric_text",
    "TWO_DIGIT_YEAR_PIVOT",
]

logger = logging.getLogger(__name__)

# 2-digit years above the pivot are 19YY, the rest 20YY (so 50 -> 2050, 51 -> 1951)
TWO_DIGIT_YEAR_PIVOT = 50

# 1900 date system: serial 1 = 1900-01-01, 2958465 = 9999-12-31
MIN_SERIAL = 1
MAX_SERIAL = 2958465
_PHANTOM_LEAP_DAY = 60  # 1900-02-29, kept for spreadsheet compatibility

_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})$")
_ISO_DASH_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DMY_DASH_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})$")


def is_numeric_text(text: str) -> bool:
    """True when `text` (stripped) parses as a finite number."""
    return _as_number(text) is not None


def _as_number(text: str) -> float | None:
    stripped = text.strip()
    if not stripped:
        return None
    try:
        value = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def expand_two_digit_year(year: int) -> int:
    """Expand a 2-digit year with the pivot rule; other years pass through."""
    if year >= 100:
        return year
    return 1900 + year if year > TWO_DIGIT_YEAR_PIVOT else 2000 + year


def decode_spreadsheet_serial(serial: float) -> tuple[int, int, int]:
    """Decode a spreadsheet serial number into (year, month, day).

    The time-of-day fraction is dropped. Serial 60 decodes to the non-existent
    1900-02-29 like spreadsheet applications do.

    Raises:
        ValueError: serial outside MIN_SERIAL..MAX_SERIAL
    """
    days = int(math.floor(serial))
    if days < MIN_SERIAL or days > MAX_SERIAL:
        raise ValueError(f"spreadsheet serial out of range: {serial}")
    if days == _PHANTOM_LEAP_DAY:
        return (1900, 2, 29)
    if days < _PHANTOM_LEAP_DAY:
        d = date(1899, 12, 31) + timedelta(days=days)
    else:
        d = date(1899, 12, 30) + timedelta(days=days)
    return (d.year, d.month, d.day)


def _format(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def _valid_calendar_date(year: int, month: int, day: int) -> str | None:
    try:
        date(year, month, day)
    except ValueError:
        return None
    return _format(year, month, day)


def _from_serial(text: str) -> str | None:
    value = _as_number(text)
    if value is None:
        return None
    try:
        return _format(*decode_spreadsheet_serial(value))
    except ValueError:
        return None


def _from_slashes(text: str) -> str | None:
    m = _SLASH_RE.match(text)
    if m is None:
        return None
    day, month, year = (int(g) for g in m.groups())
    return _valid_calendar_date(expand_two_digit_year(year), month, day)


def _from_dashes(text: str) -> str | None:
    if "-" not in text or len(text) > 10:
        return None
    m = _ISO_DASH_RE.match(text)
    if m is not None:
        year, month, day = (int(g) for g in m.groups())
        return _valid_calendar_date(year, month, day)
    m = _DMY_DASH_RE.match(text)
    if m is not None:
        day, month, year = (int(g) for g in m.groups())
        return _valid_calendar_date(expand_two_digit_year(year), month, day)
    return None


def _from_generic(text: str) -> str | None:
    if not text:
        return None
    with warnings.catch_warnings():
        # "could not infer format" noise from pandas
        warnings.simplefilter("ignore")
        try:
            ts = pd.to_datetime(text, dayfirst=True, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if ts is None or pd.isna(ts):
        return None
    return _format(ts.year, ts.month, ts.day)


def normalize_date(raw: object, *, today: date | None = None) -> str:
    """Normalize a date representation to `YYYY-MM-DD`. Never raises.

    Parameters
    ----------
    raw: cell text (other objects are converted with str())
    today: date used as the last-resort fallback (default: date.today())
    """
    text = "" if raw is None else str(raw).strip()
    for step in (_from_serial, _from_slashes, _from_dashes, _from_generic):
        result = step(text)
        if result is not None:
            return result
    fallback = (today or date.today()).isoformat()
    logger.debug("unparseable date %r -> %s", text, fallback)
    return fallback
