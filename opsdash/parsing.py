from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Optional

import pandas as pd


TRUTHY_TOKENS = frozenset({"true", "yes", "1"})
NA_TOKENS = frozenset({"nan", "nat", "none", "null", "<na>", "n/a"})
# pandas resolves these against the clock.
RELATIVE_DATE_TOKENS = frozenset({"now", "today"})
# Earliest year accepted from a feed cell.
MIN_YEAR = 1900

US_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$")


def clean_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def is_truthy(value: object) -> bool:
    return clean_text(value).lower() in TRUTHY_TOKENS


def _us_date(month: str, day: str, year: str) -> Optional[date]:
    mm, dd, yy = int(month), int(day), int(year)
    if yy < 100:
        yy += 2000
    try:
        return date(yy, mm, dd)
    except ValueError:
        return None


def _generic_date(text: str) -> Optional[date]:
    ts = pd.to_datetime(text, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def parse_calendar_date(value: object) -> Optional[date]:
    """Parse a loosely formatted date cell; ``None`` when it is not a real calendar date.

    ``M/D/YY`` and ``M-D-YYYY`` style values are always read month first;
    anything else is handed to the pandas parser.
    """
    if isinstance(value, datetime):
        return None if pd.isna(value) else value.date()
    if isinstance(value, date):
        return value
    text = clean_text(value)
    if not text or text.lower() in NA_TOKENS or text.lower() in RELATIVE_DATE_TOKENS:
        return None
    match = US_DATE_RE.match(text)
    parsed = _us_date(*match.groups()) if match else _generic_date(text)
    if parsed is not None and parsed.year < MIN_YEAR:
        return None
    return parsed


def _as_number(text: str) -> Optional[float]:
    try:
        out = float(text)
    except ValueError:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def parse_duration(value: object) -> Optional[float]:
    """Minutes from ``45``, ``MM:SS`` or ``H:MM:SS``; ``None`` for blank or garbled cells."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _as_number(str(value))
    text = clean_text(value)
    if not text:
        return None
    number = _as_number(text)
    if number is not None:
        return number

    parts = text.split(":")
    if len(parts) not in (2, 3):
        return None
    values = [_as_number(p.strip()) for p in parts]
    if any(v is None for v in values):
        return None
    if len(values) == 3:
        hours, minutes, seconds = values
        return hours * 60 + minutes + seconds / 60
    minutes, seconds = values
    return minutes + seconds / 60
