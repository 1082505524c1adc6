"""
Billing period keys.

A period is stored as ``"{year}/{month}"`` with the month NOT zero-padded
("1402/7", never "1402/07"). Lookups compare these strings for equality,
so every key written to the ledger goes through ``normalize_period``.
"""
import datetime
from typing import Tuple, Union

from services.errors import MalformedPeriodKey

YearLike = Union[int, str]

# The exclusive end of a December or annual range must still be a valid datetime
MIN_YEAR = 1
MAX_YEAR = datetime.MAXYEAR - 1


def _as_year(year: YearLike) -> int:
    try:
        value = int(str(year).strip())
    except (TypeError, ValueError):
        raise MalformedPeriodKey(f"Invalid year: {year!r}")
    if not MIN_YEAR <= value <= MAX_YEAR:
        raise MalformedPeriodKey(f"Year out of range: {value}")
    return value


def _as_month(month) -> int:
    try:
        value = int(str(month).strip())
    except (TypeError, ValueError):
        raise MalformedPeriodKey(f"Invalid month: {month!r}")
    if not 1 <= value <= 12:
        raise MalformedPeriodKey(f"Month out of range: {value}")
    return value


def encode_period(year: YearLike, month) -> str:
    """Build the canonical key, e.g. ``encode_period(1402, 7) == "1402/7"``."""
    return f"{_as_year(year)}/{_as_month(month)}"


def parse_period(key: str) -> Tuple[int, int]:
    """Split a key on its first "/" and return ``(year, month)``."""
    if not isinstance(key, str) or "/" not in key:
        raise MalformedPeriodKey(f"Malformed period key: {key!r}")
    year_part, month_part = key.split("/", 1)
    if not year_part.strip().isdigit() or not month_part.strip().isdigit():
        raise MalformedPeriodKey(f"Malformed period key: {key!r}")
    return _as_year(year_part), _as_month(month_part)


def normalize_period(key: str) -> str:
    return encode_period(*parse_period(key))


def try_parse_period(key: str):
    """Like parse_period but returns None for keys that cannot be attributed."""
    try:
        return parse_period(key)
    except MalformedPeriodKey:
        return None


# --- DATE RANGES (half-open: start <= date < end) ---

def month_date_range(year: YearLike, month) -> Tuple[datetime.datetime, datetime.datetime]:
    y, m = _as_year(year), _as_month(month)
    start = datetime.datetime(y, m, 1)
    if m == 12:
        end = datetime.datetime(y + 1, 1, 1)
    else:
        end = datetime.datetime(y, m + 1, 1)
    return start, end


def year_date_range(year: YearLike) -> Tuple[datetime.datetime, datetime.datetime]:
    y = _as_year(year)
    return datetime.datetime(y, 1, 1), datetime.datetime(y + 1, 1, 1)
