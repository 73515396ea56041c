# salescrm/data_management/date_utils.py
"""Date helpers shared by attendance, sales and the integrity checks."""

import calendar
from datetime import date, datetime
from typing import Any, List, Optional, Union

import pandas as pd

DateLike = Union[str, date, datetime]


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse a date / ISO timestamp string into a UTC Timestamp.

    Returns None for missing or unparseable values instead of raising.
    Naive values are taken as UTC so mixed inputs stay comparable.
    """
    if isinstance(value, (datetime, date)):
        value = value.isoformat()
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value.strip(), errors='coerce', utc=True)
    if pd.isna(ts):
        return None
    return ts


def _to_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return pd.Timestamp(value).to_pydatetime()


def format_date(value: DateLike) -> str:
    return _to_datetime(value).strftime('%Y-%m-%d')


def format_time(value: DateLike) -> str:
    return _to_datetime(value).strftime('%H:%M')


def format_date_time(value: DateLike) -> str:
    return _to_datetime(value).strftime('%b %d, %Y %H:%M')


def now_iso() -> str:
    return datetime.now().isoformat()


def today_str() -> str:
    return date.today().strftime('%Y-%m-%d')


def get_current_month() -> str:
    return date.today().strftime('%Y-%m')


def get_month_days(month_str: str) -> List[date]:
    """All calendar days of a 'YYYY-MM' month."""
    year, month = (int(part) for part in month_str.split('-'))
    last_day = calendar.monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, last_day + 1)]


def calculate_hours(check_in: DateLike, check_out: DateLike) -> Optional[float]:
    """Elapsed hours between two timestamps, None if either is unparseable."""
    start = parse_timestamp(check_in)
    end = parse_timestamp(check_out)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 3600


def is_current_day(value: DateLike) -> bool:
    return format_date(value) == today_str()


def is_weekend_day(value: DateLike) -> bool:
    return _to_datetime(value).weekday() >= 5
