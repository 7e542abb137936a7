"""
Calendar-date handling for the dashboard.

Every date that crosses the data-source boundary is converted here into a
plain ``datetime.date`` in one reference timezone. Aggregators only ever
compare these values, never raw strings or timestamps.
"""

from datetime import date, datetime, timedelta
from typing import Any, Optional, Tuple

import pandas as pd

from .config import Config


def reference_timezone(tz: Optional[str] = None) -> str:
    """Return the timezone used for calendar dates."""
    return tz or Config.DASHBOARD_TIMEZONE


def to_calendar_date(value: Any, tz: Optional[str] = None) -> Optional[date]:
    """
    Normalize a date-like value to a calendar day in the reference timezone.
    
    Date-only values and naive timestamps are taken to already be expressed in
    the reference timezone. Offset-aware values are converted first, so
    ``2024-01-01T20:00:00Z`` and ``2024-01-02`` name the same day in IST.
    
    Args:
        value: String, date, datetime, pandas Timestamp or None
        tz: Reference timezone name (defaults to ``Config.DASHBOARD_TIMEZONE``)
        
    Returns:
        The calendar date, or None when the value is missing or unparseable
    """
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    
    try:
        timestamp = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    
    if pd.isna(timestamp):
        return None
    
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert(reference_timezone(tz))
    
    return timestamp.date()


def normalize_date_column(data: pd.DataFrame, column: str, tz: Optional[str] = None) -> pd.DataFrame:
    """Replace a column of raw date values with calendar dates (None when invalid)."""
    if column in data.columns:
        data[column] = data[column].map(lambda value: to_calendar_date(value, tz)).astype(object)
    return data


def normalize_timestamp_column(data: pd.DataFrame, column: str) -> pd.DataFrame:
    """Parse a column of creation timestamps to UTC; unparseable values become NaT."""
    if column in data.columns:
        data[column] = pd.to_datetime(data[column], utc=True, errors='coerce', format='mixed')
    return data


def today(tz: Optional[str] = None) -> date:
    """Current calendar date in the reference timezone."""
    return pd.Timestamp.now(tz=reference_timezone(tz)).date()


def trailing_window(reference_day: date, days: int, include_reference: bool = False) -> Tuple[date, date]:
    """
    Inclusive ``(start, end)`` window of ``days`` calendar days.
    
    The window ends on ``reference_day`` when ``include_reference`` is set and
    on the day before it otherwise.
    """
    end = reference_day if include_reference else reference_day - timedelta(days=1)
    return end - timedelta(days=days - 1), end
