"""
Helpers shared by the aggregators.
"""

from datetime import date
from typing import Any, Optional

import numpy as np
import pandas as pd


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positives (2.5 -> 3), as the charts display them."""
    factor = 10 ** digits
    return float(np.floor(value * factor + 0.5) / factor)


def as_int(value: float) -> int:
    return int(round_half_up(value))


def optional_float(value: Any, digits: Optional[int] = None) -> Optional[float]:
    """Float of ``value``, or None when it is missing."""
    if value is None or pd.isna(value):
        return None
    value = float(value)
    return round_half_up(value, digits) if digits is not None else value


def on_day(dates: pd.Series, day: date) -> pd.Series:
    """Boolean mask of calendar dates equal to ``day``."""
    return dates.map(lambda value: isinstance(value, date) and value == day).astype(bool)


def between(dates: pd.Series, start: date, end: date) -> pd.Series:
    """Boolean mask of calendar dates in the inclusive range ``[start, end]``."""
    return dates.map(lambda value: isinstance(value, date) and start <= value <= end).astype(bool)


def total(data: pd.DataFrame, mask: pd.Series, column: str = 'predicted_consumption') -> float:
    """Sum of a column over masked rows; missing values contribute nothing."""
    return float(data.loc[mask, column].sum())


def with_valid_dates(data: pd.DataFrame, column: str = 'date') -> pd.DataFrame:
    return data[data[column].map(lambda value: isinstance(value, date)).astype(bool)]
