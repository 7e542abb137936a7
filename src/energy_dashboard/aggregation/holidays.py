"""
Holiday versus normal-day consumption comparison.
"""

import logging
from typing import List, Optional, Set, Tuple

import pandas as pd

from .common import as_int
from ..data.client import SupabaseClient
from ..data.fetchers import fetch_forecasts, fetch_holidays
from ..models.data_models import HolidayComparison
from ..utils.concurrency import fetch_concurrently

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HOLIDAY = 'Holiday'
NORMAL_DAY = 'Normal Day'


def _holiday_keys(holidays: pd.DataFrame) -> Tuple[Set, Set]:
    """National holiday dates and ``(state_id, date)`` pairs of state holidays."""
    national, regional = set(), set()
    for day, flag, state_id in zip(holidays['date'], holidays['is_holiday'], holidays['state_id']):
        if day is None or not (pd.notna(flag) and bool(flag)):
            continue
        if state_id is None or pd.isna(state_id):
            national.add(day)
        else:
            regional.add((state_id, day))
    return national, regional


def holiday_mask(forecasts: pd.DataFrame, holidays: pd.DataFrame) -> pd.Series:
    """True for forecast rows dated on a holiday that applies to the row's state."""
    national, regional = _holiday_keys(holidays)
    flags = [day in national or (state_id, day) in regional
             for day, state_id in zip(forecasts['date'], forecasts['state_id'])]
    return pd.Series(flags, index=forecasts.index, dtype=bool)


def _summary(name: str, values: pd.Series) -> HolidayComparison:
    mean = values.mean()
    return HolidayComparison(name=name, consumption=0 if pd.isna(mean) else as_int(mean), count=len(values))


def aggregate_holiday_comparison(forecasts: pd.DataFrame, holidays: pd.DataFrame) -> List[HolidayComparison]:
    """
    Partition forecast rows into holiday and normal days.
    
    Every row lands in exactly one bucket and is counted there. The mean
    divides only by rows that carry a consumption value; an empty bucket
    reports mean 0 and count 0.
    
    Returns:
        ``[Holiday, Normal Day]`` summaries
    """
    mask = holiday_mask(forecasts, holidays)
    consumption = forecasts['predicted_consumption']
    
    result = [
        _summary(HOLIDAY, consumption[mask]),
        _summary(NORMAL_DAY, consumption[~mask]),
    ]
    logger.info(f"Holiday comparison over {len(forecasts)} forecasts: "
                f"{result[0].count} holiday, {result[1].count} normal")
    return result


def get_holiday_comparison(client: SupabaseClient,
                           state_id: Optional[str] = None,
                           tz: Optional[str] = None) -> List[HolidayComparison]:
    """Holiday comparison over every forecast row, optionally for one state."""
    rows = fetch_concurrently({
        'holidays': lambda: fetch_holidays(client, tz=tz),
        'forecasts': lambda: fetch_forecasts(client, state_id=state_id, tz=tz),
    })
    return aggregate_holiday_comparison(rows['forecasts'], rows['holidays'])
