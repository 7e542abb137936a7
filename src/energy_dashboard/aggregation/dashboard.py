"""
KPI block shown at the top of the dashboard.

Accuracy is the ``confidence_percentage`` stored on today's forecast (the most
recently created row that carries one), falling back to a fixed default.
"""

import logging
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from .common import as_int, between, on_day, round_half_up, total
from ..data.client import SupabaseClient
from ..data.fetchers import count_states, fetch_forecasts
from ..models.data_models import DashboardStats
from ..utils.concurrency import fetch_concurrently
from ..utils.config import Config
from ..utils.dates import today as current_day

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

WEEK_DAYS = 7


def week_over_week_change(current: float, previous: float) -> float:
    """Percentage change between two periods; 0 when the previous period is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def todays_accuracy(forecasts: pd.DataFrame, day: date, default: float) -> float:
    """Confidence stored on the latest-created forecast of ``day``, else ``default``."""
    rows = forecasts[on_day(forecasts['date'], day) & forecasts['confidence_percentage'].notna()]
    if rows.empty:
        return default
    
    rows = rows.assign(_position=range(len(rows)))
    rows = rows.sort_values(['created_at', '_position'], na_position='first', kind='mergesort')
    return float(rows['confidence_percentage'].iloc[-1])


def aggregate_dashboard_stats(forecasts: pd.DataFrame,
                              reference_day: date,
                              states: int = 0,
                              default_accuracy: Optional[float] = None) -> DashboardStats:
    """
    Compute the dashboard KPIs.
    
    Args:
        forecasts: Forecast rows covering at least the 14 days before
            ``reference_day`` and ``reference_day`` itself
        reference_day: Calendar "today"
        states: Number of states in the system
        default_accuracy: Accuracy used when today has no stored confidence
        
    Returns:
        DashboardStats with totals rounded to integers and percentages to one decimal
    """
    if default_accuracy is None:
        default_accuracy = Config.DEFAULT_ACCURACY
    
    yesterday = reference_day - timedelta(days=1)
    dates = forecasts['date']
    
    yesterday_total = total(forecasts, on_day(dates, yesterday))
    today_total = total(forecasts, on_day(dates, reference_day))
    
    current_week = total(forecasts, between(dates, yesterday - timedelta(days=WEEK_DAYS - 1), yesterday))
    previous_week = total(forecasts, between(dates,
                                             yesterday - timedelta(days=2 * WEEK_DAYS - 1),
                                             yesterday - timedelta(days=WEEK_DAYS)))
    
    accuracy = todays_accuracy(forecasts, reference_day, default_accuracy)
    
    return DashboardStats(
        total_consumption=as_int(yesterday_total),
        total_forecast=as_int(today_total),
        yesterday_forecast=as_int(yesterday_total),
        week_over_week_change=round_half_up(week_over_week_change(current_week, previous_week), 1),
        forecaster_accuracy=round_half_up(accuracy, 1),
        states=states,
    )


def get_dashboard_stats(client: SupabaseClient,
                        state_id: Optional[str] = None,
                        reference_day: Optional[date] = None,
                        default_accuracy: Optional[float] = None,
                        tz: Optional[str] = None) -> DashboardStats:
    """Fetch the two weeks before today plus today, and reduce them to KPIs."""
    reference_day = reference_day or current_day(tz)
    start = reference_day - timedelta(days=2 * WEEK_DAYS)
    
    rows = fetch_concurrently({
        'forecasts': lambda: fetch_forecasts(client, start, reference_day, state_id, tz=tz),
        'states': lambda: count_states(client),
    })
    
    stats = aggregate_dashboard_stats(rows['forecasts'], reference_day, rows['states'], default_accuracy)
    logger.info(f"Dashboard stats for {state_id or 'all states'} on {reference_day}: {stats}")
    return stats
