"""
Regional totals for the bar chart.
"""

import logging
from datetime import date
from typing import List, Optional

import pandas as pd

from .common import as_int, on_day, with_valid_dates
from ..data.client import SupabaseClient
from ..data.fetchers import fetch_forecasts_on, fetch_latest_forecast_date
from ..models.data_models import RegionalConsumption

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def aggregate_regional_consumption(forecasts: pd.DataFrame,
                                   latest_date: Optional[date] = None) -> List[RegionalConsumption]:
    """
    Sum predicted consumption per region on the most recent forecast date.
    
    Args:
        forecasts: Forecast rows with a joined ``region`` column
        latest_date: Date to aggregate; defaults to the latest date in ``forecasts``
        
    Returns:
        One entry per region with at least one contributing row, ordered by name
    """
    dated = with_valid_dates(forecasts)
    if dated.empty:
        return []
    
    if latest_date is None:
        latest_date = max(dated['date'])
    
    rows = dated[on_day(dated['date'], latest_date) & dated['region'].notna()]
    if rows.empty:
        return []
    
    totals = rows.groupby('region', sort=True)['predicted_consumption'].sum(min_count=1).dropna()
    
    result = [RegionalConsumption(name=str(region), total_consumption=as_int(value))
              for region, value in totals.items()]
    logger.info(f"Aggregated {len(rows)} forecasts on {latest_date} into {len(result)} regions")
    return result


def get_regional_consumption(client: SupabaseClient, tz: Optional[str] = None) -> List[RegionalConsumption]:
    """Regional totals for the latest date that actually has forecast data."""
    latest_date = fetch_latest_forecast_date(client, tz=tz)
    if latest_date is None:
        return []
    
    forecasts = fetch_forecasts_on(client, latest_date, tz=tz)
    return aggregate_regional_consumption(forecasts, latest_date)
