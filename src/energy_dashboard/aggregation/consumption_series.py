"""
Forecast time series: the consumption line chart, per-state histories and
future forecasts.

Several forecast rows may exist for one state and day. The row with the
latest ``created_at`` wins; on equal (or missing) timestamps the row that
comes later in the input wins.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

import pandas as pd

from .common import optional_float, with_valid_dates
from ..data.client import SupabaseClient
from ..data.fetchers import fetch_forecasts, fetch_future_forecasts
from ..models.data_models import (
    ConsumptionEntry, ForecastPoint, FutureForecast, StateConsumptionSeries
)
from ..utils.dates import today as current_day

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 30


def latest_per_state_and_date(forecasts: pd.DataFrame) -> pd.DataFrame:
    """Keep one forecast row per ``(state_id, date)``: the last one written."""
    data = with_valid_dates(forecasts)
    if data.empty:
        return data
    
    data = data.assign(_position=range(len(data)))
    data = data.sort_values(['created_at', '_position'], na_position='first', kind='mergesort')
    data = data.drop_duplicates(subset=['state_id', 'date'], keep='last')
    return data.sort_values(['date', '_position'], kind='mergesort').drop(columns='_position')


def aggregate_forecast_series(forecasts: pd.DataFrame) -> List[ForecastPoint]:
    """Per-date totals of the latest forecasts, ordered by date."""
    latest = latest_per_state_and_date(forecasts)
    if latest.empty:
        return []
    
    columns = ['predicted_consumption', 'confidence_interval_lower', 'confidence_interval_upper']
    daily = latest.groupby('date', sort=True)[columns].sum()
    
    return [
        ForecastPoint(
            date=day,
            predicted_consumption=float(row['predicted_consumption']),
            confidence_interval_lower=float(row['confidence_interval_lower']),
            confidence_interval_upper=float(row['confidence_interval_upper']),
        )
        for day, row in daily.iterrows()
    ]


def aggregate_state_consumption(forecasts: pd.DataFrame) -> List[StateConsumptionSeries]:
    """Latest forecasts grouped per state, states ordered by name."""
    latest = latest_per_state_and_date(forecasts)
    latest = latest[latest['state_id'].notna()] if not latest.empty else latest
    
    series = {}
    for row in latest.itertuples(index=False):
        if row.state_id not in series:
            series[row.state_id] = StateConsumptionSeries(
                state=row.state_name or row.state_id,
                region=row.region,
                state_id=row.state_id,
            )
        created_at = None if pd.isna(row.created_at) else row.created_at.to_pydatetime()
        series[row.state_id].data.append(ConsumptionEntry(
            date=row.date,
            forecast=optional_float(row.predicted_consumption),
            forecast_created_at=created_at,
        ))
    
    return sorted(series.values(), key=lambda s: s.state)


def aggregate_future_forecasts(rows: pd.DataFrame) -> List[FutureForecast]:
    rows = with_valid_dates(rows, 'forecast_date')
    return [
        FutureForecast(forecast_date=day, predicted_consumption=optional_float(value), state_id=state_id)
        for day, value, state_id in sorted(
            zip(rows['forecast_date'], rows['predicted_consumption'], rows['state_id']),
            key=lambda item: item[0],
        )
    ]


def get_forecast_consumption(client: SupabaseClient,
                             state_id: Optional[str] = None,
                             reference_day: Optional[date] = None,
                             tz: Optional[str] = None) -> List[ForecastPoint]:
    """Forecast series from 30 days ago onward, future dates included."""
    start = (reference_day or current_day(tz)) - timedelta(days=LOOKBACK_DAYS)
    points = aggregate_forecast_series(fetch_forecasts(client, start=start, state_id=state_id, tz=tz))
    logger.info(f"Forecast series for {state_id or 'all states'}: {len(points)} days")
    return points


def get_state_consumption(client: SupabaseClient,
                          state_id: Optional[str] = None,
                          reference_day: Optional[date] = None,
                          tz: Optional[str] = None) -> List[StateConsumptionSeries]:
    start = (reference_day or current_day(tz)) - timedelta(days=LOOKBACK_DAYS)
    return aggregate_state_consumption(fetch_forecasts(client, start=start, state_id=state_id, tz=tz))


def get_future_forecasts(client: SupabaseClient,
                         state_id: Optional[str] = None,
                         reference_day: Optional[date] = None,
                         tz: Optional[str] = None) -> List[FutureForecast]:
    """Stored forecasts for today and later."""
    start = reference_day or current_day(tz)
    return aggregate_future_forecasts(fetch_future_forecasts(client, start, state_id, tz=tz))
