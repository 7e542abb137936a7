"""
Row fetchers: one filtered, date ordered range query per table.

Each fetcher returns a DataFrame whose date columns already hold calendar
dates in the reference timezone, whose numeric columns are floats with NaN
for missing values and whose other columns hold None for missing values. Query failures propagate as ``DataSourceError``; an empty
frame (with the expected columns) is a valid answer.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .client import Filter, SupabaseClient
from ..models.data_models import (
    ForecastRecord, HolidayRecord, ModelMetric, State, WeatherRecord, column_names
)
from ..utils.dates import normalize_date_column, normalize_timestamp_column
from ..utils.exceptions import DataValidationError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FORECAST_COLUMNS = column_names(ForecastRecord)
WEATHER_COLUMNS = column_names(WeatherRecord)
HOLIDAY_COLUMNS = column_names(HolidayRecord)
METRIC_COLUMNS = column_names(ModelMetric)
STATE_COLUMNS = column_names(State)
FUTURE_FORECAST_COLUMNS = ['forecast_date', 'predicted_consumption', 'state_id']

# Joined state fields are flattened into these columns
STATE_JOIN_COLUMNS = {'name': 'state_name', 'region': 'region'}

NUMERIC_COLUMNS = {
    'predicted_consumption', 'confidence_interval_lower', 'confidence_interval_upper',
    'confidence_percentage', 'temperature', 'humidity', 'wind_speed', 'rainfall',
    'rmse', 'mae', 'accuracy_percentage', 'population', 'peak_demand', 'total_capacity',
}


def _flatten_state(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    flattened = []
    for row in rows:
        row = dict(row)
        state = row.pop('state', None) or {}
        for source, target in STATE_JOIN_COLUMNS.items():
            row[target] = state.get(source)
        flattened.append(row)
    return flattened


def rows_to_frame(rows: List[Dict[str, Any]],
                  columns: Sequence[str],
                  date_columns: Sequence[str] = ('date',),
                  tz: Optional[str] = None) -> pd.DataFrame:
    """
    Convert raw rows into a typed DataFrame.
    
    Args:
        rows: Row dictionaries as returned by the client
        columns: Columns the frame must carry even when ``rows`` is empty
        date_columns: Columns to normalize to calendar dates
        tz: Reference timezone for the date normalization
        
    Returns:
        DataFrame with a positional index matching the input order
    """
    data = pd.DataFrame(rows)
    for column in columns:
        if column not in data.columns:
            data[column] = None
    data = data.reset_index(drop=True)
    
    for column in data.columns:
        if column in NUMERIC_COLUMNS:
            data[column] = pd.to_numeric(data[column], errors='coerce')
        elif column not in date_columns and column != 'created_at':
            # Text and flag columns keep None for missing values, never NaN
            data[column] = data[column].astype(object).where(data[column].notna(), None)
    for column in date_columns:
        normalize_date_column(data, column, tz)
    normalize_timestamp_column(data, 'created_at')
    
    return data


def fetch_rows(client: SupabaseClient,
               table: str,
               columns: str,
               start: Optional[date] = None,
               end: Optional[date] = None,
               state_id: Optional[str] = None,
               date_column: str = 'date',
               end_inclusive: bool = True,
               filters: Optional[Sequence[Filter]] = None) -> List[Dict[str, Any]]:
    """
    Issue one range query ordered by ``date_column`` ascending.
    
    Args:
        client: Data source client
        table: Table name
        columns: PostgREST select list
        start: Inclusive lower date bound
        end: Upper date bound
        state_id: Optional state filter
        date_column: Column the range applies to
        end_inclusive: Whether ``end`` itself is included
        filters: Extra filters appended to the range
        
    Returns:
        Raw row dictionaries
    """
    if start is not None and end is not None and start > end:
        raise DataValidationError(f"Invalid date range for {table}: {start} > {end}")
    
    query_filters: List[Filter] = []
    if start is not None:
        query_filters.append((date_column, 'gte', start))
    if end is not None:
        query_filters.append((date_column, 'lte' if end_inclusive else 'lt', end))
    if state_id:
        query_filters.append(('state_id', 'eq', state_id))
    query_filters.extend(filters or [])
    
    rows = client.select(table, columns, filters=query_filters, order=[(date_column, True)])
    logger.info(f"Fetched {len(rows)} rows from {table}")
    return rows


def fetch_forecasts(client: SupabaseClient,
                    start: Optional[date] = None,
                    end: Optional[date] = None,
                    state_id: Optional[str] = None,
                    end_inclusive: bool = True,
                    tz: Optional[str] = None) -> pd.DataFrame:
    """Forecast rows with the owning state's name and region joined in."""
    select = ','.join(FORECAST_COLUMNS) + ',state:state_id(name,region)'
    rows = fetch_rows(client, 'forecasts', select, start, end, state_id, end_inclusive=end_inclusive)
    return rows_to_frame(_flatten_state(rows), FORECAST_COLUMNS + list(STATE_JOIN_COLUMNS.values()), tz=tz)


def fetch_forecasts_on(client: SupabaseClient,
                       day: date,
                       state_id: Optional[str] = None,
                       tz: Optional[str] = None) -> pd.DataFrame:
    """Forecast rows dated exactly ``day``."""
    return fetch_forecasts(client, day, day, state_id, tz=tz)


def fetch_latest_forecast_date(client: SupabaseClient, tz: Optional[str] = None) -> Optional[date]:
    """Most recent date present in the forecasts table, or None when it is empty."""
    rows = client.select('forecasts', 'date', order=[('date', False)], limit=1)
    if not rows:
        return None
    return rows_to_frame(rows, ['date'], tz=tz)['date'].iloc[0]


def fetch_weather(client: SupabaseClient,
                  start: date,
                  end: date,
                  state_id: Optional[str] = None,
                  tz: Optional[str] = None) -> pd.DataFrame:
    """Weather readings in the inclusive window ``[start, end]``."""
    rows = fetch_rows(client, 'weather_data', ','.join(WEATHER_COLUMNS), start, end, state_id)
    return rows_to_frame(rows, WEATHER_COLUMNS, tz=tz)


def fetch_holidays(client: SupabaseClient,
                   only_holidays: bool = True,
                   tz: Optional[str] = None) -> pd.DataFrame:
    """Holiday calendar rows, by default only those flagged ``is_holiday``."""
    filters = [('is_holiday', 'eq', True)] if only_holidays else None
    rows = fetch_rows(client, 'holidays', ','.join(HOLIDAY_COLUMNS), filters=filters)
    return rows_to_frame(rows, HOLIDAY_COLUMNS, tz=tz)


def fetch_model_metrics(client: SupabaseClient,
                        state_id: Optional[str] = None,
                        tz: Optional[str] = None) -> pd.DataFrame:
    """Model metrics ordered by accuracy, best first, with the state name joined in."""
    select = ','.join(METRIC_COLUMNS) + ',state:state_id(name,region)'
    filters = [('state_id', 'eq', state_id)] if state_id else None
    rows = client.select('model_metrics', select, filters=filters,
                         order=[('accuracy_percentage', False)])
    logger.info(f"Fetched {len(rows)} rows from model_metrics")
    return rows_to_frame(_flatten_state(rows), METRIC_COLUMNS + list(STATE_JOIN_COLUMNS.values()),
                         date_columns=('training_date',), tz=tz)


def fetch_states(client: SupabaseClient) -> pd.DataFrame:
    """All states ordered by name."""
    rows = client.select('states', ','.join(STATE_COLUMNS), order=[('name', True)])
    return rows_to_frame(rows, STATE_COLUMNS, date_columns=())


def count_states(client: SupabaseClient) -> int:
    return client.count('states')


def fetch_future_forecasts(client: SupabaseClient,
                           start: date,
                           state_id: Optional[str] = None,
                           tz: Optional[str] = None) -> pd.DataFrame:
    """Rows of ``future_forecasts`` dated ``start`` or later."""
    rows = fetch_rows(client, 'future_forecasts', ','.join(FUTURE_FORECAST_COLUMNS),
                      start=start, state_id=state_id, date_column='forecast_date')
    return rows_to_frame(rows, FUTURE_FORECAST_COLUMNS, date_columns=('forecast_date',), tz=tz)
