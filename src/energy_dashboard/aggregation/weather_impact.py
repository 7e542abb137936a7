"""
Daily weather versus consumption series for the scatter and area charts.
"""

import logging
from datetime import date
from typing import List, Optional

import pandas as pd

from .common import as_int, optional_float, with_valid_dates
from ..data.client import SupabaseClient
from ..data.fetchers import fetch_forecasts, fetch_weather
from ..models.data_models import WeatherImpactPoint
from ..utils.concurrency import fetch_concurrently
from ..utils.dates import today as current_day, trailing_window
from ..utils.exceptions import DataValidationError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

WEATHER_FIELDS = ('temperature', 'humidity', 'wind_speed', 'rainfall')
WINDOW_DAYS = 30


def aggregate_weather_impact(weather: pd.DataFrame,
                             forecasts: pd.DataFrame,
                             field: str = 'temperature') -> List[WeatherImpactPoint]:
    """
    Join daily weather averages with daily consumption totals.
    
    Weather fields are averaged over every reading of a date, ignoring missing
    values. Consumption is the sum of the date's forecast rows. A date is kept
    only if ``field`` has at least one reading and the consumption is non-zero.
    
    Args:
        weather: Weather rows
        forecasts: Forecast rows for the same window
        field: Weather field being analyzed
        
    Returns:
        Date ordered points
    """
    if field not in WEATHER_FIELDS:
        raise DataValidationError(f"Unknown weather field: {field}")
    
    weather = with_valid_dates(weather)
    if weather.empty:
        return []
    
    daily = weather.groupby('date', sort=True)[list(WEATHER_FIELDS)].mean()
    
    forecasts = with_valid_dates(forecasts)
    consumption = forecasts.groupby('date')['predicted_consumption'].sum()
    daily['consumption'] = consumption.reindex(daily.index).fillna(0.0)
    
    points = []
    for day, row in daily.iterrows():
        consumption_value = as_int(row['consumption'])
        if pd.isna(row[field]) or consumption_value == 0:
            continue
        points.append(WeatherImpactPoint(
            date=day,
            temperature=optional_float(row['temperature'], 1),
            humidity=optional_float(row['humidity'], 1),
            wind_speed=optional_float(row['wind_speed'], 1),
            rainfall=optional_float(row['rainfall'], 1),
            consumption=consumption_value,
        ))
    
    logger.info(f"Weather impact: kept {len(points)} of {len(daily)} days for {field}")
    return points


def get_weather_impact(client: SupabaseClient,
                       state_id: Optional[str] = None,
                       field: str = 'temperature',
                       reference_day: Optional[date] = None,
                       tz: Optional[str] = None) -> List[WeatherImpactPoint]:
    """Weather impact over the 30 days ending yesterday."""
    start, end = trailing_window(reference_day or current_day(tz), WINDOW_DAYS)
    rows = fetch_concurrently({
        'weather': lambda: fetch_weather(client, start, end, state_id, tz=tz),
        'forecasts': lambda: fetch_forecasts(client, start, end, state_id, tz=tz),
    })
    return aggregate_weather_impact(rows['weather'], rows['forecasts'], field)
