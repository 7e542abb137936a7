"""
Data models for the consumption dashboard.

The first group mirrors the remote tables (read-only from this layer). The
second group holds the view-ready summaries produced by the aggregators.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass
class State:
    """Row of the ``states`` table."""
    id: str
    name: str
    region: str
    population: Optional[int] = None
    peak_demand: Optional[float] = None
    total_capacity: Optional[float] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'State':
        return cls(**{f.name: row.get(f.name) for f in fields(cls)})


@dataclass
class ForecastRecord:
    """Row of the ``forecasts`` table. Later ``created_at`` supersedes earlier rows for a day."""
    id: str
    state_id: Optional[str]
    date: date
    predicted_consumption: Optional[float]
    confidence_interval_lower: Optional[float]
    confidence_interval_upper: Optional[float]
    confidence_percentage: Optional[float]
    created_at: Optional[datetime]


@dataclass
class WeatherRecord:
    """Row of the ``weather_data`` table. Several readings per day are averaged."""
    state_id: Optional[str]
    date: date
    temperature: Optional[float]
    humidity: Optional[float]
    wind_speed: Optional[float]
    rainfall: Optional[float]


@dataclass
class HolidayRecord:
    """Row of the ``holidays`` table; no ``state_id`` means a national holiday."""
    date: date
    is_holiday: Optional[bool]
    state_id: Optional[str] = None
    holiday_name: Optional[str] = None


@dataclass
class ModelMetric:
    """Row of the ``model_metrics`` table."""
    model_name: str
    state_id: Optional[str]
    rmse: float
    mae: float
    accuracy_percentage: float
    training_date: Optional[date] = None


def column_names(record_type: type) -> List[str]:
    """Column list of a table model, in declaration order."""
    return [f.name for f in fields(record_type)]


@dataclass
class RegionalConsumption:
    """Total predicted consumption of one region on the latest forecast date."""
    name: str
    total_consumption: int


@dataclass
class HolidayComparison:
    """Mean consumption of one day class (``Holiday`` or ``Normal Day``)."""
    name: str
    consumption: int
    count: int


@dataclass
class WeatherImpactPoint:
    """Daily weather averages joined with the day's summed consumption."""
    date: date
    temperature: Optional[float]
    humidity: Optional[float]
    wind_speed: Optional[float]
    rainfall: Optional[float]
    consumption: int


@dataclass
class DashboardStats:
    """KPI block at the top of the dashboard."""
    total_consumption: int
    total_forecast: int
    yesterday_forecast: int
    week_over_week_change: float
    forecaster_accuracy: float
    states: int


@dataclass
class StateMapValue:
    """Representative consumption of one state on the choropleth map."""
    state_id: str
    name: str
    consumption: float
    has_data: bool
    date: Optional[date] = None
    intensity: str = 'none'


@dataclass
class ForecastPoint:
    """One day of the forecast consumption series."""
    date: date
    predicted_consumption: float
    confidence_interval_lower: float
    confidence_interval_upper: float


@dataclass
class ConsumptionEntry:
    date: date
    forecast: Optional[float]
    forecast_created_at: Optional[datetime]


@dataclass
class StateConsumptionSeries:
    """Date ordered forecast history of one state."""
    state: str
    region: Optional[str]
    state_id: str
    data: List[ConsumptionEntry] = field(default_factory=list)


@dataclass
class FutureForecast:
    forecast_date: date
    predicted_consumption: Optional[float]
    state_id: Optional[str]


@dataclass
class ModelPerformance:
    """Row of the model comparison table."""
    model: str
    state: Optional[str]
    rmse: Optional[float]
    mae: Optional[float]
    accuracy: Optional[float]
