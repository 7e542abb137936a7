"""
Facade the dashboard pages call.

Every aggregator is exposed as a method taking an optional state id and
served through the result cache. The view loaders fan the members of one page
section out concurrently; a ``DataSourceError`` fails only the member that
raised it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from .result_cache import CacheKey, ResultCache
from ..aggregation.consumption_series import (
    get_forecast_consumption, get_future_forecasts, get_state_consumption
)
from ..aggregation.dashboard import get_dashboard_stats
from ..aggregation.holidays import get_holiday_comparison
from ..aggregation.map_values import get_state_map_values
from ..aggregation.model_performance import get_model_performance
from ..aggregation.regional import get_regional_consumption
from ..aggregation.states import get_states
from ..aggregation.weather_impact import get_weather_impact
from ..data.client import SupabaseClient
from ..utils.config import Config
from ..utils.dates import reference_timezone, today
from ..utils.exceptions import DataSourceError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class ViewEntry:
    """Outcome of one member of a view: its data or the error that failed it."""
    name: str
    data: Any = None
    error: Optional[DataSourceError] = None
    
    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ViewBundle:
    name: str
    entries: Dict[str, ViewEntry] = field(default_factory=dict)
    
    def __getitem__(self, member: str) -> Any:
        """Data of a member; re-raises its error if it failed."""
        entry = self.entries[member]
        if entry.error is not None:
            raise entry.error
        return entry.data
    
    @property
    def failed(self) -> List[str]:
        return sorted(name for name, entry in self.entries.items() if not entry.ok)


class DashboardService:
    """
    Cached, concurrent access to the dashboard aggregates.
    """
    
    def __init__(self,
                 client: Optional[SupabaseClient] = None,
                 cache: Optional[ResultCache] = None,
                 tz: Optional[str] = None,
                 clock: Optional[Callable[[], date]] = None,
                 max_workers: Optional[int] = None):
        """
        Initialize the service.
        
        Args:
            client: Data source client (built from the environment when None)
            cache: Result cache
            tz: Reference timezone for calendar dates
            clock: Returns the calendar "today"; replaceable in tests
            max_workers: Thread pool width of the view loaders
        """
        self.client = client or SupabaseClient()
        self.cache = cache if cache is not None else ResultCache()
        self.tz = reference_timezone(tz)
        self.clock = clock or (lambda: today(self.tz))
        self.max_workers = max_workers or Config.MAX_WORKERS
    
    def _cached(self, aggregator: str, state_id: Optional[str], compute: Callable[[date], Any],
                variant: Optional[str] = None) -> Any:
        reference_day = self.clock()
        window = reference_day if variant is None else (reference_day, variant)
        key = CacheKey(aggregator, state_id, window)
        return self.cache.get_or_compute(key, lambda: compute(reference_day))
    
    def states(self):
        return self._cached('states', None, lambda day: get_states(self.client))
    
    def dashboard_stats(self, state_id: Optional[str] = None):
        return self._cached('dashboard_stats', state_id, lambda day: get_dashboard_stats(
            self.client, state_id, reference_day=day, tz=self.tz))
    
    def regional_consumption(self):
        return self._cached('regional_consumption', None,
                            lambda day: get_regional_consumption(self.client, tz=self.tz))
    
    def holiday_comparison(self, state_id: Optional[str] = None):
        return self._cached('holiday_comparison', state_id,
                            lambda day: get_holiday_comparison(self.client, state_id, tz=self.tz))
    
    def weather_impact(self, state_id: Optional[str] = None, field: str = 'temperature'):
        return self._cached('weather_impact', state_id, lambda day: get_weather_impact(
            self.client, state_id, field, reference_day=day, tz=self.tz), variant=field)
    
    def forecast_consumption(self, state_id: Optional[str] = None):
        return self._cached('forecast_consumption', state_id, lambda day: get_forecast_consumption(
            self.client, state_id, reference_day=day, tz=self.tz))
    
    def state_consumption(self, state_id: Optional[str] = None):
        return self._cached('state_consumption', state_id, lambda day: get_state_consumption(
            self.client, state_id, reference_day=day, tz=self.tz))
    
    def state_map_values(self):
        return self._cached('state_map_values', None, lambda day: get_state_map_values(
            self.client, reference_day=day, tz=self.tz))
    
    def future_forecasts(self, state_id: Optional[str] = None):
        return self._cached('future_forecasts', state_id, lambda day: get_future_forecasts(
            self.client, state_id, reference_day=day, tz=self.tz))
    
    def model_performance(self, state_id: Optional[str] = None):
        return self._cached('model_performance', state_id,
                            lambda day: get_model_performance(self.client, state_id, tz=self.tz))
    
    def invalidate(self, aggregator: Optional[str] = None, state_id: Optional[str] = None) -> int:
        return self.cache.invalidate(aggregator, state_id)
    
    def load_overview(self) -> ViewBundle:
        """Page-wide section: state list, histories, regional totals and map."""
        return self._load('overview', {
            'states': self.states,
            'state_consumption': self.state_consumption,
            'regional_consumption': self.regional_consumption,
            'state_map_values': self.state_map_values,
        })
    
    def load_state_view(self, state_id: Optional[str] = None) -> ViewBundle:
        """Section driven by the state selector."""
        return self._load(f'state:{state_id or "all"}', {
            'dashboard_stats': lambda: self.dashboard_stats(state_id),
            'model_performance': lambda: self.model_performance(state_id),
            'holiday_comparison': lambda: self.holiday_comparison(state_id),
            'forecast_consumption': lambda: self.forecast_consumption(state_id),
            'weather_impact': lambda: self.weather_impact(state_id),
            'future_forecasts': lambda: self.future_forecasts(state_id),
        })
    
    def _load(self, name: str, members: Dict[str, Callable[[], Any]]) -> ViewBundle:
        bundle = ViewBundle(name)
        
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(members))) as executor:
            futures = {executor.submit(loader): member for member, loader in members.items()}
            for future in as_completed(futures):
                member = futures[future]
                try:
                    bundle.entries[member] = ViewEntry(member, data=future.result())
                except DataSourceError as e:
                    logger.error(f"View {name}: {member} failed: {e}")
                    bundle.entries[member] = ViewEntry(member, error=e)
        
        if bundle.failed:
            logger.warning(f"View {name} loaded with failures: {', '.join(bundle.failed)}")
        return bundle
