"""
Per-state values for the choropleth map.

Each state shows one representative forecast: today's if there is one,
otherwise the most recent dated one. A state without forecasts is shown as
"no data", not as a zero reading.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

import pandas as pd

from ..data.client import SupabaseClient
from ..data.fetchers import fetch_forecasts, fetch_states
from ..models.data_models import StateMapValue
from ..utils.concurrency import fetch_concurrently
from ..utils.dates import to_calendar_date, today as current_day

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 30

# Upper bounds of value / max for each band
INTENSITY_BANDS = [(0.3, 'low'), (0.6, 'medium'), (0.8, 'high')]


def resolve_latest_forecast(forecasts: pd.DataFrame,
                            state_id: str,
                            target_day: date,
                            tz: Optional[str] = None) -> Optional[Tuple[Optional[date], float]]:
    """
    Pick the representative forecast of one state.
    
    Rows of the state with a consumption value are candidates. A candidate
    dated ``target_day`` wins outright. Otherwise the candidate with the
    latest date wins. Ties, and the case where no candidate has a valid
    date, go to the row that comes later in the input. Unparseable dates never
    win on recency.
    
    Args:
        forecasts: Forecast rows; dates may be raw or already normalized
        state_id: State to resolve
        target_day: Day that wins outright
        tz: Reference timezone for raw dates
        
    Returns:
        ``(date, consumption)`` of the chosen row, or None without candidates
    """
    candidates = []
    rows = zip(forecasts['state_id'], forecasts['date'], forecasts['predicted_consumption'])
    for position, (row_state, raw_date, value) in enumerate(rows):
        if row_state != state_id or value is None or pd.isna(value):
            continue
        candidates.append((position, to_calendar_date(raw_date, tz), float(value)))
    
    if not candidates:
        return None
    
    on_target = [c for c in candidates if c[1] == target_day]
    dated = [c for c in candidates if c[1] is not None]
    
    if on_target:
        chosen = max(on_target, key=lambda c: c[0])
    elif dated:
        chosen = max(dated, key=lambda c: (c[1], c[0]))
    else:
        chosen = max(candidates, key=lambda c: c[0])
    
    return chosen[1], chosen[2]


def intensity_level(value: float, max_value: float) -> str:
    """Color band of a state relative to the largest value on the map."""
    if value <= 0 or max_value <= 0:
        return 'none'
    ratio = value / max_value
    for bound, level in INTENSITY_BANDS:
        if ratio < bound:
            return level
    return 'peak'


def resolve_state_map_values(states: pd.DataFrame,
                             forecasts: pd.DataFrame,
                             target_day: date,
                             tz: Optional[str] = None) -> List[StateMapValue]:
    """Resolve every state of ``states`` and assign its intensity band."""
    values = []
    for state_id, name in zip(states['id'], states['name']):
        resolved = resolve_latest_forecast(forecasts, state_id, target_day, tz)
        if resolved is None:
            values.append(StateMapValue(state_id=state_id, name=name, consumption=0, has_data=False))
        else:
            day, consumption = resolved
            values.append(StateMapValue(state_id=state_id, name=name, consumption=consumption,
                                        has_data=True, date=day))
    
    max_value = max((v.consumption for v in values if v.has_data), default=0)
    for value in values:
        value.intensity = intensity_level(value.consumption, max_value) if value.has_data else 'none'
    
    return values


def get_state_map_values(client: SupabaseClient,
                         reference_day: Optional[date] = None,
                         tz: Optional[str] = None) -> List[StateMapValue]:
    """Map values for all states from the last 30 days of forecasts onward."""
    reference_day = reference_day or current_day(tz)
    start = reference_day - timedelta(days=LOOKBACK_DAYS)
    
    rows = fetch_concurrently({
        'states': lambda: fetch_states(client),
        'forecasts': lambda: fetch_forecasts(client, start=start, tz=tz),
    })
    values = resolve_state_map_values(rows['states'], rows['forecasts'], reference_day, tz)
    logger.info(f"Resolved map values: {sum(v.has_data for v in values)} of {len(values)} states with data")
    return values
