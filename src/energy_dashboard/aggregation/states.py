"""
State directory used by the selectors and the map.
"""

from typing import List, Optional, Sequence

from ..data.client import SupabaseClient
from ..data.fetchers import count_states, fetch_states
from ..models.data_models import State


def get_states(client: SupabaseClient) -> List[State]:
    """All states ordered by name."""
    rows = fetch_states(client)
    rows = rows.astype(object).where(rows.notna(), None)
    
    states = [State.from_row(row) for row in rows.to_dict('records')]
    for state in states:
        if state.population is not None:
            state.population = int(state.population)
    return states


def get_states_with_population(client: SupabaseClient) -> List[State]:
    """States that report a population figure."""
    return [state for state in get_states(client) if state.population is not None]


def get_state_count(client: SupabaseClient) -> int:
    return count_states(client)


def resolve_state_id(states: Sequence[State], name: str) -> Optional[str]:
    """Id of the state called ``name``, or None when it is unknown."""
    for state in states:
        if state.name == name:
            return state.id
    return None
