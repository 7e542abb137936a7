"""
Model comparison table.
"""

from typing import List, Optional

import pandas as pd

from .common import optional_float
from ..data.client import SupabaseClient
from ..data.fetchers import fetch_model_metrics
from ..models.data_models import ModelPerformance


def aggregate_model_performance(metrics: pd.DataFrame) -> List[ModelPerformance]:
    """Metrics rows as table rows, best accuracy first."""
    ordered = metrics.assign(_position=range(len(metrics))).sort_values(
        ['accuracy_percentage', '_position'], ascending=[False, True], na_position='last', kind='mergesort'
    )
    return [
        ModelPerformance(
            model=row.model_name,
            state=row.state_name,
            rmse=optional_float(row.rmse),
            mae=optional_float(row.mae),
            accuracy=optional_float(row.accuracy_percentage),
        )
        for row in ordered.itertuples(index=False)
    ]


def get_model_performance(client: SupabaseClient,
                          state_id: Optional[str] = None,
                          tz: Optional[str] = None) -> List[ModelPerformance]:
    return aggregate_model_performance(fetch_model_metrics(client, state_id, tz=tz))
