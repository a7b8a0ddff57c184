from __future__ import annotations

from typing import Dict, List

import pandas as pd

from salesboard.filters import FILTER_FIELDS, FilterKey


def distinct_values(records: pd.DataFrame, field: str) -> List[str]:
    if field not in records.columns:
        return []
    return sorted({str(v) for v in records[field].tolist()})


def filter_options(records: pd.DataFrame) -> Dict[FilterKey, List[str]]:
    """Choice lists for every filter key.

    Always pass the full dataset: the lists are not meant to narrow as other
    filters are applied.
    """
    return {key: distinct_values(records, col) for key, col in FILTER_FIELDS.items()}
