from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from salesboard.data import UNIT_GROWTH_COL, UNITS_COL, VALUE_COL, VALUE_GROWTH_COL


@dataclass(frozen=True)
class Summary:
    total_value: float = 0.0
    total_units: float = 0.0
    avg_value_growth: float = 0.0
    avg_unit_growth: float = 0.0
    record_count: int = 0


def _column_sum(records: pd.DataFrame, col: str) -> float:
    if col not in records.columns:
        return 0.0
    return float(records[col].sum())


def summarize(records: pd.DataFrame) -> Summary:
    """Dataset-wide KPIs; growth averages are plain means, and 0 when there are no records."""
    n = len(records)
    if n == 0:
        return Summary()
    return Summary(
        total_value=_column_sum(records, VALUE_COL),
        total_units=_column_sum(records, UNITS_COL),
        avg_value_growth=_column_sum(records, VALUE_GROWTH_COL) / n,
        avg_unit_growth=_column_sum(records, UNIT_GROWTH_COL) / n,
        record_count=n,
    )
