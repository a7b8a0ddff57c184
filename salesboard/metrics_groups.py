from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from salesboard.data import UNIT_GROWTH_COL, UNITS_COL, VALUE_COL, VALUE_GROWTH_COL

GROUP_METRICS = ("total_value", "total_units", "avg_value_growth", "avg_unit_growth")
GROUP_COLUMNS = ["name", *GROUP_METRICS, "count"]


@dataclass(frozen=True)
class AggregateGroup:
    name: str
    total_value: float = 0.0
    total_units: float = 0.0
    avg_value_growth: float = 0.0
    avg_unit_growth: float = 0.0
    count: int = 0


def aggregate_frame(records: pd.DataFrame, field: str) -> pd.DataFrame:
    """Group records by the exact value of ``field``; groups keep first-occurrence order."""
    if field not in records.columns:
        raise KeyError(f"unknown field: {field}")
    if records.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS)

    grouped = (
        records.groupby(field, sort=False, dropna=False)
        .agg(
            total_value=(VALUE_COL, "sum"),
            total_units=(UNITS_COL, "sum"),
            value_growth_sum=(VALUE_GROWTH_COL, "sum"),
            unit_growth_sum=(UNIT_GROWTH_COL, "sum"),
            count=(VALUE_COL, "size"),
        )
        .reset_index()
        .rename(columns={field: "name"})
    )
    counts = grouped["count"].where(grouped["count"] > 0)
    grouped["avg_value_growth"] = (grouped["value_growth_sum"] / counts).fillna(0.0)
    grouped["avg_unit_growth"] = (grouped["unit_growth_sum"] / counts).fillna(0.0)
    return grouped[GROUP_COLUMNS]


def aggregate_by(records: pd.DataFrame, field: str) -> List[AggregateGroup]:
    frame = aggregate_frame(records, field)
    return [
        AggregateGroup(
            name=str(row["name"]),
            total_value=float(row["total_value"]),
            total_units=float(row["total_units"]),
            avg_value_growth=float(row["avg_value_growth"]),
            avg_unit_growth=float(row["avg_unit_growth"]),
            count=int(row["count"]),
        )
        for row in frame.to_dict(orient="records")
    ]


def sort_groups(groups: Sequence[AggregateGroup], metric: str, *, descending: bool = True) -> List[AggregateGroup]:
    if metric not in GROUP_METRICS:
        raise ValueError(f"cannot sort groups by {metric!r}")
    return sorted(groups, key=lambda g: getattr(g, metric), reverse=descending)


def top_groups(groups: Sequence[AggregateGroup], metric: str, n: int) -> List[AggregateGroup]:
    return sort_groups(groups, metric)[: max(0, n)]
