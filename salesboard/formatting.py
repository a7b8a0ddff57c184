from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List

import pandas as pd
from pandas.io.formats.style import Styler

from salesboard.data import (
    BRAND_COL,
    CATEGORY_COL,
    MOLECULE_COL,
    SKU_COL,
    UNIT_GROWTH_COL,
    UNITS_COL,
    VALUE_COL,
    VALUE_GROWTH_COL,
)

POSITIVE_COLOR = "#4caf50"
NEGATIVE_COLOR = "#f44336"

COLOR_SETS = [
    ["rgba(33, 150, 243, 0.8)", "rgba(123, 31, 162, 0.8)", "rgba(255, 143, 0, 0.8)", "rgba(244, 67, 54, 0.8)", "rgba(76, 175, 80, 0.8)"],
    ["rgba(255, 215, 0, 0.8)", "rgba(255, 193, 7, 0.8)", "rgba(255, 152, 0, 0.8)", "rgba(255, 87, 34, 0.8)", "rgba(244, 67, 54, 0.8)"],
    ["rgba(156, 39, 176, 0.8)", "rgba(103, 58, 183, 0.8)", "rgba(63, 81, 181, 0.8)", "rgba(33, 150, 243, 0.8)", "rgba(3, 169, 244, 0.8)"],
    ["rgba(0, 188, 212, 0.8)", "rgba(0, 150, 136, 0.8)", "rgba(76, 175, 80, 0.8)", "rgba(139, 195, 74, 0.8)", "rgba(205, 220, 57, 0.8)"],
    ["rgba(255, 87, 34, 0.8)", "rgba(255, 152, 0, 0.8)", "rgba(255, 193, 7, 0.8)", "rgba(255, 235, 59, 0.8)", "rgba(205, 220, 57, 0.8)"],
    ["rgba(121, 85, 72, 0.8)", "rgba(158, 158, 158, 0.8)", "rgba(96, 125, 139, 0.8)", "rgba(69, 90, 100, 0.8)", "rgba(55, 71, 79, 0.8)"],
]

TABLE_COLUMNS = ["SKU", "Brand", "Category", "Molecule", "Value", "Units", "Value Growth", "Unit Growth"]
GROWTH_TABLE_COLUMNS = ["Value Growth", "Unit Growth"]


def round_half_up(value: float, ndigits: int = 0) -> float:
    if not math.isfinite(value):
        return float(value)
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def _fixed(value: float, ndigits: int) -> str:
    return f"{round_half_up(value, ndigits):.{ndigits}f}"


def format_large_number(value: float, currency: bool = False) -> str:
    abs_value = abs(value)
    if abs_value >= 1e9:
        text = _fixed(value / 1e9, 1) + "B"
    elif abs_value >= 1e6:
        text = _fixed(value / 1e6, 1) + "M"
    elif abs_value >= 1e3:
        text = _fixed(value / 1e3, 1) + "K"
    else:
        text = _fixed(value, 0)
    return f"${text}" if currency else text


def format_number(value: float) -> str:
    return f"{round_half_up(value):,.0f}"


def format_percentage(value: float) -> str:
    return f"{_fixed(value, 1)}%"


def growth_color(value: float) -> str:
    return POSITIVE_COLOR if value >= 0 else NEGATIVE_COLOR


def generate_gradient_colors(count: int, variant: int = 0) -> List[str]:
    colors = COLOR_SETS[variant % len(COLOR_SETS)]
    return [colors[i % len(colors)] for i in range(count)]


def records_table(records: pd.DataFrame) -> pd.DataFrame:
    """Display frame for the record table: one row per record, numbers pre-formatted."""
    if records.empty:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.DataFrame(
        {
            "SKU": records[SKU_COL],
            "Brand": records[BRAND_COL],
            "Category": records[CATEGORY_COL],
            "Molecule": records[MOLECULE_COL],
            "Value": records[VALUE_COL].apply(lambda v: format_large_number(v, currency=True)),
            "Units": records[UNITS_COL].apply(format_large_number),
            "Value Growth": records[VALUE_GROWTH_COL].apply(format_percentage),
            "Unit Growth": records[UNIT_GROWTH_COL].apply(format_percentage),
        }
    ).reset_index(drop=True)


def growth_cell_styles(records: pd.DataFrame) -> pd.DataFrame:
    """CSS per growth cell of ``records_table``, coloured by the sign of the raw value."""
    if records.empty:
        return pd.DataFrame(columns=GROWTH_TABLE_COLUMNS)
    return pd.DataFrame(
        {
            label: [f"color: {growth_color(v)}" for v in records[col]]
            for label, col in zip(GROWTH_TABLE_COLUMNS, (VALUE_GROWTH_COL, UNIT_GROWTH_COL))
        }
    )


def style_records_table(records: pd.DataFrame) -> Styler:
    styles = growth_cell_styles(records)
    return records_table(records).style.apply(
        lambda frame: pd.DataFrame(styles.to_numpy(), index=frame.index, columns=frame.columns),
        axis=None,
        subset=GROWTH_TABLE_COLUMNS,
    )
