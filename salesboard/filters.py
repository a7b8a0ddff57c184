from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Mapping, Optional

import pandas as pd

from salesboard.data import BRAND_COL, CATEGORY_COL, MOLECULE_COL, SKU_COL


class FilterKey(str, Enum):
    BRAND = "brand"
    CATEGORY = "category"
    MOLECULE = "molecule"
    SKU = "sku"


# Single source of truth for filter key -> record column.
FILTER_FIELDS: Dict[FilterKey, str] = {
    FilterKey.BRAND: BRAND_COL,
    FilterKey.CATEGORY: CATEGORY_COL,
    FilterKey.MOLECULE: MOLECULE_COL,
    FilterKey.SKU: SKU_COL,
}


@dataclass(frozen=True)
class DisplaySettings:
    top_n: int = 5
    sample_rows: int = 100
    sample_seed: Optional[int] = None


@dataclass(frozen=True)
class FilterState:
    brand: Optional[str] = None
    category: Optional[str] = None
    molecule: Optional[str] = None
    sku: Optional[str] = None

    def get(self, key: FilterKey | str) -> Optional[str]:
        return getattr(self, FilterKey(key).value)

    def with_value(self, key: FilterKey | str, value: Optional[object]) -> "FilterState":
        return replace(self, **{FilterKey(key).value: _clean_value(value)})

    def cleared(self) -> "FilterState":
        return FilterState()

    def active(self) -> Dict[FilterKey, str]:
        return {key: value for key in FilterKey if (value := self.get(key)) is not None}

    def is_empty(self) -> bool:
        return not self.active()


def field_for(key: FilterKey | str) -> str:
    return FILTER_FIELDS[FilterKey(key)]


def _clean_value(value: Optional[object]) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def normalize_filters(raw: Mapping[str, object]) -> FilterState:
    """Build a FilterState from loose input; blanks mean "no constraint", unknown keys are ignored."""
    values = {key.value: _clean_value(raw.get(key.value)) for key in FilterKey}
    return FilterState(**values)


def apply_filters(records: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    """Keep records matching every active constraint exactly, in their original order."""
    mask = pd.Series(True, index=records.index)
    for key, value in filters.active().items():
        col = field_for(key)
        if col not in records.columns:
            mask &= False
            continue
        mask &= records[col] == value
    return records.loc[mask].reset_index(drop=True)
