from __future__ import annotations

import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE = DATA_DIR / "data.csv"

MOLECULE_COL = "Molecule"
CATEGORY_COL = "Category"
BRAND_COL = "Brand"
SKU_COL = "SKU"
VALUE_COL = "Value25"
UNITS_COL = "Unit25"
VALUE_GROWTH_COL = "GrowthValue25"
UNIT_GROWTH_COL = "GrowthUnit25"

STRING_COLUMNS = [MOLECULE_COL, CATEGORY_COL, BRAND_COL, SKU_COL]
NUMERIC_COLUMNS = [VALUE_COL, UNITS_COL, VALUE_GROWTH_COL, UNIT_GROWTH_COL]
RECORD_COLUMNS = STRING_COLUMNS + NUMERIC_COLUMNS

# Header substrings (lowercase) that mark a column as numeric.
NUMERIC_HEADER_TOKENS = ("value", "unit", "growth")
LEADING_NUMBER = r"^([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"

SAMPLE_BRANDS = ["Nike", "Adidas", "Puma", "Reebok", "New Balance", "Under Armour", "Converse", "Vans"]
SAMPLE_CATEGORIES = ["Shoes", "Clothing", "Accessories", "Sports Equipment", "Fitness Gear"]
SAMPLE_MOLECULES = ["Molecule X", "Molecule Y", "Molecule Z", "Molecule W", "Molecule V"]


class DataLoadError(ValueError):
    """Raised when a source cannot be turned into any records at all."""


def is_numeric_header(name: object) -> bool:
    lowered = str(name).lower()
    return any(token in lowered for token in NUMERIC_HEADER_TOKENS)


def coerce_numeric(series: pd.Series) -> pd.Series:
    """Strip currency symbols and thousands separators, then read the leading number.

    Trailing text is ignored ("5.2%" -> 5.2, "100 USD" -> 100); a cell with no
    leading number is 0.
    """
    cleaned = series.astype("string").str.strip().str.replace(r"[$,]", "", regex=True)
    leading = cleaned.str.extract(LEADING_NUMBER, expand=False)
    return pd.to_numeric(leading, errors="coerce").fillna(0.0).astype(float)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = coerce_numeric(df[col])
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].fillna("").astype(str)
    return df


def ensure_record_columns(df: pd.DataFrame) -> pd.DataFrame:
    for col in STRING_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    for col in NUMERIC_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0
    return df


def normalize_records(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.loc[:, ~df.columns.duplicated()]
    numeric_cols = [c for c in df.columns if is_numeric_header(c)]
    text_cols = [c for c in df.columns if c not in numeric_cols]
    df = numericize(df, numeric_cols)
    df = coerce_str_safe(df, text_cols)
    df = ensure_record_columns(df)
    return df.reset_index(drop=True)


def load_records(rows: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    """Build a record frame from raw row mappings keyed by header name."""
    df = pd.DataFrame(list(rows))
    if df.empty:
        raise DataLoadError("no rows to load")
    return normalize_records(df)


def parse_csv_text(text: str) -> pd.DataFrame:
    if not text or not text.strip():
        raise DataLoadError("empty source")

    try:
        header = pd.read_csv(io.StringIO(text), nrows=0)
    except pd.errors.EmptyDataError as exc:
        raise DataLoadError("source has no header") from exc
    width = len(header.columns)

    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        index_col=False,
        engine="python",
        # Over-long rows keep their leading cells instead of being dropped.
        on_bad_lines=lambda bad: bad[:width],
    )
    if df.empty:
        raise DataLoadError("source has a header but no data rows")
    for col in df.columns:
        df[col] = df[col].fillna("").astype(str).str.strip()
    return normalize_records(df)


def generate_sample_data(n_rows: int = 100, seed: Optional[int] = None) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    rows: List[Dict[str, object]] = []
    for i in range(n_rows):
        rows.append(
            {
                MOLECULE_COL: SAMPLE_MOLECULES[rng.integers(len(SAMPLE_MOLECULES))],
                CATEGORY_COL: SAMPLE_CATEGORIES[rng.integers(len(SAMPLE_CATEGORIES))],
                BRAND_COL: SAMPLE_BRANDS[rng.integers(len(SAMPLE_BRANDS))],
                SKU_COL: f"SKU{i + 1:03d}",
                VALUE_COL: float(rng.random() * 1_000_000_000 + 100_000_000),
                UNITS_COL: float(np.floor(rng.random() * 10_000_000 + 1_000_000)),
                VALUE_GROWTH_COL: float((rng.random() - 0.5) * 20),
                UNIT_GROWTH_COL: float((rng.random() - 0.5) * 15),
            }
        )
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def file_signature(path: Path) -> Optional[Tuple[str, float]]:
    try:
        return (str(path), path.stat().st_mtime)
    except OSError:
        return None


def read_source(path: Path) -> pd.DataFrame:
    return parse_csv_text(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(
    path_str: str,
    signature: Optional[Tuple[str, float]],
    sample_rows: int,
    sample_seed: Optional[int],
) -> Dict[str, object]:
    path = Path(path_str)
    try:
        records = read_source(path)
    except (DataLoadError, OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        logger.warning("could not load %s (%s); using sample data", path, exc, exc_info=True)
        return {"records": generate_sample_data(sample_rows, seed=sample_seed), "source": "sample", "path": path_str}
    logger.info("loaded %d records from %s", len(records), path)
    return {"records": records, "source": "file", "path": path_str}


def load_dashboard_data(
    path: Optional[Path | str] = None,
    *,
    sample_rows: int = 100,
    sample_seed: Optional[int] = None,
) -> Dict[str, object]:
    """Load the dataset, falling back to generated sample data on any total failure.

    Returns a context dict with ``records`` (DataFrame), ``source`` ("file" or
    "sample") and ``path``. The result is cached on path and mtime; callers get
    a fresh copy of the frame.
    """
    path = Path(path) if path is not None else DATA_FILE
    ctx = _load_dashboard_data_cached(str(path), file_signature(path), sample_rows, sample_seed)
    return {**ctx, "records": ctx["records"].copy()}
