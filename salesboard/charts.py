from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

import altair as alt
import pandas as pd

from salesboard.data import BRAND_COL, CATEGORY_COL, MOLECULE_COL, UNITS_COL, VALUE_COL
from salesboard.filters import DisplaySettings, FilterKey
from salesboard.formatting import NEGATIVE_COLOR, POSITIVE_COLOR, generate_gradient_colors
from salesboard.metrics_groups import GROUP_COLUMNS, AggregateGroup, aggregate_by, sort_groups

alt.data_transformers.disable_max_rows()

SELECTION_NAME = "pick"
POINT_COLUMNS = ["name", "value", "units"]

METRIC_TITLES = {
    "total_value": "Total Value",
    "total_units": "Total Units",
    "avg_value_growth": "Value Growth %",
    "avg_unit_growth": "Unit Growth %",
}
METRIC_FORMATS = {
    "total_value": "$~s",
    "total_units": "~s",
    "avg_value_growth": ".1f",
    "avg_unit_growth": ".1f",
}


class Tab(str, Enum):
    OVERVIEW = "overview"
    PERFORMANCE = "performance"
    ANALYSIS = "analysis"


class ChartId(str, Enum):
    TOP_BRANDS_VALUE = "top_brands_value"
    TOP_BRANDS_UNITS = "top_brands_units"
    CATEGORIES = "categories"
    MOLECULES = "molecules"
    VALUE_GROWTH = "value_growth"
    UNIT_GROWTH = "unit_growth"
    SCATTER = "scatter"
    BRAND_MARKET_SHARE = "brand_market_share"
    CATEGORY_PERFORMANCE = "category_performance"
    MOLECULE_DISTRIBUTION = "molecule_distribution"
    RADAR = "radar"


class ChartKind(str, Enum):
    BAR = "bar"
    GROWTH_BAR = "growth_bar"
    DOUGHNUT = "doughnut"
    POLAR_AREA = "polar_area"
    PIE = "pie"
    LINE = "line"
    SCATTER = "scatter"
    RADAR = "radar"


@dataclass(frozen=True)
class ChartDefinition:
    title: str
    kind: ChartKind
    field: Optional[str]
    metrics: Tuple[str, ...]
    sort_by: Optional[str] = None
    limited: bool = False
    filter_key: Optional[FilterKey] = None
    palette: int = 0

    @property
    def clickable(self) -> bool:
        return self.filter_key is not None


CHART_DEFINITIONS: Dict[ChartId, ChartDefinition] = {
    ChartId.TOP_BRANDS_VALUE: ChartDefinition(
        "Top Brands by Value", ChartKind.BAR, BRAND_COL, ("total_value",),
        sort_by="total_value", limited=True, filter_key=FilterKey.BRAND, palette=0,
    ),
    ChartId.TOP_BRANDS_UNITS: ChartDefinition(
        "Top Brands by Units", ChartKind.BAR, BRAND_COL, ("total_units",),
        sort_by="total_units", limited=True, filter_key=FilterKey.BRAND, palette=1,
    ),
    ChartId.CATEGORIES: ChartDefinition(
        "Value by Category", ChartKind.DOUGHNUT, CATEGORY_COL, ("total_value",),
        filter_key=FilterKey.CATEGORY, palette=2,
    ),
    ChartId.MOLECULES: ChartDefinition(
        "Value by Molecule", ChartKind.POLAR_AREA, MOLECULE_COL, ("total_value",),
        filter_key=FilterKey.MOLECULE, palette=3,
    ),
    ChartId.VALUE_GROWTH: ChartDefinition(
        "Value Growth by Brand", ChartKind.GROWTH_BAR, BRAND_COL, ("avg_value_growth",),
        sort_by="avg_value_growth", filter_key=FilterKey.BRAND,
    ),
    ChartId.UNIT_GROWTH: ChartDefinition(
        "Unit Growth by Brand", ChartKind.GROWTH_BAR, BRAND_COL, ("avg_unit_growth",),
        sort_by="avg_unit_growth", filter_key=FilterKey.BRAND,
    ),
    ChartId.SCATTER: ChartDefinition("Value vs Units", ChartKind.SCATTER, None, ("value", "units")),
    ChartId.BRAND_MARKET_SHARE: ChartDefinition(
        "Brand Market Share", ChartKind.PIE, BRAND_COL, ("total_value",),
        filter_key=FilterKey.BRAND, palette=4,
    ),
    ChartId.CATEGORY_PERFORMANCE: ChartDefinition(
        "Category Performance", ChartKind.LINE, CATEGORY_COL, ("total_value",),
        filter_key=FilterKey.CATEGORY,
    ),
    ChartId.MOLECULE_DISTRIBUTION: ChartDefinition(
        "Units by Molecule", ChartKind.DOUGHNUT, MOLECULE_COL, ("total_units",),
        filter_key=FilterKey.MOLECULE, palette=5,
    ),
    ChartId.RADAR: ChartDefinition(
        "Brand Value vs Units", ChartKind.RADAR, BRAND_COL, ("total_value", "total_units"), limited=True,
    ),
}

TAB_CHARTS: Dict[Tab, Tuple[ChartId, ...]] = {
    Tab.OVERVIEW: (ChartId.TOP_BRANDS_VALUE, ChartId.TOP_BRANDS_UNITS, ChartId.CATEGORIES, ChartId.MOLECULES),
    Tab.PERFORMANCE: (ChartId.VALUE_GROWTH, ChartId.UNIT_GROWTH, ChartId.SCATTER),
    Tab.ANALYSIS: (
        ChartId.BRAND_MARKET_SHARE,
        ChartId.CATEGORY_PERFORMANCE,
        ChartId.MOLECULE_DISTRIBUTION,
        ChartId.RADAR,
    ),
}


@dataclass(frozen=True)
class ChartSeries:
    chart_id: ChartId
    definition: ChartDefinition
    groups: List[AggregateGroup] = field(default_factory=list)
    points: List[Dict[str, Any]] = field(default_factory=list)

    def rows(self) -> List[Dict[str, Any]]:
        if self.definition.kind is ChartKind.SCATTER:
            return list(self.points)
        return [asdict(g) for g in self.groups]

    def names(self) -> List[str]:
        return [g.name for g in self.groups]

    def is_empty(self) -> bool:
        return not self.groups and not self.points


def build_series(chart_id: ChartId, records: pd.DataFrame, settings: Optional[DisplaySettings] = None) -> ChartSeries:
    """Chart-ready data for one chart; carries no plotting-library configuration."""
    settings = settings or DisplaySettings()
    definition = CHART_DEFINITIONS[ChartId(chart_id)]

    if definition.kind is ChartKind.SCATTER:
        points = [
            {"name": str(brand), "value": float(value), "units": float(units)}
            for brand, value, units in zip(records[BRAND_COL], records[VALUE_COL], records[UNITS_COL])
        ] if not records.empty else []
        return ChartSeries(ChartId(chart_id), definition, points=points)

    groups = aggregate_by(records, definition.field)
    if definition.sort_by:
        groups = sort_groups(groups, definition.sort_by)
    if definition.limited:
        groups = groups[: settings.top_n]
    return ChartSeries(ChartId(chart_id), definition, groups=groups)


class ChartRenderer(Protocol):
    def render(self, series: ChartSeries) -> Any:
        ...

    def dispose(self) -> None:
        ...


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _frame(series: ChartSeries) -> pd.DataFrame:
    columns = POINT_COLUMNS if series.definition.kind is ChartKind.SCATTER else GROUP_COLUMNS
    return pd.DataFrame(series.rows(), columns=columns)


def _palette(series: ChartSeries) -> alt.Scale:
    names = series.names()
    return alt.Scale(domain=names, range=generate_gradient_colors(len(names), series.definition.palette))


def _tooltip(metric: str) -> List[alt.Tooltip]:
    return [
        alt.Tooltip("name:N", title="Name"),
        alt.Tooltip(f"{metric}:Q", title=METRIC_TITLES[metric], format=METRIC_FORMATS[metric]),
        alt.Tooltip("count:Q", title="Records"),
    ]


def _bar(series: ChartSeries, df: pd.DataFrame) -> alt.Chart:
    metric = series.definition.metrics[0]
    if series.definition.kind is ChartKind.GROWTH_BAR:
        color = alt.condition(alt.datum[metric] >= 0, alt.value(POSITIVE_COLOR), alt.value(NEGATIVE_COLOR))
    else:
        color = alt.Color("name:N", scale=_palette(series), legend=None)
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=8, cornerRadiusTopRight=8)
        .encode(
            x=alt.X("name:N", sort=None, title=None, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y(
                f"{metric}:Q",
                title=METRIC_TITLES[metric],
                axis=alt.Axis(format=METRIC_FORMATS[metric], gridDash=[4, 4], domain=False, ticks=False),
            ),
            color=color,
            tooltip=_tooltip(metric),
        )
    )


def _arc(series: ChartSeries, df: pd.DataFrame) -> alt.Chart:
    metric = series.definition.metrics[0]
    kind = series.definition.kind
    color = alt.Color("name:N", scale=_palette(series), sort=None, title=None)
    if kind is ChartKind.POLAR_AREA:
        df = df.assign(slice=1)
        return (
            alt.Chart(df)
            .mark_arc(stroke="#ffffff")
            .encode(
                theta=alt.Theta("slice:Q", stack=True),
                radius=alt.Radius(f"{metric}:Q", scale=alt.Scale(type="sqrt", zero=True)),
                color=color,
                tooltip=_tooltip(metric),
            )
        )
    mark = alt.Chart(df).mark_arc(innerRadius=60) if kind is ChartKind.DOUGHNUT else alt.Chart(df).mark_arc()
    return mark.encode(theta=alt.Theta(f"{metric}:Q", stack=True), color=color, tooltip=_tooltip(metric))


def _line(series: ChartSeries, df: pd.DataFrame) -> alt.Chart:
    metric = series.definition.metrics[0]
    return (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 80}, strokeWidth=3)
        .encode(
            x=alt.X("name:N", sort=None, title=None, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y(f"{metric}:Q", title=METRIC_TITLES[metric], axis=alt.Axis(format=METRIC_FORMATS[metric])),
            tooltip=_tooltip(metric),
        )
    )


def _scatter(series: ChartSeries, df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(df)
        .mark_circle(size=120, opacity=0.6, color="#7b1fa2")
        .encode(
            x=alt.X("units:Q", title="Units", axis=alt.Axis(format="~s")),
            y=alt.Y("value:Q", title="Value", axis=alt.Axis(format="$~s")),
            tooltip=[
                alt.Tooltip("name:N", title="Brand"),
                alt.Tooltip("value:Q", title="Value", format="$,.0f"),
                alt.Tooltip("units:Q", title="Units", format=",.0f"),
            ],
        )
    )


def _radar(series: ChartSeries, df: pd.DataFrame) -> alt.Chart:
    # Vega-Lite has no radial line chart; value and units are drawn as grouped bars.
    long_df = df.melt(id_vars="name", value_vars=list(series.definition.metrics), var_name="metric", value_name="amount")
    long_df["metric"] = long_df["metric"].map(METRIC_TITLES)
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("name:N", sort=None, title=None, axis=alt.Axis(labelAngle=0)),
            xOffset=alt.XOffset("metric:N"),
            y=alt.Y("amount:Q", title=None, axis=alt.Axis(format="~s")),
            color=alt.Color("metric:N", title=None, scale=alt.Scale(range=["#2196f3", "#ff8f00"])),
            tooltip=[
                alt.Tooltip("name:N", title="Brand"),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("amount:Q", title="Amount", format=",.0f"),
            ],
        )
    )


_BUILDERS = {
    ChartKind.BAR: _bar,
    ChartKind.GROWTH_BAR: _bar,
    ChartKind.DOUGHNUT: _arc,
    ChartKind.PIE: _arc,
    ChartKind.POLAR_AREA: _arc,
    ChartKind.LINE: _line,
    ChartKind.SCATTER: _scatter,
    ChartKind.RADAR: _radar,
}


def build_chart(series: ChartSeries) -> alt.Chart:
    chart = _BUILDERS[series.definition.kind](series, _frame(series))
    if series.definition.clickable:
        pick = alt.selection_point(name=SELECTION_NAME, fields=["name"])
        chart = chart.encode(opacity=alt.condition(pick, alt.value(1), alt.value(0.5))).add_params(pick)
    return chart.properties(title=series.definition.title)


class VegaLiteRenderer:
    """Renders chart series to Vega-Lite spec dicts with Altair."""

    def __init__(self) -> None:
        self.rendered: Dict[ChartId, Dict[str, Any]] = {}

    def render(self, series: ChartSeries) -> Dict[str, Any]:
        spec = to_vega_spec(build_chart(series))
        self.rendered[series.chart_id] = spec
        return spec

    def dispose(self) -> None:
        self.rendered.clear()
