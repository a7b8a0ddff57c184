from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from salesboard.charts import CHART_DEFINITIONS, SELECTION_NAME, ChartId, Tab
from salesboard.filters import FilterKey


class Action(str, Enum):
    SELECT_FILTER = "select_filter"
    CLEAR_FILTERS = "clear_filters"
    SWITCH_TAB = "switch_tab"
    CHART_SELECT = "chart_select"


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    key: Optional[FilterKey] = None
    value: Optional[str] = None
    tab: Optional[Tab] = None
    chart: Optional[ChartId] = None

    @model_validator(mode="after")
    def _check_payload(self) -> "Command":
        if self.action is Action.SELECT_FILTER and self.key is None:
            raise ValueError("select_filter requires a filter key")
        if self.action is Action.SWITCH_TAB and self.tab is None:
            raise ValueError("switch_tab requires a tab")
        if self.action is Action.CHART_SELECT:
            if self.chart is None or not self.value:
                raise ValueError("chart_select requires a chart and a value")
            if not CHART_DEFINITIONS[self.chart].clickable:
                raise ValueError(f"chart {self.chart.value} does not feed a filter")
        return self


def select_filter(key: FilterKey | str, value: Optional[str]) -> Command:
    return Command(action=Action.SELECT_FILTER, key=key, value=value)


def clear_filters() -> Command:
    return Command(action=Action.CLEAR_FILTERS)


def switch_tab(tab: Tab | str) -> Command:
    return Command(action=Action.SWITCH_TAB, tab=tab)


def chart_select(chart: ChartId | str, value: str) -> Command:
    return Command(action=Action.CHART_SELECT, chart=chart, value=value)


def command_from_selection(chart: ChartId | str, selection: Mapping[str, Any]) -> Optional[Command]:
    """Turn a Vega-Lite point-selection event into a chart_select command.

    ``selection`` is the ``selection`` mapping of a chart event, e.g.
    ``{"pick": [{"name": "Nike"}]}``. Returns None when nothing is picked.
    """
    picked = (selection or {}).get(SELECTION_NAME) or []
    if not picked:
        return None
    value = picked[0].get("name") if isinstance(picked[0], Mapping) else None
    if value is None or value == "":
        return None
    return chart_select(chart, str(value))
