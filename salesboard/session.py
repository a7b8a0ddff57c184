from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from pandas.io.formats.style import Styler

from salesboard.charts import CHART_DEFINITIONS, TAB_CHARTS, ChartId, ChartRenderer, Tab, VegaLiteRenderer, build_series
from salesboard.commands import Action, Command
from salesboard.data import load_dashboard_data
from salesboard.filters import DisplaySettings, FilterKey, FilterState, apply_filters
from salesboard.formatting import records_table, style_records_table
from salesboard.metrics_groups import AggregateGroup, aggregate_by
from salesboard.metrics_summary import Summary, summarize
from salesboard.options import filter_options


logger = logging.getLogger(__name__)


class DashboardSession:
    """Owns the dataset, the current filters and the derived views for one dashboard.

    All recomputation happens synchronously inside ``dispatch``; views read the
    cached filtered subset.
    """

    def __init__(
        self,
        records: pd.DataFrame,
        *,
        renderer: Optional[ChartRenderer] = None,
        settings: Optional[DisplaySettings] = None,
        source: str = "file",
    ) -> None:
        self.records = records.reset_index(drop=True)
        self.renderer: ChartRenderer = renderer or VegaLiteRenderer()
        self.settings = settings or DisplaySettings()
        self.source = source
        self.options: Dict[FilterKey, List[str]] = filter_options(self.records)
        self.filters = FilterState()
        self.active_tab = Tab.OVERVIEW
        self.revision = 0
        self.filtered = apply_filters(self.records, self.filters)

    @classmethod
    def from_source(
        cls,
        path: Optional[Path | str] = None,
        *,
        renderer: Optional[ChartRenderer] = None,
        settings: Optional[DisplaySettings] = None,
    ) -> "DashboardSession":
        settings = settings or DisplaySettings()
        data_ctx = load_dashboard_data(path, sample_rows=settings.sample_rows, sample_seed=settings.sample_seed)
        return cls(data_ctx["records"], renderer=renderer, settings=settings, source=data_ctx["source"])

    def dispatch(self, command: Command) -> bool:
        """Apply one command; returns True when the dashboard state changed."""
        logger.debug("dispatch %s", command)
        if command.action is Action.SWITCH_TAB:
            if command.tab == self.active_tab:
                return False
            self.active_tab = command.tab
            return True

        if command.action is Action.CLEAR_FILTERS:
            new_filters = self.filters.cleared()
        elif command.action is Action.CHART_SELECT:
            key = CHART_DEFINITIONS[command.chart].filter_key
            new_filters = self.filters.with_value(key, command.value)
        else:
            new_filters = self.filters.with_value(command.key, command.value)

        if new_filters == self.filters:
            return False
        self.filters = new_filters
        self._refresh()
        return True

    def _refresh(self) -> None:
        self.filtered = apply_filters(self.records, self.filters)
        self.revision += 1
        logger.debug("filters %s matched %d of %d records", self.filters, len(self.filtered), len(self.records))

    def summary(self) -> Summary:
        return summarize(self.filtered)

    def groups(self, field: str) -> List[AggregateGroup]:
        return aggregate_by(self.filtered, field)

    def stats(self) -> Dict[str, int]:
        return {"total_records": len(self.records), "filtered_records": len(self.filtered)}

    def table(self) -> pd.DataFrame:
        return records_table(self.filtered)

    def styled_table(self) -> Styler:
        return style_records_table(self.filtered)

    def charts(self) -> Dict[ChartId, Any]:
        self.renderer.dispose()
        return {
            chart_id: self.renderer.render(build_series(chart_id, self.filtered, self.settings))
            for chart_id in TAB_CHARTS[self.active_tab]
        }

    def snapshot(self) -> Dict[str, Any]:
        return {
            "filters": {key.value: self.filters.get(key) for key in FilterKey},
            "summary": asdict(self.summary()),
            "stats": self.stats(),
            "tab": self.active_tab.value,
            "charts": {chart_id.value: spec for chart_id, spec in self.charts().items()},
        }
