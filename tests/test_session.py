import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from salesboard.charts import TAB_CHARTS, ChartId, ChartSeries, Tab
from salesboard.commands import (
    Action,
    Command,
    chart_select,
    clear_filters,
    command_from_selection,
    select_filter,
    switch_tab,
)
from salesboard.data import generate_sample_data, load_records
from salesboard.filters import DisplaySettings, FilterKey, FilterState
from salesboard.formatting import NEGATIVE_COLOR
from salesboard.metrics_summary import Summary
from salesboard.session import DashboardSession

ROWS = [
    {"Brand": "Nike", "Category": "Shoes", "Molecule": "M1", "SKU": "A1", "Value25": "100", "Unit25": "10", "GrowthValue25": "5", "GrowthUnit25": "-2"},
    {"Brand": "Adidas", "Category": "Clothing", "Molecule": "M2", "SKU": "A2", "Value25": "200", "Unit25": "20", "GrowthValue25": "-3", "GrowthUnit25": "4"},
    {"Brand": "Nike", "Category": "Clothing", "Molecule": "M2", "SKU": "A3", "Value25": "50", "Unit25": "5", "GrowthValue25": "1", "GrowthUnit25": "1"},
]


class RecordingRenderer:
    def __init__(self):
        self.rendered = []
        self.disposed = 0

    def render(self, series: ChartSeries):
        self.rendered.append(series)
        return {"chart": series.chart_id.value, "rows": series.rows()}

    def dispose(self):
        self.disposed += 1
        self.rendered = []


class TestCommands(unittest.TestCase):
    def test_constructors(self):
        self.assertEqual(select_filter("brand", "Nike").key, FilterKey.BRAND)
        self.assertEqual(switch_tab("analysis").tab, Tab.ANALYSIS)
        self.assertEqual(clear_filters().action, Action.CLEAR_FILTERS)
        self.assertEqual(chart_select("molecules", "M1").chart, ChartId.MOLECULES)

    def test_invalid_payloads(self):
        with self.assertRaises(ValidationError):
            Command(action=Action.SELECT_FILTER, value="Nike")
        with self.assertRaises(ValidationError):
            Command(action=Action.SWITCH_TAB)
        with self.assertRaises(ValidationError):
            chart_select(ChartId.SCATTER, "Nike")
        with self.assertRaises(ValidationError):
            select_filter("region", "West")

    def test_command_from_selection(self):
        cmd = command_from_selection(ChartId.TOP_BRANDS_VALUE, {"pick": [{"name": "Nike"}]})
        self.assertEqual(cmd, chart_select(ChartId.TOP_BRANDS_VALUE, "Nike"))
        self.assertIsNone(command_from_selection(ChartId.TOP_BRANDS_VALUE, {"pick": []}))
        self.assertIsNone(command_from_selection(ChartId.TOP_BRANDS_VALUE, {}))


class TestDashboardSession(unittest.TestCase):
    def setUp(self):
        self.renderer = RecordingRenderer()
        self.session = DashboardSession(load_records(ROWS), renderer=self.renderer)

    def test_initial_state(self):
        self.assertTrue(self.session.filters.is_empty())
        self.assertEqual(self.session.stats(), {"total_records": 3, "filtered_records": 3})
        self.assertEqual(self.session.summary().total_value, 350)
        self.assertEqual(self.session.active_tab, Tab.OVERVIEW)

    def test_select_and_clear(self):
        self.assertTrue(self.session.dispatch(select_filter(FilterKey.BRAND, "Nike")))
        self.assertEqual(self.session.filtered["SKU"].tolist(), ["A1", "A3"])
        self.assertEqual(self.session.summary().total_value, 150)
        self.assertFalse(self.session.dispatch(select_filter(FilterKey.BRAND, "Nike")))

        self.assertTrue(self.session.dispatch(select_filter(FilterKey.CATEGORY, "Clothing")))
        self.assertEqual(self.session.filtered["SKU"].tolist(), ["A3"])

        self.assertTrue(self.session.dispatch(clear_filters()))
        self.assertEqual(self.session.filters, FilterState())
        self.assertTrue(self.session.filtered.equals(self.session.records))
        self.assertEqual(self.session.revision, 3)

    def test_selecting_all_removes_constraint(self):
        self.session.dispatch(select_filter(FilterKey.BRAND, "Nike"))
        self.session.dispatch(select_filter(FilterKey.BRAND, None))
        self.assertEqual(len(self.session.filtered), 3)

    def test_chart_click_sets_filter(self):
        self.session.dispatch(chart_select(ChartId.MOLECULES, "M2"))
        self.assertEqual(self.session.filters.molecule, "M2")
        self.assertEqual(self.session.filtered["SKU"].tolist(), ["A2", "A3"])

    def test_options_do_not_narrow(self):
        before = dict(self.session.options)
        self.session.dispatch(select_filter(FilterKey.BRAND, "Adidas"))
        self.assertEqual(self.session.options, before)
        self.assertEqual(self.session.options[FilterKey.BRAND], ["Adidas", "Nike"])

    def test_empty_result_views(self):
        self.session.dispatch(select_filter(FilterKey.SKU, "missing"))
        self.assertEqual(self.session.summary(), Summary())
        self.assertEqual(self.session.groups("Brand"), [])
        self.assertTrue(self.session.table().empty)
        charts = self.session.charts()
        self.assertTrue(all(spec["rows"] == [] for spec in charts.values()))

    def test_charts_follow_active_tab(self):
        charts = self.session.charts()
        self.assertEqual(list(charts), list(TAB_CHARTS[Tab.OVERVIEW]))
        self.assertTrue(self.session.dispatch(switch_tab(Tab.PERFORMANCE)))
        self.assertFalse(self.session.dispatch(switch_tab(Tab.PERFORMANCE)))
        charts = self.session.charts()
        self.assertEqual(list(charts), list(TAB_CHARTS[Tab.PERFORMANCE]))
        self.assertEqual(self.renderer.disposed, 2)
        self.assertEqual(len(self.renderer.rendered), len(TAB_CHARTS[Tab.PERFORMANCE]))

    def test_group_data_reaches_renderer(self):
        self.session.dispatch(select_filter(FilterKey.BRAND, "Nike"))
        charts = self.session.charts()
        rows = charts[ChartId.TOP_BRANDS_VALUE]["rows"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["name"], "Nike")
        self.assertEqual(rows[0]["total_value"], 150)
        self.assertEqual(rows[0]["count"], 2)

    def test_snapshot(self):
        snap = self.session.snapshot()
        self.assertEqual(snap["filters"], {"brand": None, "category": None, "molecule": None, "sku": None})
        self.assertEqual(snap["tab"], "overview")
        self.assertEqual(snap["stats"]["filtered_records"], 3)
        self.assertEqual(set(snap["charts"]), {c.value for c in TAB_CHARTS[Tab.OVERVIEW]})

    def test_table_columns(self):
        table = self.session.table()
        self.assertEqual(table.loc[0, "Value"], "$100")
        self.assertEqual(table.loc[1, "Value Growth"], "-3.0%")
        self.assertIn(NEGATIVE_COLOR, self.session.styled_table().to_html())


class TestFromSource(unittest.TestCase):
    def test_falls_back_to_sample(self):
        with tempfile.TemporaryDirectory() as tmp:
            session = DashboardSession.from_source(
                Path(tmp) / "missing.csv",
                renderer=RecordingRenderer(),
                settings=DisplaySettings(sample_rows=25, sample_seed=4),
            )
        self.assertEqual(session.source, "sample")
        self.assertEqual(len(session.records), 25)
        self.assertTrue(session.records.equals(generate_sample_data(25, seed=4)))


if __name__ == "__main__":
    unittest.main()
