import unittest

from salesboard.data import generate_sample_data, load_records
from salesboard.filters import FilterState, apply_filters
from salesboard.metrics_groups import AggregateGroup, aggregate_by, aggregate_frame, sort_groups, top_groups
from salesboard.metrics_summary import Summary, summarize

SCENARIO_ROWS = [
    {"Brand": "Nike", "Value25": "100", "Unit25": "10", "GrowthValue25": "5", "GrowthUnit25": "-2"},
    {"Brand": "Adidas", "Value25": "200", "Unit25": "20", "GrowthValue25": "-3", "GrowthUnit25": "4"},
]


class TestSummary(unittest.TestCase):
    def test_scenario(self):
        summary = summarize(load_records(SCENARIO_ROWS))
        self.assertEqual(summary.total_value, 300)
        self.assertEqual(summary.total_units, 30)
        self.assertAlmostEqual(summary.avg_value_growth, 1)
        self.assertAlmostEqual(summary.avg_unit_growth, 1)
        self.assertEqual(summary.record_count, 2)

    def test_empty_is_all_zero(self):
        records = load_records(SCENARIO_ROWS)
        self.assertEqual(summarize(records.iloc[0:0]), Summary())
        self.assertEqual(summarize(apply_filters(records, FilterState(brand="Puma"))), Summary())


class TestAggregate(unittest.TestCase):
    def test_scenario_filtered_group(self):
        records = apply_filters(load_records(SCENARIO_ROWS), FilterState(brand="Nike"))
        self.assertEqual(len(records), 1)
        groups = aggregate_by(records, "Brand")
        self.assertEqual(
            groups,
            [AggregateGroup(name="Nike", total_value=100, total_units=10, avg_value_growth=5, avg_unit_growth=-2, count=1)],
        )

    def test_first_occurrence_order(self):
        records = load_records(
            [{"Brand": b, "Value25": "1"} for b in ["Vans", "Adidas", "Vans", "Nike", "Adidas"]]
        )
        self.assertEqual([g.name for g in aggregate_by(records, "Brand")], ["Vans", "Adidas", "Nike"])

    def test_groups_partition_input(self):
        records = generate_sample_data(150, seed=11)
        for field in ["Brand", "Category", "Molecule", "SKU"]:
            groups = aggregate_by(records, field)
            self.assertEqual(sum(g.count for g in groups), len(records))
            self.assertAlmostEqual(sum(g.total_value for g in groups), records["Value25"].sum(), delta=1e-3)
            self.assertEqual({g.name for g in groups}, set(records[field]))

    def test_averages_keep_sign(self):
        records = load_records(
            [
                {"Brand": "Puma", "GrowthValue25": "-4", "GrowthUnit25": "-1"},
                {"Brand": "Puma", "GrowthValue25": "-2", "GrowthUnit25": "3"},
            ]
        )
        (group,) = aggregate_by(records, "Brand")
        self.assertAlmostEqual(group.avg_value_growth, -3)
        self.assertAlmostEqual(group.avg_unit_growth, 1)
        self.assertEqual(group.count, 2)

    def test_empty_and_unknown_field(self):
        records = load_records(SCENARIO_ROWS)
        self.assertEqual(aggregate_by(records.iloc[0:0], "Brand"), [])
        self.assertTrue(aggregate_frame(records.iloc[0:0], "Brand").empty)
        with self.assertRaises(KeyError):
            aggregate_by(records, "Region")

    def test_clear_reproduces_unfiltered_aggregate(self):
        records = generate_sample_data(60, seed=5)
        baseline = aggregate_by(records, "Brand")
        narrowed = apply_filters(records, FilterState(category=records["Category"].iloc[0]))
        self.assertLessEqual(len(narrowed), len(records))
        self.assertEqual(aggregate_by(apply_filters(records, FilterState()), "Brand"), baseline)


class TestSorting(unittest.TestCase):
    def setUp(self):
        self.groups = [
            AggregateGroup("a", total_value=10, total_units=3, avg_value_growth=-1),
            AggregateGroup("b", total_value=30, total_units=1, avg_value_growth=2),
            AggregateGroup("c", total_value=30, total_units=2, avg_value_growth=0),
        ]

    def test_sort_is_descending_and_stable(self):
        self.assertEqual([g.name for g in sort_groups(self.groups, "total_value")], ["b", "c", "a"])
        self.assertEqual([g.name for g in sort_groups(self.groups, "avg_value_growth")], ["b", "c", "a"])
        self.assertEqual([g.name for g in sort_groups(self.groups, "total_units", descending=False)], ["b", "c", "a"])

    def test_top_groups(self):
        self.assertEqual([g.name for g in top_groups(self.groups, "total_units", 2)], ["a", "c"])
        self.assertEqual(top_groups(self.groups, "total_units", 0), [])

    def test_unknown_metric(self):
        with self.assertRaises(ValueError):
            sort_groups(self.groups, "count")


if __name__ == "__main__":
    unittest.main()
