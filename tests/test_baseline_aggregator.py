"""Tests for the baseline aggregator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.budget import BudgetLineItem, BaselineTotals
from engine.baseline_aggregator import aggregate, aggregate_by_cost_center


def make_item(hc=1, salary=100_000.0, benefits=20_000.0, loaded=None, cc="CC-ENG"):
    if loaded is None:
        loaded = salary + benefits
    return BudgetLineItem(hc, salary, benefits, loaded, cost_center_id=cc)


class TestAggregate:
    def test_empty_input_is_all_zero(self):
        totals = aggregate([])
        assert totals == BaselineTotals(0, 0.0, 0.0, 0.0)
        assert totals.avg_salary_per_head == 0.0
        assert totals.avg_benefits_per_head == 0.0

    def test_field_wise_sums(self):
        items = [
            make_item(hc=2, salary=200_000, benefits=40_000, loaded=300_000),
            make_item(hc=3, salary=240_000, benefits=60_000, loaded=380_000),
        ]
        totals = aggregate(items)

        assert totals.total_headcount == 5
        assert totals.total_base_salary == pytest.approx(440_000)
        assert totals.total_benefits == pytest.approx(100_000)
        assert totals.total_fully_loaded == pytest.approx(680_000)
        assert totals.avg_salary_per_head == pytest.approx(88_000)

    def test_missing_values_count_as_zero(self):
        items = [
            BudgetLineItem(headcount=None, base_salary=50_000, benefits_amount=None, fully_loaded_cost=None),
            make_item(hc=1, salary=10_000, benefits=1_000, loaded=11_000),
        ]
        totals = aggregate(items)

        assert totals.total_headcount == 1
        assert totals.total_base_salary == pytest.approx(60_000)
        assert totals.total_benefits == pytest.approx(1_000)
        assert totals.total_fully_loaded == pytest.approx(11_000)

    def test_fully_loaded_is_not_rederived(self):
        totals = aggregate([make_item(hc=1, salary=100, benefits=10, loaded=999)])
        assert totals.total_fully_loaded == 999

    def test_accepts_generator(self):
        totals = aggregate(make_item() for _ in range(4))
        assert totals.total_headcount == 4

    def test_additivity_over_partition(self):
        items = [make_item(hc=i, salary=1_000.5 * i, benefits=17.25 * i, loaded=2_000 * i) for i in range(1, 9)]
        for split in range(len(items) + 1):
            a, b = items[:split], items[split:]
            combined = aggregate(a) + aggregate(b)
            whole = aggregate(a + b)
            assert whole.total_headcount == combined.total_headcount
            assert whole.total_base_salary == pytest.approx(combined.total_base_salary)
            assert whole.total_benefits == pytest.approx(combined.total_benefits)
            assert whole.total_fully_loaded == pytest.approx(combined.total_fully_loaded)


class TestAggregateByCostCenter:
    def test_groups_by_cost_center(self):
        items = [
            make_item(hc=2, cc="CC-ENG"),
            make_item(hc=1, cc="CC-SAL"),
            make_item(hc=3, cc="CC-ENG"),
            make_item(hc=1, cc=None),
        ]
        grouped = aggregate_by_cost_center(items)

        assert set(grouped) == {"CC-ENG", "CC-SAL", None}
        assert grouped["CC-ENG"].total_headcount == 5
        assert grouped["CC-SAL"].total_headcount == 1
        assert grouped[None].total_headcount == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
