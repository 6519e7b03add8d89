from datetime import date

import pytest

from tracker.domain import CategoryTotal, StatsSummary
from tracker.reports import (
    EXPENSE_COLOR,
    INCOME_COLOR,
    breakdown_data,
    color_map,
    summary_chart_data,
    top_n,
    with_percentages,
)


def make_total(name, total, category_type="expense", icon="", color="#111111"):
    return CategoryTotal(name=name, color=color, category_type=category_type, total=total, icon=icon)


def test_stats_for_one_month(backend):
    summary = backend.stats_summary(date(2025, 3, 1), date(2025, 3, 31))
    assert (summary.income, summary.expenses, summary.net, summary.count) == (1_000_000, 300_000, 700_000, 2)


def test_stats_outside_range_are_empty(backend):
    summary = backend.stats_summary(date(2025, 4, 1), date(2025, 4, 30))
    assert summary.count == 0
    assert summary_chart_data(summary) == []


def test_summary_chart_drops_zero_rows():
    rows = summary_chart_data(StatsSummary(income=1_000_000, expenses=0))
    assert rows == [{"name": "Income", "value": 1_000_000, "color": INCOME_COLOR}]
    rows = summary_chart_data(StatsSummary(income=5, expenses=3))
    assert [r["color"] for r in rows] == [INCOME_COLOR, EXPENSE_COLOR]


def test_breakdown_keeps_positive_rows_of_one_type():
    summary = StatsSummary(by_category=(
        make_total("Food", 300_000, icon="🍔"),
        make_total("Travel", 0),
        make_total("Salary", 1_000_000, "income"),
        make_total("Uncategorized", 50_000),
    ))
    rows = breakdown_data(summary, "expense")
    assert [r["name"] for r in rows] == ["🍔 Food", "Uncategorized"]
    assert [r["name"] for r in breakdown_data(summary, "income")] == ["Salary"]


def test_top_n():
    rows = [{"name": str(i), "value": i} for i in range(8)]
    assert len(top_n(rows)) == 5
    assert top_n(rows, 2) == rows[:2]
    assert top_n(rows, -1) == []


def test_percentages():
    rows = with_percentages([{"name": "a", "value": 300}, {"name": "b", "value": 100}])
    assert rows[0]["percentage"] == pytest.approx(75.0)
    assert rows[1]["percentage"] == pytest.approx(25.0)
    assert with_percentages([{"name": "a", "value": 0}])[0]["percentage"] == 0.0


def test_color_map():
    assert color_map([{"name": "Food", "color": "#EF4444"}]) == {"Food": "#EF4444"}
