from typing import Iterable

from tracker.domain import StatsSummary

INCOME_COLOR = "#10B981"
EXPENSE_COLOR = "#EF4444"


def summary_chart_data(summary: StatsSummary) -> list[dict]:
    rows = [
        {"name": "Income", "value": summary.income or 0, "color": INCOME_COLOR},
        {"name": "Expenses", "value": summary.expenses or 0, "color": EXPENSE_COLOR},
    ]
    return [r for r in rows if r["value"] > 0]


def breakdown_data(summary: StatsSummary, category_type: str) -> list[dict]:
    """Category rows of one type with a positive total, in backend order."""
    return [
        {"name": f"{c.icon} {c.name}".strip(), "value": c.total, "color": c.color}
        for c in summary.by_category
        if c.total > 0 and c.category_type == category_type
    ]


def top_n(rows: list[dict], n: int = 5) -> list[dict]:
    return rows[: max(0, n)]


def with_percentages(rows: Iterable[dict]) -> list[dict]:
    rows = list(rows)
    total = sum(r["value"] for r in rows)
    return [{**r, "percentage": (r["value"] / total * 100) if total else 0.0} for r in rows]


def color_map(rows: Iterable[dict]) -> dict[str, str]:
    return {r["name"]: r["color"] for r in rows}
