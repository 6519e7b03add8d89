from datetime import date

import pytest

from tracker.domain import Category, Contribution, Holding, StatsSummary, Transaction
from tracker.errors import BackendError


class FakeBackend:
    """In-memory stand-in for ApiClient, with the backend's delete rules."""

    def __init__(self):
        self.categories = {
            1: Category(1, "Food", "🍔", "#EF4444", "expense"),
            2: Category(2, "Salary", "💰", "#10B981", "income"),
            3: Category(3, "Travel", "✈️", "#3B82F6", "expense"),
        }
        self.transactions = {
            10: Transaction(10, 1_000_000, date(2025, 3, 1), "income", "March pay", "ACME", 2),
            11: Transaction(11, 300_000, date(2025, 3, 2), "expense", "Groceries", "Market", 1),
        }
        self.holdings = (
            Holding("emergency_fund", 0, "Bank"),
            Holding("pension_fund", 0, "BPJS"),
            Holding("indonesian_equity", 0, "Bibit"),
            Holding("international_equity", 0, "Gotrade"),
            Holding("gold", 0, "Pegadaian"),
        )
        self.calls = []
        self._next_id = 100

    def _id(self):
        self._next_id += 1
        return self._next_id

    def list_transactions(self, start, end):
        self.calls.append("list_transactions")
        return tuple(t for t in self.transactions.values() if start <= t.date <= end)

    def list_categories(self):
        self.calls.append("list_categories")
        return tuple(self.categories.values())

    def stats_summary(self, start, end):
        self.calls.append("stats_summary")
        rows = [t for t in self.transactions.values() if start <= t.date <= end]
        income = sum(t.amount for t in rows if t.type == "income")
        expenses = sum(t.amount for t in rows if t.type == "expense")
        return StatsSummary(income, expenses, income - expenses, len(rows), ())

    def create_transaction(self, payload):
        self.calls.append("create_transaction")
        tx_id = self._id()
        self.transactions[tx_id] = Transaction(
            tx_id, payload["amount"], date.fromisoformat(payload["date"]), payload["type"],
            payload.get("description", ""), payload.get("vendor", ""), payload.get("category_id"),
        )
        return {"id": tx_id}

    def update_transaction(self, tx_id, payload):
        self.calls.append("update_transaction")
        self.transactions.pop(tx_id)
        self.transactions[tx_id] = Transaction(
            tx_id, payload["amount"], date.fromisoformat(payload["date"]), payload["type"],
            payload.get("description", ""), payload.get("vendor", ""), payload.get("category_id"),
        )
        return {"id": tx_id}

    def delete_transaction(self, tx_id):
        self.calls.append("delete_transaction")
        self.transactions.pop(tx_id)

    def create_category(self, payload):
        self.calls.append("create_category")
        cat_id = self._id()
        self.categories[cat_id] = Category(cat_id, payload["name"], payload["icon"], payload["color"], payload["type"])
        return {"id": cat_id}

    def update_category(self, cat_id, payload):
        self.calls.append("update_category")
        self.categories[cat_id] = Category(cat_id, payload["name"], payload["icon"], payload["color"], payload["type"])
        return {"id": cat_id}

    def delete_category(self, cat_id):
        self.calls.append("delete_category")
        if any(t.category_id == cat_id for t in self.transactions.values()):
            raise BackendError(400, "Cannot delete category with existing transactions")
        self.categories.pop(cat_id)

    def investment_summary(self):
        self.calls.append("investment_summary")
        return self.holdings, None

    def contribution_plan(self):
        self.calls.append("contribution_plan")
        return {"monthlyBudget": 5_000_000}

    def list_contributions(self):
        self.calls.append("list_contributions")
        return (
            Contribution(1, "gold", 500_000, date(2025, 1, 5)),
            Contribution(2, "gold", 500_000, date(2025, 2, 5)),
        )

    def action_items(self):
        self.calls.append("action_items")
        return ()

    def update_holding(self, holding_type, value):
        self.calls.append(("update_holding", holding_type, value))

    def log_contribution(self, payload):
        self.calls.append(("log_contribution", payload["type"], payload["amount"]))

    def save_config(self, config):
        self.calls.append(("save_config", config.monthly_budget))

    def start_plan(self):
        self.calls.append("start_plan")


@pytest.fixture
def backend():
    return FakeBackend()
