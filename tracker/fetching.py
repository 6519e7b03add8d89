import asyncio
import logging
import math
import threading
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Optional, TypeVar

from tracker.domain import Category, InvestmentSnapshot, PlanConfig, StatsSummary, Transaction
from tracker.errors import MalformedResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DashboardData:
    transactions: tuple[Transaction, ...]
    categories: tuple[Category, ...]
    stats: StatsSummary


async def load_dashboard(client, start: date, end: date) -> DashboardData:
    """Fetch expenses, categories and stats concurrently.

    The batch is all-or-nothing: if any request fails the exception propagates
    and no partial data is returned.
    """
    transactions, categories, stats = await asyncio.gather(
        asyncio.to_thread(client.list_transactions, start, end),
        asyncio.to_thread(client.list_categories),
        asyncio.to_thread(client.stats_summary, start, end),
    )
    logger.info("dashboard %s..%s: %d transactions", start, end, len(transactions))
    return DashboardData(transactions, categories, stats)


def _budget(plan: dict) -> float:
    raw = plan.get("monthlyBudget", plan.get("monthly_budget"))
    if raw is None:
        return 0.0
    try:
        budget = float(raw)
    except (TypeError, ValueError):
        raise MalformedResponse(f"monthly budget is not a number: {raw!r}")
    if not math.isfinite(budget) or budget < 0:
        raise MalformedResponse(f"monthly budget must be a non-negative amount: {raw!r}")
    return budget


async def load_investments(client) -> InvestmentSnapshot:
    """Fetch summary, plan, contributions and action items concurrently."""
    (holdings, start_date), plan, contributions, actions = await asyncio.gather(
        asyncio.to_thread(client.investment_summary),
        asyncio.to_thread(client.contribution_plan),
        asyncio.to_thread(client.list_contributions),
        asyncio.to_thread(client.action_items),
    )
    contributions = tuple(sorted(contributions, key=lambda c: c.date, reverse=True))
    return InvestmentSnapshot(
        holdings=holdings,
        config=PlanConfig(monthly_budget=_budget(plan), start_date=start_date),
        contributions=contributions,
        backend_actions=actions,
    )


class RequestSequencer:
    """Latest request wins.

    Every batch takes a ticket before it starts. When it finishes, its result
    is only used if no newer ticket has been issued in the meantime.
    """

    def __init__(self):
        self._issued = 0
        self._lock = threading.Lock()

    def next_ticket(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def is_latest(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._issued

    async def run(self, awaitable: Awaitable[T]) -> Optional[T]:
        ticket = self.next_ticket()
        result = await awaitable
        if not self.is_latest(ticket):
            logger.debug("dropping stale batch %d (latest is %d)", ticket, self._issued)
            return None
        return result
