"""50/40/10 allocation engine.

Everything here is a pure function of the holdings, the static target table in
``tracker.assets``, the monthly budget and the plan start date. Nothing is
cached: the dashboard recomputes the whole view after every fetch.

The two historic planning styles are expressed as ``PhasePolicy`` subclasses:

* ``TimelinePolicy`` walks a fixed timeline of build phases keyed off the
  months elapsed since the plan started, then settles into maintenance.
* ``DriftPolicy`` is in catch-up while any group is underweight by more than a
  threshold and in maintenance otherwise.

Either way a policy only decides the plan state and how the budget is weighted
across groups. ``split_budget`` turns those weights into amounts that always
add up to the budget exactly.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, Optional, Sequence

import numpy as np

from tracker.assets import (
    GROUPS,
    GROUPS_BY_KEY,
    TIMELINE,
    UNKNOWN_COLOR,
    AllocationGroup,
    GroupName,
    HoldingType,
    holding_meta,
)
from tracker.domain import ActionItem, Contribution, Holding, InvestmentSnapshot, PlanConfig
from tracker.formatting import format_currency

logger = logging.getLogger(__name__)

UNIT = Decimal("1")


@dataclass(frozen=True)
class HoldingAllocation:
    type: str
    name: str
    value: float
    percentage: float
    platform: str
    color: str


@dataclass(frozen=True)
class GroupAllocation:
    group: str
    name: str
    value: float
    percentage: float
    target: float
    color: str

    @property
    def drift(self) -> float:
        return self.percentage - self.target


@dataclass(frozen=True)
class PlanState:
    status: str                      # not_started | active | maintenance
    phase: int
    label: str
    months_elapsed: int = 0
    months_remaining: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status != "not_started"


@dataclass(frozen=True)
class GroupContribution:
    group: GroupName
    suggested_amount: Decimal
    reason: str
    holding_type: HoldingType


@dataclass(frozen=True)
class ContributionPlan:
    monthly_budget: Decimal
    state: PlanState
    contributions: tuple[GroupContribution, ...]
    policy: str

    @property
    def total(self) -> Decimal:
        return sum((c.suggested_amount for c in self.contributions), Decimal(0))

    def for_group(self, key: str) -> Optional[GroupContribution]:
        return next((c for c in self.contributions if c.group == key), None)


@dataclass(frozen=True)
class PortfolioView:
    total_value: float
    holdings: tuple[HoldingAllocation, ...]
    groups: tuple[GroupAllocation, ...]
    plan: ContributionPlan
    actions: tuple[ActionItem, ...]


# -- percentages ------------------------------------------------------------

def _percentages(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    total = arr.sum()
    if total <= 0:
        return np.zeros_like(arr)
    return arr / total * 100


def total_value(holdings: Iterable[Holding]) -> float:
    return float(sum(h.current_value for h in holdings))


def holding_percentages(holdings: Sequence[Holding]) -> tuple[HoldingAllocation, ...]:
    pct = _percentages([h.current_value for h in holdings])
    out = []
    for h, p in zip(holdings, pct):
        meta = holding_meta(h.type)
        out.append(HoldingAllocation(
            type=h.type,
            name=meta.name if meta else (h.name or h.type),
            value=h.current_value,
            percentage=float(p),
            platform=h.platform,
            color=meta.color if meta else UNKNOWN_COLOR,
        ))
    return tuple(out)


def group_allocations(
    holdings: Sequence[Holding], groups: Sequence[AllocationGroup] = GROUPS
) -> tuple[GroupAllocation, ...]:
    """Current vs target per group.

    Holdings of a type no group claims are left out of the group universe, so
    the group percentages still sum to 100.
    """
    values = [sum(h.current_value for h in holdings if h.type in g.members) for g in groups]
    pct = _percentages(values)
    return tuple(
        GroupAllocation(
            group=g.key, name=g.name, value=float(v), percentage=float(p), target=g.target, color=g.color
        )
        for g, v, p in zip(groups, values, pct)
    )


def months_between(start: date, today: date) -> int:
    """Whole months elapsed from ``start`` to ``today``, never negative."""
    months = (today.year - start.year) * 12 + (today.month - start.month)
    if today.day < start.day:
        months -= 1
    return max(0, months)


# -- budget split -------------------------------------------------------------

def split_budget(budget, weights: Sequence[tuple[str, float]]) -> dict[str, Decimal]:
    """Split ``budget`` by ``weights``, rounded down to whole units.

    The rounding remainder goes to the heaviest weight so the parts always sum
    to the budget exactly.
    """
    amount = Decimal(str(budget))
    if amount < 0:
        raise ValueError("monthly budget cannot be negative")
    keys = [k for k, _ in weights]
    total_w = sum(Decimal(str(w)) for _, w in weights)
    if not keys:
        raise ValueError("nothing to split the budget across")
    if total_w <= 0:
        raise ValueError("weights must sum to a positive number")

    parts = {
        k: (amount * Decimal(str(w)) / total_w).quantize(UNIT, rounding=ROUND_DOWN)
        for k, w in weights
    }
    heaviest = max(weights, key=lambda kw: kw[1])[0]
    parts[heaviest] += amount - sum(parts.values())
    return parts


# -- policies -----------------------------------------------------------------

class PhasePolicy(ABC):
    name = ""

    def __init__(self, groups: Sequence[AllocationGroup] = GROUPS):
        self.groups = tuple(groups)

    @abstractmethod
    def state(self, allocations: Sequence[GroupAllocation], start_date: Optional[date], today: date) -> PlanState:
        pass

    @abstractmethod
    def weights(self, allocations: Sequence[GroupAllocation], state: PlanState) -> list[tuple[str, float, str]]:
        """(group, weight, reason) for every group."""

    @abstractmethod
    def phases(self) -> list[tuple[int, str, str]]:
        """(number, label, span) for the timeline display."""

    def proportional(self) -> list[tuple[str, float, str]]:
        return [(g.key, g.target, f"proportional to target ({g.target:.0f}%)") for g in self.groups]

    def focus(self, key: str, reason: str) -> list[tuple[str, float, str]]:
        return [(g.key, 1.0 if g.key == key else 0.0, reason if g.key == key else "") for g in self.groups]


class TimelinePolicy(PhasePolicy):
    name = "timeline"

    def __init__(self, phases=TIMELINE, groups: Sequence[AllocationGroup] = GROUPS):
        super().__init__(groups)
        self.timeline = tuple(phases)

    def state(self, allocations, start_date, today):
        first = self.timeline[0]
        if start_date is None:
            return PlanState("not_started", first.number, first.label, 0, first.months)
        elapsed = months_between(start_date, today)
        boundary = 0
        for phase in self.timeline:
            if phase.months is None:
                return PlanState("maintenance", phase.number, phase.label, elapsed, None)
            boundary += phase.months
            if elapsed < boundary:
                return PlanState("active", phase.number, phase.label, elapsed, boundary - elapsed)
        last = self.timeline[-1]
        return PlanState("maintenance", last.number, last.label, elapsed, None)

    def weights(self, allocations, state):
        phase = next(p for p in self.timeline if p.number == state.phase)
        if phase.group is None:
            return self.proportional()
        return self.focus(phase.group, f"{phase.label.split(': ', 1)[-1]} ({phase.span.lower()})")

    def phases(self):
        return [(p.number, p.label, p.span) for p in self.timeline]


class DriftPolicy(PhasePolicy):
    name = "drift"

    def __init__(self, threshold: float = 5.0, groups: Sequence[AllocationGroup] = GROUPS):
        super().__init__(groups)
        self.threshold = threshold

    def most_underweight(self, allocations) -> Optional[GroupAllocation]:
        # min() keeps the first of equal drifts, i.e. table order
        worst = min(allocations, key=lambda a: a.drift, default=None)
        if worst is None or worst.drift >= -self.threshold:
            return None
        return worst

    def state(self, allocations, start_date, today):
        elapsed = months_between(start_date, today) if start_date else 0
        worst = self.most_underweight(allocations)
        if worst is not None:
            status = "active" if start_date else "not_started"
            return PlanState(status, 1, f"Catch-up: Build {worst.name}", elapsed, None)
        status = "maintenance" if start_date else "not_started"
        return PlanState(status, 2, "Maintenance", elapsed, None)

    def weights(self, allocations, state):
        worst = self.most_underweight(allocations)
        if worst is None:
            return self.proportional()
        return self.focus(worst.group, f"underweight by {abs(worst.drift):.1f}%")

    def phases(self):
        return [
            (1, "Catch-up", f"Until every group is within {self.threshold:g}% of target"),
            (2, "Maintenance", "Once balanced"),
        ]


POLICIES = {"timeline": TimelinePolicy, "drift": DriftPolicy}


def get_policy(name: str, threshold: float = 5.0) -> PhasePolicy:
    if name not in POLICIES:
        raise ValueError(f"unknown allocation policy {name!r}")
    if name == "drift":
        return DriftPolicy(threshold=threshold)
    return TimelinePolicy()


# -- plan and actions -----------------------------------------------------------

def plan_contributions(
    holdings: Sequence[Holding],
    monthly_budget,
    start_date: Optional[date],
    today: date,
    policy: PhasePolicy,
) -> ContributionPlan:
    allocations = group_allocations(holdings, policy.groups)
    state = policy.state(allocations, start_date, today)
    weights = policy.weights(allocations, state)
    parts = split_budget(monthly_budget, [(k, w) for k, w, _ in weights])
    reasons = {k: r for k, _, r in weights}
    contributions = tuple(
        GroupContribution(
            group=g.key,
            suggested_amount=parts[g.key],
            reason=reasons[g.key] if parts[g.key] > 0 else "",
            holding_type=g.primary,
        )
        for g in policy.groups
    )
    logger.debug("plan %s phase %s: %s", policy.name, state.phase, parts)
    return ContributionPlan(Decimal(str(monthly_budget)), state, contributions, policy.name)


def default_contribution_type(plan: ContributionPlan) -> str:
    best = max(plan.contributions, key=lambda c: c.suggested_amount, default=None)
    if best is None or best.suggested_amount <= 0:
        return "gold"
    return best.holding_type


def derive_action_items(
    plan: ContributionPlan,
    allocations: Sequence[GroupAllocation],
    config: PlanConfig,
    contributions: Iterable[Contribution],
    today: date,
    threshold: float = 5.0,
) -> tuple[ActionItem, ...]:
    items = []
    started = config.start_date is not None
    if not started:
        items.append(ActionItem(
            id="start_plan",
            title="Plan not started",
            description="Start the plan to begin tracking phases from today.",
            category="setup",
            priority="high",
            action="start_plan",
        ))
    if config.monthly_budget <= 0:
        items.append(ActionItem(
            id="set_budget",
            title="Set a monthly budget",
            description="Contribution suggestions need a monthly budget above zero.",
            category="setup",
            priority="high",
        ))

    portfolio_value = sum(a.value for a in allocations)
    if started and portfolio_value <= 0:
        items.append(ActionItem(
            id="update_values",
            title="Update holding values",
            description="All holdings are at zero. Enter their current values.",
            category="valuation",
        ))
    elif portfolio_value > 0:
        for a in allocations:
            if a.drift < -2 * threshold:
                title, priority = f"{a.name} severely underweight", "high"
            elif a.drift < -threshold:
                title, priority = f"{a.name} underweight", "normal"
            else:
                continue
            items.append(ActionItem(
                id=f"underweight_{a.group}",
                title=title,
                description=f"{a.percentage:.1f}% vs target {a.target:.0f}%",
                category="rebalance",
                priority=priority,
            ))

    if started and config.monthly_budget > 0:
        this_month = any(c.date.year == today.year and c.date.month == today.month for c in contributions)
        if not this_month:
            top = max(plan.contributions, key=lambda c: c.suggested_amount)
            name = GROUPS_BY_KEY[top.group].name if top.group in GROUPS_BY_KEY else top.group
            items.append(ActionItem(
                id=f"contribute_{today:%Y_%m}",
                title="No contribution logged this month",
                description=f"Suggested: {format_currency(top.suggested_amount)} to {name}",
                category="contribute",
            ))
    return tuple(items)


def merge_action_items(backend: Iterable[ActionItem], derived: Iterable[ActionItem]) -> tuple[ActionItem, ...]:
    merged = {}
    for item in backend:
        merged.setdefault(item.id, item)
    for item in derived:
        merged.setdefault(item.id, item)
    # sorted() is stable, so high-priority items keep their relative order
    return tuple(sorted(merged.values(), key=lambda i: i.priority != "high"))


def analyze(snapshot: InvestmentSnapshot, policy: PhasePolicy, today: date, threshold: float = 5.0) -> PortfolioView:
    groups = group_allocations(snapshot.holdings, policy.groups)
    plan = plan_contributions(
        snapshot.holdings, snapshot.config.monthly_budget, snapshot.config.start_date, today, policy
    )
    derived = derive_action_items(plan, groups, snapshot.config, snapshot.contributions, today, threshold)
    return PortfolioView(
        total_value=total_value(snapshot.holdings),
        holdings=holding_percentages(snapshot.holdings),
        groups=groups,
        plan=plan,
        actions=merge_action_items(snapshot.backend_actions, derived),
    )
