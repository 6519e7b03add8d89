import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Any

from tracker.errors import MalformedResponse

TRANSACTION_TYPES = ("expense", "income")


def _number(data: dict, key: str, default: Optional[float] = None) -> float:
    if not isinstance(data, dict):
        raise MalformedResponse(f"expected an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or value == "":
        if default is None:
            raise MalformedResponse(f"missing numeric field '{key}'")
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        if default is None:
            raise MalformedResponse(f"field '{key}' is not a number: {value!r}")
        return default
    if not math.isfinite(number):
        raise MalformedResponse(f"field '{key}' is not finite: {value!r}")
    return number


def _required(data: dict, key: str) -> Any:
    if not isinstance(data, dict):
        raise MalformedResponse(f"expected an object, got {type(data).__name__}")
    if data.get(key) is None:
        raise MalformedResponse(f"missing field '{key}'")
    return data[key]


def _date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        # backend may send full timestamps
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise MalformedResponse(f"bad date: {value!r}")


@dataclass(frozen=True)
class Transaction:
    id: int
    amount: float    # always positive, sign comes from type
    date: date
    type: str        # "expense" or "income"
    description: str = ""
    vendor: str = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    category_icon: Optional[str] = None
    category_color: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Transaction":
        return cls(
            id=_required(data, "id"),
            amount=_number(data, "amount"),
            date=_date(_required(data, "date")),
            type=data.get("type") or "expense",
            description=data.get("description") or "",
            vendor=data.get("vendor") or "",
            category_id=data.get("category_id"),
            category_name=data.get("category_name"),
            category_icon=data.get("category_icon"),
            category_color=data.get("category_color"),
        )


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    icon: str
    color: str
    type: str

    @classmethod
    def from_api(cls, data: dict) -> "Category":
        return cls(
            id=_required(data, "id"),
            name=_required(data, "name"),
            icon=data.get("icon") or "",
            color=data.get("color") or "#888888",
            type=data.get("type") or "expense",
        )


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    color: str
    category_type: str
    total: float
    id: Optional[int] = None
    icon: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "CategoryTotal":
        return cls(
            name=data.get("name") or "Uncategorized",
            color=data.get("color") or "#888888",
            category_type=data.get("category_type") or data.get("type") or "expense",
            total=_number(data, "total", 0.0),
            id=data.get("id"),
            icon=data.get("icon") or "",
        )


@dataclass(frozen=True)
class StatsSummary:
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    count: int = 0
    by_category: tuple[CategoryTotal, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "StatsSummary":
        # missing numbers fall back to 0, like the dashboard always did
        if not isinstance(data, dict):
            raise MalformedResponse("stats summary is not an object")
        return cls(
            income=_number(data, "income", 0.0),
            expenses=_number(data, "expenses", 0.0),
            net=_number(data, "net", 0.0),
            count=int(_number(data, "count", 0.0)),
            by_category=tuple(CategoryTotal.from_api(c) for c in data.get("byCategory") or ()),
        )


@dataclass(frozen=True)
class Holding:
    type: str
    current_value: float
    platform: str = ""
    name: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Holding":
        value = _number(data, "current_value", 0.0)
        if value < 0:
            raise MalformedResponse(f"negative holding value for {data.get('type')!r}")
        return cls(
            type=_required(data, "type"),
            current_value=value,
            platform=data.get("platform") or "",
            name=data.get("name") or "",
        )


@dataclass(frozen=True)
class Contribution:
    id: int
    type: str
    amount: float
    date: date
    notes: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Contribution":
        return cls(
            id=_required(data, "id"),
            type=_required(data, "type"),
            amount=_number(data, "amount"),
            date=_date(_required(data, "date")),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class PlanConfig:
    monthly_budget: float
    start_date: Optional[date] = None

    def to_payload(self) -> dict:
        return {
            "monthly_budget": self.monthly_budget,
            "start_date": self.start_date.isoformat() if self.start_date else None,
        }


@dataclass(frozen=True)
class ActionItem:
    id: str
    title: str
    description: str = ""
    category: str = "contribute"  # setup | rebalance | contribute | valuation
    priority: str = "normal"      # high | normal
    action: Optional[str] = None  # one-click trigger, e.g. "start_plan"

    @classmethod
    def from_api(cls, data: dict) -> "ActionItem":
        item_id = str(_required(data, "id"))
        return cls(
            id=item_id,
            title=data.get("title") or item_id,
            description=data.get("description") or "",
            category=data.get("category") or "contribute",
            priority="high" if data.get("priority") == "high" else "normal",
            action=data.get("action") or ("start_plan" if item_id == "start_plan" else None),
        )


@dataclass(frozen=True)
class InvestmentSnapshot:
    """Everything the investment view needs, loaded in one batch."""
    holdings: tuple[Holding, ...]
    config: PlanConfig
    contributions: tuple[Contribution, ...] = ()
    backend_actions: tuple[ActionItem, ...] = field(default_factory=tuple)
