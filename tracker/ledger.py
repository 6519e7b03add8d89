from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Iterable, Optional, Tuple

from tracker.domain import Category, Transaction, TRANSACTION_TYPES
from tracker.functional import Either, Left, Right, one_of, positive_amount, required, validate

TYPE_FILTERS = ("all", "expense", "income")


def by_type(tx_type: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return tx_type == "all" or t.type == tx_type

    return _filter


def by_category(cat_id: Optional[int]) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return t.category_id == cat_id

    return _filter


def filter_by_type(trans: Tuple[Transaction, ...], tx_type: str) -> Tuple[Transaction, ...]:
    if tx_type not in TYPE_FILTERS:
        raise ValueError(f"unknown type filter {tx_type!r}")
    return tuple(filter(by_type(tx_type), trans))


def categories_for_type(cats: Iterable[Category], tx_type: str) -> Tuple[Category, ...]:
    return tuple(c for c in cats if c.type == tx_type)


def count_referencing(trans: Iterable[Transaction], cat_id: int) -> int:
    return sum(1 for _ in filter(by_category(cat_id), trans))


@dataclass(frozen=True)
class TransactionForm:
    amount: str = ""
    date: Optional[date] = None
    type: str = "expense"
    description: str = ""
    vendor: str = ""
    category_id: Optional[int] = None
    editing_id: Optional[int] = None

    @classmethod
    def blank(cls, tx_type: str, today: date) -> "TransactionForm":
        return cls(type=tx_type, date=today)

    @classmethod
    def for_edit(cls, t: Transaction) -> "TransactionForm":
        return cls(
            amount=str(t.amount),
            date=t.date,
            type=t.type or "expense",
            description=t.description,
            vendor=t.vendor,
            category_id=t.category_id,
            editing_id=t.id,
        )

    def with_type(self, tx_type: str) -> "TransactionForm":
        # switching type drops the category so it can never mismatch
        return replace(self, type=tx_type, category_id=None)

    def to_payload(self) -> dict:
        return {
            "amount": float(self.amount),
            "date": self.date.isoformat() if self.date else None,
            "type": self.type,
            "description": self.description,
            "vendor": self.vendor,
            "category_id": int(self.category_id) if self.category_id not in (None, "") else None,
        }


def _category_matches(cats: Tuple[Category, ...]):
    def _check(form: dict) -> Either[dict, dict]:
        cat_id = form.get("category_id")
        if cat_id in (None, ""):
            return Right(form)
        category = next((c for c in cats if c.id == cat_id), None)
        if category is None:
            return Left({
                "error": "category_not_found",
                "message": f"Category with ID {cat_id} does not exist",
                "category_id": cat_id,
            })
        if category.type != form["type"]:
            return Left({
                "error": "category_type_mismatch",
                "message": f"{category.type.capitalize()} category {category.name} cannot be used for {form['type']}",
                "category_type": category.type,
                "type": form["type"],
            })
        return Right(form)

    return _check


def validate_transaction_form(form: TransactionForm, cats: Tuple[Category, ...]) -> Either[dict, dict]:
    """Validate ``form`` and return the request payload on success."""
    raw = {
        "amount": form.amount,
        "date": form.date,
        "type": form.type,
        "category_id": form.category_id,
    }
    result = validate(
        raw,
        required("amount", "Amount"),
        positive_amount("amount"),
        required("date", "Date"),
        one_of("type", TRANSACTION_TYPES),
        _category_matches(tuple(cats)),
    )
    return result.map(lambda checked: {**form.to_payload(), "amount": checked["amount"]})
