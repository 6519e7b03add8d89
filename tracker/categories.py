from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from tracker.domain import Category, TRANSACTION_TYPES
from tracker.functional import Either, one_of, required, validate

DEFAULT_COLOR = "#4ECDC4"
TYPE_COLORS = {"expense": "#EF4444", "income": "#10B981"}


def filter_by_type(cats: Iterable[Category], cat_type: str) -> Tuple[Category, ...]:
    if cat_type == "all":
        return tuple(cats)
    return tuple(c for c in cats if c.type == cat_type)


def group_by_type(cats: Iterable[Category]) -> dict[str, Tuple[Category, ...]]:
    cats = tuple(cats)
    return {t: filter_by_type(cats, t) for t in TRANSACTION_TYPES}


@dataclass(frozen=True)
class CategoryForm:
    name: str = ""
    icon: str = ""
    color: str = DEFAULT_COLOR
    type: str = "expense"
    editing_id: Optional[int] = None

    @classmethod
    def for_type(cls, cat_type: str) -> "CategoryForm":
        return cls(type=cat_type, color=TYPE_COLORS[cat_type])

    @classmethod
    def for_edit(cls, c: Category) -> "CategoryForm":
        return cls(name=c.name, icon=c.icon, color=c.color, type=c.type, editing_id=c.id)

    def with_type(self, cat_type: str) -> "CategoryForm":
        return replace(self, type=cat_type, color=TYPE_COLORS[cat_type])

    def to_payload(self) -> dict:
        return {"name": self.name.strip(), "icon": self.icon, "color": self.color, "type": self.type}


def validate_category_form(form: CategoryForm) -> Either[dict, dict]:
    return validate(
        form.to_payload(),
        required("name", "Name"),
        one_of("type", TRANSACTION_TYPES),
    )
