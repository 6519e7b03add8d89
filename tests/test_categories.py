import pytest

from tracker.categories import (
    DEFAULT_COLOR,
    CategoryForm,
    filter_by_type,
    group_by_type,
    validate_category_form,
)
from tracker.domain import Category
from tracker.errors import BackendError
from tracker.events import CATEGORY_DELETED, CATEGORY_SAVED, EventBus
from tracker.services import LedgerService


CATS = (
    Category(1, "Food", "🍔", "#EF4444", "expense"),
    Category(2, "Salary", "💰", "#10B981", "income"),
    Category(3, "Travel", "✈️", "#3B82F6", "expense"),
)


def test_filter_and_group():
    assert filter_by_type(CATS, "all") == CATS
    assert [c.id for c in filter_by_type(CATS, "expense")] == [1, 3]
    grouped = group_by_type(CATS)
    assert [c.id for c in grouped["income"]] == [2]
    assert [c.id for c in grouped["expense"]] == [1, 3]


def test_form_colors_follow_type():
    assert CategoryForm().color == DEFAULT_COLOR
    assert CategoryForm.for_type("income").color == "#10B981"
    assert CategoryForm.for_type("expense").with_type("income").color == "#10B981"


def test_edit_form_keeps_existing_color():
    form = CategoryForm.for_edit(CATS[2])
    assert form.editing_id == 3
    assert form.color == "#3B82F6"


def test_name_is_required():
    result = validate_category_form(CategoryForm(name="   "))
    assert result.is_left()
    assert result.get_error()["message"] == "Name is required"


def test_valid_form_payload_is_trimmed():
    result = validate_category_form(CategoryForm(name=" Rent ", icon="🏠", type="expense"))
    assert result.get_or_else(None) == {"name": "Rent", "icon": "🏠", "color": DEFAULT_COLOR, "type": "expense"}


def test_create_category_publishes(backend):
    bus = EventBus()
    seen = []
    bus.subscribe(CATEGORY_SAVED, lambda e, p: seen.append(p))

    result = LedgerService(backend, bus).save_category(CategoryForm(name="Rent", icon="🏠"))

    assert result.is_right()
    assert any(c.name == "Rent" for c in backend.categories.values())
    assert seen[0]["name"] == "Rent"


def test_delete_unused_category(backend):
    bus = EventBus()
    seen = []
    bus.subscribe(CATEGORY_DELETED, lambda e, p: seen.append(p))

    LedgerService(backend, bus).delete_category(3)

    assert 3 not in backend.categories
    assert seen == [{"id": 3}]


def test_delete_referenced_category_is_refused(backend):
    bus = EventBus()
    seen = []
    bus.subscribe(CATEGORY_DELETED, lambda e, p: seen.append(p))
    before = len(backend.transactions)

    with pytest.raises(BackendError) as exc:
        LedgerService(backend, bus).delete_category(1)

    assert exc.value.message == "Cannot delete category with existing transactions"
    assert 1 in backend.categories
    assert len(backend.transactions) == before
    assert seen == []
