import asyncio
import logging
from typing import Any, Dict, Mapping

from tracker.categories import CategoryForm, validate_category_form
from tracker.domain import Category, PlanConfig
from tracker.events import (
    EventBus,
    CATEGORY_DELETED,
    CATEGORY_SAVED,
    CONFIG_SAVED,
    CONTRIBUTION_LOGGED,
    HOLDINGS_UPDATED,
    PLAN_STARTED,
    TRANSACTION_DELETED,
    TRANSACTION_SAVED,
)
from tracker.functional import Either, Left, Right, validate, required, positive_amount, one_of
from tracker.assets import HOLDING_TYPES
from tracker.ledger import TransactionForm, validate_transaction_form

logger = logging.getLogger(__name__)


class LedgerService:
    """Facade for ledger and category mutations.

    Validation failures come back as ``Left`` and nothing is sent. Backend and
    transport errors propagate to the caller. Every successful mutation
    publishes an event so the next render re-fetches the whole batch.
    """

    def __init__(self, client, bus: EventBus):
        self.client = client
        self.bus = bus

    def save_transaction(self, form: TransactionForm, categories: tuple[Category, ...]) -> Either[dict, Any]:
        checked = validate_transaction_form(form, categories)
        if checked.is_left():
            return checked
        payload = checked.get_or_else(None)
        if form.editing_id is not None:
            result = self.client.update_transaction(form.editing_id, payload)
        else:
            result = self.client.create_transaction(payload)
        logger.info("saved %s of %s", payload["type"], payload["amount"])
        self.bus.publish(TRANSACTION_SAVED, {"id": form.editing_id, **payload})
        return Right(result)

    def delete_transaction(self, tx_id: int) -> None:
        self.client.delete_transaction(tx_id)
        logger.info("deleted transaction %s", tx_id)
        self.bus.publish(TRANSACTION_DELETED, {"id": tx_id})

    def save_category(self, form: CategoryForm) -> Either[dict, Any]:
        checked = validate_category_form(form)
        if checked.is_left():
            return checked
        payload = checked.get_or_else(None)
        if form.editing_id is not None:
            result = self.client.update_category(form.editing_id, payload)
        else:
            result = self.client.create_category(payload)
        self.bus.publish(CATEGORY_SAVED, {"id": form.editing_id, **payload})
        return Right(result)

    def delete_category(self, cat_id: int) -> None:
        # an in-use category makes the backend answer 4xx; BackendError
        # propagates and no event is published, so nothing refreshes
        self.client.delete_category(cat_id)
        logger.info("deleted category %s", cat_id)
        self.bus.publish(CATEGORY_DELETED, {"id": cat_id})


class InvestmentService:

    def __init__(self, client, bus: EventBus):
        self.client = client
        self.bus = bus

    def start_plan(self) -> None:
        self.client.start_plan()
        logger.info("investment plan started")
        self.bus.publish(PLAN_STARTED, {})

    def save_config(self, config: PlanConfig) -> Either[dict, PlanConfig]:
        if config.monthly_budget is None or config.monthly_budget < 0:
            return Left({
                "error": "invalid_budget",
                "field": "monthly_budget",
                "message": "Monthly budget cannot be negative",
            })
        self.client.save_config(config)
        self.bus.publish(CONFIG_SAVED, config.to_payload())
        return Right(config)

    def log_contribution(self, form: Mapping[str, Any]) -> Either[dict, dict]:
        checked = validate(
            dict(form),
            one_of("type", HOLDING_TYPES),
            required("amount", "Amount"),
            positive_amount("amount"),
            required("date", "Date"),
        )
        if checked.is_left():
            return checked
        payload = checked.get_or_else(None)
        payload["date"] = str(payload["date"])
        payload["notes"] = payload.get("notes") or ""
        self.client.log_contribution(payload)
        logger.info("logged %s contribution to %s", payload["amount"], payload["type"])
        self.bus.publish(CONTRIBUTION_LOGGED, payload)
        return Right(payload)

    async def update_holding_values(self, values: Mapping[str, Any]) -> Dict[str, float]:
        """PUT every holding value concurrently. Blank values are sent as 0."""
        def _value(raw) -> float:
            try:
                return float(raw)
            except (TypeError, ValueError):
                return 0.0

        cleaned = {t: _value(v) for t, v in values.items()}
        try:
            await asyncio.gather(*(
                asyncio.to_thread(self.client.update_holding, t, v) for t, v in cleaned.items()
            ))
        finally:
            # some PUTs may have landed even if one failed
            self.bus.publish(HOLDINGS_UPDATED, cleaned)
        return cleaned
