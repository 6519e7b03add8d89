"""HTTP client for the finance backend.

Every method maps to one endpoint. Failures are raised, never swallowed:
``BackendError`` for non-2xx responses (with the backend's message verbatim),
``ConnectionFailed`` for transport errors and ``MalformedResponse`` for bodies
that are not the expected JSON. Nothing is retried.
"""
import logging
from datetime import date
from typing import Any, Optional

import requests

from tracker.domain import (
    ActionItem,
    Category,
    Contribution,
    Holding,
    PlanConfig,
    StatsSummary,
    Transaction,
)
from tracker.errors import BackendError, ConnectionFailed, MalformedResponse

logger = logging.getLogger(__name__)


class ApiClient:

    def __init__(self, base_url: str = "", timeout: float = 15.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, *, params: Optional[dict] = None, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ConnectionFailed(str(e)) from e

        body = None
        if r.content:
            try:
                body = r.json()
            except ValueError:
                body = None

        if not r.ok:
            message = None
            if isinstance(body, dict):
                message = body.get("error") or body.get("message")
            logger.warning("%s %s -> %s: %s", method, path, r.status_code, message)
            raise BackendError(r.status_code, message or f"HTTP {r.status_code}", path, verbatim=bool(message))

        if r.content and body is None:
            raise MalformedResponse(f"{method} {path} returned a non-JSON body")
        logger.debug("%s %s -> %s", method, path, r.status_code)
        return body

    def _list(self, path: str, params: Optional[dict] = None) -> list:
        body = self._request("GET", path, params=params)
        if not isinstance(body, list):
            raise MalformedResponse(f"GET {path} did not return a list")
        return body

    @staticmethod
    def _range(start: date, end: date) -> dict:
        return {"startDate": start.isoformat(), "endDate": end.isoformat()}

    # auth

    def verify_email(self, email: str) -> None:
        self._request("POST", "/api/auth/verify-email", json={"email": email})

    def verify_pin(self, email: str, pin: str) -> None:
        self._request("POST", "/api/auth/verify-pin", json={"email": email, "pin": pin})

    # ledger

    def list_transactions(self, start: date, end: date) -> tuple[Transaction, ...]:
        return tuple(Transaction.from_api(t) for t in self._list("/api/expenses", self._range(start, end)))

    def create_transaction(self, payload: dict) -> Any:
        return self._request("POST", "/api/expenses", json=payload)

    def update_transaction(self, tx_id: int, payload: dict) -> Any:
        return self._request("PUT", f"/api/expenses/{tx_id}", json=payload)

    def delete_transaction(self, tx_id: int) -> None:
        self._request("DELETE", f"/api/expenses/{tx_id}")

    def stats_summary(self, start: date, end: date) -> StatsSummary:
        return StatsSummary.from_api(self._request("GET", "/api/stats/summary", params=self._range(start, end)))

    # categories

    def list_categories(self) -> tuple[Category, ...]:
        return tuple(Category.from_api(c) for c in self._list("/api/categories"))

    def create_category(self, payload: dict) -> Any:
        return self._request("POST", "/api/categories", json=payload)

    def update_category(self, cat_id: int, payload: dict) -> Any:
        return self._request("PUT", f"/api/categories/{cat_id}", json=payload)

    def delete_category(self, cat_id: int) -> None:
        self._request("DELETE", f"/api/categories/{cat_id}")

    # investments

    def investment_summary(self) -> tuple[tuple[Holding, ...], Optional[date]]:
        body = self._request("GET", "/api/investments/summary")
        if not isinstance(body, dict) or not isinstance(body.get("holdings"), list):
            raise MalformedResponse("investment summary has no holdings list")
        holdings = tuple(Holding.from_api(h) for h in body["holdings"])
        start = body.get("startDate") or body.get("start_date")
        try:
            start_date = date.fromisoformat(str(start)[:10]) if start else None
        except ValueError:
            raise MalformedResponse(f"bad plan start date: {start!r}")
        return holdings, start_date

    def contribution_plan(self) -> dict:
        body = self._request("GET", "/api/investments/contribution-plan")
        if not isinstance(body, dict):
            raise MalformedResponse("contribution plan is not an object")
        return body

    def list_contributions(self) -> tuple[Contribution, ...]:
        return tuple(Contribution.from_api(c) for c in self._list("/api/investments/contributions"))

    def action_items(self) -> tuple[ActionItem, ...]:
        return tuple(ActionItem.from_api(a) for a in self._list("/api/investments/action-items"))

    def save_config(self, config: PlanConfig) -> Any:
        return self._request("PUT", "/api/investments/config", json=config.to_payload())

    def log_contribution(self, payload: dict) -> Any:
        return self._request("POST", "/api/investments/contributions", json=payload)

    def update_holding(self, holding_type: str, current_value: float) -> Any:
        return self._request(
            "PUT", f"/api/investments/holdings/{holding_type}", json={"current_value": current_value}
        )

    def start_plan(self) -> Any:
        return self._request("POST", "/api/investments/start-plan")
