import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'Event', 'EventBus', 'RefreshTracker',
    'TRANSACTION_SAVED', 'TRANSACTION_DELETED',
    'CATEGORY_SAVED', 'CATEGORY_DELETED',
    'CONTRIBUTION_LOGGED', 'HOLDINGS_UPDATED', 'CONFIG_SAVED', 'PLAN_STARTED',
    'LEDGER_EVENTS', 'INVESTMENT_EVENTS', 'register_refresh_handlers',
]

logger = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    """Per-session publish/subscribe. Handlers run in subscription order."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers[name]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []
        event = Event(name, datetime.now().isoformat(), payload)
        logger.debug("publish %s to %d handler(s): %s", name, len(handlers), payload)
        return [handler(event, payload) for handler in handlers]


TRANSACTION_SAVED = "TRANSACTION_SAVED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"
CATEGORY_SAVED = "CATEGORY_SAVED"
CATEGORY_DELETED = "CATEGORY_DELETED"
CONTRIBUTION_LOGGED = "CONTRIBUTION_LOGGED"
HOLDINGS_UPDATED = "HOLDINGS_UPDATED"
CONFIG_SAVED = "CONFIG_SAVED"
PLAN_STARTED = "PLAN_STARTED"

# categories are part of the dashboard batch, so their mutations refresh it too
LEDGER_EVENTS = (TRANSACTION_SAVED, TRANSACTION_DELETED, CATEGORY_SAVED, CATEGORY_DELETED)
INVESTMENT_EVENTS = (CONTRIBUTION_LOGGED, HOLDINGS_UPDATED, CONFIG_SAVED, PLAN_STARTED)


class RefreshTracker:
    """Remembers which fetch batches a mutation has made stale."""

    def __init__(self):
        self.stale = {"dashboard": True, "investments": True}

    def mark(self, batch: str) -> None:
        self.stale[batch] = True

    def is_stale(self, batch: str) -> bool:
        return self.stale.get(batch, True)

    def fresh(self, batch: str) -> None:
        self.stale[batch] = False


def register_refresh_handlers(bus: EventBus, tracker: RefreshTracker) -> None:
    def ledger_changed(event: Event, payload: dict) -> dict:
        tracker.mark("dashboard")
        return {"refresh": "dashboard"}

    def investments_changed(event: Event, payload: dict) -> dict:
        tracker.mark("investments")
        return {"refresh": "investments"}

    for name in LEDGER_EVENTS:
        bus.subscribe(name, ledger_changed)
    for name in INVESTMENT_EVENTS:
        bus.subscribe(name, investments_changed)
