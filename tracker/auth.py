import json
import logging
import re
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from tracker.errors import BackendError, TrackerError

logger = logging.getLogger(__name__)

SESSION_KEY = "expense_auth"
TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_-]{16,64}")


@dataclass(frozen=True)
class LoginFlow:
    """Two-step email -> PIN login. Each submit returns the next state."""
    step: str = "email"   # "email", "pin" or "done"
    email: str = ""
    error: str = ""

    @property
    def authenticated(self) -> bool:
        return self.step == "done"


def _failure(flow: LoginFlow, exc: TrackerError, fallback: str) -> LoginFlow:
    if isinstance(exc, BackendError) and not exc.verbatim:
        return replace(flow, error=fallback)
    return replace(flow, error=exc.message)


def submit_email(flow: LoginFlow, email: str, client) -> LoginFlow:
    email = (email or "").strip()
    if not email:
        return replace(flow, error="Email is required")
    try:
        client.verify_email(email)
    except TrackerError as e:
        logger.info("email verification rejected: %s", e.message)
        return _failure(replace(flow, email=email), e, "Invalid email")
    return LoginFlow(step="pin", email=email, error="")


def submit_pin(flow: LoginFlow, pin: str, client, store: Optional["SessionStore"] = None) -> LoginFlow:
    pin = (pin or "").strip()
    if not pin:
        return replace(flow, error="PIN is required")
    try:
        client.verify_pin(flow.email, pin)
    except TrackerError as e:
        logger.info("PIN verification rejected for %s", flow.email)
        return _failure(flow, e, "Invalid PIN")
    if store is not None:
        store.save(flow.email)
    logger.info("login succeeded for %s", flow.email)
    return LoginFlow(step="done", email=flow.email, error="")


def back_to_email(flow: LoginFlow) -> LoginFlow:
    return replace(flow, step="email", error="")


def new_token() -> str:
    return secrets.token_urlsafe(24)


class SessionStore:
    """Session marker of one browser, persisted as JSON.

    The browser holds ``token`` and the marker file is keyed by it, so two
    browsers never see each other's login. ``ttl_days=0`` means the marker
    never expires.
    """

    def __init__(self, state_dir: Path, token: str, ttl_days: int = 30, key: str = SESSION_KEY):
        if not isinstance(token, str) or not TOKEN_PATTERN.fullmatch(token):
            raise ValueError("malformed session token")
        self.token = token
        self.path = Path(state_dir) / f"{key}-{token}.json"
        self.ttl_days = ttl_days

    def save(self, email: str, now: Optional[datetime] = None) -> dict:
        now = now or datetime.now()
        marker = {
            "email": email,
            "authenticated": True,
            "expires_at": (now + timedelta(days=self.ttl_days)).isoformat() if self.ttl_days else None,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(marker), encoding="utf-8")
        return marker

    def load(self, now: Optional[datetime] = None) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            marker = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable session marker %s: %s", self.path, e)
            return None
        if not isinstance(marker, dict) or not marker.get("authenticated"):
            return None
        expires = marker.get("expires_at")
        if expires:
            try:
                expired = datetime.fromisoformat(expires) <= (now or datetime.now())
            except ValueError:
                expired = True
            if expired:
                logger.info("session for %s expired", marker.get("email"))
                self.clear()
                return None
        return marker

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
