import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tracker.errors import ConfigError

BASE = Path(__file__).resolve().parent.parent

POLICIES = ("drift", "timeline")
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    api_url: str = ""
    request_timeout: float = 15.0
    state_dir: Path = Path.home() / ".finance-tracker"
    session_ttl_days: int = 30
    allocation_policy: str = "drift"
    rebalance_threshold: float = 5.0
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _float(env: dict, key: str, default: float) -> float:
    raw = env.get(key)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")


def _int(env: dict, key: str, default: int) -> int:
    raw = env.get(key)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


def load_settings(env: Optional[dict] = None) -> Settings:
    """Build settings from the environment.

    A ``.env`` next to the project root is loaded first, so API URLs and the
    state directory can live there instead of the shell profile. Passing
    ``env`` skips the dotenv step, which is what the tests do.
    """
    if env is None:
        load_dotenv(BASE / ".env")
        env = dict(os.environ)

    api_url = env.get("FINANCE_API_URL") or env.get("VITE_API_URL") or ""
    policy = (env.get("FINANCE_ALLOCATION_POLICY") or "drift").strip().lower()
    if policy not in POLICIES:
        raise ConfigError(f"FINANCE_ALLOCATION_POLICY must be one of {POLICIES}, got {policy!r}")

    timeout = _float(env, "FINANCE_REQUEST_TIMEOUT", 15.0)
    if timeout <= 0:
        raise ConfigError("FINANCE_REQUEST_TIMEOUT must be positive")
    ttl = _int(env, "FINANCE_SESSION_TTL_DAYS", 30)
    if ttl < 0:
        raise ConfigError("FINANCE_SESSION_TTL_DAYS cannot be negative")
    threshold = _float(env, "FINANCE_REBALANCE_THRESHOLD", 5.0)
    if threshold < 0:
        raise ConfigError("FINANCE_REBALANCE_THRESHOLD cannot be negative")

    level = (env.get("FINANCE_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"unknown log level {level!r}")

    state_dir = env.get("FINANCE_STATE_DIR")
    log_file = env.get("FINANCE_LOG_FILE")
    return Settings(
        api_url=api_url.rstrip("/"),
        request_timeout=timeout,
        state_dir=Path(state_dir).expanduser() if state_dir else Settings.state_dir,
        session_ttl_days=ttl,
        allocation_policy=policy,
        rebalance_threshold=threshold,
        log_level=level,
        log_file=Path(log_file).expanduser() if log_file else None,
    )


def configure_logging(settings: Settings) -> None:
    kwargs = {"level": getattr(logging, settings.log_level), "format": LOG_FORMAT}
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = settings.log_file
    logging.basicConfig(**kwargs)
