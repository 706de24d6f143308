from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"

# Load .env once, at import time, so all modules share the same behavior.
load_dotenv(dotenv_path=ENV_PATH)


class ConfigurationError(RuntimeError):
    """Required configuration is missing; surfaced verbatim to the caller."""


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class BinanceCredentials:
    api_key: str
    api_secret: str = field(repr=False)


def get_binance_credentials() -> BinanceCredentials:
    api_key = _env("BINANCE_KEY")
    api_secret = _env("BINANCE_SECRET")

    if not api_key or not api_secret:
        raise ConfigurationError("Missing BINANCE_KEY or BINANCE_SECRET")

    return BinanceCredentials(api_key=api_key, api_secret=api_secret)


def get_spot_base_url() -> str:
    return (_env("NETWORTH_SPOT_BASE_URL") or "https://api.binance.com").rstrip("/")


def get_futures_base_url() -> str:
    return (_env("NETWORTH_FUTURES_BASE_URL") or "https://fapi.binance.com").rstrip("/")


def get_bridge_assets() -> tuple[str, ...]:
    """Ordered intermediate assets used when no direct pair exists."""

    raw = _env("NETWORTH_BRIDGE_ASSETS")
    if not raw:
        return ("BTC", "BNB")
    bridges = tuple(s.strip().upper() for s in raw.split(",") if s.strip())
    return bridges or ("BTC", "BNB")


def get_recv_window_ms() -> int:
    raw = _env("NETWORTH_RECV_WINDOW_MS") or "60000"
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 60000


def get_timeout_seconds() -> float:
    """Budget for one whole aggregation, kept under typical serverless limits."""

    return _env_float("NETWORTH_TIMEOUT_SECONDS", 9.0)


def get_http_timeout_seconds() -> float:
    return _env_float("NETWORTH_HTTP_TIMEOUT_SECONDS", 8.0)


def get_price_feed_required() -> bool:
    """When true, a failed public price feed aborts the request instead of pricing everything at 0."""

    return _env_bool("NETWORTH_PRICE_FEED_REQUIRED", False)


def get_futures_source() -> str:
    raw = (_env("NETWORTH_FUTURES_SOURCE") or "account").lower()
    return raw if raw in {"account", "balance"} else "account"


def get_networth_host() -> str:
    return _env("NETWORTH_HOST") or "127.0.0.1"


def get_networth_port() -> int:
    raw = _env("NETWORTH_PORT") or "8000"
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 8000


def get_networth_reload() -> bool:
    return _env_bool("NETWORTH_RELOAD", False)


def get_log_level() -> str:
    return (_env("NETWORTH_LOG_LEVEL") or "INFO").upper()
