from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any


def _ts_ms() -> int:
    return int(time.time() * 1000)


def sign(secret: str, query_string: str) -> str:
    """HMAC-SHA256 of the exact query string bytes, hex encoded."""

    return hmac.new(secret.encode("utf-8"), query_string.encode("utf-8"), hashlib.sha256).hexdigest()


def canonical_query(params: dict[str, Any]) -> str:
    """Join params as key=value&... in insertion order.

    Values are used as-is; Binance signs the literal string it receives, so
    the caller is responsible for values that would need URL encoding.
    """

    return "&".join(f"{k}={v}" for k, v in params.items())


def build_signed_query(
    params: dict[str, Any] | None = None,
    *,
    secret: str,
    recv_window: int | None = None,
    timestamp_ms: int | None = None,
) -> str:
    """Return the query string with timestamp (+ recvWindow) and signature appended.

    A fresh timestamp is generated on every call unless one is passed in;
    signatures age out on the exchange side, so never reuse a result.
    """

    p: dict[str, Any] = dict(params or {})
    p["timestamp"] = timestamp_ms if timestamp_ms is not None else _ts_ms()
    if recv_window is not None:
        p["recvWindow"] = recv_window

    qs = canonical_query(p)
    return f"{qs}&signature={sign(secret, qs)}"
