from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Protocol

from ..binance_client import BinanceAPIError
from ..pricing import PriceTable


@dataclass(frozen=True)
class AssetBalance:
    asset: str
    free: float
    locked: float

    @property
    def total(self) -> float:
        return self.free + self.locked


@dataclass(frozen=True)
class FuturesBalance:
    cross: float = 0.0
    isolated: float = 0.0

    @property
    def total(self) -> float:
        return self.cross + self.isolated


@dataclass(frozen=True)
class WalletBalances:
    """Unified wallet view, already expressed in the quote asset."""

    spot: float = 0.0
    futures: float = 0.0
    trading_bots: float = 0.0
    total: float = 0.0
    wallet_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.wallet_count == 0


class PricedFetcher(Protocol):
    """Account fetcher that needs a price table to convert balances."""

    account_type: str

    async def fetch(self, prices: PriceTable) -> Any:
        ...


class QuotedFetcher(Protocol):
    """Account fetcher whose endpoint already answers in the quote asset."""

    account_type: str

    async def fetch(self) -> Any:
        ...


def parse_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def log_fetch_failure(log: logging.Logger, account_type: str, exc: Exception) -> None:
    # 401 means the key lacks that permission scope; expected, keep it quiet.
    if isinstance(exc, BinanceAPIError) and exc.is_unauthorized:
        log.debug("%s fetch unauthorized: %s", account_type, exc)
        return
    log.warning("%s fetch failed: %s", account_type, exc)
