from __future__ import annotations

import logging
from typing import Any

from ..binance_client import BinanceClient
from ..pricing import BinancePriceResolver, PriceTable
from .protocols import AssetBalance, PricedFetcher, log_fetch_failure, parse_float

log = logging.getLogger(__name__)

SPOT_ACCOUNT_PATH = "/api/v3/account"


class BinanceSpotFetcher(PricedFetcher):
    account_type = "spot"

    def __init__(self, *, client: BinanceClient, resolver: BinancePriceResolver) -> None:
        self._client = client
        self._resolver = resolver

    async def fetch(self, prices: PriceTable) -> float:
        """Spot account value in the quote asset; 0 on any failure."""

        try:
            data = await self._client.get_signed(SPOT_ACCOUNT_PATH)
            balances = parse_spot_balances(data)
        except Exception as exc:
            log_fetch_failure(log, self.account_type, exc)
            return 0.0

        return spot_value(balances, prices, self._resolver)


def parse_spot_balances(data: Any) -> list[AssetBalance]:
    """Positive-total balances from an /api/v3/account payload."""

    raw = data.get("balances") or []
    out: list[AssetBalance] = []
    for b in raw:
        if not isinstance(b, dict):
            continue
        asset = b.get("asset")
        if not isinstance(asset, str) or not asset:
            continue

        balance = AssetBalance(
            asset=asset.strip().upper(),
            free=parse_float(b.get("free")),
            locked=parse_float(b.get("locked")),
        )
        if balance.total <= 0:
            continue
        out.append(balance)

    return out


def spot_value(balances: list[AssetBalance], prices: PriceTable, resolver: BinancePriceResolver) -> float:
    total = 0.0
    for b in balances:
        total += b.total * resolver.price_in_quote(b.asset, prices)
    return total
