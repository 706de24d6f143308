from __future__ import annotations

import logging
import math
from types import MappingProxyType
from typing import Any, Mapping

from .binance_client import BinanceClient

log = logging.getLogger(__name__)

PRICE_PATH = "/api/v3/ticker/price"

# symbol (e.g. "ETHUSDT") -> last price; read-only once built.
PriceTable = Mapping[str, float]

# Response fields are named *Usdt, so the quote asset is fixed.
QUOTE_ASSET = "USDT"

EMPTY_PRICES: PriceTable = MappingProxyType({})


class PriceFeedError(RuntimeError):
    """The public price feed could not be fetched or parsed."""


def build_price_table(payload: Any) -> PriceTable:
    if not isinstance(payload, list):
        raise PriceFeedError(f"unexpected ticker payload: {type(payload).__name__}")

    prices: dict[str, float] = {}
    for item in payload:
        if not isinstance(item, dict):
            continue
        symbol = item.get("symbol")
        if not isinstance(symbol, str) or not symbol:
            continue
        try:
            price = float(item.get("price"))
        except (TypeError, ValueError):
            continue
        if not math.isfinite(price):
            continue
        prices[symbol] = price

    return MappingProxyType(prices)


def price_in_quote(
    asset: str,
    prices: PriceTable,
    *,
    quote_asset: str = QUOTE_ASSET,
    bridge_assets: tuple[str, ...] = ("BTC", "BNB"),
) -> float:
    """Value of one unit of `asset` in `quote_asset`.

    Tries the direct pair, then each bridge in order (both legs must be
    present). Returns 0 when nothing resolves.
    """

    a = (asset or "").strip().upper()
    if a == quote_asset:
        return 1.0

    direct = prices.get(f"{a}{quote_asset}")
    if direct:
        return direct

    for bridge in bridge_assets:
        leg = prices.get(f"{a}{bridge}")
        bridge_price = prices.get(f"{bridge}{quote_asset}")
        if leg and bridge_price:
            return leg * bridge_price

    return 0.0


class BinancePriceResolver:
    def __init__(
        self,
        *,
        client: BinanceClient,
        quote_asset: str = QUOTE_ASSET,
        bridge_assets: tuple[str, ...] = ("BTC", "BNB"),
        required: bool = False,
    ) -> None:
        self._client = client
        self.quote_asset = quote_asset
        self.bridge_assets = bridge_assets
        self.required = required

    async def fetch_all_prices(self) -> PriceTable:
        """Fetch every ticker price.

        Fails open with an empty table unless the resolver is `required`,
        in which case PriceFeedError propagates.
        """

        try:
            payload = await self._client.get_public(PRICE_PATH)
            return build_price_table(payload)
        except Exception as exc:
            if self.required:
                if isinstance(exc, PriceFeedError):
                    raise
                raise PriceFeedError(f"price feed unavailable: {exc}") from exc
            log.error("Error fetching prices: %s", exc)
            return EMPTY_PRICES

    def price_in_quote(self, asset: str, prices: PriceTable) -> float:
        return price_in_quote(
            asset,
            prices,
            quote_asset=self.quote_asset,
            bridge_assets=self.bridge_assets,
        )
