from __future__ import annotations

import logging
from typing import Any

from ..binance_client import BinanceClient
from ..pricing import BinancePriceResolver, PriceTable
from .protocols import FuturesBalance, PricedFetcher, log_fetch_failure, parse_float

log = logging.getLogger(__name__)

FUTURES_ACCOUNT_PATH = "/fapi/v2/account"
FUTURES_BALANCE_PATH = "/fapi/v2/balance"


class BinanceFuturesFetcher(PricedFetcher):
    """USDⓈ-M futures account: cross margin plus isolated positions.

    `source="account"` reads /fapi/v2/account (cross + isolated).
    `source="balance"` reads the per-asset /fapi/v2/balance list instead and
    reports everything as cross.
    """

    account_type = "futures"

    def __init__(
        self,
        *,
        client: BinanceClient,
        resolver: BinancePriceResolver,
        source: str = "account",
    ) -> None:
        if source not in ("account", "balance"):
            raise ValueError("source must be 'account' or 'balance'")
        self._client = client
        self._resolver = resolver
        self.source = source

    async def fetch(self, prices: PriceTable) -> FuturesBalance:
        try:
            if self.source == "balance":
                data = await self._client.get_signed(
                    FUTURES_BALANCE_PATH,
                    base_url=self._client.futures_base_url,
                )
                return parse_futures_asset_balances(data, prices, self._resolver)

            data = await self._client.get_signed(
                FUTURES_ACCOUNT_PATH,
                base_url=self._client.futures_base_url,
            )
            return parse_futures_account(data)
        except Exception as exc:
            log_fetch_failure(log, self.account_type, exc)
            return FuturesBalance()


def _is_isolated(position: dict[str, Any]) -> bool:
    flag = position.get("isolated")
    return flag is True or str(flag).lower() == "true"


def parse_futures_account(data: Any) -> FuturesBalance:
    # Isolated margin (typical for futures grid bots) is not part of totalMarginBalance.
    cross = parse_float(data.get("totalMarginBalance"))

    isolated = 0.0
    for position in data.get("positions") or []:
        if not isinstance(position, dict) or not _is_isolated(position):
            continue
        isolated += parse_float(position.get("isolatedWallet")) + parse_float(position.get("unrealizedProfit"))

    return FuturesBalance(cross=cross, isolated=isolated)


def parse_futures_asset_balances(
    data: Any,
    prices: PriceTable,
    resolver: BinancePriceResolver,
) -> FuturesBalance:
    if not isinstance(data, list):
        raise ValueError(f"unexpected futures balance payload: {type(data).__name__}")

    total = 0.0
    for entry in data:
        if not isinstance(entry, dict):
            continue
        asset = entry.get("asset")
        if not isinstance(asset, str) or not asset:
            continue
        amount = parse_float(entry.get("balance"))
        if amount == 0:
            continue
        total += amount * resolver.price_in_quote(asset, prices)

    return FuturesBalance(cross=total, isolated=0.0)
