from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..binance_client import BinanceClient
from .protocols import QuotedFetcher, log_fetch_failure, parse_float

log = logging.getLogger(__name__)

SPOT_ALGO_PATH = "/sapi/v1/algo/spot/openOrders"
FUTURES_ALGO_PATH = "/sapi/v1/algo/futures/openOrders"


class BinanceAlgoFetcher(QuotedFetcher):
    """Capital held by trading bots (spot and futures algo orders).

    Each active strategy contributes its invested amount plus unrealized PnL.
    """

    account_type = "trading_bots"

    def __init__(self, *, client: BinanceClient) -> None:
        self._client = client

    async def fetch(self) -> float:
        spot, futures = await asyncio.gather(
            self._fetch_orders_value(SPOT_ALGO_PATH, "spot_algo"),
            self._fetch_orders_value(FUTURES_ALGO_PATH, "futures_algo"),
        )
        return spot + futures

    async def _fetch_orders_value(self, path: str, label: str) -> float:
        try:
            data = await self._client.get_signed(path, with_recv_window=True)
            return algo_orders_value(data)
        except Exception as exc:
            log_fetch_failure(log, label, exc)
            return 0.0


def _order_list(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        orders = data.get("orders")
        if isinstance(orders, list):
            return orders
    return []


def _first_present(order: dict[str, Any], *keys: str) -> float:
    for key in keys:
        raw = order.get(key)
        if raw is None or raw == "" or raw == 0:
            continue
        return parse_float(raw)
    return 0.0


def algo_orders_value(data: Any) -> float:
    total = 0.0
    for order in _order_list(data):
        if not isinstance(order, dict):
            continue
        invested = _first_present(order, "investedQty", "totalInvested", "amount")
        pnl = _first_present(order, "unrealizedPnl", "pnl")
        value = invested + pnl
        if value > 0:
            total += value
    return total
