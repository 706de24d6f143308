from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable

from .models import NetWorthSummary
from .pricing import BinancePriceResolver
from .providers.protocols import FuturesBalance, PricedFetcher, QuotedFetcher, WalletBalances

log = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"


class AggregationStrategy(str, Enum):
    UNIFIED = "unified"
    PER_ACCOUNT = "per_account"


def choose_strategy(wallet: WalletBalances) -> AggregationStrategy:
    """Unified wallet data wins whenever the endpoint returned any wallet."""

    if wallet.is_empty:
        return AggregationStrategy.PER_ACCOUNT
    return AggregationStrategy.UNIFIED


@dataclass(frozen=True)
class Outcome:
    """Settled result of one concurrent fetch: the value, or the default plus the error."""

    name: str
    value: Any
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle(tasks: dict[str, tuple[Awaitable[Any], Any]]) -> dict[str, Outcome]:
    """Run every awaitable concurrently; one failure never cancels its siblings."""

    names = list(tasks)
    results = await asyncio.gather(*(aw for aw, _default in tasks.values()), return_exceptions=True)

    out: dict[str, Outcome] = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            log.warning("%s fetch raised, using default: %r", name, result)
            out[name] = Outcome(name=name, value=tasks[name][1], error=result)
        else:
            out[name] = Outcome(name=name, value=result)
    return out


class NetWorthService:
    def __init__(
        self,
        *,
        wallet: QuotedFetcher,
        spot: PricedFetcher,
        futures: PricedFetcher,
        bots: QuotedFetcher,
        resolver: BinancePriceResolver,
        timeout_seconds: float = 9.0,
    ) -> None:
        self._wallet = wallet
        self._spot = spot
        self._futures = futures
        self._bots = bots
        self._resolver = resolver
        self._timeout_seconds = timeout_seconds

    async def aggregate(self) -> NetWorthSummary:
        """One net-worth snapshot, bounded by the request-wide timeout.

        A PriceFeedError from a required price feed propagates; every other
        upstream failure has already been degraded to zero by the fetchers.
        """

        try:
            return await asyncio.wait_for(self._aggregate(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            log.warning("aggregation exceeded %.1fs budget", self._timeout_seconds)
            return NetWorthSummary.zeroed(TIMEOUT_ERROR, as_of=datetime.now(timezone.utc))

    async def _aggregate(self) -> NetWorthSummary:
        wallet = await self._wallet.fetch()
        strategy = choose_strategy(wallet)

        if strategy is AggregationStrategy.UNIFIED:
            return self._from_wallet(wallet)

        log.warning("unified wallet empty or unavailable, falling back to per-account fetch")
        return await self._from_accounts()

    @staticmethod
    def _from_wallet(wallet: WalletBalances) -> NetWorthSummary:
        # The unified endpoint does not distinguish isolated margin.
        return NetWorthSummary(
            spot_usdt=wallet.spot,
            futures_cross_usdt=wallet.futures,
            futures_isolated_usdt=0.0,
            futures_total_usdt=wallet.futures,
            trading_bot_usdt=wallet.trading_bots,
            total_usdt=wallet.total,
            strategy=AggregationStrategy.UNIFIED.value,
            as_of=datetime.now(timezone.utc),
        )

    async def _from_accounts(self) -> NetWorthSummary:
        prices = await self._resolver.fetch_all_prices()

        outcomes = await settle(
            {
                "spot": (self._spot.fetch(prices), 0.0),
                "futures": (self._futures.fetch(prices), FuturesBalance()),
                "trading_bots": (self._bots.fetch(), 0.0),
            }
        )

        spot: float = outcomes["spot"].value
        futures: FuturesBalance = outcomes["futures"].value
        bots: float = outcomes["trading_bots"].value

        return NetWorthSummary(
            spot_usdt=spot,
            futures_cross_usdt=futures.cross,
            futures_isolated_usdt=futures.isolated,
            futures_total_usdt=futures.total,
            trading_bot_usdt=bots,
            total_usdt=spot + futures.total + bots,
            strategy=AggregationStrategy.PER_ACCOUNT.value,
            as_of=datetime.now(timezone.utc),
        )
