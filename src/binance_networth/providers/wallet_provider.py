from __future__ import annotations

import logging
from typing import Any

from ..binance_client import BinanceClient
from ..pricing import QUOTE_ASSET
from .protocols import QuotedFetcher, WalletBalances, log_fetch_failure, parse_float

log = logging.getLogger(__name__)

WALLET_BALANCE_PATH = "/sapi/v1/asset/wallet/balance"

SPOT_WALLET = "Spot"
FUTURES_WALLETS = ("USDⓈ-M Futures", "USDT-M Futures")
TRADING_BOTS_WALLET = "Trading Bots"


class BinanceWalletFetcher(QuotedFetcher):
    """Unified wallet endpoint: one entry per wallet, pre-converted to the quote asset."""

    account_type = "wallet"

    def __init__(self, *, client: BinanceClient, quote_asset: str = QUOTE_ASSET) -> None:
        self._client = client
        self._quote_asset = quote_asset

    async def fetch(self) -> WalletBalances:
        try:
            data = await self._client.get_signed(
                WALLET_BALANCE_PATH,
                params={"quoteAsset": self._quote_asset},
                with_recv_window=True,
            )
        except Exception as exc:
            log_fetch_failure(log, self.account_type, exc)
            return WalletBalances()

        return parse_wallet_balances(data)


def _is_active(flag: Any) -> bool:
    return flag is True or str(flag).lower() == "true"


def parse_wallet_balances(data: Any) -> WalletBalances:
    if not isinstance(data, list) or not data:
        return WalletBalances()

    spot = 0.0
    futures = 0.0
    bots = 0.0
    total = 0.0
    count = 0

    for wallet in data:
        if not isinstance(wallet, dict):
            continue
        count += 1
        balance = parse_float(wallet.get("balance"))
        name = wallet.get("walletName") or ""

        if name == SPOT_WALLET:
            spot = balance
        elif name in FUTURES_WALLETS:
            futures = balance
        elif name == TRADING_BOTS_WALLET:
            bots = balance

        # The endpoint already covers every wallet, so this supersedes summing categories.
        if _is_active(wallet.get("activate")) and balance > 0:
            total += balance

    return WalletBalances(spot=spot, futures=futures, trading_bots=bots, total=total, wallet_count=count)
