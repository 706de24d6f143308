from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import settings
from .binance_client import BinanceClient, open_binance_client
from .models import ErrorResponse, NetWorthSummary
from .networth_service import TIMEOUT_ERROR, NetWorthService
from .pricing import QUOTE_ASSET, BinancePriceResolver
from .providers.algo_provider import BinanceAlgoFetcher
from .providers.futures_provider import BinanceFuturesFetcher
from .providers.spot_provider import BinanceSpotFetcher
from .providers.wallet_provider import BinanceWalletFetcher

log = logging.getLogger(__name__)

app = FastAPI(title="Binance Net Worth API")

# Outbound transport override; None means real network.
http_transport: httpx.AsyncBaseTransport | None = None


def _get_networth_service(client: BinanceClient) -> NetWorthService:
    resolver = BinancePriceResolver(
        client=client,
        quote_asset=QUOTE_ASSET,
        bridge_assets=settings.get_bridge_assets(),
        required=settings.get_price_feed_required(),
    )
    return NetWorthService(
        wallet=BinanceWalletFetcher(client=client, quote_asset=QUOTE_ASSET),
        spot=BinanceSpotFetcher(client=client, resolver=resolver),
        futures=BinanceFuturesFetcher(
            client=client,
            resolver=resolver,
            source=settings.get_futures_source(),
        ),
        bots=BinanceAlgoFetcher(client=client),
        resolver=resolver,
        timeout_seconds=settings.get_timeout_seconds(),
    )


def _summary_response(status_code: int, summary: NetWorthSummary) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=summary.model_dump(mode="json", by_alias=True))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers={"Allow": "GET"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.get(
    "/api/binance-balance",
    response_model=NetWorthSummary,
    responses={405: {"model": ErrorResponse}, 500: {"model": NetWorthSummary}, 504: {"model": NetWorthSummary}},
)
async def get_binance_balance() -> Any:
    try:
        credentials = settings.get_binance_credentials()
    except settings.ConfigurationError as exc:
        log.error("%s", exc)
        return _summary_response(500, NetWorthSummary.zeroed(str(exc)))

    try:
        async with open_binance_client(credentials, transport=http_transport) as client:
            summary = await _get_networth_service(client).aggregate()
    except Exception as exc:
        log.exception("API handler error")
        return _summary_response(500, NetWorthSummary.zeroed(str(exc) or "Internal server error"))

    if summary.error == TIMEOUT_ERROR:
        return _summary_response(504, summary)

    return summary
