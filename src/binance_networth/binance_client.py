from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from . import settings
from .settings import BinanceCredentials
from .signing import build_signed_query

log = logging.getLogger(__name__)


class BinanceAPIError(RuntimeError):
    """Non-2xx answer from Binance.

    Binance error bodies usually look like {"code": -2015, "msg": "..."}.
    """

    def __init__(self, status_code: int, path: str, code: Any = None, msg: str | None = None) -> None:
        self.status_code = status_code
        self.path = path
        self.code = code
        self.msg = msg
        super().__init__(f"Binance HTTP {status_code} GET {path}: code={code} msg={msg}")

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class BinanceClient:
    """Thin async wrapper over the Binance REST API (read-only GETs).

    One instance lives for one aggregation pass. No retries: a failed call is
    reported to the caller, which decides how to degrade.
    """

    def __init__(
        self,
        *,
        credentials: BinanceCredentials,
        http: httpx.AsyncClient,
        spot_base_url: str = "https://api.binance.com",
        futures_base_url: str = "https://fapi.binance.com",
        recv_window: int | None = 60000,
    ) -> None:
        self._credentials = credentials
        self._http = http
        self.spot_base_url = spot_base_url.rstrip("/")
        self.futures_base_url = futures_base_url.rstrip("/")
        self.recv_window = recv_window

    async def get_public(self, path: str, *, base_url: str | None = None) -> Any:
        url = f"{base_url or self.spot_base_url}{path}"
        resp = await self._http.get(url)
        return self._decode(resp, path)

    async def get_signed(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        base_url: str | None = None,
        with_recv_window: bool = False,
    ) -> Any:
        """Signed GET. A fresh timestamp/signature is built for every call."""

        qs = build_signed_query(
            params,
            secret=self._credentials.api_secret,
            recv_window=self.recv_window if with_recv_window else None,
        )
        url = f"{base_url or self.spot_base_url}{path}?{qs}"
        resp = await self._http.get(url, headers={"X-MBX-APIKEY": self._credentials.api_key})
        return self._decode(resp, path)

    @staticmethod
    def _decode(resp: httpx.Response, path: str) -> Any:
        if resp.status_code >= 400:
            code: Any = None
            msg: str | None = None
            try:
                payload = resp.json()
            except ValueError:
                msg = resp.text[:500]
            else:
                if isinstance(payload, dict):
                    code = payload.get("code")
                    msg = payload.get("msg")
            raise BinanceAPIError(resp.status_code, path, code=code, msg=msg)

        if not resp.content:
            return {}
        return resp.json()


@asynccontextmanager
async def open_binance_client(
    credentials: BinanceCredentials,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[BinanceClient]:
    """Request-scoped client; the connection pool is closed on exit."""

    async with httpx.AsyncClient(
        timeout=settings.get_http_timeout_seconds(),
        transport=transport,
    ) as http:
        yield BinanceClient(
            credentials=credentials,
            http=http,
            spot_base_url=settings.get_spot_base_url(),
            futures_base_url=settings.get_futures_base_url(),
            recv_window=settings.get_recv_window_ms(),
        )
