import asyncio
from typing import Any, Awaitable, Callable

import httpx
import pytest

from binance_networth.binance_client import BinanceClient
from binance_networth.settings import BinanceCredentials

CREDS = BinanceCredentials(api_key="test-key", api_secret="test-secret")


class BinanceStub:
    """Path-routed fake of the Binance REST API that records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        path: str,
        payload: Any = None,
        *,
        status: int = 200,
        exc: Exception | None = None,
        delay: float = 0.0,
    ) -> "BinanceStub":
        self.routes[path] = {"payload": payload, "status": status, "exc": exc, "delay": delay}
        return self

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"code": -1, "msg": "no route"})
        if route["delay"]:
            await asyncio.sleep(route["delay"])
        if route["exc"] is not None:
            raise route["exc"]
        return httpx.Response(route["status"], json=route["payload"])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def last(self, path: str) -> httpx.Request:
        return [r for r in self.requests if r.url.path == path][-1]


@pytest.fixture()
def binance_stub() -> BinanceStub:
    return BinanceStub()


@pytest.fixture()
def run_with_client(binance_stub: BinanceStub) -> Callable[[Callable[[BinanceClient], Awaitable[Any]]], Any]:
    """Run `fn(client)` on a BinanceClient wired to the stub."""

    def _run(fn: Callable[[BinanceClient], Awaitable[Any]]) -> Any:
        async def _go() -> Any:
            async with httpx.AsyncClient(transport=binance_stub.transport) as http:
                client = BinanceClient(credentials=CREDS, http=http, recv_window=60000)
                return await fn(client)

        return asyncio.run(_go())

    return _run
