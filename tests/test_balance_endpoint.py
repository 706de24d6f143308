import httpx
import pytest
from fastapi.testclient import TestClient

from binance_networth.pricing import PRICE_PATH
from binance_networth.providers.algo_provider import FUTURES_ALGO_PATH, SPOT_ALGO_PATH
from binance_networth.providers.futures_provider import FUTURES_ACCOUNT_PATH
from binance_networth.providers.spot_provider import SPOT_ACCOUNT_PATH
from binance_networth.providers.wallet_provider import WALLET_BALANCE_PATH

NUMERIC_KEYS = (
    "spotUsdt",
    "futuresCrossUsdt",
    "futuresIsolatedUsdt",
    "futuresTotalUsdt",
    "tradingBotUsdt",
    "totalUsdt",
)

ENDPOINT = "/api/binance-balance"


@pytest.fixture()
def app_client(monkeypatch: pytest.MonkeyPatch, binance_stub) -> TestClient:
    monkeypatch.setenv("BINANCE_KEY", "test-key")
    monkeypatch.setenv("BINANCE_SECRET", "test-secret")
    for name in (
        "NETWORTH_TIMEOUT_SECONDS",
        "NETWORTH_PRICE_FEED_REQUIRED",
        "NETWORTH_FUTURES_SOURCE",
        "NETWORTH_BRIDGE_ASSETS",
    ):
        monkeypatch.delenv(name, raising=False)

    from binance_networth import balance_api

    monkeypatch.setattr(balance_api, "http_transport", binance_stub.transport)
    return TestClient(balance_api.app)


def test_unified_wallet_scenario(app_client: TestClient, binance_stub):
    binance_stub.add(
        WALLET_BALANCE_PATH,
        [
            {"walletName": "Spot", "balance": 100, "activate": True},
            {"walletName": "USDT-M Futures", "balance": 50, "activate": True},
        ],
    )

    resp = app_client.get(ENDPOINT)
    assert resp.status_code == 200
    data = resp.json()

    assert data["spotUsdt"] == 100
    assert data["futuresTotalUsdt"] == 50
    assert data["futuresIsolatedUsdt"] == 0
    assert data["totalUsdt"] == 150
    assert data["strategy"] == "unified"
    assert data["error"] is None

    for path in (PRICE_PATH, SPOT_ACCOUNT_PATH, FUTURES_ACCOUNT_PATH, SPOT_ALGO_PATH, FUTURES_ALGO_PATH):
        assert binance_stub.count(path) == 0


def test_fallback_with_failing_futures_keeps_other_categories(app_client: TestClient, binance_stub):
    binance_stub.add(WALLET_BALANCE_PATH, {"code": -1002, "msg": "unauthorized"}, status=401)
    binance_stub.add(PRICE_PATH, [{"symbol": "ETHUSDT", "price": "3000"}])
    binance_stub.add(
        SPOT_ACCOUNT_PATH,
        {
            "balances": [
                {"asset": "USDT", "free": "10", "locked": "0"},
                {"asset": "ETH", "free": "2", "locked": "0"},
            ]
        },
    )
    binance_stub.add(FUTURES_ACCOUNT_PATH, exc=httpx.ConnectError("fapi down"))
    binance_stub.add(SPOT_ALGO_PATH, [{"investedQty": "100", "unrealizedPnl": "5"}])
    binance_stub.add(FUTURES_ALGO_PATH, [])

    resp = app_client.get(ENDPOINT)
    assert resp.status_code == 200
    data = resp.json()

    assert data["strategy"] == "per_account"
    assert data["spotUsdt"] == 6010
    assert data["futuresTotalUsdt"] == 0
    assert data["tradingBotUsdt"] == 105
    assert data["totalUsdt"] == 6115


def test_price_feed_failure_degrades_by_default(app_client: TestClient, binance_stub):
    binance_stub.add(WALLET_BALANCE_PATH, [])
    binance_stub.add(PRICE_PATH, exc=httpx.ConnectError("down"))
    binance_stub.add(SPOT_ACCOUNT_PATH, {"balances": [{"asset": "USDT", "free": "7", "locked": "0"}, {"asset": "ETH", "free": "1", "locked": "0"}]})
    binance_stub.add(FUTURES_ACCOUNT_PATH, {"totalMarginBalance": "3", "positions": []})

    resp = app_client.get(ENDPOINT)
    assert resp.status_code == 200
    assert resp.json()["totalUsdt"] == 10


def test_price_feed_failure_is_fatal_when_required(
    app_client: TestClient, binance_stub, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("NETWORTH_PRICE_FEED_REQUIRED", "true")
    binance_stub.add(WALLET_BALANCE_PATH, [])
    binance_stub.add(PRICE_PATH, exc=httpx.ConnectError("down"))

    resp = app_client.get(ENDPOINT)
    assert resp.status_code == 500
    data = resp.json()
    assert "price feed" in data["error"]
    for key in NUMERIC_KEYS:
        assert data[key] == 0
    assert binance_stub.count(SPOT_ACCOUNT_PATH) == 0


def test_post_is_method_not_allowed_without_upstream_calls(app_client: TestClient, binance_stub):
    resp = app_client.post(ENDPOINT)

    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}
    assert binance_stub.requests == []


def test_missing_credentials_is_configuration_error(
    app_client: TestClient, binance_stub, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.delenv("BINANCE_SECRET", raising=False)

    resp = app_client.get(ENDPOINT)

    assert resp.status_code == 500
    data = resp.json()
    assert data["error"] == "Missing BINANCE_KEY or BINANCE_SECRET"
    assert data["totalUsdt"] == 0
    assert binance_stub.requests == []


def test_timeout_returns_zeroed_body(app_client: TestClient, binance_stub, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("NETWORTH_TIMEOUT_SECONDS", "0.05")
    binance_stub.add(WALLET_BALANCE_PATH, [{"walletName": "Spot", "balance": 1, "activate": True}], delay=1.0)

    resp = app_client.get(ENDPOINT)

    assert resp.status_code == 504
    data = resp.json()
    assert data["error"] == "timeout"
    for key in NUMERIC_KEYS:
        assert data[key] == 0


def test_unexpected_error_returns_parseable_zeroed_body(
    app_client: TestClient, monkeypatch: pytest.MonkeyPatch
):
    from binance_networth import balance_api

    def broken_service(client):
        raise KeyError("wiring")

    monkeypatch.setattr(balance_api, "_get_networth_service", broken_service)

    resp = app_client.get(ENDPOINT)

    assert resp.status_code == 500
    data = resp.json()
    assert data["error"]
    for key in NUMERIC_KEYS:
        assert data[key] == 0


def test_non_finite_upstream_numbers_stay_numeric(app_client: TestClient, binance_stub):
    binance_stub.add(WALLET_BALANCE_PATH, [])
    binance_stub.add(PRICE_PATH, [{"symbol": "ETHUSDT", "price": "NaN"}])
    binance_stub.add(
        SPOT_ACCOUNT_PATH,
        {
            "balances": [
                {"asset": "USDT", "free": "NaN", "locked": "0"},
                {"asset": "ETH", "free": "1", "locked": "0"},
            ]
        },
    )
    binance_stub.add(FUTURES_ACCOUNT_PATH, {"totalMarginBalance": "NaN", "positions": []})

    resp = app_client.get(ENDPOINT)

    assert resp.status_code == 200
    data = resp.json()
    for key in NUMERIC_KEYS:
        assert data[key] == 0
