import base64

import pytest
import requests

from portfolio_x402.errors import ZerionError
from portfolio_x402.zerion import (
    ZerionClient,
    calculate_chain_distribution,
    extract_top_holdings,
    extract_total_value,
)


class FakeResponse:
    def __init__(self, status_code, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    def get(self, url, headers=None, auth=None, timeout=None):
        self.calls.append((url, headers, auth, timeout))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        pass


def _position(name, symbol, value, chain):
    return {
        "attributes": {"value": value, "fungible_info": {"name": name, "symbol": symbol}},
        "relationships": {"chain": {"data": {"id": chain}}},
    }


POSITIONS = [
    _position("USD Coin", "USDC", 250.0, "base"),
    _position("Ether", "ETH", 600.0, "ethereum"),
    _position("Solana", "SOL", 150.0, "solana"),
]

BASE = "https://api.zerion.io/v1/wallets/0xwallet"


def test_fetch_portfolio_uses_basic_auth():
    session = FakeSession(
        {
            f"{BASE}/portfolio": FakeResponse(200, {"data": {"attributes": {"total_value": 1000}}}),
            f"{BASE}/positions": FakeResponse(200, {"data": POSITIONS}),
        }
    )
    data = ZerionClient("zk_test", session=session).fetch_portfolio("0xwallet")

    assert extract_total_value(data.portfolio) == 1000
    assert len(data.positions) == 3
    url, _, auth, timeout = session.calls[0]
    assert timeout == 15.0
    prepared = requests.Request("GET", url, auth=auth).prepare()
    expected = base64.b64encode(b"zk_test:").decode("ascii")
    assert prepared.headers["Authorization"] == f"Basic {expected}"


def test_http_error_includes_status_and_title():
    session = FakeSession(
        {
            f"{BASE}/portfolio": FakeResponse(
                401, {"errors": [{"title": "Unauthorized Error"}]}, reason="Unauthorized"
            ),
        }
    )
    with pytest.raises(ZerionError) as exc:
        ZerionClient("bad", session=session).fetch_portfolio("0xwallet")
    assert exc.value.status == 401
    assert str(exc.value) == "Zerion API error: 401 - Unauthorized Error"


def test_http_error_without_json_uses_reason():
    session = FakeSession({f"{BASE}/portfolio": FakeResponse(503, None, reason="Service Unavailable")})
    with pytest.raises(ZerionError) as exc:
        ZerionClient("key", session=session).fetch_portfolio("0xwallet")
    assert "503 - Service Unavailable" in str(exc.value)


def test_network_failure_is_a_zerion_error():
    session = FakeSession({f"{BASE}/portfolio": requests.ConnectionError("dns failure")})
    with pytest.raises(ZerionError):
        ZerionClient("key", session=session).fetch_portfolio("0xwallet")


def test_extract_total_value_shapes():
    assert extract_total_value({"data": {"attributes": {"stats": {"total_value": 12.5}}}}) == 12.5
    assert extract_total_value({"data": {"attributes": {"positions_value": 3}}}) == 3
    assert extract_total_value({"total_value": 7}) == 7
    assert extract_total_value({}) == 0


def test_top_holdings_sorted_with_percentages():
    holdings = extract_top_holdings(POSITIONS, 1000, limit=2)
    assert [holding["symbol"] for holding in holdings] == ["ETH", "USDC"]
    assert holdings[0]["name"] == "Ether"
    assert holdings[0]["value"] == 600.0
    assert holdings[0]["percentage"] == pytest.approx(60.0)
    assert extract_top_holdings(POSITIONS, 0)[0]["percentage"] == 0


def test_chain_distribution():
    positions = POSITIONS + [_position("Bridged USDC", "USDC", 50.0, "base"), {"attributes": {"value": 5}}]
    assert calculate_chain_distribution(positions) == {
        "base": 300.0,
        "ethereum": 600.0,
        "solana": 150.0,
        "unknown": 5,
    }
