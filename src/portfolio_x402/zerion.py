"""Zerion API client and portfolio reshaping helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .constants import ZERION_API_URL
from .errors import ZerionError

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


@dataclass
class PortfolioData:
    portfolio: JsonDict
    positions: List[JsonDict] = field(default_factory=list)


class ZerionClient:
    """Fetches wallet portfolio and positions from the Zerion API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = ZERION_API_URL,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        # Zerion takes the API key as the Basic auth username.
        self._auth = (api_key, "")
        self._headers = {"Accept": "application/json"}

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str) -> JsonDict:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.get(
                url, headers=self._headers, auth=self._auth, timeout=self._timeout
            )
        except requests.RequestException as err:
            raise ZerionError(f"Zerion API error: {err}") from err

        if response.status_code >= 400:
            raise ZerionError(
                f"Zerion API error: {response.status_code} - {_error_title(response)}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as err:
            raise ZerionError(f"Zerion API returned invalid JSON for {path}") from err

    def fetch_portfolio(self, address: str) -> PortfolioData:
        logger.info("fetching Zerion portfolio for %s", address)
        portfolio = self._get(f"/wallets/{address}/portfolio")
        positions = self._get(f"/wallets/{address}/positions")
        return PortfolioData(portfolio=portfolio, positions=list(positions.get("data") or []))


def _error_title(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason or "unknown error"
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if errors and isinstance(errors[0], dict) and errors[0].get("title"):
        return str(errors[0]["title"])
    return response.reason or "unknown error"


def portfolio_attributes(portfolio: JsonDict) -> JsonDict:
    """Attributes block of a portfolio document; the response shape varies."""
    data = portfolio.get("data") or portfolio
    return data.get("attributes") or data


def extract_total_value(portfolio: JsonDict) -> float:
    attributes = portfolio_attributes(portfolio)
    stats = attributes.get("stats") or {}
    return (
        stats.get("total_value")
        or attributes.get("total_value")
        or attributes.get("positions_value")
        or 0
    )


def _position_value(position: JsonDict) -> float:
    return (position.get("attributes") or {}).get("value") or 0


def extract_top_holdings(
    positions: List[JsonDict], total_value: float, limit: int = 5
) -> List[JsonDict]:
    top = sorted(positions, key=_position_value, reverse=True)[:limit]
    holdings = []
    for position in top:
        attributes = position.get("attributes") or {}
        fungible = attributes.get("fungible_info") or {}
        value = _position_value(position)
        holdings.append(
            {
                "name": fungible.get("name") or attributes.get("name") or "Unknown",
                "symbol": fungible.get("symbol") or "N/A",
                "value": value,
                "percentage": (value / total_value) * 100 if total_value > 0 else 0,
            }
        )
    return holdings


def calculate_chain_distribution(positions: List[JsonDict]) -> Dict[str, float]:
    distribution: Dict[str, float] = {}
    for position in positions:
        chain = (
            ((position.get("relationships") or {}).get("chain") or {}).get("data") or {}
        ).get("id") or "unknown"
        distribution[chain] = distribution.get(chain, 0) + _position_value(position)
    return distribution
