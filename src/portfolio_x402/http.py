"""x402 payment gate for the FastAPI portfolio server."""

from __future__ import annotations

from typing import Any, Dict, Iterable

from x402.http import FacilitatorConfig, HTTPFacilitatorClient, PaywallConfig, RoutesConfig
from x402.http.middleware import fastapi as fastapi_mw
from x402.mechanisms.evm.exact import ExactEvmServerScheme
from x402.mechanisms.svm.exact import ExactSvmServerScheme
from x402.server import x402ResourceServer

from .config import ServerConfig
from .constants import (
    DEFAULT_FACILITATOR_URL,
    DEFAULT_SCHEME,
    EVM_FAMILY,
    ROUTE_PRICES,
    SVM_FAMILY,
    canonical_network,
    network_family,
)
from .errors import UnsupportedNetworkError

ROUTE_DESCRIPTIONS: Dict[str, str] = {
    "GET /premium": "Premium content",
    "POST /analyze-basic": "Basic AI wallet analysis",
    "POST /analyze-comprehensive": "Comprehensive AI wallet analysis",
}


def build_routes(config: ServerConfig) -> RoutesConfig:
    """Route table for the paid endpoints, payable to the configured recipient."""
    network = canonical_network(config.network)
    return {
        route: {
            "accepts": {
                "scheme": DEFAULT_SCHEME,
                "payTo": config.recipient_address,
                "price": price,
                "network": network,
            },
            "description": ROUTE_DESCRIPTIONS.get(route, ""),
        }
        for route, price in ROUTE_PRICES.items()
    }


def _register_exact_schemes(server: x402ResourceServer, networks: Iterable[str]) -> None:
    for network in networks:
        family = network_family(network)
        if family == EVM_FAMILY:
            server.register(canonical_network(network), ExactEvmServerScheme())
        elif family == SVM_FAMILY:
            server.register(canonical_network(network), ExactSvmServerScheme())
        else:
            raise UnsupportedNetworkError(
                f"No x402 server scheme available for network {network}", network=network
            )


def fastapi_payment_middleware_from_config(
    routes: RoutesConfig,
    facilitator_url: str = DEFAULT_FACILITATOR_URL,
    networks: Iterable[str] = (),
    facilitator_client: Any | None = None,
    paywall_config: PaywallConfig | None = None,
    sync_facilitator_on_start: bool = True,
):
    """Build the x402 FastAPI middleware for ``routes``.

    Networks default to those referenced by the route table.
    """
    facilitators: list[Any] = []
    if facilitator_client is not None:
        facilitators = (
            facilitator_client if isinstance(facilitator_client, list) else [facilitator_client]
        )
    if not facilitators:
        facilitators.append(HTTPFacilitatorClient(FacilitatorConfig(url=facilitator_url)))

    network_list = list(networks) or sorted(
        {route["accepts"]["network"] for route in routes.values()}
    )
    server = x402ResourceServer(facilitators)
    _register_exact_schemes(server, network_list)

    return fastapi_mw.payment_middleware(
        routes,
        server,
        paywall_config,
        None,
        sync_facilitator_on_start,
    )


def install_payment_gate(app, config: ServerConfig, **kwargs: Any) -> None:
    """Attach the payment middleware for the portfolio routes to ``app``."""
    middleware = fastapi_payment_middleware_from_config(
        build_routes(config),
        facilitator_url=config.facilitator_url,
        networks=[config.network],
        **kwargs,
    )

    @app.middleware("http")
    async def x402_middleware(request, call_next):
        return await middleware(request, call_next)
