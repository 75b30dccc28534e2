import pytest

from portfolio_x402.constants import (
    DEFAULT_ASSETS,
    ROUTE_PRICES,
    SUPPORTED_NETWORKS,
    canonical_network,
    get_default_asset,
    network_family,
    registry_key,
)
from portfolio_x402.errors import UnsupportedNetworkError


def test_supported_networks_include_default_client_networks():
    assert "solana-devnet" in SUPPORTED_NETWORKS
    assert "base-sepolia" in SUPPORTED_NETWORKS


def test_default_assets_match_expected():
    assert DEFAULT_ASSETS["eip155:84532"]["address"] == "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    assert DEFAULT_ASSETS["eip155:84532"]["decimals"] == 6
    assert get_default_asset("base-sepolia") is DEFAULT_ASSETS["eip155:84532"]


def test_get_default_asset_raises_on_unsupported_network():
    with pytest.raises(UnsupportedNetworkError):
        get_default_asset("eip155:1")


def test_route_prices():
    assert ROUTE_PRICES == {
        "GET /premium": "$0.0001",
        "POST /analyze-basic": "$0.005",
        "POST /analyze-comprehensive": "$0.01",
    }


def test_canonical_network_maps_v1_names():
    assert canonical_network("base-sepolia") == "eip155:84532"
    assert canonical_network("solana-devnet") == "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1"
    assert canonical_network("eip155:1") == "eip155:1"
    assert canonical_network("evm:testnetX") == "evm:testnetX"


def test_network_family():
    assert network_family("base-sepolia") == "evm"
    assert network_family("eip155:1") == "evm"
    assert network_family("solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1") == "svm"
    assert network_family("evm:testnetX") == "evm"
    assert network_family("svm") == "svm"


def test_registry_key_collapses_wildcards():
    assert registry_key("eip155:*") == "evm"
    assert registry_key("solana:*") == "svm"
    assert registry_key("evm") == "evm"
    assert registry_key("solana-devnet") == "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1"
