"""Shared constants for the x402 portfolio starter kit."""

from __future__ import annotations

from typing import Dict, List, Optional, TypedDict

from .errors import UnsupportedNetworkError

EVM_FAMILY = "evm"
SVM_FAMILY = "svm"

# CAIP-2 namespace -> signer family
NAMESPACE_FAMILIES: Dict[str, str] = {
    "eip155": EVM_FAMILY,
    "solana": SVM_FAMILY,
}


class KnownNetwork(TypedDict):
    caip2: str
    family: str


# x402 v1 network names and their CAIP-2 equivalents (x402 v2).
KNOWN_NETWORKS: Dict[str, KnownNetwork] = {
    "base": {"caip2": "eip155:8453", "family": EVM_FAMILY},
    "base-sepolia": {"caip2": "eip155:84532", "family": EVM_FAMILY},
    "ethereum-sepolia": {"caip2": "eip155:11155111", "family": EVM_FAMILY},
    "polygon-amoy": {"caip2": "eip155:80002", "family": EVM_FAMILY},
    "solana": {"caip2": "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp", "family": SVM_FAMILY},
    "solana-devnet": {"caip2": "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1", "family": SVM_FAMILY},
}

SUPPORTED_NETWORKS: List[str] = list(KNOWN_NETWORKS)


class DefaultAsset(TypedDict):
    address: str
    name: str
    version: str
    decimals: int


DEFAULT_ASSETS: Dict[str, DefaultAsset] = {
    "eip155:8453": {
        "address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "name": "USD Coin",
        "version": "2",
        "decimals": 6,
    },
    "eip155:84532": {
        "address": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        "name": "USDC",
        "version": "2",
        "decimals": 6,
    },
    "eip155:11155111": {
        "address": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
        "name": "USDC",
        "version": "2",
        "decimals": 6,
    },
    "eip155:80002": {
        "address": "0x41E94Eb019C0762f9Bfcf9Fb1E58725BfB0e7582",
        "name": "USDC",
        "version": "2",
        "decimals": 6,
    },
    "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp": {
        "address": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "name": "USDC",
        "version": "",
        "decimals": 6,
    },
    "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1": {
        "address": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
        "name": "USDC",
        "version": "",
        "decimals": 6,
    },
}

# HTTP
HTTP_STATUS_PAYMENT_REQUIRED = 402
X_PAYMENT_HEADER = "X-PAYMENT"
X_PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
PAYMENT_REQUIRED_HEADER = "PAYMENT-REQUIRED"
PAYMENT_SIGNATURE_HEADER = "PAYMENT-SIGNATURE"
PAYMENT_RESPONSE_HEADER = "PAYMENT-RESPONSE"

DEFAULT_SCHEME = "exact"
DEFAULT_MAX_TIMEOUT_SECONDS = 60

# Server defaults
DEFAULT_PORT = 3000
DEFAULT_NETWORK = "base-sepolia"
DEFAULT_FACILITATOR_URL = "https://facilitator.payai.network"

ROUTE_PRICES: Dict[str, str] = {
    "GET /premium": "$0.0001",
    "POST /analyze-basic": "$0.005",
    "POST /analyze-comprehensive": "$0.01",
}

# Client defaults
DEFAULT_SERVER_URL = "http://localhost:3000"
DEFAULT_SOLANA_WALLET_PATH = "./client.json"
DEFAULT_SOLANA_NETWORK = "solana-devnet"
DEFAULT_EVM_NETWORK = "base-sepolia"

# Data + LLM providers
ZERION_API_URL = "https://api.zerion.io/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "moonshotai/kimi-k2-instruct"


def _namespace(network: str) -> Optional[str]:
    if ":" not in network:
        return None
    return network.split(":", 1)[0]


def canonical_network(network: str) -> str:
    """Return the CAIP-2 id for a known v1 name, or the id unchanged."""
    known = KNOWN_NETWORKS.get(network)
    if known is not None:
        return known["caip2"]
    return network


def network_family(network: str) -> str:
    """Family a network belongs to, e.g. ``evm`` for ``eip155:84532`` or ``evm:testnetX``."""
    known = KNOWN_NETWORKS.get(network)
    if known is not None:
        return known["family"]
    namespace = _namespace(network)
    if namespace is None:
        return network
    return NAMESPACE_FAMILIES.get(namespace, namespace)


def registry_key(key: str) -> str:
    """Canonical form of a signer registry key.

    ``namespace:*`` wildcards collapse to their family (``eip155:*`` -> ``evm``),
    known v1 names collapse to their CAIP-2 id, anything else is kept as is.
    """
    if key.endswith(":*"):
        namespace = key[:-2]
        return NAMESPACE_FAMILIES.get(namespace, namespace)
    return canonical_network(key)


def get_default_asset(network: str) -> DefaultAsset:
    try:
        return DEFAULT_ASSETS[canonical_network(network)]
    except KeyError as exc:
        raise UnsupportedNetworkError(
            f"No default asset configured for network {network}", network=network
        ) from exc
