"""x402 portfolio starter kit: payment-aware HTTP client and paid analysis server."""

from __future__ import annotations

from .challenge import PaymentChallenge, parse_challenge_document, parse_challenges
from .constants import (
    DEFAULT_ASSETS,
    KNOWN_NETWORKS,
    SUPPORTED_NETWORKS,
    canonical_network,
    get_default_asset,
    network_family,
)
from .errors import (
    ChallengeParseError,
    PaymentError,
    PaymentRejectedError,
    RegistryError,
    SigningError,
    TransportError,
    UnsupportedNetworkError,
    WalletError,
)
from .payment import PaymentToken, decode_payment_response
from .pipeline import AsyncPaymentPipeline, PaymentPipeline, PipelineResult
from .registry import NetworkSignerRegistry
from .signers import NetworkSigner, X402SchemeSigner, create_evm_signer, create_svm_signer

__all__ = [
    "SUPPORTED_NETWORKS",
    "KNOWN_NETWORKS",
    "DEFAULT_ASSETS",
    "canonical_network",
    "network_family",
    "get_default_asset",
    "PaymentChallenge",
    "parse_challenges",
    "parse_challenge_document",
    "PaymentToken",
    "decode_payment_response",
    "NetworkSigner",
    "X402SchemeSigner",
    "create_evm_signer",
    "create_svm_signer",
    "NetworkSignerRegistry",
    "PaymentPipeline",
    "AsyncPaymentPipeline",
    "PipelineResult",
    "PaymentError",
    "ChallengeParseError",
    "UnsupportedNetworkError",
    "SigningError",
    "PaymentRejectedError",
    "TransportError",
    "RegistryError",
    "WalletError",
]

try:  # Optional: wallet loading depends on eth_account + solders
    from .wallet import build_signer_registry, load_evm_account, load_solana_keypair

    __all__.extend(["build_signer_registry", "load_evm_account", "load_solana_keypair"])
except ImportError:
    build_signer_registry = None  # type: ignore[assignment]
    load_evm_account = None  # type: ignore[assignment]
    load_solana_keypair = None  # type: ignore[assignment]

try:  # Optional: payment gate depends on x402 + fastapi
    from .http import build_routes, fastapi_payment_middleware_from_config

    __all__.extend(["build_routes", "fastapi_payment_middleware_from_config"])
except ImportError:
    build_routes = None  # type: ignore[assignment]
    fastapi_payment_middleware_from_config = None  # type: ignore[assignment]
