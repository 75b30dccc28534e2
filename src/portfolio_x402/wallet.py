"""Wallet credential loading and signer registry construction."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from solders.keypair import Keypair

from .config import ClientConfig
from .errors import WalletError
from .registry import NetworkSignerRegistry
from .signers import NetworkSigner, create_evm_signer, create_svm_signer

logger = logging.getLogger(__name__)

DISABLED_NETWORK_VALUES = {"", "none", "off", "disabled"}

SETUP_HINTS = (
    "Solana: solana-keygen new --outfile ./client.json",
    "EVM: add EVM_PRIVATE_KEY=0x... to .env",
)

EvmSignerFactory = Callable[..., NetworkSigner]
SvmSignerFactory = Callable[..., NetworkSigner]


def load_solana_keypair(path: Union[str, Path]) -> Keypair:
    """Load a keypair file as written by ``solana-keygen`` (JSON array of 64 bytes)."""
    wallet_path = Path(path)
    if not wallet_path.exists():
        raise WalletError(f"Solana wallet not found at: {wallet_path}")

    try:
        with wallet_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as err:
        raise WalletError(f"Solana wallet at {wallet_path} is not valid JSON: {err}") from err

    if not isinstance(data, list) or len(data) != 64:
        raise WalletError(f"Solana wallet at {wallet_path} must be a JSON array of 64 bytes")
    try:
        return Keypair.from_bytes(bytes(data))
    except ValueError as err:
        raise WalletError(f"Solana wallet at {wallet_path} is not a valid keypair: {err}") from err


def load_evm_account(private_key: Optional[str]) -> LocalAccount:
    if not private_key:
        raise WalletError("EVM_PRIVATE_KEY is not set")
    try:
        return Account.from_key(private_key)
    except Exception as err:  # eth_keys raises its own ValidationError
        raise WalletError(f"EVM_PRIVATE_KEY is not a valid private key: {err}") from err


def _enabled(network: Optional[str]) -> bool:
    return network is not None and network.strip().lower() not in DISABLED_NETWORK_VALUES


def build_signer_registry(
    config: ClientConfig,
    *,
    evm_factory: EvmSignerFactory = create_evm_signer,
    svm_factory: SvmSignerFactory = create_svm_signer,
) -> NetworkSignerRegistry:
    """Create signers for every configured network.

    Missing credentials for a configured network are fatal unless
    ``config.degraded`` is set, in which case that network is skipped.
    At least one signer is always required.
    """
    signers: List[NetworkSigner] = []

    if _enabled(config.solana_network):
        try:
            keypair = load_solana_keypair(config.solana_wallet_path)
        except WalletError as err:
            if not config.degraded:
                raise
            logger.warning("Solana wallet unavailable, skipping %s: %s", config.solana_network, err)
        else:
            signers.append(
                svm_factory(
                    config.solana_network,
                    keypair,
                    rpc_url=config.svm_rpc_url,
                    max_amount=config.max_payment_amount,
                )
            )

    if _enabled(config.evm_network):
        try:
            load_evm_account(config.evm_private_key)
        except WalletError as err:
            if not config.degraded:
                raise
            logger.warning("EVM wallet unavailable, skipping %s: %s", config.evm_network, err)
        else:
            signers.append(
                evm_factory(
                    config.evm_network,
                    config.evm_private_key,
                    max_amount=config.max_payment_amount,
                )
            )

    if not signers:
        raise WalletError("No wallets available. Setup: " + "; ".join(SETUP_HINTS))

    registry = NetworkSignerRegistry(signers)
    for signer in registry:
        logger.info("wallet ready on %s: %s", signer.network, signer.address or "address hidden")
    return registry
