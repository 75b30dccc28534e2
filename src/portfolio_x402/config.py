"""Environment-driven configuration for the server and the demo client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from dotenv import load_dotenv

from .constants import (
    DEFAULT_EVM_NETWORK,
    DEFAULT_FACILITATOR_URL,
    DEFAULT_GROQ_MODEL,
    DEFAULT_NETWORK,
    DEFAULT_PORT,
    DEFAULT_SERVER_URL,
    DEFAULT_SOLANA_NETWORK,
    DEFAULT_SOLANA_WALLET_PATH,
)
from .errors import ConfigError

TRUE_VALUES = {"1", "true", "yes", "on"}


def config_value(
    keys: Union[str, Sequence[str]],
    env: Optional[Mapping[str, str]] = None,
    *,
    required: bool = False,
    default: Optional[str] = None,
) -> Optional[str]:
    """Read the first non-blank value among ``keys`` from the environment."""
    source = os.environ if env is None else env
    key_list = (keys,) if isinstance(keys, str) else tuple(keys)

    for key in key_list:
        value = source.get(key)
        if value is not None and value.strip():
            return value.strip()

    if required:
        joined = "/".join(key_list)
        raise ConfigError(f"Missing configuration for {joined}. Set it in the environment or .env file.")
    return default


def _flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in TRUE_VALUES


def _int_value(key: str, env: Optional[Mapping[str, str]], default: Optional[int]) -> Optional[int]:
    raw = config_value(key, env)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from err


@dataclass(frozen=True)
class ServerConfig:
    recipient_address: str
    port: int = DEFAULT_PORT
    network: str = DEFAULT_NETWORK
    facilitator_url: str = DEFAULT_FACILITATOR_URL
    zerion_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_GROQ_MODEL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        if env is None:
            load_dotenv()
        return cls(
            recipient_address=config_value("RECIPIENT_ADDRESS", env, required=True),
            port=_int_value("PORT", env, DEFAULT_PORT),
            network=config_value("NETWORK", env, default=DEFAULT_NETWORK),
            facilitator_url=config_value("FACILITATOR_URL", env, default=DEFAULT_FACILITATOR_URL),
            zerion_api_key=config_value("ZERION_API_KEY", env),
            groq_api_key=config_value("GROQ_API_KEY", env),
            groq_model=config_value("GROQ_MODEL", env, default=DEFAULT_GROQ_MODEL),
        )

    @property
    def analysis_enabled(self) -> bool:
        return bool(self.zerion_api_key and self.groq_api_key)


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    solana_wallet_path: str = DEFAULT_SOLANA_WALLET_PATH
    evm_private_key: Optional[str] = None
    solana_network: str = DEFAULT_SOLANA_NETWORK
    evm_network: str = DEFAULT_EVM_NETWORK
    svm_rpc_url: Optional[str] = None
    degraded: bool = False
    max_payment_amount: Optional[int] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        if env is None:
            load_dotenv()
        return cls(
            server_url=config_value("SERVER_URL", env, default=DEFAULT_SERVER_URL),
            solana_wallet_path=config_value(
                "SOLANA_WALLET_PATH", env, default=DEFAULT_SOLANA_WALLET_PATH
            ),
            evm_private_key=config_value("EVM_PRIVATE_KEY", env),
            solana_network=config_value("SOLANA_NETWORK", env, default=DEFAULT_SOLANA_NETWORK),
            evm_network=config_value("EVM_NETWORK", env, default=DEFAULT_EVM_NETWORK),
            svm_rpc_url=config_value("SVM_RPC_URL", env),
            degraded=_flag(config_value("X402_DEGRADED_MODE", env)),
            max_payment_amount=_int_value("MAX_PAYMENT_AMOUNT", env, None),
        )
