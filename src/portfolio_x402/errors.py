"""Error types raised by the payment pipeline and the portfolio services."""

from __future__ import annotations

from typing import Any, Optional, Sequence

SNIPPET_LIMIT = 300


def snippet(value: Any, limit: int = SNIPPET_LIMIT) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = value if isinstance(value, str) else repr(value)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class PaymentError(Exception):
    """Base class for payment pipeline errors."""


class ChallengeParseError(PaymentError):
    """The 402 response did not carry a usable payment challenge."""

    def __init__(self, message: str, raw: Any = None) -> None:
        self.snippet = snippet(raw)
        if self.snippet:
            message = f"{message} (challenge: {self.snippet})"
        super().__init__(message)


class UnsupportedNetworkError(PaymentError, ValueError):
    """No signer or default asset is configured for a network."""

    def __init__(self, message: str, network: Optional[str] = None, offered: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.network = network
        self.offered = list(offered)


class SigningError(PaymentError):
    """The selected signer could not produce a payment payload."""

    def __init__(self, message: str, network: Optional[str] = None) -> None:
        super().__init__(message)
        self.network = network


class PaymentRejectedError(PaymentError):
    """The server answered 402 again after the payment was attached."""

    def __init__(self, status: int, network: Optional[str] = None, body: Any = None) -> None:
        self.status = status
        self.network = network
        self.snippet = snippet(body)
        message = f"Payment rejected with status {status}"
        if network:
            message += f" on {network}"
        if self.snippet:
            message += f": {self.snippet}"
        super().__init__(message)


class TransportError(PaymentError):
    """The request could not be delivered (timeout, connection failure)."""

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class RegistryError(ValueError):
    """Invalid signer registry configuration."""


class WalletError(RuntimeError):
    """Wallet credentials could not be loaded."""


class ConfigError(RuntimeError):
    """A required configuration value is missing or invalid."""


class ZerionError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AnalysisError(RuntimeError):
    """The LLM answer could not be turned into an analysis."""
