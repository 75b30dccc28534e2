"""Network signers producing signed, unsubmitted payment payloads.

Transaction construction and signing are delegated to the ``x402`` library:
an ``x402Client`` with the exact EVM or SVM scheme registered does the work,
the signer only binds it to a network key and enforces a local spending cap.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from .challenge import PaymentChallenge
from .errors import SigningError
from .payment import PaymentToken

if TYPE_CHECKING:
    from solders.keypair import Keypair
    from x402 import x402Client


class NetworkSigner(ABC):
    """Capability bound to one network key that can sign a payment."""

    def __init__(self, network: str, max_amount: Optional[int] = None) -> None:
        self.network = network
        self.max_amount = max_amount

    @property
    def address(self) -> Optional[str]:
        return None

    def sign(self, challenge: PaymentChallenge) -> PaymentToken:
        if self.max_amount is not None and challenge.amount > self.max_amount:
            raise SigningError(
                f"Payment amount {challenge.amount} exceeds maximum allowed value {self.max_amount}",
                network=challenge.network,
            )
        payload = self.create_payment_payload(challenge)
        return PaymentToken(
            network=challenge.network,
            scheme=challenge.scheme,
            x402_version=challenge.x402_version,
            payload=payload,
            nonce=challenge.nonce,
        )

    @abstractmethod
    def create_payment_payload(self, challenge: PaymentChallenge) -> Dict[str, Any]:
        """Return the signed payload for ``challenge`` without submitting it."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(network={self.network!r})"


class X402SchemeSigner(NetworkSigner):
    """Signer backed by an ``x402Client`` with schemes registered on it."""

    def __init__(
        self,
        network: str,
        client: "x402Client",
        address: Optional[str] = None,
        max_amount: Optional[int] = None,
    ) -> None:
        super().__init__(network, max_amount=max_amount)
        self._client = client
        self._address = address

    @property
    def address(self) -> Optional[str]:
        return self._address

    def create_payment_payload(self, challenge: PaymentChallenge) -> Dict[str, Any]:
        from x402.schemas import PaymentRequired
        from x402.schemas.v1 import PaymentRequiredV1

        document = challenge.to_payment_required()
        model = PaymentRequiredV1 if challenge.x402_version == 1 else PaymentRequired
        payment_required = model.model_validate(document)
        payload = self._client.create_payment_payload(payment_required)
        if hasattr(payload, "model_dump"):
            return payload.model_dump(by_alias=True, exclude_none=True)
        return dict(payload)


def create_evm_signer(
    network: str,
    private_key: str,
    max_amount: Optional[int] = None,
) -> X402SchemeSigner:
    """EVM signer using the x402 exact scheme (EIP-3009 authorization)."""
    from eth_account import Account
    from x402 import x402Client
    from x402.mechanisms.evm import EthAccountSigner
    from x402.mechanisms.evm.exact.register import register_exact_evm_client

    account = Account.from_key(private_key)
    client = x402Client()
    register_exact_evm_client(client, EthAccountSigner(account))
    return X402SchemeSigner(network, client, address=account.address, max_amount=max_amount)


def create_svm_signer(
    network: str,
    keypair: "Keypair",
    rpc_url: Optional[str] = None,
    max_amount: Optional[int] = None,
) -> X402SchemeSigner:
    """Solana signer using the x402 exact scheme (partially signed SPL transfer)."""
    from x402 import x402Client
    from x402.mechanisms.svm import KeypairSigner
    from x402.mechanisms.svm.exact.register import register_exact_svm_client

    client = x402Client()
    register_exact_svm_client(client, KeypairSigner(keypair), rpc_url=rpc_url)
    return X402SchemeSigner(network, client, address=str(keypair.pubkey()), max_amount=max_amount)
