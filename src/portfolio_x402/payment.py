"""Payment tokens attached to retried requests and settlement headers."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .constants import (
    PAYMENT_RESPONSE_HEADER,
    PAYMENT_SIGNATURE_HEADER,
    X_PAYMENT_HEADER,
    X_PAYMENT_RESPONSE_HEADER,
)

JsonDict = Dict[str, Any]


@dataclass(frozen=True)
class PaymentToken:
    """Signed, not yet submitted payment for a single challenge."""

    network: str
    scheme: str
    x402_version: int
    payload: JsonDict = field(default_factory=dict)
    nonce: Optional[str] = None

    @property
    def header_name(self) -> str:
        if self.x402_version >= 2:
            return PAYMENT_SIGNATURE_HEADER
        return X_PAYMENT_HEADER

    def to_json(self) -> JsonDict:
        # Signers that return a full x402 payment payload are sent as is.
        if "x402Version" in self.payload:
            document = dict(self.payload)
        else:
            document = {
                "x402Version": self.x402_version,
                "scheme": self.scheme,
                "network": self.network,
                "payload": self.payload,
            }
        if self.nonce is not None:
            document["nonce"] = self.nonce
        return document

    def encode(self) -> str:
        raw = json.dumps(self.to_json(), separators=(",", ":"), sort_keys=True)
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_payment_token(header: str) -> JsonDict:
    return json.loads(base64.b64decode(header).decode("utf-8"))


def decode_payment_response(headers: Mapping[str, str]) -> Optional[JsonDict]:
    """Decode the settlement header returned with a paid response, if any.

    Returns the decoded JSON containing ``success``, ``transaction``,
    ``network`` and ``payer`` as sent by the gate.
    """
    header = headers.get(PAYMENT_RESPONSE_HEADER) or headers.get(X_PAYMENT_RESPONSE_HEADER)
    if not header:
        return None
    try:
        decoded = json.loads(base64.b64decode(header).decode("utf-8"))
    except (binascii.Error, ValueError):
        return {"raw": header}
    if not isinstance(decoded, dict):
        return {"raw": header}
    return decoded
