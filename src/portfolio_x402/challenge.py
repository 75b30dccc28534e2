"""Parsing of HTTP 402 payment challenges."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from .constants import (
    DEFAULT_MAX_TIMEOUT_SECONDS,
    DEFAULT_SCHEME,
    PAYMENT_REQUIRED_HEADER,
)
from .errors import ChallengeParseError

JsonDict = Dict[str, Any]

FLAT_REQUIRED_FIELDS = ("network", "asset", "recipient", "amount", "nonce")


@dataclass(frozen=True)
class PaymentChallenge:
    """One payment option demanded by the server in a 402 response."""

    network: str
    asset: str
    recipient: str
    amount: int
    nonce: Optional[str] = None
    scheme: str = DEFAULT_SCHEME
    x402_version: int = 1
    max_timeout_seconds: int = DEFAULT_MAX_TIMEOUT_SECONDS
    extra: JsonDict = field(default_factory=dict)
    raw: JsonDict = field(default_factory=dict)
    envelope: JsonDict = field(default_factory=dict)

    def to_requirements(self) -> JsonDict:
        """Payment requirements entry in x402 wire format for this challenge."""
        requirements: JsonDict = dict(self.raw)
        requirements.update(
            {
                "scheme": self.scheme,
                "network": self.network,
                "asset": self.asset,
                "payTo": self.recipient,
                "maxTimeoutSeconds": self.max_timeout_seconds,
                "extra": dict(self.extra),
            }
        )
        # Drop the flat-format aliases.
        requirements.pop("recipient", None)
        requirements.pop("nonce", None)
        if self.x402_version == 1:
            requirements.pop("amount", None)
            requirements["maxAmountRequired"] = str(self.amount)
            requirements.setdefault("resource", str(self.envelope.get("resource") or ""))
            requirements.setdefault("description", "")
            requirements.setdefault("mimeType", "")
        else:
            requirements.pop("maxAmountRequired", None)
            requirements["amount"] = str(self.amount)
        return requirements

    def to_payment_required(self) -> JsonDict:
        """402 envelope narrowed to this single accepted option."""
        envelope: JsonDict = {
            key: value for key, value in self.envelope.items() if key not in FLAT_REQUIRED_FIELDS
        }
        envelope["x402Version"] = self.x402_version
        envelope["accepts"] = [self.to_requirements()]
        envelope.pop("paymentRequirements", None)
        if self.x402_version >= 2:
            resource = envelope.get("resource")
            if isinstance(resource, dict):
                resource = dict(resource)
            else:
                resource = {"url": str(resource or "")}
            resource.setdefault("description", "")
            resource.setdefault("mimeType", "")
            envelope["resource"] = resource
        return envelope


def parse_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("amount must be an integer")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("amount cannot be empty")
        try:
            if trimmed.lower().startswith("0x"):
                amount = int(trimmed, 16)
            else:
                amount = int(trimmed, 10)
        except ValueError as err:
            raise ValueError(f"amount must be a decimal or hexadecimal integer, got {value!r}") from err
    else:
        raise ValueError(f"amount must be an integer, got {type(value).__name__}")
    if amount < 0:
        raise ValueError("amount must be non-negative")
    return amount


def _require_str(data: Mapping[str, Any], key: str, raw: Any) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ChallengeParseError(f"payment challenge missing required field {key!r}", raw)
    if not isinstance(value, (str, int)):
        raise ChallengeParseError(f"payment challenge field {key!r} must be a string", raw)
    return str(value).strip()


def _parse_version(envelope: Mapping[str, Any], raw: Any) -> int:
    version = envelope.get("x402Version", envelope.get("x402_version", 1))
    try:
        return int(version)
    except (TypeError, ValueError) as err:
        raise ChallengeParseError(f"invalid x402Version {version!r}", raw) from err


def _parse_timeout(data: Mapping[str, Any]) -> int:
    timeout_raw = data.get("maxTimeoutSeconds") or DEFAULT_MAX_TIMEOUT_SECONDS
    if isinstance(timeout_raw, bool):
        raise ChallengeParseError(f"invalid maxTimeoutSeconds {timeout_raw!r}", data)
    try:
        return int(timeout_raw)
    except (TypeError, ValueError) as err:
        raise ChallengeParseError(f"invalid maxTimeoutSeconds {timeout_raw!r}", data) from err


def _parse_flat(body: JsonDict) -> PaymentChallenge:
    missing = [key for key in FLAT_REQUIRED_FIELDS if body.get(key) in (None, "")]
    if missing:
        joined = ", ".join(missing)
        raise ChallengeParseError(f"payment challenge missing required fields: {joined}", body)
    try:
        amount = parse_amount(body["amount"])
    except ValueError as err:
        raise ChallengeParseError(str(err), body) from err

    extra = body.get("extra") if isinstance(body.get("extra"), dict) else {}
    return PaymentChallenge(
        network=_require_str(body, "network", body),
        asset=_require_str(body, "asset", body),
        recipient=_require_str(body, "recipient", body),
        amount=amount,
        nonce=str(body["nonce"]),
        scheme=str(body.get("scheme") or DEFAULT_SCHEME),
        x402_version=_parse_version(body, body),
        max_timeout_seconds=_parse_timeout(body),
        extra=dict(extra),
        raw=dict(body),
        envelope=dict(body),
    )


def _parse_accepted(entry: Any, envelope: JsonDict, version: int) -> PaymentChallenge:
    if not isinstance(entry, dict):
        raise ChallengeParseError("accepts entries must be JSON objects", entry)

    amount_raw = entry.get("maxAmountRequired", entry.get("amount"))
    if amount_raw is None:
        raise ChallengeParseError("payment challenge missing required field 'amount'", entry)
    try:
        amount = parse_amount(amount_raw)
    except ValueError as err:
        raise ChallengeParseError(str(err), entry) from err

    extra = entry.get("extra") or {}
    if not isinstance(extra, dict):
        raise ChallengeParseError("payment challenge 'extra' must be an object", entry)

    nonce = entry.get("nonce", extra.get("nonce"))
    recipient_key = "payTo" if "payTo" in entry else "recipient"
    max_timeout = _parse_timeout(entry)

    return PaymentChallenge(
        network=_require_str(entry, "network", entry),
        asset=_require_str(entry, "asset", entry),
        recipient=_require_str(entry, recipient_key, entry),
        amount=amount,
        nonce=str(nonce) if nonce is not None else None,
        scheme=str(entry.get("scheme") or DEFAULT_SCHEME),
        x402_version=version,
        max_timeout_seconds=max_timeout,
        extra=dict(extra),
        raw=dict(entry),
        envelope=envelope,
    )


def parse_challenge_document(document: Any) -> List[PaymentChallenge]:
    """Parse a decoded 402 document into the payment options it offers.

    Accepts x402 envelopes (``{"x402Version": .., "accepts": [..]}``) as well as
    a flat ``{network, asset, recipient, amount, nonce}`` object. Extra fields
    are preserved.
    """
    if not isinstance(document, dict):
        raise ChallengeParseError("payment challenge must be a JSON object", document)

    accepts = document.get("accepts")
    if accepts is None:
        return [_parse_flat(document)]

    if isinstance(accepts, dict):
        accepts = [accepts]
    if not isinstance(accepts, list) or not accepts:
        raise ChallengeParseError("payment challenge 'accepts' is empty", document)

    version = _parse_version(document, document)
    return [_parse_accepted(entry, dict(document), version) for entry in accepts]


def decode_payment_required_header(value: str) -> JsonDict:
    try:
        decoded = base64.b64decode(value, validate=True)
        return json.loads(decoded)
    except (binascii.Error, ValueError) as err:
        raise ChallengeParseError(f"invalid {PAYMENT_REQUIRED_HEADER} header", value) from err


def parse_challenges(response: httpx.Response) -> List[PaymentChallenge]:
    """Extract payment challenges from a 402 response (header first, then body)."""
    header = response.headers.get(PAYMENT_REQUIRED_HEADER)
    if header:
        return parse_challenge_document(decode_payment_required_header(header))

    try:
        body = response.json()
    except ValueError as err:
        raise ChallengeParseError("402 response body is not valid JSON", response.content) from err
    return parse_challenge_document(body)
