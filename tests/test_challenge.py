import base64
import json

import httpx
import pytest

from portfolio_x402.challenge import (
    PaymentChallenge,
    parse_amount,
    parse_challenge_document,
    parse_challenges,
)
from portfolio_x402.errors import ChallengeParseError

FLAT = {"network": "solana-devnet", "asset": "USDC", "recipient": "R1", "amount": 5000, "nonce": "n1"}


def _encode(document):
    return base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")


def test_parse_flat_challenge():
    [challenge] = parse_challenge_document(FLAT)
    assert challenge.network == "solana-devnet"
    assert challenge.asset == "USDC"
    assert challenge.recipient == "R1"
    assert challenge.amount == 5000
    assert challenge.nonce == "n1"
    assert challenge.x402_version == 1


def test_flat_challenge_keeps_unknown_fields():
    [challenge] = parse_challenge_document({**FLAT, "memo": "coffee"})
    assert challenge.raw["memo"] == "coffee"


@pytest.mark.parametrize("missing", ["network", "asset", "recipient", "amount", "nonce"])
def test_flat_challenge_requires_all_fields(missing):
    body = {key: value for key, value in FLAT.items() if key != missing}
    with pytest.raises(ChallengeParseError) as exc:
        parse_challenge_document(body)
    assert missing in str(exc.value)


def test_parse_v1_accepts_envelope():
    document = {
        "x402Version": 1,
        "error": "X-PAYMENT header is required",
        "accepts": [
            {
                "scheme": "exact",
                "network": "base-sepolia",
                "maxAmountRequired": "100",
                "resource": "http://localhost:3000/premium",
                "description": "Premium content",
                "mimeType": "application/json",
                "payTo": "0xabc",
                "maxTimeoutSeconds": 300,
                "asset": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
                "extra": {"name": "USDC", "version": "2"},
            }
        ],
    }
    [challenge] = parse_challenge_document(document)
    assert challenge.recipient == "0xabc"
    assert challenge.amount == 100
    assert challenge.nonce is None
    assert challenge.max_timeout_seconds == 300
    assert challenge.extra == {"name": "USDC", "version": "2"}


def test_nonce_read_from_extra():
    document = {
        "x402Version": 2,
        "accepts": [
            {"network": "eip155:84532", "asset": "0xusdc", "amount": "7", "payTo": "0xabc", "extra": {"nonce": "n9"}}
        ],
    }
    [challenge] = parse_challenge_document(document)
    assert challenge.nonce == "n9"
    assert challenge.x402_version == 2


def test_accepts_entry_without_amount_is_rejected():
    document = {"x402Version": 1, "accepts": [{"network": "base", "asset": "0x1", "payTo": "0x2"}]}
    with pytest.raises(ChallengeParseError):
        parse_challenge_document(document)


def test_empty_accepts_is_rejected():
    with pytest.raises(ChallengeParseError):
        parse_challenge_document({"x402Version": 1, "accepts": []})


def test_non_object_document_is_rejected():
    with pytest.raises(ChallengeParseError):
        parse_challenge_document(["not", "an", "object"])


def test_parse_amount_variants():
    assert parse_amount(5000) == 5000
    assert parse_amount(" 42 ") == 42
    assert parse_amount("0x10") == 16
    for bad in (-1, "-5", "1.5", "", True, 1.5, None):
        with pytest.raises(ValueError):
            parse_amount(bad)


def test_parse_challenges_prefers_header():
    header_doc = {
        "x402Version": 2,
        "resource": {"url": "http://gate.test/premium"},
        "accepts": [{"network": "eip155:84532", "asset": "0xusdc", "amount": "100", "payTo": "0xabc"}],
    }
    response = httpx.Response(402, headers={"PAYMENT-REQUIRED": _encode(header_doc)}, json=FLAT)
    [challenge] = parse_challenges(response)
    assert challenge.network == "eip155:84532"
    assert challenge.x402_version == 2


def test_parse_challenges_rejects_invalid_header():
    response = httpx.Response(402, headers={"PAYMENT-REQUIRED": "%%%not-base64%%%"})
    with pytest.raises(ChallengeParseError):
        parse_challenges(response)


def test_parse_challenges_rejects_non_json_body():
    response = httpx.Response(402, content=b"<html>pay me</html>")
    with pytest.raises(ChallengeParseError) as exc:
        parse_challenges(response)
    assert "pay me" in exc.value.snippet


def test_v1_requirements_use_max_amount_required():
    [challenge] = parse_challenge_document(FLAT)
    requirements = challenge.to_requirements()
    assert requirements["maxAmountRequired"] == "5000"
    assert requirements["payTo"] == "R1"
    assert "recipient" not in requirements
    assert "amount" not in requirements
    assert "nonce" not in requirements


def test_v2_payment_required_has_resource_object():
    challenge = PaymentChallenge(
        network="eip155:84532",
        asset="0xusdc",
        recipient="0xabc",
        amount=100,
        x402_version=2,
        envelope={"x402Version": 2, "resource": "http://gate.test/premium", "accepts": []},
    )
    document = challenge.to_payment_required()
    assert document["x402Version"] == 2
    assert document["resource"]["url"] == "http://gate.test/premium"
    [entry] = document["accepts"]
    assert entry["amount"] == "100"
    assert "maxAmountRequired" not in entry


@pytest.mark.parametrize("timeout", ["soon", {"seconds": 60}, [60], True])
def test_flat_challenge_rejects_bad_max_timeout(timeout):
    with pytest.raises(ChallengeParseError) as exc:
        parse_challenge_document({**FLAT, "maxTimeoutSeconds": timeout})
    assert "maxTimeoutSeconds" in str(exc.value)


def test_accepts_entry_rejects_bad_max_timeout():
    entry = {"network": "base", "asset": "0x1", "payTo": "0x2", "maxAmountRequired": "1", "maxTimeoutSeconds": "soon"}
    with pytest.raises(ChallengeParseError):
        parse_challenge_document({"x402Version": 1, "accepts": [entry]})
