"""Demo client: walks the public and paid endpoints, paying 402 challenges.

Flow for each paid request:
  1. the server answers 402 with its payment requirements,
  2. a transfer is built and signed (SPL on Solana, EIP-3009 on EVM) but not submitted,
  3. the request is re-sent with the signed payment attached,
  4. the server's facilitator submits it and the content comes back.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Optional, Sequence

from .config import ClientConfig
from .errors import ConfigError, PaymentError, PaymentRejectedError, RegistryError, WalletError
from .pipeline import PaymentPipeline, PipelineResult
from .wallet import SETUP_HINTS, build_signer_registry

TEST_WALLET = "MJKqp326RZCHnAAbew9MDdui3iCKWco7fsK9sVuZTX2"

REJECTION_HINTS = (
    "Insufficient USDC balance",
    "Get devnet USDC: https://faucet.circle.com/",
    "Get devnet SOL: solana airdrop 1 <address> --url devnet",
)


def pretty_json(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def print_section(title: str, body: Optional[str] = None) -> None:
    print(f"\n{title}")
    if body:
        print(body)


def _describe(result: PipelineResult) -> str:
    try:
        data = result.json()
    except ValueError:
        return result.text
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return pretty_json(data)


def _require_success(result: PipelineResult, label: str) -> Any:
    if not result.is_success:
        raise SystemExit(f"{label} failed with status {result.status_code}: {result.text}")
    return result.json()


def run(pipeline: PaymentPipeline, address: Optional[str], skip_analysis: bool = False) -> None:
    print_section("1. Public endpoint (/)")
    result = pipeline.get("/")
    _require_success(result, "/")
    print(f"   {_describe(result)}")

    print_section("2. Premium endpoint (/premium)")
    result = pipeline.get("/premium")
    _require_success(result, "/premium")
    print(f"   {_describe(result)}")
    if result.settlement:
        print(f"   Settlement: {pretty_json(result.settlement)}")

    if skip_analysis:
        return

    print_section("3. Wallet analysis (/analyze-basic)", f"   Analyzing: {address}")
    result = pipeline.post("/analyze-basic", json={"address": address})
    analysis = _require_success(result, "/analyze-basic").get("analysis") or {}
    print(f"   Health Score: {analysis.get('healthScore')}/100")
    print(f"   Risk Level: {analysis.get('riskLevel')}")
    print(f"   Total Value: ${analysis.get('totalValue') or 0:,}")
    print(f"   Summary: {analysis.get('summary')}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-x402-client",
        description="Call the x402 portfolio server, paying 402 challenges automatically.",
    )
    parser.add_argument("--server", help="server base URL (default: SERVER_URL or http://localhost:3000)")
    parser.add_argument("--address", default=TEST_WALLET, help="wallet address to analyze")
    parser.add_argument("--skip-analysis", action="store_true", help="only call / and /premium")
    parser.add_argument(
        "--degraded",
        action="store_true",
        help="skip networks whose wallet credentials are missing instead of failing",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="per-request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="portfolio_x402 %(levelname)s: %(message)s",
    )

    try:
        config = ClientConfig.from_env()
    except ConfigError as err:
        print(f"Configuration error: {err}", file=sys.stderr)
        return 2
    server_url = args.server or config.server_url
    if args.degraded:
        config = replace(config, degraded=True)

    try:
        registry = build_signer_registry(config)
    except (WalletError, RegistryError) as err:
        print(f"Wallet setup failed: {err}", file=sys.stderr)
        for hint in SETUP_HINTS:
            print(f"   {hint}", file=sys.stderr)
        return 2

    print(f"x402 client -> {server_url}")
    for signer in registry:
        print(f"   {signer.network}: {signer.address or 'configured'}")
    print("=" * 70)

    with PaymentPipeline(registry, base_url=server_url, timeout=args.timeout) as pipeline:
        try:
            run(pipeline, args.address, skip_analysis=args.skip_analysis)
        except PaymentRejectedError as err:
            print(f"\nPayment rejected: {err}", file=sys.stderr)
            print("Common issues:", file=sys.stderr)
            for hint in REJECTION_HINTS:
                print(f"   - {hint}", file=sys.stderr)
            return 1
        except PaymentError as err:
            print(f"\nRequest failed: {type(err).__name__}: {err}", file=sys.stderr)
            return 1

    print("=" * 70)
    print("All requests completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
