import asyncio
import logging
import sys

from dotenv import load_dotenv

from portfolio_x402 import AsyncPaymentPipeline, PaymentError
from portfolio_x402.config import ClientConfig
from portfolio_x402.wallet import build_signer_registry

load_dotenv()
logging.basicConfig(level=logging.INFO, format="portfolio_x402 %(levelname)s: %(message)s")

config = ClientConfig.from_env()
registry = build_signer_registry(config)
ADDRESS = sys.argv[1] if len(sys.argv) > 1 else None


async def main() -> None:
    async with AsyncPaymentPipeline(registry, base_url=config.server_url, timeout=60.0) as pipeline:
        premium = await pipeline.get("/premium")
        print("Status:", premium.status_code)
        print("Body:", premium.text)
        print("Settlement:", premium.settlement)

        if ADDRESS:
            analysis = await pipeline.post("/analyze-comprehensive", json={"address": ADDRESS})
            print("Status:", analysis.status_code)
            print("Body:", analysis.text)


try:
    asyncio.run(main())
except PaymentError as err:
    raise SystemExit(f"{type(err).__name__}: {err}") from err
