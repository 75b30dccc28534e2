"""FastAPI server: public index, paid premium content and paid wallet analysis.

Run with:

    portfolio-x402-server

or ``uvicorn portfolio_x402.server:app --factory --port 3000``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Body, FastAPI, status
from fastapi.responses import JSONResponse

from .analysis import MODEL_LABEL, PortfolioAnalyst, create_groq_client
from .config import ServerConfig
from .constants import ROUTE_PRICES
from .errors import ConfigError
from .zerion import ZerionClient

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PaymentGate = Callable[[FastAPI, ServerConfig], None]

_DEFAULT_GATE = object()


def _default_payment_gate(app: FastAPI, config: ServerConfig) -> None:
    from .http import install_payment_gate

    install_payment_gate(app, config)


def create_analyst(config: ServerConfig) -> Optional[PortfolioAnalyst]:
    if not config.analysis_enabled:
        return None
    return PortfolioAnalyst(
        ZerionClient(config.zerion_api_key),
        create_groq_client(config.groq_api_key),
        model=config.groq_model,
    )


def _missing_address() -> JSONResponse:
    return JSONResponse(
        {
            "error": "Missing required field: address",
            "message": "Please provide a wallet address to analyze",
        },
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def _analysis_failed(err: Exception) -> JSONResponse:
    return JSONResponse(
        {"error": "Analysis failed", "message": str(err)},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _address_from(payload: Optional[JsonDict]) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    address = payload.get("address")
    if not isinstance(address, str) or not address.strip():
        return None
    return address.strip()


def create_app(
    config: ServerConfig,
    analyst: Optional[PortfolioAnalyst] = None,
    payment_gate: Any = _DEFAULT_GATE,
) -> FastAPI:
    """Build the app. ``payment_gate=None`` serves the paid routes without a gate."""
    app = FastAPI(title="x402 portfolio server")

    if payment_gate is _DEFAULT_GATE:
        payment_gate = _default_payment_gate
    if payment_gate is not None:
        payment_gate(app, config)
    else:
        logger.warning("payment gate disabled; paid routes are served for free")

    def _unavailable() -> JSONResponse:
        return JSONResponse(
            {
                "error": "Analysis unavailable",
                "message": "Set ZERION_API_KEY and GROQ_API_KEY to enable wallet analysis",
            },
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.get("/")
    def index() -> JsonDict:
        return {
            "message": "x402 Server with AI Portfolio Analysis",
            "network": config.network,
            "endpoints": {
                "GET /": "Public - no payment required",
                "GET /premium": f"Protected - {ROUTE_PRICES['GET /premium']} USDC",
                "POST /analyze-basic": (
                    f"Protected - {ROUTE_PRICES['POST /analyze-basic']} USDC - Basic analysis"
                ),
                "POST /analyze-comprehensive": (
                    f"Protected - {ROUTE_PRICES['POST /analyze-comprehensive']} USDC"
                    " - Comprehensive analysis"
                ),
            },
        }

    @app.get("/health")
    def health() -> JsonDict:
        return {"status": "ok"}

    @app.get("/premium")
    def premium() -> JsonDict:
        return {
            "message": "Premium content accessed!",
            "data": {
                "secret": "This is premium content",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }

    @app.post("/analyze-basic")
    def analyze_basic(payload: Optional[JsonDict] = Body(default=None)) -> Any:
        address = _address_from(payload)
        if address is None:
            return _missing_address()
        if analyst is None:
            return _unavailable()

        logger.info("basic analysis: %s", address)
        try:
            analysis = analyst.analyze_basic(address)
        except Exception as err:
            logger.error("analysis failed for %s: %s", address, err)
            return _analysis_failed(err)
        logger.info("basic analysis complete for %s, score %s/100", address, analysis.get("healthScore"))

        return {
            "message": "Basic wallet analysis complete!",
            "analysis": analysis,
            "info": {
                "model": MODEL_LABEL,
                "dataSource": "Zerion API",
                "analysisType": "basic",
            },
        }

    @app.post("/analyze-comprehensive")
    def analyze_comprehensive(payload: Optional[JsonDict] = Body(default=None)) -> Any:
        address = _address_from(payload)
        if address is None:
            return _missing_address()
        if analyst is None:
            return _unavailable()

        logger.info("comprehensive analysis: %s", address)
        try:
            analysis = analyst.analyze_comprehensive(address)
        except Exception as err:
            logger.error("analysis failed for %s: %s", address, err)
            return _analysis_failed(err)
        logger.info("comprehensive analysis complete for %s, risk %s/100", address, analysis.get("riskScore"))

        return {
            "message": "Comprehensive wallet analysis complete!",
            "analysis": analysis,
            "info": {
                "model": MODEL_LABEL,
                "dataSource": "Zerion API (Multi-Network)",
                "analysisType": "comprehensive",
                "networksAnalyzed": len(analysis.get("chainDistribution") or {}),
            },
        }

    return app


def app() -> FastAPI:
    config = ServerConfig.from_env()
    return create_app(config, analyst=create_analyst(config))


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="portfolio_x402 %(levelname)s: %(message)s")
    try:
        config = ServerConfig.from_env()
    except ConfigError as err:
        raise SystemExit(str(err)) from err

    analyst = create_analyst(config)
    if analyst is None:
        logger.error(
            "missing API keys: ZERION_API_KEY=%s GROQ_API_KEY=%s",
            "set" if config.zerion_api_key else "missing",
            "set" if config.groq_api_key else "missing",
        )
        raise SystemExit("Set ZERION_API_KEY and GROQ_API_KEY in your .env file")

    logger.info("recipient %s on %s, facilitator %s", config.recipient_address, config.network, config.facilitator_url)
    for route, price in ROUTE_PRICES.items():
        logger.info("  %-28s %s USDC", route, price)
    uvicorn.run(create_app(config, analyst=analyst), host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
