"""LLM-backed wallet analysis (Groq through its OpenAI-compatible API)."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError

from .constants import DEFAULT_GROQ_MODEL, GROQ_BASE_URL
from .errors import AnalysisError
from .zerion import (
    ZerionClient,
    calculate_chain_distribution,
    extract_top_holdings,
    extract_total_value,
    portfolio_attributes,
)

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]

MODEL_LABEL = "Groq AI (Moonshot Kimi K2)"

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.MULTILINE)
_FENCE_CLOSE = re.compile(r"```\s*$", re.MULTILINE)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

JSON_ONLY = (
    "Return ONLY the raw JSON object. Do not wrap it in markdown code fences "
    "and do not add any text before or after it."
)

BASIC_PROMPT = """You are a friendly crypto portfolio advisor. Analyze this wallet for a non-technical reader.

Portfolio data:
{data}

Respond with a JSON object:
{{
  "healthScore": <number 0-100; 80+ excellent, 60-79 good, 40-59 fair, below 40 poor>,
  "summary": "2-3 plain-English sentences on what the wallet holds and whether it is healthy",
  "strengths": ["2-3 things going well"],
  "concerns": ["2-3 things that need attention"],
  "quickWins": ["3-4 simple, actionable recommendations"],
  "riskLevel": "Low|Medium|High",
  "riskExplanation": "one short sentence"
}}

Use simple, friendly language without jargon. {json_only}"""

COMPREHENSIVE_PROMPT = """Conduct a comprehensive analysis of this crypto wallet portfolio.

Portfolio data:
{data}

Cover an executive summary, concentration / volatility / liquidity risk with an overall
risk score, diversification across chains, asset types and sectors, 5-7 recommendations
and the multi-network distribution. Respond with a JSON object:
{{
  "summary": "executive summary paragraphs",
  "riskScore": <number 0-100>,
  "detailedRiskAnalysis": {{
    "concentrationRisk": "analysis",
    "volatilityRisk": "analysis",
    "liquidityRisk": "analysis"
  }},
  "diversificationScore": <number 0-100>,
  "recommendations": ["rec1", "rec2"],
  "chainAnalysis": "multi-network distribution and implications"
}}

{json_only}"""


def clean_json_text(text: str) -> str:
    """Strip markdown fences and control characters from an LLM answer."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    return cleaned.strip()


def parse_llm_json(text: str) -> JsonDict:
    try:
        result = json.loads(clean_json_text(text))
    except ValueError as err:
        raise AnalysisError(f"LLM returned invalid JSON: {err}") from err
    if not isinstance(result, dict):
        raise AnalysisError("LLM returned JSON that is not an object")
    return result


def create_groq_client(api_key: str) -> OpenAI:
    return OpenAI(api_key=api_key, base_url=GROQ_BASE_URL)


class PortfolioAnalyst:
    """Combines Zerion portfolio data with an LLM summary."""

    def __init__(
        self,
        zerion: ZerionClient,
        llm: OpenAI,
        model: str = DEFAULT_GROQ_MODEL,
        temperature: Optional[float] = None,
    ) -> None:
        self._zerion = zerion
        self._llm = llm
        self._model = model
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    def _complete(self, prompt: str) -> JsonDict:
        kwargs: JsonDict = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        try:
            completion = self._llm.chat.completions.create(**kwargs)
        except OpenAIError as err:
            raise AnalysisError(f"LLM request failed: {err}") from err
        text = completion.choices[0].message.content or ""
        return parse_llm_json(text)

    def analyze_basic(self, address: str) -> JsonDict:
        data = self._zerion.fetch_portfolio(address)
        total_value = extract_total_value(data.portfolio)
        top_holdings = extract_top_holdings(data.positions, total_value, 5)
        attributes = portfolio_attributes(data.portfolio)

        portfolio_data = {
            "totalValue": total_value,
            "positionCount": len(data.positions),
            "topHoldings": top_holdings,
            "typeDistribution": attributes.get("positions_distribution_by_type") or {},
        }
        prompt = BASIC_PROMPT.format(data=json.dumps(portfolio_data, indent=2), json_only=JSON_ONLY)
        result = self._complete(prompt)

        return {
            "healthScore": result.get("healthScore"),
            "summary": result.get("summary"),
            "strengths": result.get("strengths"),
            "concerns": result.get("concerns"),
            "quickWins": result.get("quickWins"),
            "riskLevel": result.get("riskLevel"),
            "riskExplanation": result.get("riskExplanation"),
            "topHoldings": top_holdings,
            "totalValue": total_value,
            "timestamp": int(time.time() * 1000),
        }

    def analyze_comprehensive(self, address: str) -> JsonDict:
        data = self._zerion.fetch_portfolio(address)
        total_value = extract_total_value(data.portfolio)
        top_holdings = extract_top_holdings(data.positions, total_value, 10)
        chain_distribution = calculate_chain_distribution(data.positions)
        attributes = portfolio_attributes(data.portfolio)

        portfolio_data = {
            "totalValue": total_value,
            "positionCount": len(data.positions),
            "topHoldings": top_holdings,
            "chainDistribution": chain_distribution,
            "typeDistribution": attributes.get("positions_distribution_by_type") or {},
        }
        prompt = COMPREHENSIVE_PROMPT.format(
            data=json.dumps(portfolio_data, indent=2), json_only=JSON_ONLY
        )
        result = self._complete(prompt)

        return {
            "summary": result.get("summary"),
            "riskScore": result.get("riskScore"),
            "topHoldings": top_holdings,
            "totalValue": total_value,
            "timestamp": int(time.time() * 1000),
            "detailedRiskAnalysis": result.get("detailedRiskAnalysis"),
            "diversificationScore": result.get("diversificationScore"),
            "recommendations": result.get("recommendations"),
            "chainDistribution": chain_distribution,
            "chainAnalysis": result.get("chainAnalysis"),
        }
