import json
from types import SimpleNamespace

import pytest

pytest.importorskip("openai")

from portfolio_x402.analysis import PortfolioAnalyst, clean_json_text, parse_llm_json
from portfolio_x402.errors import AnalysisError
from portfolio_x402.zerion import PortfolioData


class FakeZerion:
    def __init__(self):
        self.addresses = []

    def fetch_portfolio(self, address):
        self.addresses.append(address)
        return PortfolioData(
            portfolio={"data": {"attributes": {"total_value": 200}}},
            positions=[
                {
                    "attributes": {"value": 150, "fungible_info": {"name": "Ether", "symbol": "ETH"}},
                    "relationships": {"chain": {"data": {"id": "ethereum"}}},
                },
                {
                    "attributes": {"value": 50, "fungible_info": {"name": "USD Coin", "symbol": "USDC"}},
                    "relationships": {"chain": {"data": {"id": "base"}}},
                },
            ],
        )


class FakeLLM:
    def __init__(self, answer):
        self.answer = answer
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.answer)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_clean_json_text_strips_fences_and_control_chars():
    text = '```json\n{"healthScore": 80,\x07 "summary": "ok"}\n```'
    assert json.loads(clean_json_text(text)) == {"healthScore": 80, "summary": "ok"}


def test_parse_llm_json_errors():
    with pytest.raises(AnalysisError):
        parse_llm_json("I think your wallet is fine")
    with pytest.raises(AnalysisError):
        parse_llm_json("[1, 2]")


def test_analyze_basic():
    answer = json.dumps(
        {
            "healthScore": 72,
            "summary": "Mostly ETH.",
            "strengths": ["liquid"],
            "concerns": ["concentrated"],
            "quickWins": ["add stablecoins"],
            "riskLevel": "Medium",
            "riskExplanation": "One asset dominates.",
        }
    )
    llm = FakeLLM(f"```json\n{answer}\n```")
    zerion = FakeZerion()
    analysis = PortfolioAnalyst(zerion, llm, model="test-model").analyze_basic("0xwallet")

    assert zerion.addresses == ["0xwallet"]
    assert llm.requests[0]["model"] == "test-model"
    assert "temperature" not in llm.requests[0]
    assert analysis["healthScore"] == 72
    assert analysis["riskLevel"] == "Medium"
    assert analysis["totalValue"] == 200
    assert [holding["symbol"] for holding in analysis["topHoldings"]] == ["ETH", "USDC"]
    assert analysis["topHoldings"][0]["percentage"] == 75.0
    assert isinstance(analysis["timestamp"], int)


def test_analyze_comprehensive_adds_chain_distribution():
    answer = json.dumps(
        {
            "summary": "Two chains.",
            "riskScore": 40,
            "detailedRiskAnalysis": {"concentrationRisk": "high"},
            "diversificationScore": 30,
            "recommendations": ["diversify"],
            "chainAnalysis": "Ethereum heavy.",
        }
    )
    llm = FakeLLM(answer)
    analysis = PortfolioAnalyst(FakeZerion(), llm, temperature=0.2).analyze_comprehensive("0xwallet")

    assert llm.requests[0]["temperature"] == 0.2
    assert analysis["riskScore"] == 40
    assert analysis["chainDistribution"] == {"ethereum": 150, "base": 50}
    assert analysis["recommendations"] == ["diversify"]


def test_invalid_llm_answer_raises():
    analyst = PortfolioAnalyst(FakeZerion(), FakeLLM("not json"))
    with pytest.raises(AnalysisError):
        analyst.analyze_basic("0xwallet")
