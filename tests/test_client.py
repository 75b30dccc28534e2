import pytest

pytest.importorskip("fastapi")
pytest.importorskip("openai")
pytest.importorskip("solders")

from fastapi.testclient import TestClient

from portfolio_x402 import client as cli
from portfolio_x402.config import ServerConfig
from portfolio_x402.pipeline import PaymentPipeline
from portfolio_x402.registry import NetworkSignerRegistry
from portfolio_x402.server import create_app
from portfolio_x402.signers import NetworkSigner


class StubSigner(NetworkSigner):
    def create_payment_payload(self, challenge):
        return {}


class StubAnalyst:
    def analyze_basic(self, address):
        return {"healthScore": 64, "riskLevel": "Medium", "totalValue": 1234.5, "summary": "Fine."}


def test_run_prints_each_step(capsys):
    app = create_app(ServerConfig(recipient_address="R1"), analyst=StubAnalyst(), payment_gate=None)
    with TestClient(app) as client:
        pipeline = PaymentPipeline(NetworkSignerRegistry([StubSigner("solana-devnet")]), client=client)
        cli.run(pipeline, "0xwallet")

    out = capsys.readouterr().out
    assert "x402 Server with AI Portfolio Analysis" in out
    assert "Premium content accessed!" in out
    assert "Health Score: 64/100" in out
    assert "Total Value: $1,234.5" in out


def test_run_fails_on_error_status():
    app = create_app(ServerConfig(recipient_address="R1"), analyst=None, payment_gate=None)
    with TestClient(app) as client:
        pipeline = PaymentPipeline(NetworkSignerRegistry([StubSigner("solana-devnet")]), client=client)
        with pytest.raises(SystemExit) as exc:
            cli.run(pipeline, "0xwallet")
    assert "/analyze-basic failed with status 503" in str(exc.value)


def test_main_reports_missing_wallets(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SOLANA_WALLET_PATH", str(tmp_path / "missing.json"))
    monkeypatch.delenv("EVM_PRIVATE_KEY", raising=False)
    monkeypatch.delenv("X402_DEGRADED_MODE", raising=False)

    assert cli.main(["--degraded"]) == 2
    err = capsys.readouterr().err
    assert "Wallet setup failed" in err
    assert "solana-keygen new" in err
