from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from swapjar.api import deps
from swapjar.config import BridgeConfig
from swapjar.core.bridge.errors import LedgerUnavailableError
from swapjar.core.bridge.models import AssetBalance, LedgerAccountState
from swapjar.core.bridge.orchestrator import BridgeOrchestrator
from swapjar.core.bridge.status import SwapStatusMonitor
from swapjar.main import app

client = TestClient(app)

RECIPIENT = "G" + "H" * 55
BRIDGE_ACCOUNT = "G" + "J" * 55
WALLET = "0x50ac5CFcc81BB0872e85255D7079F8a529345D16"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
ETH = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

CONFIG = BridgeConfig(
    network="TESTNET",
    horizon_url="https://horizon-testnet.stellar.org",
    network_passphrase="Test SDF Network ; September 2015",
    usdc_issuer="GBBD47IF6LWK7P7MDEVSCWR7DPUWV3NY3DTQEVFL4NAT4AQH3ZLLFLA5",
    explorer_url="https://testnet.steexp.com",
    fee_fraction=Decimal("0.02"),
    transaction_timeout_s=30,
    request_timeout_s=5.0,
    status_history_limit=100,
)


@pytest.fixture(autouse=True)
def overrides():
    app.dependency_overrides[deps.get_bridge_config] = lambda: CONFIG
    yield app.dependency_overrides
    app.dependency_overrides.clear()


def provide(value):
    return lambda: value


def tx(tx_id: str, memo: str, created_at: str) -> dict:
    return {
        "id": tx_id,
        "hash": tx_id * 64,
        "memo": memo,
        "created_at": created_at,
        "source_account": BRIDGE_ACCOUNT,
    }


# =============================================================================
# Payout initiation
# =============================================================================

def test_initiate_simulated_preview(overrides):
    overrides[deps.get_orchestrator] = lambda: BridgeOrchestrator(CONFIG)

    response = client.post(
        "/api/stellar/initiate",
        json={
            "ethereumTxHash": "0xabc",
            "sourceChain": 1,
            "amount": "100",
            "stellarRecipient": RECIPIENT,
            "targetAsset": "USDC",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "simulated"
    assert data["stellarDelivery"] == {"recipient": RECIPIENT, "asset": "USDC", "estimatedAmount": "98"}
    assert data["tracking"] == {"ethereumTx": "0xabc", "bridgeId": data["bridgeId"], "status": "simulated"}
    assert "note" in data
    assert "stellarTx" not in data
    assert "failureReason" not in data


def test_initiate_completed_payout(overrides):
    ledger = MagicMock()
    ledger.send_payment = AsyncMock(return_value="c" * 64)
    overrides[deps.get_orchestrator] = lambda: BridgeOrchestrator(CONFIG, ledger=ledger)

    response = client.post(
        "/api/stellar/initiate",
        json={"ethereumTxHash": "0xabc", "sourceChain": "8453", "amount": 50, "stellarRecipient": RECIPIENT},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["stellarDelivery"]["actualAmount"] == "49"
    assert data["stellarDelivery"]["stellarTxHash"] == "c" * 64
    assert data["stellarTx"] == f"https://testnet.steexp.com/tx/{'c' * 64}"
    assert "estimatedAmount" not in data["stellarDelivery"]


def test_initiate_failed_transfer_reports_reason(overrides):
    ledger = MagicMock()
    ledger.send_payment = AsyncMock(side_effect=LedgerUnavailableError("Horizon request failed"))
    overrides[deps.get_orchestrator] = lambda: BridgeOrchestrator(CONFIG, ledger=ledger)

    response = client.post(
        "/api/stellar/initiate",
        json={"ethereumTxHash": "0xabc", "sourceChain": 1, "amount": "100", "stellarRecipient": RECIPIENT},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "simulated"
    assert data["failureReason"] == "Horizon request failed"
    assert data["stellarDelivery"]["estimatedAmount"] == "98"


def test_initiate_missing_fields(overrides):
    overrides[deps.get_orchestrator] = lambda: BridgeOrchestrator(CONFIG)

    response = client.post("/api/stellar/initiate", json={"amount": "100"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["missingFields"] == ["ethereumTxHash", "sourceChain", "stellarRecipient"]
    assert detail["category"] == "validation"


def test_initiate_invalid_recipient(overrides):
    overrides[deps.get_orchestrator] = lambda: BridgeOrchestrator(CONFIG)

    response = client.post(
        "/api/stellar/initiate",
        json={"ethereumTxHash": "0xabc", "sourceChain": 1, "amount": "100", "stellarRecipient": "GSHORT"},
    )

    assert response.status_code == 400
    assert "stellarRecipient" in response.json()["detail"]["invalidFields"]


# =============================================================================
# Swap status
# =============================================================================

def status_monitor(records=None, error=None) -> SwapStatusMonitor:
    horizon = MagicMock()
    horizon.get_transactions = AsyncMock(return_value=records or [], side_effect=error)
    return SwapStatusMonitor(horizon, default_account=BRIDGE_ACCOUNT)


def test_status_redeemed(overrides):
    records = [
        tx("1", "SWAP:abc", "2024-05-01T10:00:00Z"),
        tx("2", "REDEEM:abc", "2024-05-01T12:00:00Z"),
    ]
    overrides[deps.get_status_monitor] = lambda: status_monitor(records)

    response = client.get("/api/stellar/status", params={"swapId": "abc"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["swapId"] == "abc"
    assert data["status"] == "redeemed"
    assert [e["id"] for e in data["events"]] == ["2", "1"]
    assert data["latestEvent"]["memo"] == "REDEEM:abc"


def test_status_without_events(overrides):
    overrides[deps.get_status_monitor] = lambda: status_monitor()

    data = client.get("/api/stellar/status", params={"swapId": "nothing"}).json()

    assert data["status"] == "initiated"
    assert data["events"] == []
    assert data["latestEvent"] is None


def test_status_requires_swap_id(overrides):
    overrides[deps.get_status_monitor] = lambda: status_monitor()

    response = client.get("/api/stellar/status")

    assert response.status_code == 400
    assert response.json()["detail"]["missingFields"] == ["swapId"]


def test_status_rejects_malformed_account(overrides):
    monitor = status_monitor()
    overrides[deps.get_status_monitor] = lambda: monitor

    response = client.get("/api/stellar/status", params={"swapId": "abc", "account": "../ledgers"})

    assert response.status_code == 400
    assert "account" in response.json()["detail"]["invalidFields"]
    monitor._horizon.get_transactions.assert_not_called()


def test_status_ledger_failure_is_500(overrides):
    overrides[deps.get_status_monitor] = lambda: status_monitor(error=LedgerUnavailableError("Horizon returned 503"))

    response = client.get("/api/stellar/status", params={"swapId": "abc"})

    assert response.status_code == 500
    assert response.json()["detail"]["category"] == "ledger_unavailable"


# =============================================================================
# Bridge account diagnostics
# =============================================================================

def test_debug_without_credentials(overrides):
    overrides[deps.get_ledger_client] = lambda: None

    response = client.get("/api/debug/stellar-bridge")

    assert response.status_code == 503


def test_debug_reports_account(overrides):
    ledger = MagicMock(public_key=BRIDGE_ACCOUNT)
    ledger.load_state = AsyncMock(
        return_value=LedgerAccountState(
            account_id=BRIDGE_ACCOUNT,
            sequence=42,
            balances=(AssetBalance(asset="XLM", balance=Decimal("10000.0000000")),),
        )
    )
    overrides[deps.get_ledger_client] = lambda: ledger

    response = client.get("/api/debug/stellar-bridge")

    assert response.status_code == 200
    data = response.json()
    assert data["publicKey"] == BRIDGE_ACCOUNT
    assert data["sequence"] == "42"
    assert data["balances"] == {"XLM": "10000"}
    assert data["explorerUrl"] == f"https://testnet.steexp.com/account/{BRIDGE_ACCOUNT}"


def test_debug_unfunded_account(overrides):
    ledger = MagicMock(public_key=BRIDGE_ACCOUNT)
    ledger.load_state = AsyncMock(
        side_effect=LedgerUnavailableError("not found", account_id=BRIDGE_ACCOUNT, account_missing=True)
    )
    overrides[deps.get_ledger_client] = lambda: ledger

    response = client.get("/api/debug/stellar-bridge")

    assert response.status_code == 404
    detail = response.json()["detail"]
    assert detail["accountExists"] is False
    assert detail["fundingInstructions"]["address"] == BRIDGE_ACCOUNT
    assert any("friendbot" in solution.lower() for solution in detail["solutions"])


# =============================================================================
# Quotes and prices
# =============================================================================

def test_classic_quote_is_transformed(overrides):
    provider = MagicMock()
    provider.quote = AsyncMock(return_value={"dstAmount": "3500000", "dstToken": {"address": USDC, "decimals": 6}})
    overrides[deps.get_quote_provider] = lambda: provider

    response = client.get("/api/quote", params={"chainId": "1", "src": ETH, "dst": USDC, "amount": "1000"})

    assert response.status_code == 200
    data = response.json()
    assert data["dstAmount"] == "3500000"
    assert data["dstToken"] == USDC
    assert data["srcToken"] == ETH
    provider.quote.assert_awaited_once_with(1, ETH, USDC, "1000")


def test_classic_quote_requires_params(overrides):
    overrides[deps.get_quote_provider] = lambda: MagicMock()

    response = client.get("/api/quote", params={"chainId": "1", "src": ETH})

    assert response.status_code == 400


def test_classic_quote_passes_upstream_status_through(overrides):
    request = httpx.Request("GET", "https://api.1inch.dev/swap/v6.0/1/quote")
    provider = MagicMock()
    provider.quote = AsyncMock(
        side_effect=httpx.HTTPStatusError(
            "rate limited", request=request, response=httpx.Response(429, text="Too Many Requests", request=request)
        )
    )
    overrides[deps.get_quote_provider] = lambda: provider

    response = client.get("/api/quote", params={"chainId": "1", "src": ETH, "dst": USDC, "amount": "1000"})

    assert response.status_code == 429


def test_fusion_quote(overrides):
    provider = MagicMock()
    provider.fusion_plus_quote = AsyncMock(return_value={"quoteId": "q"})
    overrides[deps.get_quote_provider] = lambda: provider

    response = client.post(
        "/api/fusion/quote",
        json={
            "chainId": 42161,
            "fromTokenAddress": USDC,
            "toTokenAddress": ETH,
            "amount": "1000000",
            "walletAddress": WALLET,
        },
    )

    assert response.status_code == 200
    assert response.json()["method"] == "fusion-plus"


def test_tokens(overrides):
    provider = MagicMock()
    provider.get_tokens = AsyncMock(return_value=[{"symbol": "USDC", "address": USDC}])
    overrides[deps.get_quote_provider] = lambda: provider

    response = client.get("/api/tokens/1")

    assert response.status_code == 200
    assert response.json()["tokens"][0]["symbol"] == "USDC"


def test_fallback_price(overrides):
    provider = MagicMock()
    provider.get_exchange_rate = AsyncMock(return_value={"fromToken": "ethereum", "toToken": "stellar", "rate": 25000.0})
    overrides[deps.get_price_provider] = lambda: provider

    response = client.get("/api/price/fallback", params={"from": "eth", "to": "xlm"})

    assert response.status_code == 200
    assert response.json()["rate"] == 25000.0
    provider.get_exchange_rate.assert_awaited_once_with("eth", "xlm")


def test_fallback_price_unavailable(overrides):
    provider = MagicMock()
    provider.get_exchange_rate = AsyncMock(side_effect=LookupError("Price data not available for requested tokens"))
    overrides[deps.get_price_provider] = lambda: provider

    response = client.get("/api/price/fallback")

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "Price feed error"


# =============================================================================
# Health
# =============================================================================

def test_health_endpoint(overrides):
    for getter, status in (
        (deps.get_horizon, {"status": "healthy"}),
        (deps.get_quote_provider, {"status": "configured"}),
        (deps.get_price_provider, {"status": "error", "reason": "timeout"}),
    ):
        provider = MagicMock()
        provider.health_check = AsyncMock(return_value=status)
        overrides[getter] = provide(provider)

    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert set(data["providers"]) == {"horizon", "1inch", "coingecko"}
    assert data["status"] == "degraded"
    assert data["available_providers"] == 2
    assert data["payoutMode"] == "simulated"
    assert response.headers["x-request-id"]
