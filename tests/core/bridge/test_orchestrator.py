"""
Tests for the payout orchestrator.

Covers the simulated path, real execution against a fake ledger client, and
the fallback to simulation when execution fails.
"""

import asyncio
import re
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from swapjar.config import BridgeConfig
from swapjar.core.bridge.constants import MEMO_MAX_BYTES, SIMULATED_NOTE
from swapjar.core.bridge.errors import LedgerUnavailableError, SubmissionError, ValidationError
from swapjar.core.bridge.models import BridgeRecord, BridgeStatus, PayoutRequest, TargetAsset
from swapjar.core.bridge.orchestrator import BridgeOrchestrator, generate_bridge_id, payout_memo

RECIPIENT = "G" + "C" * 55


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(
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


@pytest.fixture
def ledger():
    client = MagicMock()
    client.send_payment = AsyncMock(return_value="f" * 64)
    return client


def payout(**overrides) -> PayoutRequest:
    fields = {
        "ethereum_tx_hash": "0xabc",
        "source_chain": 1,
        "amount": "100",
        "stellar_recipient": RECIPIENT,
        "target_asset": "USDC",
    }
    fields.update(overrides)
    return PayoutRequest(**fields)


# =============================================================================
# Identifiers
# =============================================================================

def test_bridge_id_format_and_memo_length():
    bridge_id = generate_bridge_id()

    assert re.fullmatch(r"sj-[0-9a-z]+-[0-9a-f]{6}", bridge_id)
    assert payout_memo(bridge_id) == f"REDEEM:{bridge_id}"
    assert len(payout_memo(bridge_id).encode()) <= MEMO_MAX_BYTES


def test_bridge_ids_are_unique_and_time_ordered():
    ids = {generate_bridge_id() for _ in range(50)}
    assert len(ids) == 50

    earlier = generate_bridge_id(now_ms=1_700_000_000_000).split("-")[1]
    later = generate_bridge_id(now_ms=1_700_000_000_001).split("-")[1]
    assert int(later, 36) == int(earlier, 36) + 1


# =============================================================================
# Simulated path
# =============================================================================

@pytest.mark.asyncio
async def test_simulated_preview_without_credentials(config):
    orchestrator = BridgeOrchestrator(config)

    record = await orchestrator.initiate(payout())

    assert orchestrator.can_execute is False
    assert record.status is BridgeStatus.SIMULATED
    assert record.net_amount == Decimal("98")
    assert record.destination_tx_id is None
    assert record.note == SIMULATED_NOTE
    assert record.failure_reason is None
    assert record.asset is TargetAsset.USDC


@pytest.mark.asyncio
async def test_simulated_amount_is_exact(config):
    orchestrator = BridgeOrchestrator(config)

    record = await orchestrator.initiate(payout(amount="0.123456789"))

    assert record.net_amount == Decimal("0.123456789") * Decimal("0.98")


@pytest.mark.asyncio
async def test_validation_errors_propagate(config, ledger):
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    with pytest.raises(ValidationError) as excinfo:
        await orchestrator.initiate(payout(stellar_recipient=None))

    assert excinfo.value.missing_fields == ["stellarRecipient"]
    ledger.send_payment.assert_not_called()


@pytest.mark.asyncio
async def test_non_ascii_digit_chain_is_a_validation_error(config, ledger):
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    with pytest.raises(ValidationError) as excinfo:
        await orchestrator.initiate(payout(source_chain="²"))

    assert "sourceChain" in excinfo.value.invalid_fields
    ledger.send_payment.assert_not_called()


# =============================================================================
# Real execution
# =============================================================================

@pytest.mark.asyncio
async def test_completed_payout_uses_redeem_memo(config, ledger):
    orchestrator = BridgeOrchestrator(config, ledger=ledger, id_factory=lambda: "sj-test-000001")

    record = await orchestrator.initiate(payout(target_asset="XLM"))

    assert record.status is BridgeStatus.COMPLETED
    assert record.destination_tx_id == "f" * 64
    assert record.net_amount == Decimal("98")
    assert record.note is None
    ledger.send_payment.assert_awaited_once_with(
        destination=RECIPIENT,
        asset=TargetAsset.XLM,
        amount=Decimal("98"),
        memo="REDEEM:sj-test-000001",
    )


@pytest.mark.asyncio
async def test_real_amount_is_truncated_to_ledger_precision(config, ledger):
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    record = await orchestrator.initiate(payout(amount="1.23456789"))

    # 1.23456789 * 0.98 = 1.2098765322
    assert record.net_amount == Decimal("1.2098765")
    assert ledger.send_payment.await_args.kwargs["amount"] == Decimal("1.2098765")


@pytest.mark.asyncio
async def test_rejected_submission_falls_back_to_simulation(config, ledger):
    ledger.send_payment.side_effect = SubmissionError(
        "Transaction Failed (400)",
        result_codes={"transaction": "tx_failed", "operations": ["op_no_trust"]},
    )
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    record = await orchestrator.initiate(payout())

    assert record.status is BridgeStatus.SIMULATED
    assert record.net_amount == Decimal("98")
    assert record.destination_tx_id is None
    assert record.failure_reason == "op_no_trust"
    assert "op_no_trust" in record.note


@pytest.mark.asyncio
async def test_unavailable_ledger_falls_back_to_simulation(config, ledger):
    ledger.send_payment.side_effect = LedgerUnavailableError("Horizon request failed: connection refused")
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    record = await orchestrator.initiate(payout())

    assert record.status is BridgeStatus.SIMULATED
    assert record.failure_reason == "Horizon request failed: connection refused"


@pytest.mark.asyncio
async def test_unexpected_errors_fall_back_to_simulation(config, ledger):
    ledger.send_payment.side_effect = RuntimeError("boom")
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    record = await orchestrator.initiate(payout())

    assert record.status is BridgeStatus.SIMULATED
    assert record.failure_reason == "boom"


@pytest.mark.asyncio
async def test_slow_submission_times_out(config, ledger):
    async def never_returns(**kwargs):
        await asyncio.sleep(10)

    ledger.send_payment.side_effect = never_returns
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    record = await orchestrator.initiate(payout(), timeout_s=0.05)

    assert record.status is BridgeStatus.SIMULATED
    assert "timed out" in record.failure_reason


@pytest.mark.asyncio
async def test_execute_transfer_rejects_dust(config, ledger):
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    with pytest.raises(SubmissionError, match="rounds to zero"):
        await orchestrator.execute_transfer("sj-x-000000", Decimal("0.0000001"), RECIPIENT, TargetAsset.XLM)

    ledger.send_payment.assert_not_called()


@pytest.mark.asyncio
async def test_execute_transfer_without_ledger(config):
    orchestrator = BridgeOrchestrator(config)

    with pytest.raises(LedgerUnavailableError):
        await orchestrator.execute_transfer("sj-x-000000", Decimal("10"), RECIPIENT, TargetAsset.XLM)


@pytest.mark.asyncio
async def test_submissions_are_serialized(config, ledger):
    in_flight = 0
    peak = 0

    async def slow_send(**kwargs):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return kwargs["memo"]

    ledger.send_payment.side_effect = slow_send
    orchestrator = BridgeOrchestrator(config, ledger=ledger)

    records = await asyncio.gather(*(orchestrator.initiate(payout()) for _ in range(5)))

    assert peak == 1
    assert all(record.status is BridgeStatus.COMPLETED for record in records)
    assert len({record.bridge_id for record in records}) == 5


def test_record_resolves_once():
    record = BridgeRecord(bridge_id="sj-1-000000", request=payout(), recipient=RECIPIENT, asset=TargetAsset.USDC)
    record.mark_simulated(Decimal("98"), SIMULATED_NOTE)

    with pytest.raises(RuntimeError):
        record.mark_simulated(Decimal("98"), SIMULATED_NOTE)
