from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import BridgeConfig
from ..core.bridge.fees import format_amount
from ..core.bridge.models import BridgeRecord, BridgeStatus, SwapEvent, SwapStatusReport


class StellarDelivery(BaseModel):
    recipient: str = Field(description="Stellar account receiving the payout")
    asset: str = Field(description="Delivered asset (XLM or USDC)")
    actualAmount: Optional[str] = Field(default=None, description="Amount delivered on chain")
    estimatedAmount: Optional[str] = Field(default=None, description="Amount that would be delivered")
    stellarTxHash: Optional[str] = Field(default=None, description="Stellar transaction hash")


class PayoutTracking(BaseModel):
    ethereumTx: Optional[str] = Field(default=None, description="Source-chain transaction hash")
    bridgeId: str = Field(description="Bridge record identifier")
    status: str = Field(description="Bridge record status")


class PayoutResponse(BaseModel):
    success: bool = Field(description="Whether the request was processed")
    bridgeId: str = Field(description="Bridge record identifier")
    status: str = Field(description="completed or simulated")
    message: str = Field(description="Human-readable outcome")
    note: Optional[str] = Field(default=None, description="Explanation attached to simulated payouts")
    failureReason: Optional[str] = Field(default=None, description="Why a real transfer fell back to simulation")
    stellarTx: Optional[str] = Field(default=None, description="Explorer link to the payout transaction")
    stellarDelivery: StellarDelivery
    tracking: PayoutTracking

    @classmethod
    def from_record(cls, record: BridgeRecord, config: Optional[BridgeConfig] = None) -> "PayoutResponse":
        amount = format_amount(record.net_amount) if record.net_amount is not None else None
        completed = record.status is BridgeStatus.COMPLETED

        delivery = StellarDelivery(
            recipient=record.recipient,
            asset=record.asset.value,
            actualAmount=amount if completed else None,
            estimatedAmount=None if completed else amount,
            stellarTxHash=record.destination_tx_id,
        )
        if completed:
            message = f"Payout completed: {amount} {record.asset.value} sent to {record.recipient}"
        else:
            message = f"Payout simulated: {amount} {record.asset.value} would be sent to {record.recipient}"

        stellar_tx = None
        if record.destination_tx_id and config is not None:
            stellar_tx = config.transaction_explorer_url(record.destination_tx_id)

        return cls(
            success=True,
            bridgeId=record.bridge_id,
            status=record.status.value,
            message=message,
            note=record.note,
            failureReason=record.failure_reason,
            stellarTx=stellar_tx,
            stellarDelivery=delivery,
            tracking=PayoutTracking(
                ethereumTx=record.request.ethereum_tx_hash,
                bridgeId=record.bridge_id,
                status=record.status.value,
            ),
        )


class SwapEventResponse(BaseModel):
    id: str
    hash: str
    memo: Optional[str] = None
    created_at: str
    source_account: str

    @classmethod
    def from_event(cls, event: SwapEvent) -> "SwapEventResponse":
        return cls(**event.to_dict())


class SwapStatusResponse(BaseModel):
    success: bool = Field(description="Whether the lookup succeeded")
    swapId: str = Field(description="Swap identifier searched for in memos")
    status: str = Field(description="initiated, locked, redeemed or refunded")
    events: List[SwapEventResponse] = Field(default_factory=list, description="Matching events, most recent first")
    latestEvent: Optional[SwapEventResponse] = Field(default=None, description="Most recent matching event")

    @classmethod
    def from_report(cls, report: SwapStatusReport) -> "SwapStatusResponse":
        return cls(
            success=True,
            swapId=report.swap_id,
            status=report.status.value,
            events=[SwapEventResponse.from_event(event) for event in report.events],
            latestEvent=SwapEventResponse.from_event(report.latest_event) if report.latest_event else None,
        )


class BridgeAccountResponse(BaseModel):
    success: bool = True
    publicKey: str = Field(description="Bridge-operating account")
    network: str = Field(description="TESTNET or PUBLIC")
    horizonUrl: str
    sequence: str = Field(description="Current account sequence number")
    balances: Dict[str, str] = Field(default_factory=dict, description="Balances keyed by asset label")
    explorerUrl: str
