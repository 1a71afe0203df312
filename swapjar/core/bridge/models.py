"""Typed models used by the payout bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union


class TargetAsset(str, Enum):
    XLM = "XLM"    # native asset
    USDC = "USDC"  # stablecoin issuance

    @property
    def is_native(self) -> bool:
        return self is TargetAsset.XLM


class BridgeStatus(str, Enum):
    PENDING = "pending"
    SIMULATED = "simulated"
    COMPLETED = "completed"
    FAILED = "failed"


class SwapStatus(str, Enum):
    INITIATED = "initiated"
    LOCKED = "locked"
    REDEEMED = "redeemed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class PayoutRequest:
    """An incoming tip to be paid out on Stellar. Fields are kept as received."""

    ethereum_tx_hash: Optional[str] = None
    source_chain: Optional[Union[int, str]] = None
    amount: Optional[str] = None
    stellar_recipient: Optional[str] = None
    target_asset: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PayoutRequest":
        amount = payload.get("amount")
        return cls(
            ethereum_tx_hash=payload.get("ethereumTxHash"),
            source_chain=payload.get("sourceChain"),
            amount=None if amount is None else str(amount),
            stellar_recipient=payload.get("stellarRecipient"),
            target_asset=payload.get("targetAsset"),
        )


@dataclass(frozen=True)
class ValidatedPayout:
    """A payout request after validation, with parsed values."""

    request: PayoutRequest
    gross_amount: Decimal
    recipient: str
    asset: TargetAsset


@dataclass(frozen=True)
class AssetBalance:
    asset: str
    balance: Decimal


@dataclass(frozen=True)
class LedgerAccountState:
    """Sequence and balances of a Stellar account at load time."""

    account_id: str
    sequence: int
    balances: Tuple[AssetBalance, ...] = ()

    def balance_of(self, asset: str) -> Decimal:
        for entry in self.balances:
            if entry.asset == asset:
                return entry.balance
        return Decimal("0")


@dataclass(frozen=True)
class SwapEvent:
    """A ledger transaction whose memo references a swap."""

    id: str
    hash: str
    memo: Optional[str]
    created_at: str
    source_account: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SwapEvent":
        return cls(
            id=str(record.get("id") or ""),
            hash=str(record.get("hash") or ""),
            memo=record.get("memo"),
            created_at=str(record.get("created_at") or ""),
            source_account=str(record.get("source_account") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hash": self.hash,
            "memo": self.memo,
            "created_at": self.created_at,
            "source_account": self.source_account,
        }


@dataclass(frozen=True)
class TransferResult:
    destination_tx_id: str
    net_amount: Decimal


@dataclass
class BridgeRecord:
    """Outcome of a single payout attempt. Resolved exactly once."""

    bridge_id: str
    request: PayoutRequest
    recipient: str
    asset: TargetAsset
    status: BridgeStatus = BridgeStatus.PENDING
    net_amount: Optional[Decimal] = None
    destination_tx_id: Optional[str] = None
    note: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_resolved(self) -> bool:
        return self.status is not BridgeStatus.PENDING

    def _ensure_pending(self) -> None:
        if self.is_resolved:
            raise RuntimeError(f"Bridge record {self.bridge_id} already resolved as {self.status.value}")

    def mark_completed(self, result: TransferResult) -> None:
        self._ensure_pending()
        self.status = BridgeStatus.COMPLETED
        self.net_amount = result.net_amount
        self.destination_tx_id = result.destination_tx_id

    def mark_simulated(self, net_amount: Decimal, note: str, failure_reason: Optional[str] = None) -> None:
        self._ensure_pending()
        self.status = BridgeStatus.SIMULATED
        self.net_amount = net_amount
        self.note = note
        self.failure_reason = failure_reason


@dataclass(frozen=True)
class SwapStatusReport:
    swap_id: str
    status: SwapStatus
    events: Tuple[SwapEvent, ...] = ()
    latest_event: Optional[SwapEvent] = None
