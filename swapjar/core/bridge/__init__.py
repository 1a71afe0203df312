"""Payout bridge: orchestration onto Stellar and memo-derived swap status."""

from typing import TYPE_CHECKING

from .errors import BridgeError, LedgerUnavailableError, SubmissionError, ValidationError
from .models import BridgeRecord, BridgeStatus, PayoutRequest, SwapStatus, TargetAsset

if TYPE_CHECKING:  # pragma: no cover
    from .orchestrator import BridgeOrchestrator
    from .status import SwapStatusMonitor

__all__ = [
    "BridgeError",
    "BridgeOrchestrator",
    "BridgeRecord",
    "BridgeStatus",
    "LedgerUnavailableError",
    "PayoutRequest",
    "SubmissionError",
    "SwapStatus",
    "SwapStatusMonitor",
    "TargetAsset",
    "ValidationError",
]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    if name == "BridgeOrchestrator":
        from .orchestrator import BridgeOrchestrator as _BridgeOrchestrator

        return _BridgeOrchestrator
    if name == "SwapStatusMonitor":
        from .status import SwapStatusMonitor as _SwapStatusMonitor

        return _SwapStatusMonitor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
