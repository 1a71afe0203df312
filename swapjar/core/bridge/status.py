"""Swap status derived from ledger memo conventions.

There is no stored state machine: status is recomputed from ledger history
on every query, following initiated -> locked -> redeemed | refunded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ...config import BridgeConfig
from ...providers.base import LedgerProvider
from ...services.address import is_valid_stellar_address
from .constants import REDEEM_TAG, REFUND_TAG, SWAP_TAG
from .errors import LedgerUnavailableError, ValidationError
from .models import SwapEvent, SwapStatus, SwapStatusReport

# Most specific first
MEMO_TAGS: Tuple[Tuple[str, SwapStatus], ...] = (
    (REDEEM_TAG, SwapStatus.REDEEMED),
    (REFUND_TAG, SwapStatus.REFUNDED),
    (SWAP_TAG, SwapStatus.LOCKED),
)


def status_from_memo(memo: Optional[str]) -> Optional[SwapStatus]:
    if not memo:
        return None
    for tag, status in MEMO_TAGS:
        if tag in memo:
            return status
    return None


def classify_status(events: Sequence[SwapEvent]) -> Tuple[SwapStatus, Optional[SwapEvent]]:
    """Derive a swap status from its events, ordered most recent first.

    Only the most recent event is classified; an untagged memo there means
    the swap is still ``initiated`` whatever older events say.
    """
    if not events:
        return SwapStatus.INITIATED, None
    latest = events[0]
    return status_from_memo(latest.memo) or SwapStatus.INITIATED, latest


def select_swap_events(records: Iterable[Dict[str, Any]], swap_id: str) -> List[SwapEvent]:
    """Events whose memo mentions ``swap_id``, most recent first."""

    events = [
        SwapEvent.from_record(record)
        for record in records
        if isinstance(record.get("memo"), str) and swap_id in record["memo"]
    ]
    # Horizon ISO-8601 timestamps sort lexically; ties keep ledger order
    events.sort(key=lambda event: event.created_at, reverse=True)
    return events


class SwapStatusMonitor:
    """Looks up a swap's events on Stellar and classifies them."""

    def __init__(
        self,
        horizon: LedgerProvider,
        *,
        default_account: Optional[str] = None,
        history_limit: int = 100,
        timeout_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._horizon = horizon
        self._default_account = default_account
        self._history_limit = history_limit
        self._timeout_s = timeout_s
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        horizon: LedgerProvider,
        *,
        default_account: Optional[str] = None,
    ) -> "SwapStatusMonitor":
        return cls(
            horizon,
            default_account=default_account,
            history_limit=config.status_history_limit,
            timeout_s=config.request_timeout_s,
        )

    async def monitor(
        self,
        swap_id: str,
        *,
        account_id: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> SwapStatusReport:
        """Classify a swap from the most recent ledger transactions.

        Scans ``account_id``, else the bridge account, else the whole network.
        No retries; callers decide whether to poll again.

        Raises:
            ValidationError: if ``swap_id`` is empty or ``account_id`` is not a Stellar account
            LedgerUnavailableError: if Horizon cannot be queried
        """
        swap_id = (swap_id or "").strip()
        if not swap_id:
            raise ValidationError("Missing swapId parameter", missing_fields=["swapId"])
        if account_id and not is_valid_stellar_address(account_id):
            raise ValidationError(
                "Invalid account parameter",
                invalid_fields={"account": "Invalid Stellar address format (expected 56 characters starting with 'G')"},
            )

        account = account_id or self._default_account
        timeout = timeout_s if timeout_s is not None else self._timeout_s
        try:
            records = await asyncio.wait_for(
                self._horizon.get_transactions(account, limit=self._history_limit, order="desc"),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LedgerUnavailableError(f"Horizon did not answer within {timeout:g}s") from exc

        events = select_swap_events(records, swap_id)
        status, latest = classify_status(events)
        self._logger.debug("Swap %s: %d events, status %s", swap_id, len(events), status.value)
        return SwapStatusReport(swap_id=swap_id, status=status, events=tuple(events), latest_event=latest)
