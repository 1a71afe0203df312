"""BridgeOrchestrator turns an incoming tip into a Stellar payout record."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from decimal import Decimal
from typing import Callable, Optional

from ...config import BridgeConfig
from .constants import BRIDGE_ID_PREFIX, PAYOUT_MEMO_TAG, SIMULATED_NOTE
from .errors import BridgeError, LedgerUnavailableError, SubmissionError
from .fees import format_amount, net_amount, to_ledger_amount
from .ledger import StellarLedgerClient
from .models import BridgeRecord, PayoutRequest, TargetAsset, TransferResult
from .validation import validate_payout_request

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_bridge_id(now_ms: Optional[int] = None) -> str:
    """Time-ordered id with a random suffix, e.g. ``sj-lz3k9q1c-4f0a9b``.

    Kept short so ``REDEEM:<id>`` fits a 28-byte text memo.
    """
    timestamp = int(time.time() * 1000) if now_ms is None else now_ms
    return f"{BRIDGE_ID_PREFIX}-{_to_base36(timestamp)}-{secrets.token_hex(3)}"


def payout_memo(bridge_id: str) -> str:
    return f"{PAYOUT_MEMO_TAG}{bridge_id}"


class BridgeOrchestrator:
    """Validates payout requests and delivers them on Stellar, or simulates them.

    Delivery is best effort: when the bridge account is not configured or a
    real transfer fails, the caller still receives a record, resolved as
    ``simulated`` with the failure reason attached.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        ledger: Optional[StellarLedgerClient] = None,
        id_factory: Optional[Callable[[], str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        if ledger is None and config.has_credentials:
            ledger = StellarLedgerClient.from_config(config)
        self._ledger = ledger
        self._new_bridge_id = id_factory or generate_bridge_id
        # Serializes load-build-sign-submit against the operating account
        self._account_lock = asyncio.Lock()

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def ledger(self) -> Optional[StellarLedgerClient]:
        return self._ledger

    @property
    def can_execute(self) -> bool:
        return self._ledger is not None

    async def initiate(self, request: PayoutRequest, *, timeout_s: Optional[float] = None) -> BridgeRecord:
        """Validate and process one payout.

        Raises:
            ValidationError: if the request is missing fields or malformed.
                No other failure escapes this method.
        """
        payout = validate_payout_request(request)
        record = BridgeRecord(
            bridge_id=self._new_bridge_id(),
            request=request,
            recipient=payout.recipient,
            asset=payout.asset,
        )
        estimated = net_amount(payout.gross_amount, self._config.fee_fraction)

        if self._ledger is None:
            record.mark_simulated(estimated, SIMULATED_NOTE)
            self._logger.info(
                "Payout %s simulated (no bridge credentials): %s %s to %s",
                record.bridge_id,
                format_amount(estimated),
                payout.asset.value,
                payout.recipient,
            )
            return record

        try:
            result = await self.execute_transfer(
                record.bridge_id,
                payout.gross_amount,
                payout.recipient,
                payout.asset,
                timeout_s=timeout_s,
            )
        except BridgeError as exc:
            reason = exc.reason if isinstance(exc, SubmissionError) else exc.message
            self._logger.warning(
                "Payout %s fell back to simulation after %s: %s",
                record.bridge_id,
                exc.category.value,
                reason,
            )
            record.mark_simulated(estimated, self._fallback_note(reason), failure_reason=reason)
            return record
        except Exception as exc:
            self._logger.exception("Payout %s fell back to simulation after unexpected error", record.bridge_id)
            reason = str(exc) or type(exc).__name__
            record.mark_simulated(estimated, self._fallback_note(reason), failure_reason=reason)
            return record

        record.mark_completed(result)
        self._logger.info(
            "Payout %s completed: %s %s to %s (tx %s)",
            record.bridge_id,
            format_amount(result.net_amount),
            payout.asset.value,
            payout.recipient,
            result.destination_tx_id,
        )
        return record

    async def execute_transfer(
        self,
        bridge_id: str,
        amount: Decimal,
        recipient: str,
        asset: TargetAsset,
        *,
        timeout_s: Optional[float] = None,
    ) -> TransferResult:
        """Pay ``amount`` minus the bridge fee to ``recipient`` from the bridge account.

        The net amount is truncated (ROUND_DOWN) to 7 decimal places because a
        Stellar payment cannot carry more; simulated previews stay exact.

        Raises:
            LedgerUnavailableError: bridge account missing or Horizon unreachable
            SubmissionError: transaction rejected, underfunded or timed out
        """
        ledger = self._ledger
        if ledger is None:
            raise LedgerUnavailableError("Bridge-operating account credentials are not configured")

        net = to_ledger_amount(net_amount(amount, self._config.fee_fraction))
        if net <= 0:
            raise SubmissionError(f"Net payout for {format_amount(amount)} rounds to zero on Stellar")

        timeout = timeout_s if timeout_s is not None else self._config.request_timeout_s
        memo = payout_memo(bridge_id)

        async def _locked_send() -> str:
            async with self._account_lock:
                return await ledger.send_payment(destination=recipient, asset=asset, amount=net, memo=memo)

        try:
            tx_hash = await asyncio.wait_for(_locked_send(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise SubmissionError(
                f"Payout timed out after {timeout:g}s; the transaction may still land "
                f"within its {self._config.transaction_timeout_s}s validity window"
            ) from exc

        return TransferResult(destination_tx_id=tx_hash, net_amount=net)

    @staticmethod
    def _fallback_note(reason: str) -> str:
        return f"{SIMULATED_NOTE} Real transfer failed: {reason}"
