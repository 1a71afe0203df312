"""Validation of inbound payout requests."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ...services.address import is_valid_stellar_address
from .constants import REQUIRED_PAYOUT_FIELDS
from .errors import ValidationError
from .models import PayoutRequest, TargetAsset, ValidatedPayout

DEFAULT_TARGET_ASSET = TargetAsset.USDC


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _parse_chain_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isascii() and text.isdigit() else None


def _wire_values(request: PayoutRequest) -> Dict[str, Any]:
    return {
        "ethereumTxHash": request.ethereum_tx_hash,
        "sourceChain": request.source_chain,
        "amount": request.amount,
        "stellarRecipient": request.stellar_recipient,
    }


def validate_payout_request(request: PayoutRequest) -> ValidatedPayout:
    """Check presence and format of every payout field.

    Missing required fields are reported together. Format checks only run
    once every required field is present.

    Raises:
        ValidationError: naming the missing fields, or the malformed ones
    """
    values = _wire_values(request)
    missing: List[str] = [name for name in REQUIRED_PAYOUT_FIELDS if _is_blank(values[name])]
    if missing:
        raise ValidationError(
            f"Missing required parameters: {', '.join(missing)}",
            missing_fields=missing,
        )

    invalid: Dict[str, str] = {}

    source_chain = _parse_chain_id(request.source_chain)
    if source_chain is None or source_chain <= 0:
        invalid["sourceChain"] = "must be a positive integer chain id"

    gross = Decimal(0)
    try:
        gross = Decimal(str(request.amount).strip())
    except (InvalidOperation, ValueError):
        invalid["amount"] = "must be a decimal string"
    else:
        if not gross.is_finite() or gross <= 0:
            invalid["amount"] = "must be a positive decimal"

    recipient = str(request.stellar_recipient).strip()
    if not is_valid_stellar_address(recipient):
        invalid["stellarRecipient"] = "Invalid Stellar address format (expected 56 characters starting with 'G')"

    asset = DEFAULT_TARGET_ASSET
    if not _is_blank(request.target_asset):
        try:
            asset = TargetAsset(str(request.target_asset).strip().upper())
        except ValueError:
            invalid["targetAsset"] = "must be XLM or USDC"

    if invalid:
        raise ValidationError(
            f"Invalid parameters: {', '.join(invalid)}",
            invalid_fields=invalid,
        )

    return ValidatedPayout(request=request, gross_amount=gross, recipient=recipient, asset=asset)
