"""Fee arithmetic for payouts. All amounts are Decimals, never floats."""

from decimal import ROUND_DOWN, Decimal

from .constants import DEFAULT_FEE_FRACTION, STELLAR_AMOUNT_QUANTUM


def net_amount(gross: Decimal, fee_fraction: Decimal = DEFAULT_FEE_FRACTION) -> Decimal:
    """Exact amount delivered after the bridge fee."""
    return gross * (Decimal(1) - fee_fraction)


def to_ledger_amount(amount: Decimal) -> Decimal:
    """Truncate to the 7 decimal places a Stellar payment can carry."""
    return amount.quantize(STELLAR_AMOUNT_QUANTUM, rounding=ROUND_DOWN)


def format_amount(amount: Decimal) -> str:
    """Render without exponent or trailing zeros: Decimal('98.00') -> '98'."""
    normalized = amount.normalize()
    if normalized == 0:
        return "0"
    return format(normalized, "f")
