"""Constants for payout orchestration and swap status classification."""

from decimal import Decimal
from typing import Tuple

DEFAULT_FEE_FRACTION = Decimal("0.02")

# Stellar amounts carry at most 7 decimal places (1 stroop = 0.0000001)
STELLAR_AMOUNT_PLACES = 7
STELLAR_AMOUNT_QUANTUM = Decimal(1).scaleb(-STELLAR_AMOUNT_PLACES)

STELLAR_ADDRESS_LENGTH = 56
STELLAR_ADDRESS_PREFIX = "G"

# Text memos are limited to 28 bytes
MEMO_MAX_BYTES = 28

REDEEM_TAG = "REDEEM:"
REFUND_TAG = "REFUND:"
SWAP_TAG = "SWAP:"

# Payouts settle the swap on the destination chain
PAYOUT_MEMO_TAG = REDEEM_TAG

BRIDGE_ID_PREFIX = "sj"

BASE_FEE_STROOPS = 100
DEFAULT_TX_TIMEOUT_SECONDS = 30

# Wire names, in the order they are reported when missing
REQUIRED_PAYOUT_FIELDS: Tuple[str, ...] = (
    "ethereumTxHash",
    "sourceChain",
    "amount",
    "stellarRecipient",
)

SIMULATED_NOTE = (
    "Simulated payout: no Stellar transaction was submitted. "
    "The amount shown is the estimated delivery after the bridge fee."
)
