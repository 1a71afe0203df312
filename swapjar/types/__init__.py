from .requests import FusionQuoteRequest, InitiatePayoutRequest
from .responses import (
    BridgeAccountResponse,
    PayoutResponse,
    StellarDelivery,
    SwapEventResponse,
    SwapStatusResponse,
)

__all__ = [
    "InitiatePayoutRequest",
    "FusionQuoteRequest",
    "PayoutResponse",
    "StellarDelivery",
    "SwapEventResponse",
    "SwapStatusResponse",
    "BridgeAccountResponse",
]
