"""Quote selection on top of the 1inch provider."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..providers.base import QuoteProvider
from .address import NATIVE_TOKEN_ADDRESS, supports_fusion_plus

logger = logging.getLogger(__name__)


async def get_best_quote(
    provider: QuoteProvider,
    *,
    chain_id: int,
    src: str,
    dst: str,
    amount: str,
    wallet_address: str,
    receiver: Optional[str] = None,
) -> Dict[str, Any]:
    """Prefer a gasless Fusion+ quote where the chain supports it.

    Any Fusion+ failure falls back to a regular aggregation quote; failures
    of the regular quote propagate to the caller.
    """

    if supports_fusion_plus(chain_id):
        try:
            fusion = await provider.fusion_plus_quote(
                chain_id, src, dst, amount, wallet_address, receiver=receiver
            )
            return {"success": True, "method": "fusion-plus", "quote": fusion, "estimatedGas": "0"}
        except httpx.HTTPError as exc:
            logger.warning("Fusion+ quote failed on chain %s, falling back to regular swap: %s", chain_id, exc)

    quote = await provider.quote(
        chain_id,
        src,
        dst,
        amount,
        from_=wallet_address,
        slippage="1",
        destReceiver=receiver,
    )
    return {
        "success": True,
        "method": "regular-swap",
        "quote": quote,
        "estimatedGas": quote.get("estimatedGas") or quote.get("gas"),
    }


def transform_classic_quote(data: Dict[str, Any], *, src: str, dst: str, amount: str) -> Dict[str, Any]:
    """Flatten a classic quote; decimals handling is left to the client."""

    src_info = data.get("srcToken") or None
    dst_info = data.get("dstToken") or None
    return {
        "srcToken": (src_info or {}).get("address") or src,
        "dstToken": (dst_info or {}).get("address") or dst,
        "srcAmount": amount,
        "dstAmount": data.get("dstAmount"),
        "srcTokenInfo": src_info,
        "dstTokenInfo": dst_info,
        "gasFee": str(data.get("estimatedGas") or data.get("gas") or "0"),
        "timestamp": int(time.time() * 1000),
        "originalData": data,
    }


def describe_token(address: str) -> str:
    return "native" if address.lower() == NATIVE_TOKEN_ADDRESS.lower() else address
