import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from ..providers.oneinch import OneInchProvider
from ..services.address import is_supported_chain, is_valid_evm_address, normalize_chain_id
from ..services.quotes import describe_token, get_best_quote, transform_classic_quote
from ..types.requests import FusionQuoteRequest
from .deps import get_quote_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _upstream_error(exc: httpx.HTTPStatusError) -> HTTPException:
    detail = exc.response.text or exc.response.reason_phrase
    return HTTPException(
        status_code=exc.response.status_code,
        detail={"error": f"1inch API Error: {exc.response.status_code}", "description": detail},
    )


@router.get("/quote")
async def classic_quote(
    chain_id: Optional[str] = Query(default=None, alias="chainId"),
    src: Optional[str] = Query(default=None),
    dst: Optional[str] = Query(default=None),
    amount: Optional[str] = Query(default=None),
    provider: OneInchProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """Proxy a 1inch aggregation quote and flatten it for the client"""
    if not chain_id or not src or not dst or not amount:
        raise HTTPException(status_code=400, detail="Missing required parameters: chainId, src, dst, amount")

    chain = normalize_chain_id(chain_id)
    if chain is None or not is_supported_chain(chain):
        raise HTTPException(status_code=400, detail=f"Unsupported chainId: {chain_id}")

    logger.info("Proxying 1inch quote: chain=%s src=%s dst=%s amount=%s", chain, describe_token(src), dst, amount)
    try:
        data = await provider.quote(chain, src, dst, amount)
    except httpx.HTTPStatusError as exc:
        logger.warning("1inch quote failed with %s", exc.response.status_code)
        raise _upstream_error(exc)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Failed to fetch quote: {exc}")

    return transform_classic_quote(data, src=src, dst=dst, amount=amount)


@router.post("/fusion/quote")
async def fusion_quote(
    request: FusionQuoteRequest,
    provider: OneInchProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """Gasless Fusion+ quote where supported, regular aggregation quote otherwise"""
    if not is_valid_evm_address(request.walletAddress):
        raise HTTPException(status_code=400, detail=f"Invalid walletAddress: {request.walletAddress}")

    try:
        return await get_best_quote(
            provider,
            chain_id=request.chainId,
            src=request.fromTokenAddress,
            dst=request.toTokenAddress,
            amount=request.amount,
            wallet_address=request.walletAddress,
            receiver=request.receiverAddress,
        )
    except httpx.HTTPStatusError as exc:
        raise _upstream_error(exc)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Failed to get quote: {exc}")


@router.get("/tokens/{chain_id}")
async def list_tokens(
    chain_id: int,
    provider: OneInchProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """Tokens 1inch can route on a chain"""
    try:
        tokens = await provider.get_tokens(chain_id)
    except httpx.HTTPStatusError as exc:
        raise _upstream_error(exc)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Failed to fetch tokens: {exc}")
    return {"success": True, "chainId": chain_id, "tokens": tokens}
