from typing import Any, Dict

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from ..providers.coingecko import CoingeckoProvider
from .deps import get_price_provider

router = APIRouter(prefix="/api/price")


@router.get("/fallback")
async def fallback_price(
    from_token: str = Query(default="ethereum", alias="from"),
    to_token: str = Query(default="usd-coin", alias="to"),
    provider: CoingeckoProvider = Depends(get_price_provider),
) -> Dict[str, Any]:
    """Cross rate from Coingecko USD prices, used when quotes are unavailable"""
    try:
        return await provider.get_exchange_rate(from_token, to_token)
    except (LookupError, httpx.HTTPError) as exc:
        raise HTTPException(status_code=500, detail={"error": "Price feed error", "description": str(exc)})
