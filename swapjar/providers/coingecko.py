import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from .base import PriceProvider

# Common symbols mapped to Coingecko coin ids
TOKEN_ID_MAP: Dict[str, str] = {
    "eth": "ethereum",
    "ethereum": "ethereum",
    "usdc": "usd-coin",
    "dai": "dai",
    "usdt": "tether",
    "xlm": "stellar",
    "matic": "matic-network",
    "bnb": "binancecoin",
}


def resolve_coin_id(token: str) -> str:
    key = (token or "").strip().lower()
    return TOKEN_ID_MAP.get(key, key)


class CoingeckoProvider(PriceProvider):
    """Coingecko API provider used as the price fallback when 1inch quotes fail"""

    name = "coingecko"
    timeout_s = 15

    def __init__(self, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.coingecko_api_key
        self.base_url = "https://api.coingecko.com/api/v3"
        self._transport = transport

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"accept": "application/json"}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    async def ready(self) -> bool:
        return settings.enable_coingecko  # API key is optional for basic tier

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "Provider disabled"
            }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                start = time.perf_counter()
                response = await client.get(
                    f"{self.base_url}/ping",
                    headers=self._build_headers(),
                    timeout=self.timeout_s
                )
                response.raise_for_status()
                return {"status": "healthy", "latency_ms": int((time.perf_counter() - start) * 1000)}
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def get_usd_prices(self, coin_ids: List[str]) -> Dict[str, float]:
        """Get USD prices for Coingecko coin ids"""
        if not coin_ids:
            return {}

        params = {
            "ids": ",".join(dict.fromkeys(coin_ids)),
            "vs_currencies": "usd",
        }

        async with httpx.AsyncClient(transport=self._transport) as client:
            for attempt in range(2):
                try:
                    response = await client.get(
                        f"{self.base_url}/simple/price",
                        headers=self._build_headers(),
                        params=params,
                        timeout=self.timeout_s,
                    )
                    response.raise_for_status()
                    data = response.json()
                    break
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code == 429 and attempt == 0:
                        await asyncio.sleep(2)
                        continue
                    raise

        prices: Dict[str, float] = {}
        for coin_id, price_data in data.items():
            if isinstance(price_data, dict) and price_data.get("usd") is not None:
                prices[coin_id] = float(price_data["usd"])
        return prices

    async def get_exchange_rate(self, from_token: str, to_token: str) -> Dict[str, Any]:
        """Cross rate between two tokens via their USD prices.

        Raises:
            LookupError: if either token has no USD price
        """
        from_id = resolve_coin_id(from_token or "ethereum")
        to_id = resolve_coin_id(to_token or "usd-coin")

        prices = await self.get_usd_prices([from_id, to_id])
        from_price = prices.get(from_id)
        to_price = prices.get(to_id)
        if not from_price or not to_price:
            raise LookupError("Price data not available for requested tokens")

        return {
            "fromToken": from_id,
            "toToken": to_id,
            "rate": from_price / to_price,
            "fromPriceUsd": from_price,
            "toPriceUsd": to_price,
            "timestamp": int(time.time() * 1000),
            "source": "coingecko",
        }
