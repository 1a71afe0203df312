"""Async client for the 1inch aggregation and Fusion+ quote APIs."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from .base import QuoteProvider


class OneInchProvider(QuoteProvider):
    """Thin wrapper around https://api.1inch.dev quote endpoints."""

    name = "1inch"
    timeout_s = 20

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.one_inch_api_key
        self.base_url = (base_url or settings.one_inch_base_url or "https://api.1inch.dev").rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "accept": "application/json",
            "user-agent": "SwapJar/1.0",
        }
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    async def ready(self) -> bool:
        return settings.enable_one_inch and bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not settings.enable_one_inch:
            return {"status": "unavailable", "reason": "Provider disabled"}
        if not self.api_key:
            return {"status": "unavailable", "reason": "API key not configured"}
        # Quotes are metered; report configured state instead of probing.
        return {"status": "configured"}

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            response = await client.get(path, params=params, headers=self._headers())
            response.raise_for_status()
            return response.json()

    async def quote(self, chain_id: int, src: str, dst: str, amount: str, **params: Any) -> Dict[str, Any]:
        """Classic aggregation quote (`/swap/v6.0/{chain}/quote`).

        Extra keyword arguments (e.g. ``from_``, ``slippage``,
        ``destReceiver``) are forwarded as query parameters.
        """

        query: Dict[str, Any] = {"src": src, "dst": dst, "amount": amount}
        for key, value in params.items():
            if value is not None:
                query[key.rstrip("_")] = value
        return await self._get(f"/swap/v6.0/{chain_id}/quote", query)

    async def fusion_plus_quote(
        self,
        chain_id: int,
        src: str,
        dst: str,
        amount: str,
        wallet_address: str,
        receiver: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Gasless intent quote; resolvers pay gas and fill the order."""

        query: Dict[str, Any] = {
            "fromTokenAddress": src,
            "toTokenAddress": dst,
            "amount": amount,
            "walletAddress": wallet_address,
            "preset": "fast",
        }
        if receiver:
            query["receiver"] = receiver
        return await self._get(f"/fusion-plus/v1.0/{chain_id}/quote", query)

    async def get_tokens(self, chain_id: int) -> List[Dict[str, Any]]:
        """Token list for a chain, flattened from the `{address: token}` map."""

        data = await self._get(f"/swap/v6.0/{chain_id}/tokens", {})
        tokens = data.get("tokens") or {}
        if isinstance(tokens, dict):
            return [token for token in tokens.values() if isinstance(token, dict)]
        return [token for token in tokens if isinstance(token, dict)]
