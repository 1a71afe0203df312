"""Async client for the Stellar Horizon REST API."""

from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from ..core.bridge.errors import LedgerUnavailableError, SubmissionError
from ..core.bridge.models import AssetBalance, LedgerAccountState
from .base import LedgerProvider

logger = logging.getLogger(__name__)


def _balance_label(entry: Dict[str, Any]) -> Optional[str]:
    asset_type = entry.get("asset_type")
    if asset_type == "native":
        return "XLM"
    if asset_type in ("credit_alphanum4", "credit_alphanum12"):
        return f"{entry.get('asset_code')}:{entry.get('asset_issuer')}"
    # Liquidity pool shares are not payable assets
    return None


def parse_account(payload: Dict[str, Any]) -> LedgerAccountState:
    """Turn a Horizon account resource into a LedgerAccountState."""

    balances: List[AssetBalance] = []
    for entry in payload.get("balances") or []:
        if not isinstance(entry, dict):
            continue
        label = _balance_label(entry)
        if label is None:
            continue
        try:
            amount = Decimal(str(entry.get("balance", "0")))
        except (InvalidOperation, ValueError):
            amount = Decimal("0")
        balances.append(AssetBalance(asset=label, balance=amount))

    return LedgerAccountState(
        account_id=str(payload.get("account_id") or payload.get("id") or ""),
        sequence=int(payload.get("sequence") or 0),
        balances=tuple(balances),
    )


class HorizonProvider(LedgerProvider):
    """Thin wrapper around the Horizon endpoints the bridge needs."""

    name = "horizon"
    timeout_s = 20

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
            headers={"accept": "application/json", "user-agent": "SwapJar/1.0"},
        )

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                start = time.perf_counter()
                response = await client.get("/")
                latency_ms = int((time.perf_counter() - start) * 1000)
                response.raise_for_status()
                data = response.json()
            return {
                "status": "healthy",
                "latency_ms": latency_ms,
                "network_passphrase": data.get("network_passphrase"),
                "latest_ledger": data.get("history_latest_ledger"),
            }
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.get(path, params=params)
        except httpx.RequestError as exc:
            raise LedgerUnavailableError(f"Horizon request failed: {exc}") from exc

    async def load_account(self, account_id: str) -> LedgerAccountState:
        response = await self._get(f"/accounts/{account_id}")
        if response.status_code == 404:
            raise LedgerUnavailableError(
                f"Account {account_id} not found on the Stellar network",
                account_id=account_id,
                account_missing=True,
            )
        if response.is_error:
            raise LedgerUnavailableError(
                f"Horizon returned {response.status_code} loading account {account_id}",
                account_id=account_id,
            )
        return parse_account(response.json())

    async def account_exists(self, account_id: str) -> bool:
        response = await self._get(f"/accounts/{account_id}")
        if response.status_code == 404:
            return False
        if response.is_error:
            raise LedgerUnavailableError(
                f"Horizon returned {response.status_code} checking account {account_id}",
                account_id=account_id,
            )
        return True

    async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post("/transactions", data={"tx": envelope_xdr})
        except httpx.TimeoutException as exc:
            raise SubmissionError(f"Transaction submission timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise SubmissionError(f"Transaction submission failed: {exc}") from exc

        if response.status_code == 504:
            raise SubmissionError(
                "Transaction submission timed out; it may still be included before its time bound",
                status_code=504,
            )
        if response.is_error:
            try:
                problem = response.json()
            except ValueError:
                problem = {}
            result_codes = (problem.get("extras") or {}).get("result_codes") or {}
            title = problem.get("title") or response.reason_phrase or "Transaction Failed"
            raise SubmissionError(
                f"{title} ({response.status_code})",
                result_codes=result_codes,
                status_code=response.status_code,
            )

        data = response.json()
        logger.debug("Horizon accepted transaction %s in ledger %s", data.get("hash"), data.get("ledger"))
        return data

    async def get_transactions(
        self,
        account_id: Optional[str] = None,
        *,
        limit: int = 100,
        order: str = "desc",
    ) -> List[Dict[str, Any]]:
        path = f"/accounts/{account_id}/transactions" if account_id else "/transactions"
        response = await self._get(path, params={"limit": limit, "order": order})
        if response.status_code == 404 and account_id:
            raise LedgerUnavailableError(
                f"Account {account_id} not found on the Stellar network",
                account_id=account_id,
                account_missing=True,
            )
        if response.is_error:
            raise LedgerUnavailableError(f"Horizon returned {response.status_code} listing transactions")

        payload = response.json()
        records = (payload.get("_embedded") or {}).get("records") or []
        return [record for record in records if isinstance(record, dict)]
