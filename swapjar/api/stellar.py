import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import BridgeConfig
from ..core.bridge.errors import LedgerUnavailableError, ValidationError
from ..core.bridge.orchestrator import BridgeOrchestrator
from ..core.bridge.status import SwapStatusMonitor
from ..types.requests import InitiatePayoutRequest
from ..types.responses import PayoutResponse, SwapStatusResponse
from .deps import get_bridge_config, get_orchestrator, get_status_monitor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stellar")


@router.post("/initiate")
async def initiate_payout(
    request: InitiatePayoutRequest,
    orchestrator: BridgeOrchestrator = Depends(get_orchestrator),
    config: BridgeConfig = Depends(get_bridge_config),
) -> Dict[str, Any]:
    """Pay out an incoming tip on Stellar, or preview it when execution is unavailable"""
    try:
        record = await orchestrator.initiate(request.to_payout_request())
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict())

    response = PayoutResponse.from_record(record, config)
    return response.model_dump(exclude_none=True)


@router.get("/status")
async def swap_status(
    swap_id: Optional[str] = Query(default=None, alias="swapId"),
    account: Optional[str] = Query(default=None, description="Account whose history is scanned"),
    monitor: SwapStatusMonitor = Depends(get_status_monitor),
) -> Dict[str, Any]:
    """Classify a swap from the memos of recent Stellar transactions"""
    try:
        report = await monitor.monitor(swap_id or "", account_id=account or None)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict())
    except LedgerUnavailableError as exc:
        logger.warning("Status lookup for swap %s failed: %s", swap_id, exc.message)
        raise HTTPException(status_code=500, detail=exc.to_dict())

    return SwapStatusResponse.from_report(report).model_dump()
