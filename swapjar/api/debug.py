from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import BridgeConfig
from ..core.bridge.errors import LedgerUnavailableError
from ..core.bridge.fees import format_amount
from ..core.bridge.ledger import StellarLedgerClient
from ..types.responses import BridgeAccountResponse
from .deps import get_bridge_config, get_ledger_client

router = APIRouter(prefix="/api/debug")


@router.get("/stellar-bridge")
async def stellar_bridge_account(
    config: BridgeConfig = Depends(get_bridge_config),
    ledger: Optional[StellarLedgerClient] = Depends(get_ledger_client),
) -> Dict[str, Any]:
    """Inspect the bridge-operating account: sequence, balances and explorer link"""
    if ledger is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Bridge-operating account is not configured",
                "hint": "Set STELLAR_BRIDGE_SECRET_KEY to enable real payouts",
                "network": config.network,
            },
        )

    public_key = ledger.public_key
    explorer_url = config.account_explorer_url(public_key)
    try:
        state = await ledger.load_state()
    except LedgerUnavailableError as exc:
        if exc.account_missing:
            network_name = "Stellar Testnet" if config.is_testnet else "Stellar Mainnet"
            solutions = [
                "Send at least 1 XLM to activate the account",
                "Account will be automatically created when funded",
                f"View on explorer: {explorer_url}",
            ]
            if config.is_testnet:
                solutions.insert(0, f"Fund it with Friendbot: https://friendbot.stellar.org/?addr={public_key}")
            raise HTTPException(
                status_code=404,
                detail={
                    "error": "Account not found",
                    "accountExists": False,
                    "publicKey": public_key,
                    "network": config.network,
                    "explorerUrl": explorer_url,
                    "solutions": solutions,
                    "fundingInstructions": {
                        "address": public_key,
                        "minimumAmount": "1 XLM",
                        "network": network_name,
                    },
                },
            )
        raise HTTPException(status_code=500, detail=exc.to_dict())

    response = BridgeAccountResponse(
        publicKey=public_key,
        network=config.network,
        horizonUrl=config.horizon_url,
        sequence=str(state.sequence),
        balances={entry.asset: format_amount(entry.balance) for entry in state.balances},
        explorerUrl=explorer_url,
    )
    return response.model_dump()
