from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config import BridgeConfig
from ..providers.coingecko import CoingeckoProvider
from ..providers.horizon import HorizonProvider
from ..providers.oneinch import OneInchProvider
from .deps import get_bridge_config, get_horizon, get_price_provider, get_quote_provider

router = APIRouter()


@router.get("/healthz")
async def health_check(
    horizon: HorizonProvider = Depends(get_horizon),
    one_inch: OneInchProvider = Depends(get_quote_provider),
    coingecko: CoingeckoProvider = Depends(get_price_provider),
    config: BridgeConfig = Depends(get_bridge_config),
) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status = {
        "horizon": await horizon.health_check(),
        "1inch": await one_inch.health_check(),
        "coingecko": await coingecko.health_check(),
    }

    # Disabled or unconfigured providers do not degrade the service
    all_healthy = all(
        status["status"] in ["healthy", "configured", "unavailable"]
        for status in provider_status.values()
    )

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] in ["healthy", "configured"]
    )

    return {
        "status": "healthy" if all_healthy and provider_status["horizon"]["status"] == "healthy" else "degraded",
        "network": config.network,
        "payoutMode": "live" if config.has_credentials else "simulated",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status),
    }
