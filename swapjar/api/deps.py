"""Process-wide dependencies for the API routers.

Each getter is cached so the bridge configuration is validated once and
every request shares the same orchestrator (and its submission lock).
Tests replace them through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Optional

from ..config import BridgeConfig
from ..core.bridge.ledger import StellarLedgerClient
from ..core.bridge.orchestrator import BridgeOrchestrator
from ..core.bridge.status import SwapStatusMonitor
from ..providers.coingecko import CoingeckoProvider
from ..providers.horizon import HorizonProvider
from ..providers.oneinch import OneInchProvider


@lru_cache(maxsize=1)
def get_bridge_config() -> BridgeConfig:
    return BridgeConfig.from_settings()


@lru_cache(maxsize=1)
def get_horizon() -> HorizonProvider:
    config = get_bridge_config()
    return HorizonProvider(config.horizon_url, timeout_s=config.request_timeout_s)


@lru_cache(maxsize=1)
def get_ledger_client() -> Optional[StellarLedgerClient]:
    config = get_bridge_config()
    if not config.has_credentials:
        return None
    return StellarLedgerClient.from_config(config, horizon=get_horizon())


@lru_cache(maxsize=1)
def get_orchestrator() -> BridgeOrchestrator:
    return BridgeOrchestrator(get_bridge_config(), ledger=get_ledger_client())


@lru_cache(maxsize=1)
def get_status_monitor() -> SwapStatusMonitor:
    ledger = get_ledger_client()
    return SwapStatusMonitor.from_config(
        get_bridge_config(),
        get_horizon(),
        default_account=ledger.public_key if ledger else None,
    )


def get_quote_provider() -> OneInchProvider:
    return OneInchProvider()


def get_price_provider() -> CoingeckoProvider:
    return CoingeckoProvider()


def reset_dependencies() -> None:
    """Drop cached instances, e.g. after settings changed in tests."""
    for getter in (get_bridge_config, get_horizon, get_ledger_client, get_orchestrator, get_status_monitor):
        getter.cache_clear()
