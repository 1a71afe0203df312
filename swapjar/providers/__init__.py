"""External capabilities: Stellar Horizon, 1inch quotes, Coingecko prices."""

from .coingecko import CoingeckoProvider
from .horizon import HorizonProvider
from .oneinch import OneInchProvider

__all__ = ["CoingeckoProvider", "HorizonProvider", "OneInchProvider"]
