"""SwapJar: cross-chain tip jar payouts onto Stellar."""

__version__ = "0.1.0"
