import os

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from stellar_sdk import Network, StrKey


BASE_DIR = Path(__file__).resolve().parents[1]

HORIZON_URLS = {
    "TESTNET": "https://horizon-testnet.stellar.org",
    "PUBLIC": "https://horizon.stellar.org",
}

NETWORK_PASSPHRASES = {
    "TESTNET": Network.TESTNET_NETWORK_PASSPHRASE,
    "PUBLIC": Network.PUBLIC_NETWORK_PASSPHRASE,
}

# Circle USDC issuers
USDC_ISSUERS = {
    "TESTNET": "GBBD47IF6LWK7P7MDEVSCWR7DPUWV3NY3DTQEVFL4NAT4AQH3ZLLFLA5",
    "PUBLIC": "GA5ZSEJYB37JRC5AVCIA5MOP4RHTM335X2KGX3IHOJAPP5RE34K4KZVN",
}

EXPLORER_URLS = {
    "TESTNET": "https://testnet.steexp.com",
    "PUBLIC": "https://steexp.com",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.stellar_bridge_secret_key:
            fallback = os.getenv("STELLAR_BRIDGE_SECRET")
            if fallback:
                object.__setattr__(self, "stellar_bridge_secret_key", fallback)

        if not self.one_inch_api_key:
            fallback = os.getenv("ONEINCH_API_KEY") or os.getenv("NEXT_PUBLIC_ONE_INCH_API_KEY")
            if fallback:
                object.__setattr__(self, "one_inch_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Stellar destination ledger
    stellar_network: str = Field(
        default="TESTNET",
        description="Stellar network to pay out on (TESTNET or PUBLIC)",
    )
    stellar_bridge_secret_key: str = Field(
        default="",
        description="Secret seed of the bridge-operating account; payouts are simulated when empty",
    )
    stellar_horizon_url: str = Field(
        default="",
        description="Override the Horizon URL derived from stellar_network",
    )
    stellar_usdc_issuer: str = Field(
        default="",
        description="Override the USDC issuer derived from stellar_network",
    )

    # Bridge behaviour
    bridge_fee_fraction: Decimal = Field(
        default=Decimal("0.02"),
        description="Fraction of the gross amount kept as bridge fee",
    )
    transaction_timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Validity window of a submitted Stellar transaction",
    )
    status_history_limit: int = Field(
        default=100,
        ge=1,
        le=200,
        description="Number of recent ledger transactions scanned for swap status",
    )

    # Rate Limiting
    request_timeout_seconds: int = Field(default=30, description="Request timeout")

    # External API Keys
    one_inch_api_key: str = Field(
        default="",
        description="1inch Developer Portal API key",
        validation_alias=AliasChoices("one_inch_api_key", "ONE_INCH_API_KEY"),
    )
    one_inch_base_url: str = Field(
        default="https://api.1inch.dev",
        description="Base URL for the 1inch APIs",
    )
    coingecko_api_key: str = Field(default="", description="Coingecko API key")

    # Provider Toggles
    enable_coingecko: bool = Field(default=True, description="Enable Coingecko provider")
    enable_one_inch: bool = Field(default=True, description="Enable 1inch quote provider")


@dataclass(frozen=True)
class BridgeConfig:
    """Immutable bridge configuration, built once at startup and injected."""

    network: str
    horizon_url: str
    network_passphrase: str
    usdc_issuer: str
    explorer_url: str
    fee_fraction: Decimal
    transaction_timeout_s: int
    request_timeout_s: float
    status_history_limit: int
    secret_key: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.secret_key)

    @property
    def is_testnet(self) -> bool:
        return self.network == "TESTNET"

    def account_explorer_url(self, account_id: str) -> str:
        return f"{self.explorer_url}/account/{account_id}"

    def transaction_explorer_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def __repr__(self) -> str:
        secret = "[SET]" if self.secret_key else "[NOT SET]"
        return (
            f"BridgeConfig(network={self.network!r}, horizon_url={self.horizon_url!r}, "
            f"fee_fraction={self.fee_fraction}, secret_key={secret})"
        )

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "BridgeConfig":
        """
        Build the bridge configuration from application settings.

        Raises:
            ValueError: If the network name, fee fraction or secret seed is invalid
        """
        source = source or settings
        network = (source.stellar_network or "TESTNET").strip().upper()
        if network == "MAINNET":
            network = "PUBLIC"
        if network not in HORIZON_URLS:
            raise ValueError(
                f"STELLAR_NETWORK must be TESTNET or PUBLIC, got {source.stellar_network!r}"
            )

        fee = Decimal(source.bridge_fee_fraction)
        if not Decimal("0") <= fee < Decimal("1"):
            raise ValueError(f"BRIDGE_FEE_FRACTION must be in [0, 1), got {fee}")

        secret = (source.stellar_bridge_secret_key or "").strip() or None
        if secret and not StrKey.is_valid_ed25519_secret_seed(secret):
            raise ValueError(
                "STELLAR_BRIDGE_SECRET_KEY is not a valid Stellar secret seed (expected 56 chars starting with 'S')"
            )

        usdc_issuer = source.stellar_usdc_issuer or USDC_ISSUERS[network]
        if not StrKey.is_valid_ed25519_public_key(usdc_issuer):
            raise ValueError(f"STELLAR_USDC_ISSUER is not a valid Stellar account: {usdc_issuer!r}")

        return cls(
            network=network,
            horizon_url=(source.stellar_horizon_url or HORIZON_URLS[network]).rstrip("/"),
            network_passphrase=NETWORK_PASSPHRASES[network],
            usdc_issuer=usdc_issuer,
            explorer_url=EXPLORER_URLS[network],
            fee_fraction=fee,
            transaction_timeout_s=source.transaction_timeout_seconds,
            request_timeout_s=float(source.request_timeout_seconds),
            status_history_limit=source.status_history_limit,
            secret_key=secret,
        )


# Global settings instance
settings = Settings()
