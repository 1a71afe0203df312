from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.bridge.models import LedgerAccountState


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class LedgerProvider(Provider):
    """Provider for destination-ledger account state, submission and history"""

    @abstractmethod
    async def load_account(self, account_id: str) -> LedgerAccountState:
        """Load sequence number and balances for an account"""
        pass

    @abstractmethod
    async def account_exists(self, account_id: str) -> bool:
        """Return False when the account has not been created on the ledger"""
        pass

    @abstractmethod
    async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        """Submit a signed transaction envelope"""
        pass

    @abstractmethod
    async def get_transactions(
        self,
        account_id: Optional[str] = None,
        *,
        limit: int = 100,
        order: str = "desc",
    ) -> List[Dict[str, Any]]:
        """Recent transaction records, for one account or the whole network"""
        pass


class QuoteProvider(Provider):
    """Provider for swap quotes from a DEX aggregator"""

    @abstractmethod
    async def quote(self, chain_id: int, src: str, dst: str, amount: str, **params: Any) -> Dict[str, Any]:
        """Get a classic swap quote"""
        pass

    @abstractmethod
    async def fusion_plus_quote(
        self,
        chain_id: int,
        src: str,
        dst: str,
        amount: str,
        wallet_address: str,
        receiver: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Get a gasless intent quote"""
        pass


class PriceProvider(Provider):
    """Provider for token price data"""

    @abstractmethod
    async def get_usd_prices(self, coin_ids: List[str]) -> Dict[str, float]:
        """Get current USD prices keyed by coin id"""
        pass
