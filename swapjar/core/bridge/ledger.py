"""Stellar payment construction, signing and submission for the bridge account."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from stellar_sdk import Account, Asset, Keypair, TransactionBuilder, TransactionEnvelope
from stellar_sdk.exceptions import SdkError

from ...config import BridgeConfig
from ...providers.base import LedgerProvider
from ...providers.horizon import HorizonProvider
from .constants import BASE_FEE_STROOPS, DEFAULT_TX_TIMEOUT_SECONDS, MEMO_MAX_BYTES
from .errors import SubmissionError
from .fees import format_amount
from .models import LedgerAccountState, TargetAsset


def truncate_memo(memo: str, max_bytes: int = MEMO_MAX_BYTES) -> str:
    encoded = memo.encode("utf-8")
    if len(encoded) <= max_bytes:
        return memo
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class StellarLedgerClient:
    """Signs and submits payments from the bridge-operating account.

    Account state is reloaded before every build; a cached sequence number
    would be rejected as tx_bad_seq once another payment has landed.
    """

    def __init__(
        self,
        horizon: LedgerProvider,
        keypair: Keypair,
        *,
        network_passphrase: str,
        usdc_issuer: str,
        tx_timeout_s: int = DEFAULT_TX_TIMEOUT_SECONDS,
        base_fee: int = BASE_FEE_STROOPS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._horizon = horizon
        self._keypair = keypair
        self._network_passphrase = network_passphrase
        self._usdc_issuer = usdc_issuer
        self._tx_timeout_s = tx_timeout_s
        self._base_fee = base_fee
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        *,
        horizon: Optional[LedgerProvider] = None,
    ) -> "StellarLedgerClient":
        if not config.secret_key:
            raise ValueError("Bridge-operating account credentials are not configured")
        return cls(
            horizon or HorizonProvider(config.horizon_url, timeout_s=config.request_timeout_s),
            Keypair.from_secret(config.secret_key),
            network_passphrase=config.network_passphrase,
            usdc_issuer=config.usdc_issuer,
            tx_timeout_s=config.transaction_timeout_s,
        )

    @property
    def public_key(self) -> str:
        return self._keypair.public_key

    @property
    def horizon(self) -> LedgerProvider:
        return self._horizon

    def resolve_asset(self, asset: TargetAsset) -> Asset:
        if asset.is_native:
            return Asset.native()
        return Asset(asset.value, self._usdc_issuer)

    def balance_label(self, asset: TargetAsset) -> str:
        if asset.is_native:
            return "XLM"
        return f"{asset.value}:{self._usdc_issuer}"

    async def load_state(self) -> LedgerAccountState:
        return await self._horizon.load_account(self.public_key)

    def build_payment(
        self,
        state: LedgerAccountState,
        *,
        destination: str,
        asset: TargetAsset,
        amount: Decimal,
        memo: str,
        create_account: bool = False,
    ) -> TransactionEnvelope:
        """Build and sign a single-operation payment on top of `state`."""

        memo_text = truncate_memo(memo)
        if memo_text != memo:
            self._logger.warning("Memo %r exceeds %d bytes, truncated to %r", memo, MEMO_MAX_BYTES, memo_text)

        amount_text = format_amount(amount)
        try:
            builder = TransactionBuilder(
                source_account=Account(state.account_id, state.sequence),
                network_passphrase=self._network_passphrase,
                base_fee=self._base_fee,
            )
            if create_account:
                builder.append_create_account_op(destination=destination, starting_balance=amount_text)
            else:
                builder.append_payment_op(
                    destination=destination,
                    asset=self.resolve_asset(asset),
                    amount=amount_text,
                )
            envelope = builder.add_text_memo(memo_text).set_timeout(self._tx_timeout_s).build()
            envelope.sign(self._keypair)
        except (SdkError, ValueError) as exc:
            raise SubmissionError(f"Could not build payment transaction: {exc}") from exc
        return envelope

    async def submit(self, envelope: TransactionEnvelope) -> str:
        result = await self._horizon.submit_transaction(envelope.to_xdr())
        return str(result.get("hash") or envelope.hash_hex())

    async def send_payment(
        self,
        *,
        destination: str,
        asset: TargetAsset,
        amount: Decimal,
        memo: str,
    ) -> str:
        """Load fresh state, build, sign and submit. Returns the transaction hash."""

        state = await self.load_state()

        available = state.balance_of(self.balance_label(asset))
        if available < amount:
            raise SubmissionError(
                f"Bridge account balance too low: {format_amount(available)} {asset.value} available, "
                f"{format_amount(amount)} required",
                result_codes={"transaction": "tx_failed", "operations": ["op_underfunded"]},
            )

        create_account = asset.is_native and not await self._horizon.account_exists(destination)
        if create_account:
            self._logger.info("Destination %s not funded yet, creating it with the payout", destination)

        envelope = self.build_payment(
            state,
            destination=destination,
            asset=asset,
            amount=amount,
            memo=memo,
            create_account=create_account,
        )
        tx_hash = await self.submit(envelope)
        self._logger.info(
            "Stellar payout submitted: %s %s to %s (tx %s)",
            format_amount(amount),
            asset.value,
            destination,
            tx_hash,
        )
        return tx_hash
