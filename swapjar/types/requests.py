from typing import Optional, Union

from pydantic import BaseModel, Field

from ..core.bridge.models import PayoutRequest


class InitiatePayoutRequest(BaseModel):
    # Presence is checked by the orchestrator so every missing field is reported at once
    ethereumTxHash: Optional[str] = Field(default=None, description="Source-chain transaction hash of the tip")
    sourceChain: Optional[Union[int, str]] = Field(default=None, description="Source EVM chain id")
    amount: Optional[Union[str, int, float]] = Field(default=None, description="Gross amount as a decimal string")
    stellarRecipient: Optional[str] = Field(default=None, description="Stellar account (56 chars, leading 'G')")
    targetAsset: Optional[str] = Field(default=None, description="XLM or USDC (default USDC)")

    def to_payout_request(self) -> PayoutRequest:
        return PayoutRequest(
            ethereum_tx_hash=self.ethereumTxHash,
            source_chain=self.sourceChain,
            amount=None if self.amount is None else str(self.amount),
            stellar_recipient=self.stellarRecipient,
            target_asset=self.targetAsset,
        )


class FusionQuoteRequest(BaseModel):
    chainId: int = Field(..., description="Source chain id")
    fromTokenAddress: str = Field(..., description="Input token address")
    toTokenAddress: str = Field(..., description="Output token address")
    amount: str = Field(..., description="Amount in smallest units")
    walletAddress: str = Field(..., description="Payer wallet address")
    receiverAddress: Optional[str] = Field(default=None, description="Optional receiver of the output token")
