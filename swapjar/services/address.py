"""Helpers for normalizing chain identifiers and validating wallet addresses."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Optional

from ..core.bridge.constants import STELLAR_ADDRESS_LENGTH, STELLAR_ADDRESS_PREFIX

_BASE32_ALPHABET = set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# 1inch sentinel for the chain's native token
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

SUPPORTED_CHAINS = {
    1: "ethereum",
    10: "optimism",
    137: "polygon",
    8453: "base",
    42161: "arbitrum",
}

# Chains where 1inch offers gasless Fusion+ intents
FUSION_PLUS_CHAINS = frozenset({1, 10, 137, 42161})

_CHAIN_ALIASES = {
    "eth": 1,
    "ethereum": 1,
    "mainnet": 1,
    "op": 10,
    "optimism": 10,
    "matic": 137,
    "polygon": 137,
    "base": 8453,
    "arb": 42161,
    "arbitrum": 42161,
}


def normalize_chain_id(chain: Any) -> Optional[int]:
    """Collapse user-provided chain identifiers (ids or names) into an EVM chain id."""

    if chain is None or isinstance(chain, bool):
        return None
    if isinstance(chain, int):
        return chain
    text = str(chain).strip().lower()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    return _CHAIN_ALIASES.get(text)


def is_supported_chain(chain_id: int) -> bool:
    return chain_id in SUPPORTED_CHAINS


def supports_fusion_plus(chain_id: int) -> bool:
    return chain_id in FUSION_PLUS_CHAINS


def is_valid_evm_address(address: str) -> bool:
    return bool(address) and bool(_EVM_ADDRESS_RE.fullmatch(address))


@lru_cache(maxsize=256)
def is_valid_stellar_address(address: str) -> bool:
    """Account-id grammar: 56 base32 characters with a leading 'G'."""

    if not address or len(address) != STELLAR_ADDRESS_LENGTH:
        return False
    if not address.startswith(STELLAR_ADDRESS_PREFIX):
        return False
    return all(ch in _BASE32_ALPHABET for ch in address)


__all__ = [
    "NATIVE_TOKEN_ADDRESS",
    "SUPPORTED_CHAINS",
    "normalize_chain_id",
    "is_supported_chain",
    "supports_fusion_plus",
    "is_valid_evm_address",
    "is_valid_stellar_address",
]
