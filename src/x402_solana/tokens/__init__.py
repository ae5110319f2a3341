"""
Token registry and amount codec
"""

from x402_solana.tokens.amounts import (
    amount_to_base_units,
    base_units_to_amount,
    canonical_amount,
)
from x402_solana.tokens.registry import (
    NATIVE_DECIMALS,
    NATIVE_SYMBOL,
    TokenInfo,
    TokenRegistry,
)

__all__ = [
    "NATIVE_DECIMALS",
    "NATIVE_SYMBOL",
    "TokenInfo",
    "TokenRegistry",
    "amount_to_base_units",
    "base_units_to_amount",
    "canonical_amount",
]
