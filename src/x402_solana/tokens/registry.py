"""
Token registry - asset descriptors (decimals, mint) per network
"""

from dataclasses import dataclass
from typing import Any, Optional

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.tokens.amounts import amount_to_base_units
from x402_solana.types import is_valid_address

NATIVE_SYMBOL = "SOL"
NATIVE_DECIMALS = 9


@dataclass(frozen=True)
class TokenInfo:
    """Asset descriptor"""

    symbol: str
    decimals: int
    name: str
    mint: Optional[str] = None  # None for the native asset
    is_native: bool = False


def _native() -> TokenInfo:
    return TokenInfo(
        symbol=NATIVE_SYMBOL,
        decimals=NATIVE_DECIMALS,
        name="Solana",
        is_native=True,
    )


class TokenRegistry:
    """Token registry"""

    _tokens: dict[str, dict[str, TokenInfo]] = {
        "mainnet-beta": {
            "SOL": _native(),
            "USDC": TokenInfo(
                symbol="USDC",
                decimals=6,
                name="USD Coin",
                mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
            ),
            "USDT": TokenInfo(
                symbol="USDT",
                decimals=6,
                name="Tether USD",
                mint="Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
            ),
        },
        "devnet": {
            "SOL": _native(),
            "USDC": TokenInfo(
                symbol="USDC",
                decimals=6,
                name="USD Coin",
                mint="4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
            ),
            "USDT": TokenInfo(
                symbol="USDT",
                decimals=6,
                name="Tether USD",
                mint="EJwZgeZrdC8TXTQbQBoL6bfuAnFUUy1PVCMB4DYPzVaS",
            ),
        },
        "testnet": {
            "SOL": _native(),
            "USDC": TokenInfo(
                symbol="USDC",
                decimals=6,
                name="USD Coin",
                mint="CpMah17kQEL2wqyMKt3mZBdTnZbkbfx4nqmQMFDP5vwp",
            ),
            "USDT": TokenInfo(
                symbol="USDT",
                decimals=6,
                name="Tether USD",
                mint="EJwZgeZrdC8TXTQbQBoL6bfuAnFUUy1PVCMB4DYPzVaS",
            ),
        },
    }

    @classmethod
    def register_token(cls, network: str, token: TokenInfo) -> None:
        """Register a custom SPL token for the specified network

        Args:
            network: Network identifier (e.g. "devnet")
            token: TokenInfo to register; must carry a valid mint address
        """
        if token.is_native or token.mint is None:
            raise X402Error(
                ErrorKind.CONFIGURATION_ERROR,
                f"Only SPL tokens with a mint can be registered, got {token.symbol}",
            )
        if not is_valid_address(token.mint):
            raise X402Error(
                ErrorKind.CONFIGURATION_ERROR, f"Invalid mint address: {token.mint}"
            )
        cls._tokens.setdefault(network, {})[token.symbol.upper()] = token

    @classmethod
    def unregister_token(cls, network: str, symbol: str) -> None:
        cls._tokens.get(network, {}).pop(symbol.upper(), None)

    @classmethod
    def has_token(cls, network: str, symbol: str) -> bool:
        return symbol.upper() in cls._tokens.get(network, {})

    @classmethod
    def get_token(cls, network: str, symbol: str) -> TokenInfo:
        """Get token information for specified network and symbol

        Raises:
            X402Error(UNKNOWN_TOKEN): If token does not exist
        """
        token = cls._tokens.get(network, {}).get(symbol.upper())
        if token is None:
            raise X402Error(ErrorKind.UNKNOWN_TOKEN, f"Unknown token {symbol} on network {network}")
        return token

    @classmethod
    def find_by_mint(cls, network: str, mint: str) -> TokenInfo | None:
        """Find token information by mint address"""
        for info in cls._tokens.get(network, {}).values():
            if info.mint == mint:
                return info
        return None

    @classmethod
    def get_network_tokens(cls, network: str) -> dict[str, TokenInfo]:
        """Get all tokens for specified network"""
        return dict(cls._tokens.get(network, {}))

    @classmethod
    def parse_price(cls, price: str, network: str) -> dict[str, Any]:
        """Parse a price string into an asset amount

        Args:
            price: Price string (e.g. "1.50 USDC")
            network: Network identifier

        Returns:
            Dictionary containing amount (base units), symbol, decimals, mint
        """
        parts = price.strip().split()
        if len(parts) != 2:
            raise X402Error(ErrorKind.MALFORMED_AMOUNT, f"Invalid price format: {price}")

        amount_str, symbol = parts
        token = cls.get_token(network, symbol)

        return {
            "amount": amount_to_base_units(amount_str, token.decimals),
            "symbol": token.symbol,
            "decimals": token.decimals,
            "mint": token.mint,
            "name": token.name,
        }
