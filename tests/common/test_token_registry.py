import pytest

from conftest import make_keypair
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.tokens import TokenInfo, TokenRegistry


def test_native_token():
    token = TokenRegistry.get_token("devnet", "SOL")

    assert token.is_native
    assert token.decimals == 9
    assert token.mint is None


def test_usdc_per_network():
    """Test USDC resolves to a different mint per network"""
    mainnet = TokenRegistry.get_token("mainnet-beta", "USDC")
    devnet = TokenRegistry.get_token("devnet", "usdc")

    assert mainnet.mint == "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
    assert devnet.mint != mainnet.mint
    assert devnet.decimals == 6


def test_unknown_token():
    with pytest.raises(X402Error) as exc_info:
        TokenRegistry.get_token("devnet", "DOGE")
    assert exc_info.value.kind is ErrorKind.UNKNOWN_TOKEN


def test_register_custom_token():
    """Test registering and removing a custom SPL token"""
    mint = str(make_keypair(40).pubkey())
    TokenRegistry.register_token("devnet", TokenInfo(symbol="BONK", decimals=5, name="Bonk", mint=mint))
    try:
        assert TokenRegistry.has_token("devnet", "bonk")
        assert TokenRegistry.find_by_mint("devnet", mint).symbol == "BONK"
        assert not TokenRegistry.has_token("mainnet-beta", "BONK")
    finally:
        TokenRegistry.unregister_token("devnet", "BONK")

    assert not TokenRegistry.has_token("devnet", "BONK")


def test_register_rejects_native_and_bad_mint():
    with pytest.raises(X402Error) as exc_info:
        TokenRegistry.register_token(
            "devnet", TokenInfo(symbol="WSOL", decimals=9, name="Wrapped", is_native=True)
        )
    assert exc_info.value.kind is ErrorKind.CONFIGURATION_ERROR

    with pytest.raises(X402Error) as exc_info:
        TokenRegistry.register_token(
            "devnet", TokenInfo(symbol="BAD", decimals=6, name="Bad", mint="nope")
        )
    assert exc_info.value.kind is ErrorKind.CONFIGURATION_ERROR


def test_parse_price():
    """Test price strings convert to integer base units"""
    parsed = TokenRegistry.parse_price("1.5 USDC", "devnet")

    assert parsed["amount"] == 1_500_000
    assert isinstance(parsed["amount"], int)
    assert parsed["symbol"] == "USDC"
    assert parsed["mint"] == TokenRegistry.get_token("devnet", "USDC").mint


def test_parse_price_malformed():
    with pytest.raises(X402Error) as exc_info:
        TokenRegistry.parse_price("1.5", "devnet")
    assert exc_info.value.kind is ErrorKind.MALFORMED_AMOUNT


def test_get_network_tokens_returns_copy():
    tokens = TokenRegistry.get_network_tokens("devnet")
    tokens.pop("SOL")

    assert TokenRegistry.has_token("devnet", "SOL")
    assert TokenRegistry.get_network_tokens("unknown") == {}
