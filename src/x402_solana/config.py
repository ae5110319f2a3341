"""
x402 Solana configuration
Network endpoints, protocol constants and client/server settings
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.types import Commitment, is_valid_address

PAYMENT_HEADER = "X-Payment"


class NetworkConfig:
    """Network configuration for RPC endpoints and protocol constants"""

    MAINNET_BETA = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"

    NETWORKS = (MAINNET_BETA, DEVNET, TESTNET)

    RPC_URLS: Dict[str, str] = {
        "mainnet-beta": "https://api.mainnet-beta.solana.com",
        "devnet": "https://api.devnet.solana.com",
        "testnet": "https://api.testnet.solana.com",
    }

    # Slots a finalized payment must sit behind the current head
    FINALITY_DEPTH = 32

    DEFAULT_COMMITMENT = Commitment.CONFIRMED

    # Largest value the u64 lamports / token amount instruction fields can carry
    MAX_TRANSFER_AMOUNT = 2**64 - 1

    @classmethod
    def validate_network(cls, network: str) -> str:
        """Return network unchanged, or raise UNSUPPORTED_NETWORK"""
        if network not in cls.NETWORKS:
            raise X402Error(ErrorKind.UNSUPPORTED_NETWORK, f"Unsupported network: {network}")
        return network

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """Get the RPC endpoint for a network

        Args:
            network: Network identifier (e.g., "devnet")
            override: Custom endpoint; returned as-is when set

        Returns:
            RPC URL string
        """
        if override:
            return override
        cls.validate_network(network)
        return cls.RPC_URLS[network]


def _parse_commitment(value: str | Commitment) -> Commitment:
    try:
        return Commitment(value)
    except ValueError:
        raise X402Error(ErrorKind.CONFIGURATION_ERROR, f"Invalid commitment level: {value}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise X402Error(ErrorKind.CONFIGURATION_ERROR, f"{name} must be a number, got {raw!r}")


@dataclass
class ClientConfig:
    """Client-side payment configuration"""

    network: str = NetworkConfig.DEVNET
    rpc_endpoint: Optional[str] = None
    commitment: Commitment = NetworkConfig.DEFAULT_COMMITMENT
    rpc_timeout: float = 30.0
    confirmation_timeout: float = 60.0
    poll_interval: float = 0.5

    def __post_init__(self) -> None:
        NetworkConfig.validate_network(self.network)
        self.commitment = _parse_commitment(self.commitment)
        for name in ("rpc_timeout", "confirmation_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise X402Error(ErrorKind.CONFIGURATION_ERROR, f"{name} must be positive")

    @property
    def rpc_url(self) -> str:
        return NetworkConfig.get_rpc_url(self.network, self.rpc_endpoint)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build configuration from X402_* environment variables"""
        return cls(
            network=os.getenv("X402_NETWORK", NetworkConfig.DEVNET),
            rpc_endpoint=os.getenv("X402_RPC_URL") or None,
            commitment=os.getenv("X402_COMMITMENT", NetworkConfig.DEFAULT_COMMITMENT.value),
            rpc_timeout=_env_float("X402_RPC_TIMEOUT", 30.0),
            confirmation_timeout=_env_float("X402_CONFIRMATION_TIMEOUT", 60.0),
        )


@dataclass
class ServerConfig:
    """Server-side verification configuration"""

    recipient_address: str
    network: str = NetworkConfig.DEVNET
    rpc_endpoint: Optional[str] = None
    commitment: Commitment = NetworkConfig.DEFAULT_COMMITMENT
    rpc_timeout: float = 30.0
    enable_cache: bool = False
    cache_ttl: float = 300.0  # seconds
    max_clock_skew: float = 300.0  # seconds a proof may be dated in the future

    def __post_init__(self) -> None:
        NetworkConfig.validate_network(self.network)
        if not is_valid_address(self.recipient_address):
            raise X402Error(
                ErrorKind.CONFIGURATION_ERROR,
                f"Invalid recipient address: {self.recipient_address}",
            )
        self.commitment = _parse_commitment(self.commitment)
        if self.rpc_timeout <= 0:
            raise X402Error(ErrorKind.CONFIGURATION_ERROR, "rpc_timeout must be positive")
        if self.cache_ttl <= 0:
            raise X402Error(ErrorKind.CONFIGURATION_ERROR, "cache_ttl must be positive")
        if self.max_clock_skew < 0:
            raise X402Error(ErrorKind.CONFIGURATION_ERROR, "max_clock_skew must be >= 0")

    @property
    def rpc_url(self) -> str:
        return NetworkConfig.get_rpc_url(self.network, self.rpc_endpoint)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build configuration from X402_* environment variables"""
        recipient = os.getenv("X402_RECIPIENT_ADDRESS")
        if not recipient:
            raise X402Error(ErrorKind.CONFIGURATION_ERROR, "X402_RECIPIENT_ADDRESS is not set")
        return cls(
            recipient_address=recipient,
            network=os.getenv("X402_NETWORK", NetworkConfig.DEVNET),
            rpc_endpoint=os.getenv("X402_RPC_URL") or None,
            commitment=os.getenv("X402_COMMITMENT", NetworkConfig.DEFAULT_COMMITMENT.value),
            rpc_timeout=_env_float("X402_RPC_TIMEOUT", 30.0),
            enable_cache=_env_bool("X402_CACHE_ENABLED", False),
            cache_ttl=_env_float("X402_CACHE_TTL", 300.0),
        )
