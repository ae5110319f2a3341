"""
x402-solana - HTTP 402 payment protocol SDK for Solana

Supports Client and Server functionality for SOL and SPL token payments.
"""

__version__ = "0.1.0"

from x402_solana.clients import (
    PaymentFlow,
    PaymentState,
    X402Client,
    X402HttpClient,
    create_payment_proof,
    x402_fetch,
)
from x402_solana.config import PAYMENT_HEADER, ClientConfig, NetworkConfig, ServerConfig
from x402_solana.encoding import (
    decode_payment_proof,
    decode_payment_requirements,
    encode_payment_proof,
    encode_payment_requirements,
)
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.server import GuardDecision, PaymentCache, PaymentGuard, X402Server
from x402_solana.signers import ClientSigner, LocalSigner, RemoteSigner, SignerKind
from x402_solana.tokens import (
    TokenInfo,
    TokenRegistry,
    amount_to_base_units,
    base_units_to_amount,
)
from x402_solana.types import (
    Commitment,
    PaymentOptions,
    PaymentProof,
    PaymentRequirements,
    VerifiedPayment,
)

__all__ = [
    "__version__",
    # Types
    "Commitment",
    "PaymentRequirements",
    "PaymentProof",
    "PaymentOptions",
    "VerifiedPayment",
    # Exceptions
    "X402Error",
    "ErrorKind",
    # Config
    "NetworkConfig",
    "ClientConfig",
    "ServerConfig",
    "PAYMENT_HEADER",
    # Encoding
    "encode_payment_requirements",
    "decode_payment_requirements",
    "encode_payment_proof",
    "decode_payment_proof",
    # Tokens
    "TokenInfo",
    "TokenRegistry",
    "amount_to_base_units",
    "base_units_to_amount",
    # Signers
    "ClientSigner",
    "SignerKind",
    "LocalSigner",
    "RemoteSigner",
    # Client
    "X402Client",
    "X402HttpClient",
    "PaymentFlow",
    "PaymentState",
    "create_payment_proof",
    "x402_fetch",
    # Server
    "X402Server",
    "PaymentCache",
    "PaymentGuard",
    "GuardDecision",
]
