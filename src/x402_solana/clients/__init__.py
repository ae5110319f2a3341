"""
x402 Clients
"""

from x402_solana.clients.x402_client import (
    PaymentFlow,
    PaymentState,
    X402Client,
    create_payment_proof,
)
from x402_solana.clients.x402_http_client import X402HttpClient, x402_fetch

__all__ = [
    "X402Client",
    "X402HttpClient",
    "PaymentFlow",
    "PaymentState",
    "create_payment_proof",
    "x402_fetch",
]
