"""
x402 Server
"""

from x402_solana.server.cache import PaymentCache, PaymentTerms
from x402_solana.server.guard import GuardDecision, PaymentGuard
from x402_solana.server.x402_server import X402Server

__all__ = ["X402Server", "PaymentCache", "PaymentTerms", "PaymentGuard", "GuardDecision"]
