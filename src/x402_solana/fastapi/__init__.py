"""
FastAPI integration for x402
"""

from x402_solana.fastapi.middleware import X402Middleware, x402_protected

__all__ = ["X402Middleware", "x402_protected"]
