"""
FastAPI middleware for x402 payment processing
"""

from functools import wraps
from typing import Any, Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from x402_solana.server import PaymentGuard, X402Server
from x402_solana.types import PaymentOptions, VerifiedPayment


class X402Middleware:
    """
    FastAPI middleware for automatic 402 payment handling.

    Usage:
        app = FastAPI()
        server = X402Server(ServerConfig(recipient_address="..."))
        middleware = X402Middleware(server)

        @app.get("/protected")
        @middleware.protect(amount="0.001", token="SOL")
        async def protected_endpoint(request: Request):
            return {"paid_by": request.state.payment.proof.signature}
    """

    def __init__(self, server: X402Server) -> None:
        self._server = server

    def protect(
        self,
        amount: str,
        token: str = "SOL",
        memo: Optional[str] = None,
        deadline: Optional[int] = None,
    ) -> Callable:
        """
        Decorator to protect endpoints with payment requirements.

        The endpoint must accept ``request: Request``; the verified payment is
        available as ``request.state.payment``.

        Args:
            amount: Price in display units (e.g., "0.001")
            token: Token symbol registered on the server network
            memo: Memo the payment transaction must carry
            deadline: Unix timestamp (seconds) after which proofs are rejected

        Returns:
            Decorated function
        """
        guard = PaymentGuard(
            self._server,
            PaymentOptions(amount=amount, token=token, memo=memo, deadline=deadline),
        )

        def decorator(func: Callable) -> Callable:
            @wraps(func)
            async def wrapper(request: Request, *args: Any, **kwargs: Any) -> Response:
                async def reject(status_code: int, body: dict[str, Any]) -> Response:
                    return JSONResponse(content=body, status_code=status_code)

                async def proceed(payment: VerifiedPayment) -> Response:
                    request.state.payment = payment
                    response = await func(request, *args, **kwargs)
                    if isinstance(response, Response):
                        return response
                    return JSONResponse(content=response)

                return await guard.intercept(request.headers, reject, proceed)

            return wrapper

        return decorator


def x402_protected(server: X402Server, amount: str, token: str = "SOL", **kwargs: Any) -> Callable:
    """
    Convenience decorator to protect an endpoint.

    Usage:
        @app.get("/protected")
        @x402_protected(server, amount="1.5", token="USDC")
        async def protected_endpoint(request: Request):
            return {"data": "secret"}
    """
    middleware = X402Middleware(server)
    return middleware.protect(amount=amount, token=token, **kwargs)
