"""
PaymentGuard - framework-agnostic request interceptor

Every verification failure becomes a uniform 402 carrying fresh payment
requirements. Only unexpected internal faults produce a 500.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from x402_solana.config import PAYMENT_HEADER
from x402_solana.encoding import decode_payment_proof, encode_payment_requirements
from x402_solana.exceptions import X402Error
from x402_solana.server.x402_server import X402Server
from x402_solana.tokens import TokenRegistry, base_units_to_amount
from x402_solana.types import PaymentOptions, PaymentProof, PaymentRequirements, VerifiedPayment

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERNAL_ERROR_BODY = {"error": "Internal server error"}


@dataclass
class GuardDecision:
    """Outcome of evaluating a request"""

    status_code: int
    body: Optional[dict[str, Any]] = None
    payment: Optional[VerifiedPayment] = None

    @property
    def allowed(self) -> bool:
        return self.payment is not None


class PaymentGuard:
    """
    Guards a resource priced by ``options``.

    Usage:
        guard = PaymentGuard(server, PaymentOptions(amount="0.001", token="SOL"))
        decision = await guard.evaluate(request_headers)
    """

    def __init__(self, server: X402Server, options: PaymentOptions) -> None:
        self._server = server
        self._options = options

    async def evaluate(self, headers: Mapping[str, str]) -> GuardDecision:
        try:
            requirements = self._server.create_payment_requirements(self._options)
        except X402Error as e:
            logger.error(f"Cannot build payment requirements: {e.message}")
            return GuardDecision(status_code=500, body=dict(INTERNAL_ERROR_BODY))

        header = _get_header(headers, PAYMENT_HEADER)
        if not header:
            logger.info("No payment header, responding 402")
            return self._payment_required(requirements)

        try:
            proof = decode_payment_proof(header)
        except X402Error as e:
            logger.warning(f"Invalid payment proof: {e.message}")
            return self._payment_required(requirements)

        try:
            verified = await self._server.verify_payment(proof, requirements)
        except X402Error as e:
            logger.warning(f"Payment verification for {proof.signature} did not complete: {e}")
            return self._payment_required(requirements)
        except Exception:
            logger.exception(f"Unexpected error verifying {proof.signature}")
            return GuardDecision(status_code=500, body=dict(INTERNAL_ERROR_BODY))

        if not verified:
            return self._payment_required(requirements)

        logger.info(f"Payment {proof.signature} accepted")
        return GuardDecision(status_code=200, payment=self._verified_payment(proof, requirements))

    async def intercept(
        self,
        headers: Mapping[str, str],
        reject: Callable[[int, dict[str, Any]], Awaitable[T]],
        proceed: Callable[[VerifiedPayment], Awaitable[T]],
    ) -> T:
        """Evaluate the request, then call ``proceed`` with the payment or ``reject``"""
        decision = await self.evaluate(headers)
        if decision.allowed:
            return await proceed(decision.payment)
        return await reject(decision.status_code, decision.body or {})

    def _payment_required(self, requirements: PaymentRequirements) -> GuardDecision:
        return GuardDecision(status_code=402, body=encode_payment_requirements(requirements))

    def _verified_payment(
        self, proof: PaymentProof, requirements: PaymentRequirements
    ) -> VerifiedPayment:
        token = TokenRegistry.get_token(requirements.network, requirements.token)
        return VerifiedPayment(
            proof=proof,
            requirements=requirements,
            amount=base_units_to_amount(requirements.base_units, token.decimals),
            token=token.symbol,
        )


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None
