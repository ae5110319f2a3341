"""
X402Server - Core payment server for x402 on Solana
"""

import logging
import time
from typing import Any

from x402_solana.config import ServerConfig
from x402_solana.server.cache import PaymentCache
from x402_solana.tokens import TokenRegistry, amount_to_base_units
from x402_solana.types import (
    SCHEME_EXACT,
    PaymentOptions,
    PaymentProof,
    PaymentRequirements,
    TransactionStatus,
)
from x402_solana.utils.request_id import generate_request_id
from x402_solana.utils.solana_client import LedgerClient, create_solana_client
from x402_solana.utils.submission import get_transaction_status
from x402_solana.utils.tx_verification import PaymentVerifier

logger = logging.getLogger(__name__)


class X402Server:
    """
    Core payment server.

    Builds payment requirements for protected resources and verifies payment
    proofs against the ledger. Owns its verification cache; the cache lives
    and dies with the server instance.
    """

    def __init__(
        self,
        config: ServerConfig,
        ledger: LedgerClient | None = None,
        cache: PaymentCache | None = None,
    ) -> None:
        """
        Initialize X402Server.

        Args:
            config: Server configuration
            ledger: Ledger client; defaults to a JSON-RPC client for config.network
            cache: Verification cache; defaults to a new cache when
                config.enable_cache is set, otherwise caching is off
        """
        self._config = config
        self._owns_ledger = ledger is None
        self._ledger = ledger or create_solana_client(
            config.network, config.rpc_endpoint, timeout=config.rpc_timeout
        )
        if cache is None and config.enable_cache:
            cache = PaymentCache(ttl=config.cache_ttl)
        self._cache = cache
        self._verifier = PaymentVerifier(self._ledger)

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def cache(self) -> PaymentCache | None:
        return self._cache

    def create_payment_requirements(self, options: PaymentOptions) -> PaymentRequirements:
        """Build payment requirements from a display-unit price.

        Args:
            options: Price, token and optional memo/deadline/request id

        Returns:
            PaymentRequirements with the amount in base units

        Raises:
            X402Error(UNKNOWN_TOKEN): token not registered on the server network
            X402Error(MALFORMED_AMOUNT): price not representable in the token's precision
        """
        token = TokenRegistry.get_token(self._config.network, options.token)
        amount = amount_to_base_units(options.amount, token.decimals)

        return PaymentRequirements(
            scheme=SCHEME_EXACT,
            network=self._config.network,
            amount=str(amount),
            token=token.symbol,
            recipient=self._config.recipient_address,
            memo=options.memo,
            deadline=options.deadline,
            requestId=options.request_id or generate_request_id(),
        )

    async def verify_payment(self, proof: PaymentProof, requirements: PaymentRequirements) -> bool:
        """
        Verify a payment proof against requirements.

        Network, deadline and clock-skew checks run locally before any ledger
        access. Final verdicts are cached together with the terms they were
        reached against; not-yet-final rejections and ledger failures are
        never cached.

        Raises:
            X402Error(RPC_ERROR): the ledger could not be queried
        """
        if proof.network != requirements.network:
            logger.error(
                f"Rejected {proof.signature}: network mismatch "
                f"(proof {proof.network}, required {requirements.network})"
            )
            return False

        if requirements.deadline is not None and proof.timestamp > requirements.deadline * 1000:
            logger.error(f"Rejected {proof.signature}: proof created after the payment deadline")
            return False

        now_ms = int(time.time() * 1000)
        if proof.timestamp > now_ms + int(self._config.max_clock_skew * 1000):
            logger.error(f"Rejected {proof.signature}: proof timestamp is in the future")
            return False

        if self._cache is not None:
            cached = self._cache.lookup(proof.signature, requirements)
            if cached is not None:
                logger.debug(f"Cache hit for {proof.signature}: {cached}")
                return cached

        result = await self._verifier.evaluate(
            proof.signature, requirements, self._config.commitment
        )

        # not-yet-final rejections must stay retryable
        if self._cache is not None and result.final:
            self._cache.set(proof.signature, result.verified, requirements)
        return result.verified

    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        """Current ledger status of a payment transaction"""
        return await get_transaction_status(self._ledger, signature)

    async def close(self) -> None:
        """Release the ledger client (if owned) and drop cached verdicts"""
        if self._cache is not None:
            self._cache.clear()
        if self._owns_ledger:
            await self._ledger.close()

    async def __aenter__(self) -> "X402Server":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
