"""
X402Client - Core payment client for x402 on Solana
"""

import logging
from enum import Enum
from typing import Any, Optional

from x402_solana.config import ClientConfig
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.signers import ClientSigner, ensure_signer
from x402_solana.types import PaymentProof, PaymentRequirements
from x402_solana.utils.solana_client import LedgerClient, create_solana_client
from x402_solana.utils.submission import confirm_transaction, submit_transaction
from x402_solana.utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)


class PaymentState(str, Enum):
    """States of a single paid request"""

    INITIAL = "INITIAL"
    REQUESTED = "REQUESTED"
    CHALLENGED = "CHALLENGED"
    PAYING = "PAYING"
    SUBMITTED = "SUBMITTED"
    CONFIRMING = "CONFIRMING"
    RETRYING = "RETRYING"
    DONE = "DONE"
    FAILED = "FAILED"


_TRANSITIONS: dict[PaymentState, frozenset[PaymentState]] = {
    PaymentState.INITIAL: frozenset({PaymentState.REQUESTED}),
    # DONE straight from REQUESTED: non-402 response, or auto payment disabled
    PaymentState.REQUESTED: frozenset({PaymentState.CHALLENGED, PaymentState.DONE}),
    PaymentState.CHALLENGED: frozenset({PaymentState.PAYING}),
    # RETRYING straight from PAYING: proof supplied by an out-of-band payer
    PaymentState.PAYING: frozenset({PaymentState.SUBMITTED, PaymentState.RETRYING}),
    PaymentState.SUBMITTED: frozenset({PaymentState.CONFIRMING}),
    PaymentState.CONFIRMING: frozenset({PaymentState.RETRYING}),
    PaymentState.RETRYING: frozenset({PaymentState.DONE}),
    PaymentState.DONE: frozenset(),
    PaymentState.FAILED: frozenset(),
}


class PaymentFlow:
    """
    Tracks the protocol state of one request.

    ``history`` records every state entered, starting with INITIAL.
    FAILED is reachable from any non-terminal state.
    """

    def __init__(self, method: str, url: str) -> None:
        self.method = method
        self.url = url
        self.state = PaymentState.INITIAL
        self.history: list[PaymentState] = [PaymentState.INITIAL]
        self.requirements: Optional[PaymentRequirements] = None
        self.proof: Optional[PaymentProof] = None
        self.signature: Optional[str] = None
        self.error: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (PaymentState.DONE, PaymentState.FAILED)

    def transition(self, state: PaymentState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid payment state transition {self.state.value} -> {state.value}"
            )
        logger.info(f"[{self.method} {self.url}] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException) -> None:
        if self.is_terminal:
            return
        logger.info(f"[{self.method} {self.url}] {self.state.value} -> FAILED: {error}")
        self.error = error
        self.state = PaymentState.FAILED
        self.history.append(PaymentState.FAILED)


class X402Client:
    """
    Core payment client.

    Builds, signs, submits and confirms the transfer that satisfies a set of
    payment requirements, then returns the proof to attach to the retry.
    Submission is never retried: a resubmitted transaction with an unknown
    outcome could pay twice.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        signer: ClientSigner | None = None,
        ledger: LedgerClient | None = None,
    ) -> None:
        """
        Initialize X402Client.

        Args:
            config: Client configuration (defaults to devnet)
            signer: Default signer; requests without one cannot pay
            ledger: Ledger client; defaults to a JSON-RPC client for config.network
        """
        self._config = config or ClientConfig()
        self._signer = ensure_signer(signer) if signer is not None else None
        self._owns_ledger = ledger is None
        self._ledger = ledger or create_solana_client(
            self._config.network, self._config.rpc_endpoint, timeout=self._config.rpc_timeout
        )
        self._builder = TransactionBuilder(self._ledger)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def signer(self) -> ClientSigner | None:
        return self._signer

    async def execute_payment(
        self,
        requirements: PaymentRequirements,
        signer: ClientSigner | None = None,
        flow: PaymentFlow | None = None,
    ) -> PaymentProof:
        """
        Pay the given requirements.

        Args:
            requirements: Parsed payment requirements
            signer: Signer for this payment; defaults to the client signer
            flow: Flow to record PAYING/SUBMITTED/CONFIRMING transitions on

        Returns:
            PaymentProof for the confirmed transaction

        Raises:
            X402Error(PAYMENT_REQUIRED): no signer available; details carry the requirements
            X402Error(UNSUPPORTED_NETWORK): requirements target another network
            X402Error(TRANSACTION_FAILED): build or sign failed (cause chained),
                or the transaction failed on-chain
            X402Error(SUBMISSION_FAILED / CONFIRMATION_FAILED): transport failures
        """
        signer = signer or self._signer
        if signer is None:
            raise X402Error(
                ErrorKind.PAYMENT_REQUIRED,
                "Payment required but no signer is configured",
                details=requirements,
            )
        signer = ensure_signer(signer)

        if requirements.network != self._config.network:
            raise X402Error(
                ErrorKind.UNSUPPORTED_NETWORK,
                f"Requirements target {requirements.network}, "
                f"client is configured for {self._config.network}",
                details=requirements,
            )

        if flow is not None:
            flow.transition(PaymentState.PAYING)

        try:
            unsigned = await self._builder.build_transfer(requirements, signer.address())
            signed = await signer.sign(unsigned)
        except X402Error as e:
            raise X402Error(
                ErrorKind.TRANSACTION_FAILED,
                f"Failed to create payment transaction: {e.message}",
                details=e,
            ) from e
        except Exception as e:
            raise X402Error(
                ErrorKind.TRANSACTION_FAILED,
                f"Failed to create payment transaction: {e}",
                details=e,
            ) from e

        signature = await submit_transaction(self._ledger, signed)
        if flow is not None:
            flow.signature = signature
            flow.transition(PaymentState.SUBMITTED)
            flow.transition(PaymentState.CONFIRMING)

        confirmed = await confirm_transaction(
            self._ledger,
            signature,
            commitment=self._config.commitment,
            timeout=self._config.confirmation_timeout,
            poll_interval=self._config.poll_interval,
        )
        if not confirmed:
            raise X402Error(
                ErrorKind.TRANSACTION_FAILED,
                f"Payment transaction {signature} failed on-chain",
                details={"signature": signature},
            )

        logger.info(f"Payment {signature} confirmed at {self._config.commitment.value}")
        return PaymentProof.create(signature, requirements)

    async def close(self) -> None:
        """Close the ledger client if this client created it"""
        if self._owns_ledger:
            await self._ledger.close()

    async def __aenter__(self) -> "X402Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def create_payment_proof(
    requirements: PaymentRequirements,
    signer: ClientSigner,
    config: ClientConfig | None = None,
    ledger: LedgerClient | None = None,
) -> PaymentProof:
    """Pay requirements out-of-band and return the proof for the retry"""
    config = config or ClientConfig(network=requirements.network)
    async with X402Client(config, signer, ledger) as client:
        return await client.execute_payment(requirements)
