"""
Transaction submission and confirmation
"""

import asyncio
import logging

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.types import Commitment, TransactionStatus
from x402_solana.utils.solana_client import LedgerClient

logger = logging.getLogger(__name__)


async def submit_transaction(ledger: LedgerClient, signed_transaction: bytes) -> str:
    """
    Submit a signed, serialized transaction.

    Returns:
        Transaction signature (base58)

    Raises:
        X402Error(SUBMISSION_FAILED): any transport or RPC error, chained to its cause
    """
    try:
        signature = await ledger.send_raw_transaction(signed_transaction)
    except X402Error as e:
        raise X402Error(
            ErrorKind.SUBMISSION_FAILED, f"Failed to submit transaction: {e.message}", details=e
        ) from e
    except Exception as e:
        raise X402Error(
            ErrorKind.SUBMISSION_FAILED, f"Failed to submit transaction: {e}", details=e
        ) from e

    logger.info(f"Transaction submitted: {signature}")
    return signature


async def _wait_for_commitment(
    ledger: LedgerClient,
    signature: str,
    commitment: Commitment,
    poll_interval: float,
) -> bool:
    while True:
        status = await ledger.get_signature_status(signature)
        if status is not None:
            if status.err is not None:
                logger.warning(f"Transaction {signature} failed on-chain: {status.err}")
                return False
            if status.confirmation_status is not None and status.confirmation_status.satisfies(
                commitment
            ):
                logger.info(
                    f"Transaction {signature} reached {status.confirmation_status.value} "
                    f"(slot {status.slot})"
                )
                return True
        await asyncio.sleep(poll_interval)


async def confirm_transaction(
    ledger: LedgerClient,
    signature: str,
    commitment: Commitment = Commitment.CONFIRMED,
    timeout: float = 60.0,
    poll_interval: float = 0.5,
) -> bool:
    """
    Wait until the ledger reports the transaction at or above ``commitment``.

    Cancelling the awaiting task cancels the polling loop.

    Returns:
        True once the commitment level is reached, False if the transaction
        executed but failed on-chain

    Raises:
        X402Error(CONFIRMATION_FAILED): status query failed or ``timeout`` elapsed
    """
    commitment = Commitment(commitment)
    logger.info(f"Confirming transaction {signature} at {commitment.value} commitment")
    try:
        return await asyncio.wait_for(
            _wait_for_commitment(ledger, signature, commitment, poll_interval),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise X402Error(
            ErrorKind.CONFIRMATION_FAILED,
            f"Transaction {signature} not confirmed within {timeout}s",
            details={"signature": signature},
        ) from e
    except X402Error as e:
        raise X402Error(
            ErrorKind.CONFIRMATION_FAILED,
            f"Failed to confirm transaction {signature}: {e.message}",
            details={"signature": signature, "cause": e},
        ) from e
    except Exception as e:
        raise X402Error(
            ErrorKind.CONFIRMATION_FAILED,
            f"Failed to confirm transaction {signature}: {e}",
            details={"signature": signature, "cause": e},
        ) from e


async def get_transaction_status(ledger: LedgerClient, signature: str) -> TransactionStatus:
    """
    Current status of a transaction.

    Returns:
        "pending" if unseen or only processed, "confirmed", "finalized",
        or "failed" if it executed with an error
    """
    status = await ledger.get_signature_status(signature)
    if status is None:
        return "pending"
    if status.err is not None:
        return "failed"
    if status.confirmation_status is Commitment.FINALIZED:
        return "finalized"
    if status.confirmation_status is Commitment.CONFIRMED:
        return "confirmed"
    return "pending"
