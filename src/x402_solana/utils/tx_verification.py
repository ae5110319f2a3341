"""
Payment verification against the ledger

Every accepted fact (recipient, amount) is re-derived from the ledger's
pre/post balances; nothing the client declares is trusted.
"""

import logging
from typing import NamedTuple

from x402_solana.config import NetworkConfig
from x402_solana.tokens import TokenInfo, TokenRegistry
from x402_solana.types import (
    Commitment,
    LedgerTransaction,
    PaymentRequirements,
    TokenBalance,
)
from x402_solana.utils.solana_client import LedgerClient, get_associated_token_address


class VerificationResult(NamedTuple):
    """Verifier verdict; ``final`` is False when a later retry may succeed"""

    verified: bool
    final: bool = True


NOT_FINAL = VerificationResult(verified=False, final=False)
ACCEPTED = VerificationResult(verified=True)
REJECTED = VerificationResult(verified=False)


class PaymentVerifier:
    """
    Verifies that a transaction pays the given requirements.

    Checks run in order and short-circuit on the first failure:
    existence, on-chain success, finality depth (finalized only),
    recipient presence, then the recipient's balance delta.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        finality_depth: int = NetworkConfig.FINALITY_DEPTH,
    ) -> None:
        self._ledger = ledger
        self._finality_depth = finality_depth
        self._logger = logging.getLogger(self.__class__.__name__)

    async def verify(
        self,
        signature: str,
        requirements: PaymentRequirements,
        commitment: Commitment = Commitment.CONFIRMED,
    ) -> bool:
        """
        Verify a payment transaction.

        Args:
            signature: Transaction signature from the payment proof
            requirements: Requirements the payment must satisfy
            commitment: Commitment level to read the transaction at

        Returns:
            True if the transaction pays at least the required amount to the
            recipient, False otherwise

        Raises:
            X402Error(RPC_ERROR): a ledger query failed; no verdict was reached
        """
        result = await self.evaluate(signature, requirements, commitment)
        return result.verified

    async def evaluate(
        self,
        signature: str,
        requirements: PaymentRequirements,
        commitment: Commitment = Commitment.CONFIRMED,
    ) -> VerificationResult:
        """Same checks as ``verify``, reporting whether a rejection is final"""
        commitment = Commitment(commitment)
        if commitment is Commitment.PROCESSED:
            # getTransaction does not serve processed transactions
            commitment = Commitment.CONFIRMED

        self._logger.info(
            f"Verifying {signature}: {requirements.amount} {requirements.token} "
            f"-> {requirements.recipient} at {commitment.value}"
        )

        tx = await self._ledger.get_transaction(signature, commitment)
        if tx is None:
            self._logger.error(f"Rejected {signature}: transaction not found")
            return REJECTED

        if tx.meta is None:
            self._logger.error(f"Rejected {signature}: transaction has no metadata")
            return REJECTED

        if tx.meta.err is not None:
            self._logger.error(f"Rejected {signature}: transaction failed on-chain: {tx.meta.err}")
            return REJECTED

        if commitment is Commitment.FINALIZED:
            head = await self._ledger.get_slot(Commitment.FINALIZED)
            depth = head - tx.slot
            if depth < self._finality_depth:
                self._logger.warning(
                    f"Rejected {signature}: only {depth} slot(s) behind head, "
                    f"need {self._finality_depth}; not final yet"
                )
                return NOT_FINAL

        token = TokenRegistry.get_token(requirements.network, requirements.token)
        if token.is_native:
            verified = self._verify_native(signature, tx, requirements)
        else:
            verified = self._verify_token(signature, tx, requirements, token)
        return ACCEPTED if verified else REJECTED

    def _verify_native(
        self,
        signature: str,
        tx: LedgerTransaction,
        requirements: PaymentRequirements,
    ) -> bool:
        keys = tx.account_keys()
        if requirements.recipient not in keys:
            self._logger.error(f"Rejected {signature}: recipient not among transaction accounts")
            return False

        index = keys.index(requirements.recipient)
        pre = tx.meta.pre_balances
        post = tx.meta.post_balances
        if index >= len(pre) or index >= len(post):
            self._logger.error(f"Rejected {signature}: recipient balance missing from metadata")
            return False

        return self._check_delta(signature, post[index] - pre[index], requirements.base_units)

    def _verify_token(
        self,
        signature: str,
        tx: LedgerTransaction,
        requirements: PaymentRequirements,
        token: TokenInfo,
    ) -> bool:
        recipient_ata = get_associated_token_address(requirements.recipient, token.mint)
        if recipient_ata not in tx.account_keys():
            self._logger.error(
                f"Rejected {signature}: recipient token account {recipient_ata} "
                "not among transaction accounts"
            )
            return False

        post = _find_balance(tx.meta.post_token_balances, requirements.recipient, token.mint)
        if post is None:
            self._logger.error(
                f"Rejected {signature}: recipient received no {token.symbol} in this transaction"
            )
            return False

        pre = _find_balance(tx.meta.pre_token_balances, requirements.recipient, token.mint)
        pre_amount = pre.raw_amount if pre is not None else 0
        return self._check_delta(signature, post.raw_amount - pre_amount, requirements.base_units)

    def _check_delta(self, signature: str, delta: int, required: int) -> bool:
        if delta < required:
            self._logger.error(
                f"Rejected {signature}: recipient received {delta}, required {required}"
            )
            return False
        self._logger.info(f"Verified {signature}: recipient received {delta} (required {required})")
        return True


def _find_balance(
    balances: list[TokenBalance] | None,
    owner: str,
    mint: str,
) -> TokenBalance | None:
    for balance in balances or []:
        if balance.owner == owner and balance.mint == mint:
            return balance
    return None
