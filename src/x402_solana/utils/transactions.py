"""
Transaction builder for x402 payments

Builds an unsigned transfer transaction (native SOL or SPL token) that
satisfies a set of payment requirements.
"""

import logging

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from spl.memo.constants import MEMO_PROGRAM_ID
from spl.memo.instructions import MemoParams, create_memo
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    create_associated_token_account,
    transfer_checked,
)

from x402_solana.config import NetworkConfig
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.tokens import TokenInfo, TokenRegistry
from x402_solana.types import SCHEME_EXACT, PaymentRequirements
from x402_solana.utils.solana_client import LedgerClient, get_associated_token_address

logger = logging.getLogger(__name__)

# Unsigned transactions are solders Transactions with empty signature slots
UnsignedTransaction = Transaction


class TransactionBuilder:
    """
    Builds unsigned payment transactions.

    The fee payer is always the payer, and the recent blockhash is fetched as
    the last step so the transaction is as fresh as possible when signed.
    """

    def __init__(self, ledger: LedgerClient) -> None:
        self._ledger = ledger

    async def build_transfer(
        self,
        requirements: PaymentRequirements,
        payer_address: str,
    ) -> UnsignedTransaction:
        """
        Build an unsigned transfer for the given requirements.

        Args:
            requirements: Payment requirements from the 402 challenge
            payer_address: Base58 address of the paying account

        Returns:
            Unsigned transaction with blockhash and fee payer set

        Raises:
            X402Error(INVALID_REQUIREMENTS): scheme other than "exact"
            X402Error(AMOUNT_OUT_OF_RANGE): amount exceeds the u64 instruction field
            X402Error(MISSING_SOURCE_ACCOUNT): payer has no token account for the mint
            X402Error(RPC_ERROR): ledger query failed
        """
        if requirements.scheme != SCHEME_EXACT:
            raise X402Error(
                ErrorKind.INVALID_REQUIREMENTS,
                f"Payment scheme '{requirements.scheme}' is not supported",
                details=requirements,
            )

        amount = requirements.base_units
        if amount > NetworkConfig.MAX_TRANSFER_AMOUNT:
            raise X402Error(
                ErrorKind.AMOUNT_OUT_OF_RANGE,
                f"Amount {amount} exceeds the maximum transferable amount "
                f"{NetworkConfig.MAX_TRANSFER_AMOUNT}",
                details=requirements,
            )

        payer = Pubkey.from_string(payer_address)
        recipient = Pubkey.from_string(requirements.recipient)
        token = TokenRegistry.get_token(requirements.network, requirements.token)

        if token.is_native:
            instructions = self._native_instructions(payer, recipient, amount)
        else:
            instructions = await self._token_instructions(payer, recipient, amount, token)

        if requirements.memo:
            instructions.append(
                create_memo(
                    MemoParams(
                        program_id=MEMO_PROGRAM_ID,
                        signer=payer,
                        message=requirements.memo.encode("utf-8"),
                    )
                )
            )

        blockhash = await self._ledger.get_latest_blockhash()
        message = Message.new_with_blockhash(instructions, payer, Hash.from_string(blockhash))

        logger.info(
            "Built %s payment transaction: %s %s -> %s (%d instruction(s))",
            token.symbol,
            requirements.amount,
            payer_address,
            requirements.recipient,
            len(instructions),
        )
        return Transaction.new_unsigned(message)

    def _native_instructions(
        self,
        payer: Pubkey,
        recipient: Pubkey,
        lamports: int,
    ) -> list[Instruction]:
        return [transfer(TransferParams(from_pubkey=payer, to_pubkey=recipient, lamports=lamports))]

    async def _token_instructions(
        self,
        payer: Pubkey,
        recipient: Pubkey,
        amount: int,
        token: TokenInfo,
    ) -> list[Instruction]:
        mint = Pubkey.from_string(token.mint)
        source = get_associated_token_address(str(payer), token.mint)
        destination = get_associated_token_address(str(recipient), token.mint)

        if not await self._ledger.account_exists(source):
            raise X402Error(
                ErrorKind.MISSING_SOURCE_ACCOUNT,
                f"Payer does not have an associated token account for {token.symbol}. "
                f"Please create one first at address: {source}",
                details={"owner": str(payer), "mint": token.mint, "account": source},
            )

        instructions: list[Instruction] = []
        if not await self._ledger.account_exists(destination):
            logger.info(
                "Recipient token account %s does not exist, adding create instruction",
                destination,
            )
            instructions.append(create_associated_token_account(payer, recipient, mint))

        instructions.append(
            transfer_checked(
                TransferCheckedParams(
                    program_id=TOKEN_PROGRAM_ID,
                    source=Pubkey.from_string(source),
                    mint=mint,
                    dest=Pubkey.from_string(destination),
                    owner=payer,
                    amount=amount,
                    decimals=token.decimals,
                    signers=[],
                )
            )
        )
        return instructions
