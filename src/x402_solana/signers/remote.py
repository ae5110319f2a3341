"""
RemoteSigner - delegates signing to an external agent
"""

import logging
from typing import Awaitable, Callable, Union

from solders.transaction import Transaction

from x402_solana.signers.base import ClientSigner, SignerKind

logger = logging.getLogger(__name__)

SignTransaction = Callable[[Transaction], Awaitable[Union[Transaction, bytes]]]


class RemoteSigner(ClientSigner):
    """
    Signer backed by an external agent such as a browser wallet.

    ``sign_transaction`` receives the unsigned transaction and resolves to the
    signed transaction, either as a ``Transaction`` or already serialized.
    """

    kind = SignerKind.REMOTE

    def __init__(self, address: str, sign_transaction: SignTransaction) -> None:
        self._address = address
        self._sign_transaction = sign_transaction

    def address(self) -> str:
        return self._address

    async def sign(self, transaction: Transaction) -> bytes:
        logger.info(f"Requesting remote signature from {self._address}")
        signed = await self._sign_transaction(transaction)
        if isinstance(signed, Transaction):
            return bytes(signed)
        if isinstance(signed, (bytes, bytearray)):
            return bytes(signed)
        raise TypeError(
            f"Remote signer returned {type(signed).__name__}, expected Transaction or bytes"
        )
