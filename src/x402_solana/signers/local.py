"""
LocalSigner - in-process keypair signer
"""

import json
import logging
from typing import Sequence, Union

from solders.keypair import Keypair
from solders.transaction import Transaction

from x402_solana.signers.base import ClientSigner, SignerKind

logger = logging.getLogger(__name__)

SecretKey = Union[bytes, Sequence[int], str]


class LocalSigner(ClientSigner):
    """Signs transactions with a keypair held in memory"""

    kind = SignerKind.LOCAL

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair
        self._address = str(keypair.pubkey())
        logger.debug("LocalSigner initialized", extra={"address": self._address})

    @classmethod
    def from_secret_key(cls, secret_key: SecretKey) -> "LocalSigner":
        """
        Create signer from a secret key.

        Accepts 64 raw keypair bytes or a 32-byte seed, a list of ints
        (the Solana CLI keypair file format), that list as a JSON string,
        or a base58-encoded keypair.
        """
        if isinstance(secret_key, str):
            stripped = secret_key.strip()
            if stripped.startswith("["):
                secret_key = json.loads(stripped)
            else:
                return cls(Keypair.from_base58_string(stripped))

        raw = bytes(secret_key)
        if len(raw) == 32:
            return cls(Keypair.from_seed(raw))
        if len(raw) == 64:
            return cls(Keypair.from_bytes(raw))
        raise ValueError(f"Secret key must be 32 or 64 bytes, got {len(raw)}")

    @classmethod
    def generate(cls) -> "LocalSigner":
        """Create signer with a fresh random keypair"""
        return cls(Keypair())

    def address(self) -> str:
        return self._address

    async def sign(self, transaction: Transaction) -> bytes:
        message = transaction.message
        signed = Transaction([self._keypair], message, message.recent_blockhash)
        logger.debug(f"Signed transaction {signed.signatures[0]} as {self._address}")
        return bytes(signed)
