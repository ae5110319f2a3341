"""
Client signer base interface
"""

from abc import ABC, abstractmethod
from enum import Enum

from solders.transaction import Transaction


class SignerKind(str, Enum):
    """How a signer produces signatures"""

    LOCAL = "local"  # holds the secret key in-process
    REMOTE = "remote"  # delegates to an external agent (e.g., a wallet)


class ClientSigner(ABC):
    """
    Abstract base class for client signers.

    Every signer declares its ``kind`` explicitly; callers classify signers by
    this tag, never by inspecting attributes.
    """

    kind: SignerKind

    @abstractmethod
    def address(self) -> str:
        """Get the signer's account address (base58)"""
        pass

    @abstractmethod
    async def sign(self, transaction: Transaction) -> bytes:
        """
        Sign an unsigned transaction.

        Args:
            transaction: Transaction whose fee payer is this signer

        Returns:
            Serialized signed transaction, ready for submission
        """
        pass


def ensure_signer(signer: object) -> ClientSigner:
    """Return ``signer`` if it is a tagged ClientSigner, else raise TypeError"""
    if not isinstance(signer, ClientSigner) or not isinstance(
        getattr(signer, "kind", None), SignerKind
    ):
        raise TypeError(f"Not a ClientSigner: {type(signer).__name__}")
    return signer
