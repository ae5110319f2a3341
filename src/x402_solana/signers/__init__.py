"""
Client Signers
"""

from x402_solana.signers.base import ClientSigner, SignerKind, ensure_signer
from x402_solana.signers.local import LocalSigner
from x402_solana.signers.remote import RemoteSigner

__all__ = ["ClientSigner", "SignerKind", "ensure_signer", "LocalSigner", "RemoteSigner"]
