"""
X402 Utility Functions
"""

from x402_solana.utils.request_id import generate_request_id
from x402_solana.utils.solana_client import (
    LedgerClient,
    SolanaRpcClient,
    create_solana_client,
    get_associated_token_address,
)
from x402_solana.utils.submission import (
    confirm_transaction,
    get_transaction_status,
    submit_transaction,
)
from x402_solana.utils.transactions import TransactionBuilder, UnsignedTransaction
from x402_solana.utils.tx_verification import PaymentVerifier, VerificationResult

__all__ = [
    "generate_request_id",
    # Ledger client
    "LedgerClient",
    "SolanaRpcClient",
    "create_solana_client",
    "get_associated_token_address",
    # Transactions
    "TransactionBuilder",
    "UnsignedTransaction",
    "submit_transaction",
    "confirm_transaction",
    "get_transaction_status",
    # Verification
    "PaymentVerifier",
    "VerificationResult",
]
