"""
x402 error type

All failures raised by the SDK are ``X402Error`` instances tagged with an
``ErrorKind``. Context (requirements, signature, underlying transport error)
travels in ``details``; wrapped causes are chained via ``__cause__``.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error taxonomy"""

    # Local, deterministic input errors (never retried)
    MALFORMED_AMOUNT = "MALFORMED_AMOUNT"
    INVALID_REQUIREMENTS = "INVALID_REQUIREMENTS"
    INVALID_PAYMENT_PROOF = "INVALID_PAYMENT_PROOF"
    MISSING_SOURCE_ACCOUNT = "MISSING_SOURCE_ACCOUNT"
    AMOUNT_OUT_OF_RANGE = "AMOUNT_OUT_OF_RANGE"

    # Transport-class errors (caller may retry the whole payment attempt)
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    CONFIRMATION_FAILED = "CONFIRMATION_FAILED"
    RPC_ERROR = "RPC_ERROR"

    # Protocol outcomes
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"

    # Configuration
    UNSUPPORTED_NETWORK = "UNSUPPORTED_NETWORK"
    UNKNOWN_TOKEN = "UNKNOWN_TOKEN"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


_TRANSIENT_KINDS = frozenset(
    {
        ErrorKind.RPC_ERROR,
        ErrorKind.SUBMISSION_FAILED,
        ErrorKind.CONFIRMATION_FAILED,
    }
)


class X402Error(Exception):
    """x402 exception tagged with an ErrorKind"""

    def __init__(self, kind: ErrorKind, message: str, details: Any = None) -> None:
        self.kind = kind
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        """True for transport-class failures where retrying the attempt may succeed"""
        return self.kind in _TRANSIENT_KINDS

    @property
    def requirements(self) -> Any:
        """Payment requirements carried by a PAYMENT_REQUIRED error, else None"""
        if self.kind is ErrorKind.PAYMENT_REQUIRED:
            return self.details
        return None

    def __repr__(self) -> str:
        return f"X402Error(kind={self.kind.value}, message={self.message!r})"
