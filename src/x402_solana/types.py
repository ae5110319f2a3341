"""
Type definitions for the x402 protocol on Solana
"""

import re
import time
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from solders.pubkey import Pubkey

SCHEME_EXACT = "exact"
SCHEME_UPTO = "upto"

PaymentScheme = Literal["exact", "upto"]
Network = Literal["mainnet-beta", "devnet", "testnet"]
TransactionStatus = Literal["pending", "confirmed", "finalized", "failed"]

_BASE_UNITS_RE = re.compile(r"^[0-9]+$")

# Significant digits an amount may carry (enough for any u256 value)
MAX_AMOUNT_DIGITS = 78


class Commitment(str, Enum):
    """Ledger commitment levels, ordered processed < confirmed < finalized"""

    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def rank(self) -> int:
        return _COMMITMENT_RANK[self]

    def satisfies(self, required: "Commitment") -> bool:
        """True if this level is at or above the required level"""
        return self.rank >= required.rank


_COMMITMENT_RANK = {
    Commitment.PROCESSED: 0,
    Commitment.CONFIRMED: 1,
    Commitment.FINALIZED: 2,
}


def is_valid_address(address: str) -> bool:
    """Check that a string is a base58-encoded 32-byte public key"""
    try:
        Pubkey.from_string(address)
    except (ValueError, TypeError):
        return False
    return True


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class PaymentRequirements(BaseModel):
    """Payment requirements sent by the server in a 402 response body"""

    scheme: PaymentScheme
    network: Network
    amount: str  # base units, arbitrary-precision integer string
    token: str
    recipient: str
    memo: Optional[str] = None
    deadline: Optional[int] = None  # unix seconds
    request_id: Optional[str] = Field(None, alias="requestId")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: str) -> str:
        if not _BASE_UNITS_RE.match(value):
            raise ValueError("amount must be a non-negative integer string in base units")
        if len(value.lstrip("0")) > MAX_AMOUNT_DIGITS:
            raise ValueError(f"amount exceeds {MAX_AMOUNT_DIGITS} digits")
        return value

    @field_validator("token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("token must be non-empty")
        return value.strip().upper()

    @field_validator("recipient")
    @classmethod
    def _check_recipient(cls, value: str) -> str:
        if not is_valid_address(value):
            raise ValueError(f"recipient is not a valid address: {value}")
        return value

    @field_validator("deadline")
    @classmethod
    def _check_deadline(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("deadline must be a unix timestamp")
        return value

    @model_validator(mode="after")
    def _check_token_known(self) -> "PaymentRequirements":
        from x402_solana.tokens import TokenRegistry

        if not TokenRegistry.has_token(self.network, self.token):
            raise ValueError(f"unknown token {self.token} on network {self.network}")
        return self

    @property
    def base_units(self) -> int:
        return int(self.amount.lstrip("0") or "0")


class PaymentProof(BaseModel):
    """Payment proof sent by the client in the X-Payment header"""

    signature: str
    network: Network
    request_id: Optional[str] = Field(None, alias="requestId")
    timestamp: int  # unix milliseconds

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("signature")
    @classmethod
    def _check_signature(cls, value: str) -> str:
        from solders.signature import Signature

        try:
            Signature.from_string(value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"signature is not a valid transaction signature: {e}")
        return value

    @classmethod
    def create(
        cls,
        signature: str,
        requirements: PaymentRequirements,
        timestamp: Optional[int] = None,
    ) -> "PaymentProof":
        """Build a proof for a confirmed payment against the given requirements"""
        return cls(
            signature=signature,
            network=requirements.network,
            requestId=requirements.request_id,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        )


class PaymentOptions(BaseModel):
    """Price of a protected resource, in display units"""

    amount: str  # e.g. "0.001" SOL or "1.50" USDC
    token: str
    memo: Optional[str] = None
    deadline: Optional[int] = None
    request_id: Optional[str] = Field(None, alias="requestId")

    class Config:
        populate_by_name = True


class VerifiedPayment(BaseModel):
    """Context attached to a request whose payment was verified"""

    proof: PaymentProof
    requirements: PaymentRequirements
    verified: bool = True
    amount: str  # display units
    token: str


# ---------------------------------------------------------------------------
# Ledger response models (Solana JSON-RPC, json encoding)
# ---------------------------------------------------------------------------


class UiTokenAmount(BaseModel):
    amount: str
    decimals: int

    class Config:
        extra = "ignore"


class TokenBalance(BaseModel):
    """Token balance entry from transaction metadata"""

    account_index: int = Field(alias="accountIndex")
    mint: str
    owner: Optional[str] = None
    ui_token_amount: UiTokenAmount = Field(alias="uiTokenAmount")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @property
    def raw_amount(self) -> int:
        return int(self.ui_token_amount.amount)


class LoadedAddresses(BaseModel):
    writable: list[str] = Field(default_factory=list)
    readonly: list[str] = Field(default_factory=list)


class TransactionMeta(BaseModel):
    """Execution metadata with pre/post balances"""

    err: Any = None
    fee: int = 0
    pre_balances: list[int] = Field(default_factory=list, alias="preBalances")
    post_balances: list[int] = Field(default_factory=list, alias="postBalances")
    pre_token_balances: Optional[list[TokenBalance]] = Field(None, alias="preTokenBalances")
    post_token_balances: Optional[list[TokenBalance]] = Field(None, alias="postTokenBalances")
    loaded_addresses: Optional[LoadedAddresses] = Field(None, alias="loadedAddresses")

    class Config:
        populate_by_name = True
        extra = "ignore"


class TransactionMessage(BaseModel):
    account_keys: list[str] = Field(alias="accountKeys")

    class Config:
        populate_by_name = True
        extra = "ignore"


class EncodedTransaction(BaseModel):
    signatures: list[str] = Field(default_factory=list)
    message: TransactionMessage

    class Config:
        extra = "ignore"


class LedgerTransaction(BaseModel):
    """Confirmed transaction as reported by the ledger"""

    slot: int
    block_time: Optional[int] = Field(None, alias="blockTime")
    meta: Optional[TransactionMeta] = None
    transaction: EncodedTransaction

    class Config:
        populate_by_name = True
        extra = "ignore"

    def account_keys(self) -> list[str]:
        """All account keys in balance-index order (static, then loaded writable, readonly)"""
        keys = list(self.transaction.message.account_keys)
        if self.meta and self.meta.loaded_addresses:
            keys.extend(self.meta.loaded_addresses.writable)
            keys.extend(self.meta.loaded_addresses.readonly)
        return keys


class SignatureStatus(BaseModel):
    """Signature status as reported by getSignatureStatuses"""

    slot: int
    confirmations: Optional[int] = None
    err: Any = None
    confirmation_status: Optional[Commitment] = Field(None, alias="confirmationStatus")

    class Config:
        populate_by_name = True
        extra = "ignore"
