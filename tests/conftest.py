"""
Pytest configuration and fixtures
"""

from typing import Any, Optional

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction

from x402_solana.types import (
    Commitment,
    LedgerTransaction,
    PaymentRequirements,
    SignatureStatus,
)

STARTING_BALANCE = 10_000_000_000
FEE = 5000


def make_keypair(seed: int) -> Keypair:
    return Keypair.from_seed(bytes([seed]) * 32)


def make_signature(seed: int) -> str:
    return str(Signature(bytes([seed]) * 64))


def build_ledger_transaction(
    account_keys: list[str],
    pre_balances: list[int],
    post_balances: list[int],
    slot: int = 100,
    err: Any = None,
    pre_token_balances: Optional[list[dict[str, Any]]] = None,
    post_token_balances: Optional[list[dict[str, Any]]] = None,
    signature: str = "",
) -> LedgerTransaction:
    """Build a getTransaction-shaped result"""
    return LedgerTransaction.model_validate(
        {
            "slot": slot,
            "blockTime": 1_700_000_000,
            "meta": {
                "err": err,
                "fee": FEE,
                "preBalances": pre_balances,
                "postBalances": post_balances,
                "preTokenBalances": pre_token_balances or [],
                "postTokenBalances": post_token_balances or [],
            },
            "transaction": {
                "signatures": [signature or make_signature(1)],
                "message": {"accountKeys": account_keys},
            },
        }
    )


def token_balance(index: int, mint: str, owner: str, amount: int, decimals: int = 6) -> dict:
    return {
        "accountIndex": index,
        "mint": mint,
        "owner": owner,
        "uiTokenAmount": {"amount": str(amount), "decimals": decimals},
    }


class FakeLedger:
    """
    In-memory ledger client.

    Transactions sent to it are decoded and their system transfers executed
    against ``balances``, so the recorded transaction carries real pre/post
    balances for the verifier.
    """

    def __init__(self, slot: int = 1000) -> None:
        self.blockhash = str(Hash(bytes([7] * 32)))
        self.slot = slot
        self.accounts: set[str] = set()
        self.balances: dict[str, int] = {}
        self.transactions: dict[str, LedgerTransaction] = {}
        self.statuses: dict[str, SignatureStatus] = {}
        self.sent: list[Transaction] = []
        self.calls: list[str] = []
        self.send_error: Optional[Exception] = None
        self.transaction_error: Optional[Exception] = None
        self.fail_on_chain = False
        self.confirmation_status = Commitment.CONFIRMED
        self.last_commitment: Optional[Commitment] = None
        self.closed = False

    async def get_latest_blockhash(self, commitment: Commitment = Commitment.CONFIRMED) -> str:
        self.calls.append("get_latest_blockhash")
        return self.blockhash

    async def account_exists(
        self, address: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> bool:
        self.calls.append("account_exists")
        return address in self.accounts

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        self.calls.append("send_raw_transaction")
        if self.send_error is not None:
            raise self.send_error
        tx = Transaction.from_bytes(raw_transaction)
        signature = str(tx.signatures[0])
        self.sent.append(tx)
        self.transactions[signature] = self._execute(tx, signature)
        err = {"InstructionError": [0, {"Custom": 1}]} if self.fail_on_chain else None
        self.statuses[signature] = SignatureStatus(
            slot=self.slot,
            err=err,
            confirmation_status=self.confirmation_status,
        )
        return signature

    async def get_signature_status(self, signature: str) -> Optional[SignatureStatus]:
        self.calls.append("get_signature_status")
        return self.statuses.get(signature)

    async def get_transaction(
        self, signature: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> Optional[LedgerTransaction]:
        self.calls.append("get_transaction")
        self.last_commitment = commitment
        if self.transaction_error is not None:
            raise self.transaction_error
        return self.transactions.get(signature)

    async def get_slot(self, commitment: Commitment = Commitment.CONFIRMED) -> int:
        self.calls.append("get_slot")
        return self.slot

    async def close(self) -> None:
        self.closed = True

    def _execute(self, tx: Transaction, signature: str) -> LedgerTransaction:
        keys = [str(key) for key in tx.message.account_keys]
        pre = [self.balances.get(key, 0) for key in keys]
        post = list(pre)
        err = None
        if self.fail_on_chain:
            err = {"InstructionError": [0, {"Custom": 1}]}
            post[0] -= FEE
        else:
            post[0] -= FEE
            for ix in tx.message.instructions:
                if keys[ix.program_id_index] != str(SYSTEM_PROGRAM_ID):
                    continue
                data = bytes(ix.data)
                if int.from_bytes(data[:4], "little") != 2:
                    continue
                lamports = int.from_bytes(data[4:12], "little")
                source, destination = ix.accounts[0], ix.accounts[1]
                post[source] -= lamports
                post[destination] += lamports
        for key, balance in zip(keys, post):
            self.balances[key] = balance
        return build_ledger_transaction(
            keys, pre, post, slot=self.slot, err=err, signature=signature
        )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def payer_keypair():
    return make_keypair(1)


@pytest.fixture
def payer_address(payer_keypair):
    return str(payer_keypair.pubkey())


@pytest.fixture
def recipient_address():
    return str(make_keypair(2).pubkey())


@pytest.fixture
def other_address():
    return str(make_keypair(3).pubkey())


@pytest.fixture
def fake_ledger(payer_address):
    ledger = FakeLedger()
    ledger.balances[payer_address] = STARTING_BALANCE
    return ledger


@pytest.fixture
def sol_requirements(recipient_address):
    return PaymentRequirements(
        scheme="exact",
        network="devnet",
        amount="1000000",
        token="SOL",
        recipient=recipient_address,
        requestId="req_test",
    )


@pytest.fixture
def usdc_requirements(recipient_address):
    return PaymentRequirements(
        scheme="exact",
        network="devnet",
        amount="1500000",
        token="USDC",
        recipient=recipient_address,
    )
