import pytest
from solders.hash import Hash
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.memo.constants import MEMO_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.tokens import TokenRegistry
from x402_solana.types import PaymentRequirements
from x402_solana.utils.solana_client import get_associated_token_address
from x402_solana.utils.transactions import TransactionBuilder

USDC_DEVNET = TokenRegistry.get_token("devnet", "USDC").mint


def _program_ids(tx):
    keys = tx.message.account_keys
    return [keys[ix.program_id_index] for ix in tx.message.instructions]


@pytest.mark.anyio
async def test_native_transfer(fake_ledger, payer_address, recipient_address, sol_requirements):
    """Test native payment is a single system transfer paid by the payer"""
    tx = await TransactionBuilder(fake_ledger).build_transfer(sol_requirements, payer_address)
    message = tx.message

    assert str(message.account_keys[0]) == payer_address
    assert message.recent_blockhash == Hash.from_string(fake_ledger.blockhash)
    assert _program_ids(tx) == [SYSTEM_PROGRAM_ID]

    ix = message.instructions[0]
    data = bytes(ix.data)
    assert int.from_bytes(data[:4], "little") == 2
    assert int.from_bytes(data[4:12], "little") == 1_000_000
    assert str(message.account_keys[ix.accounts[1]]) == recipient_address
    # unsigned
    assert tx.signatures[0] == Signature.default()


@pytest.mark.anyio
async def test_blockhash_fetched_last(fake_ledger, payer_address, recipient_address):
    requirements = PaymentRequirements(
        scheme="exact", network="devnet", amount="1500000", token="USDC", recipient=recipient_address
    )
    fake_ledger.accounts.add(get_associated_token_address(payer_address, USDC_DEVNET))

    await TransactionBuilder(fake_ledger).build_transfer(requirements, payer_address)

    assert fake_ledger.calls[-1] == "get_latest_blockhash"
    assert fake_ledger.calls.count("get_latest_blockhash") == 1


@pytest.mark.anyio
async def test_amount_above_u64_rejected(fake_ledger, payer_address, recipient_address):
    """Test amounts the instruction field cannot hold are refused, not truncated"""
    requirements = PaymentRequirements(
        scheme="exact", network="devnet", amount=str(2**64), token="SOL", recipient=recipient_address
    )
    with pytest.raises(X402Error) as exc_info:
        await TransactionBuilder(fake_ledger).build_transfer(requirements, payer_address)

    assert exc_info.value.kind is ErrorKind.AMOUNT_OUT_OF_RANGE
    assert fake_ledger.calls == []


@pytest.mark.anyio
async def test_u64_max_accepted(fake_ledger, payer_address, recipient_address):
    requirements = PaymentRequirements(
        scheme="exact", network="devnet", amount=str(2**64 - 1), token="SOL", recipient=recipient_address
    )
    tx = await TransactionBuilder(fake_ledger).build_transfer(requirements, payer_address)
    assert int.from_bytes(bytes(tx.message.instructions[0].data)[4:12], "little") == 2**64 - 1


@pytest.mark.anyio
async def test_upto_scheme_not_supported(fake_ledger, payer_address, recipient_address):
    requirements = PaymentRequirements(
        scheme="upto", network="devnet", amount="1", token="SOL", recipient=recipient_address
    )
    with pytest.raises(X402Error) as exc_info:
        await TransactionBuilder(fake_ledger).build_transfer(requirements, payer_address)
    assert exc_info.value.kind is ErrorKind.INVALID_REQUIREMENTS


@pytest.mark.anyio
async def test_memo_appended_after_transfer(fake_ledger, payer_address, recipient_address):
    requirements = PaymentRequirements(
        scheme="exact",
        network="devnet",
        amount="1000",
        token="SOL",
        recipient=recipient_address,
        memo="order-42",
    )
    tx = await TransactionBuilder(fake_ledger).build_transfer(requirements, payer_address)

    assert _program_ids(tx) == [SYSTEM_PROGRAM_ID, MEMO_PROGRAM_ID]
    assert bytes(tx.message.instructions[1].data) == b"order-42"


@pytest.mark.anyio
async def test_token_transfer_creates_recipient_account(
    fake_ledger, payer_address, recipient_address, usdc_requirements
):
    """Test a missing recipient token account is created in the same transaction"""
    fake_ledger.accounts.add(get_associated_token_address(payer_address, USDC_DEVNET))

    tx = await TransactionBuilder(fake_ledger).build_transfer(usdc_requirements, payer_address)

    assert _program_ids(tx) == [ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID]
    data = bytes(tx.message.instructions[1].data)
    assert data[0] == 12  # TransferChecked
    assert int.from_bytes(data[1:9], "little") == 1_500_000
    assert data[9] == 6
    keys = [str(key) for key in tx.message.account_keys]
    assert get_associated_token_address(recipient_address, USDC_DEVNET) in keys


@pytest.mark.anyio
async def test_token_transfer_existing_recipient_account(
    fake_ledger, payer_address, recipient_address, usdc_requirements
):
    fake_ledger.accounts.add(get_associated_token_address(payer_address, USDC_DEVNET))
    fake_ledger.accounts.add(get_associated_token_address(recipient_address, USDC_DEVNET))

    tx = await TransactionBuilder(fake_ledger).build_transfer(usdc_requirements, payer_address)

    assert _program_ids(tx) == [TOKEN_PROGRAM_ID]


@pytest.mark.anyio
async def test_missing_source_account(fake_ledger, payer_address, usdc_requirements):
    """Test the payer's token account is never auto-provisioned"""
    with pytest.raises(X402Error) as exc_info:
        await TransactionBuilder(fake_ledger).build_transfer(usdc_requirements, payer_address)

    assert exc_info.value.kind is ErrorKind.MISSING_SOURCE_ACCOUNT
    assert exc_info.value.details["account"] == get_associated_token_address(
        payer_address, USDC_DEVNET
    )
    assert "get_latest_blockhash" not in fake_ledger.calls
    assert fake_ledger.sent == []
