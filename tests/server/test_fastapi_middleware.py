import time

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from conftest import FEE, build_ledger_transaction, make_signature
from x402_solana.config import PAYMENT_HEADER, ServerConfig
from x402_solana.encoding import encode_payment_proof
from x402_solana.fastapi import X402Middleware, x402_protected
from x402_solana.server import X402Server
from x402_solana.types import PaymentProof

SIGNATURE = make_signature(11)


@pytest.fixture
def server(fake_ledger, recipient_address):
    return X402Server(ServerConfig(recipient_address=recipient_address), ledger=fake_ledger)


@pytest.fixture
def client(server):
    app = FastAPI()
    middleware = X402Middleware(server)

    @app.get("/protected")
    @middleware.protect(amount="0.001", token="SOL")
    async def protected(request: Request):
        return {"signature": request.state.payment.proof.signature}

    @app.get("/text")
    @x402_protected(server, amount="0.001")
    async def text(request: Request):
        return PlainTextResponse("paid content")

    @app.get("/free")
    async def free():
        return {"free": True}

    return TestClient(app)


@pytest.fixture
def paid_header(fake_ledger, payer_address, recipient_address):
    fake_ledger.transactions[SIGNATURE] = build_ledger_transaction(
        [payer_address, recipient_address, "11111111111111111111111111111111"],
        [10_000_000_000, 0, 1],
        [10_000_000_000 - 1_000_000 - FEE, 1_000_000, 1],
    )
    proof = PaymentProof(signature=SIGNATURE, network="devnet", timestamp=int(time.time() * 1000))
    return encode_payment_proof(proof)


def test_unpaid_request_gets_402(client, recipient_address):
    response = client.get("/protected")

    assert response.status_code == 402
    body = response.json()
    assert body["amount"] == "1000000"
    assert body["token"] == "SOL"
    assert body["recipient"] == recipient_address
    assert body["requestId"].startswith("req_")


def test_paid_request_reaches_handler(client, paid_header):
    response = client.get("/protected", headers={PAYMENT_HEADER: paid_header})

    assert response.status_code == 200
    assert response.json() == {"signature": SIGNATURE}


def test_handler_response_passed_through(client, paid_header):
    response = client.get("/text", headers={PAYMENT_HEADER: paid_header})

    assert response.status_code == 200
    assert response.text == "paid content"


def test_invalid_proof_gets_402(client):
    response = client.get("/protected", headers={PAYMENT_HEADER: '{"signature": "x"}'})
    assert response.status_code == 402


def test_unprotected_route(client):
    assert client.get("/free").json() == {"free": True}
