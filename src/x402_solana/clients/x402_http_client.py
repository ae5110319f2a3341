"""
X402HttpClient - HTTP client adapter with automatic 402 payment handling
"""

import logging
from typing import Any, Awaitable, Callable

import httpx

from x402_solana.clients.x402_client import PaymentFlow, PaymentState, X402Client
from x402_solana.config import PAYMENT_HEADER, ClientConfig
from x402_solana.encoding import decode_payment_requirements, encode_payment_proof
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.signers import ClientSigner
from x402_solana.types import PaymentProof, PaymentRequirements

logger = logging.getLogger(__name__)

PaymentRequiredHandler = Callable[[PaymentRequirements], Awaitable[PaymentProof]]


class X402HttpClient:
    """
    HTTP client adapter with automatic 402 payment handling.

    Wraps httpx.AsyncClient: a 402 response is paid through the X402Client
    and the original request is re-issued once with the payment header.
    A second 402 is returned to the caller, never paid again.
    """

    def __init__(self, http_client: httpx.AsyncClient, x402_client: X402Client) -> None:
        """
        Initialize HTTP client adapter.

        Args:
            http_client: httpx.AsyncClient instance
            x402_client: X402Client instance
        """
        self._http_client = http_client
        self._x402_client = x402_client
        self._last_flow: PaymentFlow | None = None

    @property
    def last_flow(self) -> PaymentFlow | None:
        """Flow of the most recent request"""
        return self._last_flow

    async def request_with_payment(
        self,
        method: str,
        url: str,
        *,
        signer: ClientSigner | None = None,
        auto_payment: bool = True,
        on_payment_required: PaymentRequiredHandler | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make HTTP request with automatic 402 payment handling.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            signer: Signer for this request; overrides the client signer
            auto_payment: When False, a 402 response is returned unpaid
            on_payment_required: Async callback producing the proof instead
                of the built-in payment executor
            **kwargs: Additional httpx request parameters

        Returns:
            httpx.Response of the original request, or of the paid retry

        Raises:
            X402Error(INVALID_REQUIREMENTS): 402 body is not valid requirements
            X402Error(PAYMENT_REQUIRED): 402 received and no signer is available
            X402Error(TRANSACTION_FAILED): ``on_payment_required`` raised (cause chained)
            X402Error: any payment failure (see X402Client.execute_payment)
        """
        flow = PaymentFlow(method, url)
        self._last_flow = flow
        try:
            return await self._run(flow, signer, auto_payment, on_payment_required, kwargs)
        except Exception as e:
            flow.fail(e)
            raise

    async def _run(
        self,
        flow: PaymentFlow,
        signer: ClientSigner | None,
        auto_payment: bool,
        on_payment_required: PaymentRequiredHandler | None,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        flow.transition(PaymentState.REQUESTED)
        response = await self._http_client.request(flow.method, flow.url, **kwargs)
        logger.info(f"Received response: status={response.status_code}")

        if response.status_code != 402 or not auto_payment:
            flow.transition(PaymentState.DONE)
            return response

        flow.transition(PaymentState.CHALLENGED)
        requirements = decode_payment_requirements(response.content)
        flow.requirements = requirements
        logger.info(
            f"Payment required: {requirements.amount} {requirements.token} "
            f"to {requirements.recipient} on {requirements.network}"
        )

        if on_payment_required is not None:
            flow.transition(PaymentState.PAYING)
            try:
                proof = await on_payment_required(requirements)
            except X402Error as e:
                raise X402Error(
                    ErrorKind.TRANSACTION_FAILED,
                    f"Payment handler failed: {e.message}",
                    details=e,
                ) from e
            except Exception as e:
                raise X402Error(
                    ErrorKind.TRANSACTION_FAILED,
                    f"Payment handler failed: {e}",
                    details=e,
                ) from e
        else:
            signer = signer or self._x402_client.signer
            if signer is None:
                raise X402Error(
                    ErrorKind.PAYMENT_REQUIRED,
                    "Payment required but no signer is configured",
                    details=requirements,
                )
            proof = await self._x402_client.execute_payment(requirements, signer=signer, flow=flow)

        flow.proof = proof
        flow.transition(PaymentState.RETRYING)
        retry = await self._retry_with_payment(flow.method, flow.url, proof, kwargs)
        flow.transition(PaymentState.DONE)
        return retry

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET request with payment handling"""
        return await self.request_with_payment("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST request with payment handling"""
        return await self.request_with_payment("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """PUT request with payment handling"""
        return await self.request_with_payment("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """DELETE request with payment handling"""
        return await self.request_with_payment("DELETE", url, **kwargs)

    async def _retry_with_payment(
        self,
        method: str,
        url: str,
        proof: PaymentProof,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        """Re-issue the original request with the payment header attached"""
        logger.info(f"Retrying request with payment {proof.signature}")
        headers = dict(kwargs.get("headers") or {})
        headers[PAYMENT_HEADER] = encode_payment_proof(proof)

        response = await self._http_client.request(method, url, **{**kwargs, "headers": headers})
        logger.info(f"Payment retry response: status={response.status_code}")
        if response.status_code == 402:
            logger.warning(f"Payment {proof.signature} was not accepted by the server")
        return response


async def x402_fetch(
    url: str,
    *,
    signer: ClientSigner | None = None,
    method: str = "GET",
    network: str = "devnet",
    rpc_url: str | None = None,
    config: ClientConfig | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    One-shot paid request.

    Usage:
        response = await x402_fetch(
            "https://api.example.com/premium", signer=LocalSigner.from_secret_key(key)
        )
    """
    config = config or ClientConfig(network=network, rpc_endpoint=rpc_url)
    async with httpx.AsyncClient() as http_client, X402Client(config, signer) as x402_client:
        client = X402HttpClient(http_client, x402_client)
        return await client.request_with_payment(method, url, **kwargs)
