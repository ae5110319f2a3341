"""
Solana ledger client.

``LedgerClient`` is the boundary the transaction builder, submission helpers
and payment verifier depend on. ``SolanaRpcClient`` implements it with
Solana JSON-RPC over httpx.
"""

import base64
import itertools
import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address as _derive_ata

from x402_solana.config import NetworkConfig
from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.types import Commitment, LedgerTransaction, SignatureStatus

logger = logging.getLogger(__name__)


class LedgerClient(Protocol):
    """Ledger operations used by the payment lifecycle"""

    async def get_latest_blockhash(self, commitment: Commitment = Commitment.CONFIRMED) -> str:
        """Latest blockhash (base58) to anchor a new transaction"""
        ...

    async def account_exists(
        self, address: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> bool:
        """True if the account exists on-chain"""
        ...

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """Submit a signed, serialized transaction; return its signature"""
        ...

    async def get_signature_status(self, signature: str) -> SignatureStatus | None:
        """Current status of a signature, None if the ledger has not seen it"""
        ...

    async def get_transaction(
        self, signature: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> LedgerTransaction | None:
        """Transaction with balance metadata, None if absent at this commitment"""
        ...

    async def get_slot(self, commitment: Commitment = Commitment.CONFIRMED) -> int:
        """Current head slot at the given commitment"""
        ...


def get_associated_token_address(owner: str, mint: str) -> str:
    """Derive the associated token account address of ``owner`` for ``mint``"""
    return str(_derive_ata(Pubkey.from_string(owner), Pubkey.from_string(mint)))


class SolanaRpcClient:
    """
    Async Solana JSON-RPC client.

    Every transport failure, non-2xx response or JSON-RPC error object is
    raised as X402Error(RPC_ERROR); callers never see raw httpx exceptions.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the RPC client.

        Args:
            rpc_url: JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            headers: Custom HTTP headers (e.g., provider API keys)
            http_client: Pre-built httpx.AsyncClient (not closed by this client)
        """
        self._rpc_url = rpc_url
        self._timeout = timeout
        self._headers = headers or {}
        self._http_client = http_client
        self._owns_client = http_client is None
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(headers=self._headers, timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
        self._http_client = None

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _call(self, method: str, params: list[Any]) -> Any:
        client = await self._get_client()
        request = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        try:
            response = await client.post(self._rpc_url, json=request)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, f"RPC {method} timed out after {self._timeout}s", details=e
            ) from e
        except httpx.HTTPError as e:
            raise X402Error(ErrorKind.RPC_ERROR, f"RPC {method} failed: {e}", details=e) from e
        except ValueError as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, f"RPC {method} returned invalid JSON", details=e
            ) from e

        if not isinstance(body, dict):
            raise X402Error(ErrorKind.RPC_ERROR, f"RPC {method} returned a malformed response")
        if body.get("error") is not None:
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise X402Error(ErrorKind.RPC_ERROR, f"RPC {method} error: {message}", details=error)
        if "result" not in body:
            raise X402Error(ErrorKind.RPC_ERROR, f"RPC {method} response has no result")
        return body["result"]

    async def get_latest_blockhash(self, commitment: Commitment = Commitment.CONFIRMED) -> str:
        result = await self._call("getLatestBlockhash", [{"commitment": commitment.value}])
        try:
            return result["value"]["blockhash"]
        except (KeyError, TypeError) as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, "getLatestBlockhash returned a malformed result"
            ) from e

    async def account_exists(
        self, address: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> bool:
        result = await self._call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": commitment.value}],
        )
        return isinstance(result, dict) and result.get("value") is not None

    async def send_raw_transaction(
        self,
        raw_transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Commitment = Commitment.CONFIRMED,
    ) -> str:
        encoded = base64.b64encode(raw_transaction).decode("ascii")
        result = await self._call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "preflightCommitment": preflight_commitment.value,
                },
            ],
        )
        if not isinstance(result, str):
            raise X402Error(ErrorKind.RPC_ERROR, "sendTransaction did not return a signature")
        return result

    async def get_signature_status(self, signature: str) -> SignatureStatus | None:
        result = await self._call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": True}],
        )
        try:
            entry = result["value"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, "getSignatureStatuses returned a malformed result"
            ) from e
        if entry is None:
            return None
        try:
            return SignatureStatus.model_validate(entry)
        except ValidationError as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, "getSignatureStatuses returned a malformed status"
            ) from e

    async def get_transaction(
        self, signature: str, commitment: Commitment = Commitment.CONFIRMED
    ) -> LedgerTransaction | None:
        result = await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "commitment": commitment.value,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if result is None:
            return None
        try:
            return LedgerTransaction.model_validate(result)
        except ValidationError as e:
            raise X402Error(
                ErrorKind.RPC_ERROR, f"getTransaction returned a malformed transaction: {e}"
            ) from e

    async def get_slot(self, commitment: Commitment = Commitment.CONFIRMED) -> int:
        result = await self._call("getSlot", [{"commitment": commitment.value}])
        if not isinstance(result, int):
            raise X402Error(ErrorKind.RPC_ERROR, "getSlot returned a non-integer slot")
        return result


def create_solana_client(
    network: str,
    rpc_url: str | None = None,
    timeout: float = 30.0,
    headers: dict[str, str] | None = None,
) -> SolanaRpcClient:
    """Create a SolanaRpcClient for the given network.

    Args:
        network: Network identifier ("mainnet-beta", "devnet", "testnet")
        rpc_url: Custom RPC endpoint; defaults to the public cluster endpoint
        timeout: Per-request timeout in seconds
        headers: Custom HTTP headers

    Returns:
        SolanaRpcClient instance
    """
    endpoint = NetworkConfig.get_rpc_url(network, rpc_url)
    logger.info("Creating Solana RPC client for network=%s (%s)", network, endpoint)
    return SolanaRpcClient(endpoint, timeout=timeout, headers=headers)
