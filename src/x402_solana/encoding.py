"""
Wire encoding for x402 payment challenges and proofs

Challenge bodies and the payment header are plain JSON with camelCase keys.
"""

import json
from typing import Any

from pydantic import ValidationError

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.types import PaymentProof, PaymentRequirements


def _load_json(data: str | bytes | dict[str, Any]) -> Any:
    if isinstance(data, dict):
        return data
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)


def encode_payment_requirements(requirements: PaymentRequirements) -> dict[str, Any]:
    """Serialize requirements to the 402 challenge body"""
    return requirements.model_dump(by_alias=True, exclude_none=True)


def decode_payment_requirements(data: str | bytes | dict[str, Any]) -> PaymentRequirements:
    """
    Parse and validate a 402 challenge body.

    Raises:
        X402Error(INVALID_REQUIREMENTS): body is not JSON or violates the schema
            (unknown scheme/network/token, negative or non-integer amount,
            malformed recipient address)
    """
    try:
        body = _load_json(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise X402Error(
            ErrorKind.INVALID_REQUIREMENTS, f"Payment requirements are not valid JSON: {e}"
        ) from e

    if not isinstance(body, dict):
        raise X402Error(
            ErrorKind.INVALID_REQUIREMENTS, "Payment requirements must be a JSON object"
        )

    try:
        return PaymentRequirements.model_validate(body)
    except ValidationError as e:
        raise X402Error(
            ErrorKind.INVALID_REQUIREMENTS,
            f"Invalid payment requirements: {e.error_count()} schema violation(s)",
            details=e.errors(include_url=False),
        ) from e


def encode_payment_proof(proof: PaymentProof) -> str:
    """Serialize a proof to the payment header value"""
    return proof.model_dump_json(by_alias=True, exclude_none=True)


def decode_payment_proof(header_value: str | bytes) -> PaymentProof:
    """
    Parse and validate the payment header value.

    Raises:
        X402Error(INVALID_PAYMENT_PROOF): header is not JSON or violates the schema
    """
    try:
        body = _load_json(header_value)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise X402Error(
            ErrorKind.INVALID_PAYMENT_PROOF, f"Payment proof is not valid JSON: {e}"
        ) from e

    if not isinstance(body, dict):
        raise X402Error(ErrorKind.INVALID_PAYMENT_PROOF, "Payment proof must be a JSON object")

    try:
        return PaymentProof.model_validate(body)
    except ValidationError as e:
        raise X402Error(
            ErrorKind.INVALID_PAYMENT_PROOF,
            f"Invalid payment proof: {e.error_count()} schema violation(s)",
            details=e.errors(include_url=False),
        ) from e
