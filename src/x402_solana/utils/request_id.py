"""
Request ID generation for payment correlation.

Request IDs are advisory: a time component plus a random suffix. Uniqueness
is best-effort and must never be relied on as a security control.
"""

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_request_id(suffix_length: int = 13) -> str:
    """
    Generate a correlation ID for payment requirements.

    Returns:
        An ID of the form ``req_<unix millis>_<random base36>``.
        Example: "req_1760000000000_k3j9x0a1b2c3d"
    """
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_length))
    return f"req_{int(time.time() * 1000)}_{suffix}"
