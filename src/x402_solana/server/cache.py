"""
Verification cache

Maps transaction signature -> verifier verdict with lazy TTL expiry.
Each verdict records the terms (recipient, token, amount) it was reached
against; a lookup only reuses a verdict those terms decide.
Only completed verdicts are stored; transport failures never reach the cache.
"""

import threading
import time
from typing import Callable, NamedTuple, Optional

from x402_solana.types import PaymentRequirements


class PaymentTerms(NamedTuple):
    recipient: str
    token: str
    amount: int

    @classmethod
    def of(cls, requirements: PaymentRequirements) -> "PaymentTerms":
        return cls(requirements.recipient, requirements.token.upper(), requirements.base_units)


class CacheEntry(NamedTuple):
    verified: bool
    created_at: float
    terms: Optional[PaymentTerms] = None


class PaymentCache:
    """Thread-safe, per-server verification cache"""

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Args:
            ttl: Seconds an entry stays valid
            clock: Monotonic time source
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def _live_entry(self, signature: str) -> Optional[CacheEntry]:
        entry = self._entries.get(signature)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= self._ttl:
            del self._entries[signature]
            return None
        return entry

    def get(self, signature: str) -> Optional[bool]:
        """Cached verdict for ``signature``, or None if absent or expired"""
        with self._lock:
            entry = self._live_entry(signature)
            return entry.verified if entry is not None else None

    def lookup(self, signature: str, requirements: PaymentRequirements) -> Optional[bool]:
        """
        Cached verdict for ``signature`` that holds for ``requirements``.

        A payment verified for an amount also covers any smaller amount to the
        same recipient in the same token; a rejection covers any larger one.
        Returns None when the cached verdict does not decide these requirements.
        """
        terms = PaymentTerms.of(requirements)
        with self._lock:
            entry = self._live_entry(signature)
        if entry is None or entry.terms is None:
            return None
        cached = entry.terms
        if (cached.recipient, cached.token) != (terms.recipient, terms.token):
            return None
        if entry.verified and terms.amount <= cached.amount:
            return True
        if not entry.verified and terms.amount >= cached.amount:
            return False
        return None

    def set(
        self,
        signature: str,
        verified: bool,
        requirements: Optional[PaymentRequirements] = None,
    ) -> None:
        """Store a verdict; a live entry for the same signature is kept as-is"""
        terms = PaymentTerms.of(requirements) if requirements is not None else None
        with self._lock:
            entry = self._live_entry(signature)
            if entry is not None:
                return
            self._entries[signature] = CacheEntry(verified, self._clock(), terms)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
