"""HMAC-SHA256 signing for session envelopes."""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod

DEFAULT_PURPOSE = "k1s0.session-cookie.signer"


class Signer(ABC):
    """Abstract sign / verify primitive."""

    @abstractmethod
    def sign(self, data: bytes) -> bytes: ...

    @abstractmethod
    def verify(self, data: bytes, mac: bytes) -> bool: ...


class HmacSha256Signer(Signer):
    """HMAC-SHA256 signer with a domain-separated key.

    The signing key is ``SHA-256(purpose ‖ secret)``, computed once so that a
    secret shared with another subsystem never produces interchangeable MACs.
    """

    def __init__(self, secret: str, purpose: str = DEFAULT_PURPOSE) -> None:
        if not secret:
            raise ValueError("secret cannot be empty")
        self._key = hashlib.sha256(purpose.encode() + secret.encode()).digest()

    def sign(self, data: bytes) -> bytes:
        """Return the 32-byte MAC of *data*."""
        return hmac.new(self._key, data, hashlib.sha256).digest()

    def verify(self, data: bytes, mac: bytes) -> bool:
        """Verify *mac* against *data* in constant time."""
        return hmac.compare_digest(self.sign(data), mac)
