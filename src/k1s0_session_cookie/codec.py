"""Session token envelope codecs.

Two wire formats are supported, selected by configuration:

``aead``
    ``base64url( nonce ‖ ciphertext ‖ tag )`` using AES-256-GCM with a key
    derived from the configured secret via HKDF-SHA256.  The HKDF ``info``
    names the token type, so each token type gets its own key.

``hmac``
    ``base64url(payload) + " " + base64url(mac)`` where *payload* is the
    canonical JSON of the token and *mac* comes from a :class:`Signer`.

Both directions are pure functions of their input.
"""

from __future__ import annotations

import base64
import binascii
import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError

from .exceptions import EnvelopeError, EnvelopeErrorCodes
from .models import SessionToken
from .signer import HmacSha256Signer, Signer

if TYPE_CHECKING:
    from .config import SessionHandlingOptions

T = TypeVar("T", bound=SessionToken)

_NONCE_SIZE = 12  # 96-bit nonce recommended by NIST for AES-GCM
_TAG_SIZE = 16
_SEPARATOR = " "


def token_purpose(token_type: type[SessionToken]) -> str:
    """Return the key-derivation purpose string for *token_type*."""
    return f"k1s0.session-cookie/{token_type.__module__}.{token_type.__qualname__}"


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


def _b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise EnvelopeError(
            code=EnvelopeErrorCodes.INVALID_ENVELOPE,
            message="Envelope is not valid base64",
            cause=e,
        ) from e


class TokenCodec(ABC, Generic[T]):
    """Abstract token ⇄ envelope codec."""

    def __init__(self, token_type: type[T]) -> None:
        self._token_type = token_type

    @property
    def token_type(self) -> type[T]:
        return self._token_type

    @abstractmethod
    def encode(self, token: T) -> str:
        """Encode *token* into an opaque cookie value."""
        ...

    @abstractmethod
    def decode(self, envelope: str) -> T:
        """Decode and authenticate an envelope produced by :meth:`encode`.

        Raises
        ------
        EnvelopeError
            ``INVALID_ENVELOPE`` for structural problems,
            ``AUTHENTICATION_FAILED`` when the MAC or AEAD tag does not
            verify, ``EMPTY_PAYLOAD`` when no token could be read.
        """
        ...

    def _serialize(self, token: T) -> bytes:
        return token.model_dump_json().encode("utf-8")

    def _deserialize(self, payload: bytes) -> T:
        stripped = payload.strip()
        if not stripped or stripped == b"null":
            raise EnvelopeError(
                code=EnvelopeErrorCodes.EMPTY_PAYLOAD,
                message="Envelope contains no token",
            )
        try:
            return self._token_type.model_validate_json(stripped)
        except ValidationError as e:
            raise EnvelopeError(
                code=EnvelopeErrorCodes.EMPTY_PAYLOAD,
                message="Envelope payload is not a session token",
                cause=e,
            ) from e


class AesGcmTokenCodec(TokenCodec[T]):
    """Authenticated-encryption codec (AES-256-GCM)."""

    def __init__(self, secret: str, token_type: type[T]) -> None:
        super().__init__(token_type)
        if not secret:
            raise ValueError("secret cannot be empty")
        self._purpose = token_purpose(token_type).encode("utf-8")
        key = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=self._purpose,
        ).derive(secret.encode("utf-8"))
        self._aesgcm = AESGCM(key)

    def encode(self, token: T) -> str:
        nonce = os.urandom(_NONCE_SIZE)
        ct = self._aesgcm.encrypt(nonce, self._serialize(token), self._purpose)
        return _b64encode(nonce + ct)

    def decode(self, envelope: str) -> T:
        raw = _b64decode(envelope)
        if len(raw) < _NONCE_SIZE + _TAG_SIZE:
            raise EnvelopeError(
                code=EnvelopeErrorCodes.INVALID_ENVELOPE,
                message="Envelope is too short",
            )
        nonce, ct = raw[:_NONCE_SIZE], raw[_NONCE_SIZE:]
        try:
            payload = self._aesgcm.decrypt(nonce, ct, self._purpose)
        except InvalidTag as e:
            raise EnvelopeError(
                code=EnvelopeErrorCodes.AUTHENTICATION_FAILED,
                message="Envelope failed authentication",
                cause=e,
            ) from e
        return self._deserialize(payload)


class SignedTokenCodec(TokenCodec[T]):
    """Sign-only codec: the payload is readable by the client but tamper-evident."""

    def __init__(self, signer: Signer, token_type: type[T]) -> None:
        super().__init__(token_type)
        self._signer = signer

    def encode(self, token: T) -> str:
        payload = self._serialize(token)
        mac = self._signer.sign(payload)
        return f"{_b64encode(payload)}{_SEPARATOR}{_b64encode(mac)}"

    def decode(self, envelope: str) -> T:
        parts = envelope.split(_SEPARATOR)
        if len(parts) != 2:
            raise EnvelopeError(
                code=EnvelopeErrorCodes.INVALID_ENVELOPE,
                message=f"Envelope must have 2 parts, got {len(parts)}",
            )
        payload = _b64decode(parts[0])
        mac = _b64decode(parts[1])
        if not self._signer.verify(payload, mac):
            raise EnvelopeError(
                code=EnvelopeErrorCodes.AUTHENTICATION_FAILED,
                message="Envelope signature mismatch",
            )
        return self._deserialize(payload)


def create_codec(options: SessionHandlingOptions, token_type: type[T]) -> TokenCodec[T]:
    """設定に従ってコーデックを生成する。"""
    secret = options.secret.get_secret_value()
    if options.envelope == "hmac":
        signer = HmacSha256Signer(secret, purpose=token_purpose(token_type))
        return SignedTokenCodec(signer, token_type)
    return AesGcmTokenCodec(secret, token_type)
