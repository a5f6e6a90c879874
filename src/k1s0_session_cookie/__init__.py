"""k1s0 session cookie library."""

from .codec import AesGcmTokenCodec, SignedTokenCodec, TokenCodec, create_codec
from .config import SessionHandlingOptions, load_options
from .context import SessionContext
from .device import device_from_user_agent
from .exceptions import (
    BadRequestError,
    ConfigError,
    ConfigErrorCodes,
    EnvelopeError,
    EnvelopeErrorCodes,
    ForbiddenError,
    SessionError,
    SessionErrorCodes,
    UnauthorizedError,
    UserChangedError,
    UserRequiredError,
)
from .factory import SessionContextFactory
from .http import SessionCookie, SessionRequest, SessionResponse
from .logger import configure_logging, redact_sensitive
from .models import SessionAccessOptions, SessionData, SessionToken, SignInInfo
from .origin import OriginValidator, TrustedOriginValidator
from .signer import HmacSha256Signer, Signer
from .store import InMemorySessionStore, SessionStore, StoredSessionToken

__all__ = [
    "SessionToken",
    "SessionData",
    "SignInInfo",
    "SessionAccessOptions",
    "TokenCodec",
    "AesGcmTokenCodec",
    "SignedTokenCodec",
    "create_codec",
    "Signer",
    "HmacSha256Signer",
    "OriginValidator",
    "TrustedOriginValidator",
    "SessionStore",
    "InMemorySessionStore",
    "StoredSessionToken",
    "SessionContext",
    "SessionContextFactory",
    "SessionRequest",
    "SessionResponse",
    "SessionCookie",
    "SessionHandlingOptions",
    "load_options",
    "configure_logging",
    "redact_sensitive",
    "device_from_user_agent",
    "SessionError",
    "SessionErrorCodes",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "UserChangedError",
    "UserRequiredError",
    "EnvelopeError",
    "EnvelopeErrorCodes",
    "ConfigError",
    "ConfigErrorCodes",
]
