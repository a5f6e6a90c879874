"""SessionContext ファクトリ"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Generic, TypeVar

from .codec import TokenCodec, create_codec
from .config import SessionHandlingOptions
from .context import SessionContext
from .http import SessionRequest, SessionResponse
from .models import SessionToken
from .origin import OriginValidator, TrustedOriginValidator
from .store import SessionStore, utc_now

T = TypeVar("T", bound=SessionToken)


class SessionContextFactory(Generic[T]):
    """共有コラボレーターを保持し、リクエストごとに SessionContext を生成する。"""

    def __init__(
        self,
        codec: TokenCodec[T],
        origin_validator: OriginValidator,
        store: SessionStore[T],
        options: SessionHandlingOptions,
        clock: Callable[[], datetime] = utc_now,
        device_resolver: Callable[[str], str] | None = None,
    ) -> None:
        self._codec = codec
        self._origin_validator = origin_validator
        self._store = store
        self._options = options
        self._clock = clock
        self._device_resolver = device_resolver

    @classmethod
    def from_options(
        cls,
        options: SessionHandlingOptions,
        store: SessionStore[T],
        token_type: type[T],
        clock: Callable[[], datetime] = utc_now,
        device_resolver: Callable[[str], str] | None = None,
    ) -> SessionContextFactory[T]:
        """設定からコーデックとオリジンバリデーターを組み立てる。"""
        return cls(
            codec=create_codec(options, token_type),
            origin_validator=TrustedOriginValidator(options.trusted_origins),
            store=store,
            options=options,
            clock=clock,
            device_resolver=device_resolver,
        )

    @property
    def options(self) -> SessionHandlingOptions:
        return self._options

    def create(
        self, request: SessionRequest, response: SessionResponse | None = None
    ) -> SessionContext[T]:
        return SessionContext(
            request=request,
            response=response if response is not None else SessionResponse(),
            codec=self._codec,
            origin_validator=self._origin_validator,
            store=self._store,
            options=self._options,
            clock=self._clock,
            device_resolver=self._device_resolver,
        )
