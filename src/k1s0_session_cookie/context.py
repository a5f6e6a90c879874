"""Per-request session context.

A :class:`SessionContext` is created for one request, reads the session
cookie, validates the request against the trusted origins and the user-id
precondition, refreshes stale tokens through the :class:`SessionStore`, and
records cookie mutations on the :class:`SessionResponse`.  It keeps no state
beyond the lifetime of the request.

Refresh protocol
----------------
Given the presented token generation ``g_token`` and the stored generation
``g_store``:

* ``g_store == g_token``: the caller is in step.  The record is stamped with
  the caller's device, IP and the current time, and the generation advances
  only when the previous refresh is older than the grace period, so a burst
  of concurrent refreshes from one token advances it once.
* ``g_store == g_token + 1``: a concurrent request already refreshed.  The
  caller is accepted only within the grace period and from the same device
  and IP, and receives a token for the current generation.
* anything else: possible replay.  The record is invalidated.

The store update is version-checked on the loaded generation.  When another
request wins the race between load and update, the protocol is evaluated
once more against the fresh record.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Generic, TypeVar

from .codec import TokenCodec
from .config import SessionHandlingOptions
from .device import device_from_user_agent
from .exceptions import (
    BadRequestError,
    EnvelopeError,
    ForbiddenError,
    UnauthorizedError,
    UserChangedError,
    UserRequiredError,
)
from .http import SessionCookie, SessionRequest, SessionResponse
from .logger import get_logger
from .models import SessionAccessOptions, SessionData, SessionToken, SignInInfo
from .origin import OriginValidator
from .store import SessionStore, utc_now

T = TypeVar("T", bound=SessionToken)

ORIGIN_HEADER = "Origin"
USER_AGENT_HEADER = "User-Agent"

_MAX_REFRESH_ATTEMPTS = 2

logger = get_logger(__name__)


class SessionContext(Generic[T]):
    """1 リクエスト分のセッション処理を担当するコンテキスト。"""

    def __init__(
        self,
        request: SessionRequest,
        response: SessionResponse,
        codec: TokenCodec[T],
        origin_validator: OriginValidator,
        store: SessionStore[T],
        options: SessionHandlingOptions,
        clock: Callable[[], datetime] = utc_now,
        device_resolver: Callable[[str], str] | None = None,
    ) -> None:
        self.request = request
        self.response = response
        self._codec = codec
        self._origin_validator = origin_validator
        self._store = store
        self._options = options
        self._clock = clock
        self._device_resolver = device_resolver
        self._device: str | None = None

    @property
    def device(self) -> str:
        """User-Agent を解析したデバイス文字列。リクエスト内で一度だけ計算する。"""
        if self._device is None:
            values = self.request.header_values(USER_AGENT_HEADER)
            if not values:
                raise BadRequestError("User agent required in request headers.")
            user_agent = values[0].strip()
            if not user_agent:
                raise BadRequestError("Empty user agent in request headers.")
            resolve = self._device_resolver or device_from_user_agent
            self._device = resolve(user_agent) or user_agent
        return self._device

    @property
    def ip_address(self) -> str | None:
        return self.request.remote_addr

    def is_request_origin_allowed(self) -> bool:
        """Origin ヘッダーがあれば信頼済みオリジンか確認する。なければ許可。

        Raises:
            BadRequestError: Origin ヘッダーが複数ある場合
        """
        values = self.request.header_values(ORIGIN_HEADER)
        if not values:
            return True
        if len(values) != 1:
            raise BadRequestError(f"Request contains multiple '{ORIGIN_HEADER}' headers.")
        return self._origin_validator.is_allowed(values[0])

    async def get_required_token(
        self, access_options: SessionAccessOptions = SessionAccessOptions.NONE
    ) -> T:
        """セッショントークンを取得する。サインインしていなければ UnauthorizedError。"""
        token = await self.get_token(access_options)
        if token is None:
            raise UnauthorizedError("User is not signed in.")
        return token

    async def get_token(
        self, access_options: SessionAccessOptions = SessionAccessOptions.NONE
    ) -> T | None:
        """セッショントークンを取得する。サインインしていなければ None。

        期限切れのトークンはここでリフレッシュされ、クッキーが再設定される。
        クッキーの破損やリフレッシュ失敗はすべて「未サインイン」として扱う。
        """
        access_options |= self._options.forced_access_options

        origin_allowed = self.is_request_origin_allowed()
        if not origin_allowed and SessionAccessOptions.ALLOW_ALL_ORIGINS not in access_options:
            raise ForbiddenError("Cross-origin request was blocked.")

        envelope = self.request.cookies.get(self._options.session_cookie_name)
        if envelope is None:
            return None

        try:
            token = self._codec.decode(envelope)
        except EnvelopeError as e:
            logger.debug("session.cookie.invalid", code=e.code)
            self.clear_token()
            return None

        self._validate_user_id_precondition(
            token, SessionAccessOptions.OPTIONAL_USER_ID_PRECONDITION in access_options
        )

        now = self._clock()
        if (
            SessionAccessOptions.FORCE_REFRESH not in access_options
            and not token.is_stale(now)
            and not token.is_expired(now)
        ):
            return token

        # device errors must surface before the store round trip
        device = self.device
        try:
            refreshed = await self._refresh(token, device)
        except Exception:
            logger.exception("session.refresh.failed", user_id=token.user_id)
            refreshed = None

        if refreshed is None:
            self.clear_token()
            return None

        self.set_token(refreshed)
        return refreshed

    async def sign_in(
        self,
        persistent: bool,
        create_session: Callable[[SignInInfo], Awaitable[T]],
    ) -> T:
        """新しいセッションを作成してクッキーを設定する。

        create_session は認証情報（メールアドレスやパスワードなど）をクロージャで保持し、
        SignInInfo からトークンとストアレコードを作成する。
        """
        info = SignInInfo(
            device=self.device,
            ip_address=self.ip_address,
            session_expiry=self._options.session_expiry(persistent),
            is_persistent=persistent,
        )
        token = await create_session(info)
        self.set_token(token)
        logger.info("session.signed_in", user_id=token.user_id, persistent=persistent)
        return token

    async def sign_out(
        self,
        access_options: SessionAccessOptions = SessionAccessOptions.OPTIONAL_USER_ID_PRECONDITION,
    ) -> None:
        """セッションを無効化してクッキーを削除する。有効なセッションがなければ何もしない。"""
        token = await self.get_token(access_options)
        if token is None:
            return
        await self._store.invalidate(token)
        self.clear_token()
        logger.info("session.signed_out", user_id=token.user_id)

    def set_token(self, token: T) -> None:
        """トークンをエンコードしてセッションクッキーに設定する。"""
        max_age = token.valid_for if token.is_persistent else None
        cookie = SessionCookie(
            name=self._options.session_cookie_name,
            value=self._codec.encode(token),
            max_age=max_age,
            expires=self._clock() + max_age if max_age is not None else None,
        )
        self.response.set_cookie(cookie)

    def clear_token(self) -> None:
        self.response.delete_cookie(self._options.session_cookie_name)

    def _validate_user_id_precondition(self, token: T, optional: bool) -> None:
        name = self._options.user_id_precondition_name
        if name is None:
            return

        if self._options.user_id_precondition_source == "query":
            values = self.request.query_values(name)
        else:
            values = self.request.header_values(name)

        if not values:
            if optional:
                return
            raise UserRequiredError(f"Request is missing required '{name}' precondition.")

        if len(values) != 1:
            raise BadRequestError(f"Request contains multiple '{name}' values.")

        user_id = values[0]
        if not user_id.strip():
            raise BadRequestError(f"Empty user ID in '{name}' precondition.")

        if user_id != token.user_id:
            raise UserChangedError(
                f"Request user identified by '{name}' does not match session user."
            )

    async def _refresh(self, token: T, device: str) -> T | None:
        grace_period = self._options.multiple_refresh_grace_period

        for _ in range(_MAX_REFRESH_ATTEMPTS):
            now = self._clock()
            data = await self._store.load(token)

            if data is None:
                return None

            since_refresh = data.time_since_refresh(now)
            if since_refresh > data.valid_for or token.is_expired(now):
                await self._store.invalidate(token)
                logger.info("session.expired", user_id=token.user_id)
                return None

            if data.generation == token.generation:
                expected_generation = data.generation
                data.device = device
                data.ip_address = self.ip_address
                data.refreshed_utc = now
                data.valid_for = self._options.session_expiry(data.is_persistent)
                if since_refresh > grace_period:
                    data.generation += 1

                if not await self._store.update(data, expected_generation):
                    logger.debug(
                        "session.refresh.conflict",
                        user_id=token.user_id,
                        generation=expected_generation,
                    )
                    continue

            elif data.generation == token.generation + 1:
                reason = self._previous_generation_mismatch(data, device, since_refresh <= grace_period)
                if reason is not None:
                    await self._invalidate_anomaly(token, data, reason)
                    return None

            else:
                await self._invalidate_anomaly(token, data, "generation_mismatch")
                return None

            return await self._store.refresh(token, data)

        logger.warning("session.refresh.conflict_unresolved", user_id=token.user_id)
        return None

    def _previous_generation_mismatch(
        self, data: SessionData, device: str, within_grace: bool
    ) -> str | None:
        if not within_grace:
            return "grace_period_elapsed"
        if data.device != device:
            return "device_mismatch"
        if data.ip_address != self.ip_address:
            return "ip_address_mismatch"
        return None

    async def _invalidate_anomaly(self, token: T, data: SessionData, reason: str) -> None:
        # Possible compromise: drop the session without telling the client why.
        logger.warning(
            "session.refresh.anomaly",
            user_id=token.user_id,
            reason=reason,
            token_generation=token.generation,
            store_generation=data.generation,
        )
        await self._store.invalidate(token)
