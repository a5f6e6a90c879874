"""共通フィクスチャ"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

import pytest

from k1s0_session_cookie import (
    InMemorySessionStore,
    SessionContext,
    SessionContextFactory,
    SessionHandlingOptions,
    SessionRequest,
    SessionResponse,
    StoredSessionToken,
)

USER_ID = "user-1"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:131.0) Gecko/20100101 Firefox/131.0"
IP_ADDRESS = "203.0.113.5"
SECRET = "unit-test-secret-0123456789"


class FrozenClock:
    """手動で進める時計。"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def options() -> SessionHandlingOptions:
    return SessionHandlingOptions(
        secret=SECRET,
        trusted_origins=["app.example.org", "*.example.com"],
    )


@pytest.fixture
def store(clock: FrozenClock) -> InMemorySessionStore:
    return InMemorySessionStore(refresh_after=timedelta(minutes=5), clock=clock)


@pytest.fixture
def factory(
    options: SessionHandlingOptions, store: InMemorySessionStore, clock: FrozenClock
) -> SessionContextFactory[StoredSessionToken]:
    return SessionContextFactory.from_options(options, store, StoredSessionToken, clock=clock)


def make_request(
    cookie: str | None = None,
    headers: Mapping[str, str | list[str]] | None = None,
    user_id: str | None = USER_ID,
    user_agent: str | None = USER_AGENT,
    remote_addr: str | None = IP_ADDRESS,
    cookie_name: str = "session-token",
) -> SessionRequest:
    all_headers: dict[str, str | list[str]] = {}
    if user_agent is not None:
        all_headers["User-Agent"] = user_agent
    if user_id is not None:
        all_headers["If-User-Id"] = user_id
    all_headers.update(headers or {})
    cookies = {cookie_name: cookie} if cookie is not None else {}
    return SessionRequest.build(headers=all_headers, cookies=cookies, remote_addr=remote_addr)


async def sign_in(
    factory: SessionContextFactory[StoredSessionToken],
    store: InMemorySessionStore,
    persistent: bool = True,
) -> tuple[StoredSessionToken, str]:
    """サインインしてトークンとクッキー値を返す。"""
    ctx = factory.create(make_request())
    token = await ctx.sign_in(persistent, lambda info: store.create(USER_ID, info))
    cookie = ctx.response.get_cookie("session-token")
    assert cookie is not None
    return token, cookie.value


def context_for(
    factory: SessionContextFactory[StoredSessionToken], cookie: str | None, **kwargs: object
) -> SessionContext[StoredSessionToken]:
    return factory.create(make_request(cookie=cookie, **kwargs), SessionResponse())  # type: ignore[arg-type]
