"""SessionStore 抽象基底クラスとインメモリ実装"""

from __future__ import annotations

import asyncio
import dataclasses
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

from pydantic import Field

from .models import SessionData, SessionToken, SignInInfo

T = TypeVar("T", bound=SessionToken)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(ABC, Generic[T]):
    """セッションストア抽象基底クラス。

    同一セッションに対する update はアトミックな compare-and-set でなければならない。
    """

    @abstractmethod
    async def load(self, token: T) -> SessionData | None:
        """トークンに対応するセッションレコードを取得する。存在しなければ None。

        返すレコードは呼び出し元が変更してよいコピーであること。
        """
        ...

    @abstractmethod
    async def update(self, data: SessionData, expected_generation: int) -> bool:
        """ストア上の generation が expected_generation と一致する場合のみ更新する。

        一致しなかった場合（他のリクエストが先に更新した場合）は False を返す。
        """
        ...

    @abstractmethod
    async def invalidate(self, token: T) -> None:
        """セッションを無効化する。存在しない場合は何もしない。"""
        ...

    @abstractmethod
    async def refresh(self, previous_token: T, data: SessionData) -> T:
        """更新後のレコードから新しいトークンを発行する。"""
        ...


class StoredSessionToken(SessionToken):
    """インメモリストアが発行するトークン。セッション ID でレコードを引く。"""

    session_id: str = Field(min_length=1)


class InMemorySessionStore(SessionStore[StoredSessionToken]):
    """テスト用インメモリセッションストア。"""

    def __init__(
        self,
        refresh_after: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._records: dict[str, SessionData] = {}
        self._lock = asyncio.Lock()
        self._refresh_after = refresh_after
        self._clock = clock

    async def create(self, user_id: str, info: SignInInfo) -> StoredSessionToken:
        """サインイン時にレコードを作成し、最初のトークンを発行する。"""
        now = self._clock()
        session_id = str(uuid.uuid4())
        data = SessionData(
            session_id=session_id,
            user_id=user_id,
            device=info.device,
            ip_address=info.ip_address,
            refreshed_utc=now,
            valid_for=info.session_expiry,
            generation=0,
            is_persistent=info.is_persistent,
        )
        async with self._lock:
            self._records[session_id] = data
        return self._mint(session_id, data)

    async def load(self, token: StoredSessionToken) -> SessionData | None:
        async with self._lock:
            data = self._records.get(token.session_id)
            if data is None or data.user_id != token.user_id:
                return None
            return dataclasses.replace(data)

    async def update(self, data: SessionData, expected_generation: int) -> bool:
        async with self._lock:
            current = self._records.get(data.session_id)
            if current is None or current.generation != expected_generation:
                return False
            self._records[data.session_id] = dataclasses.replace(data)
            return True

    async def invalidate(self, token: StoredSessionToken) -> None:
        async with self._lock:
            self._records.pop(token.session_id, None)

    async def refresh(self, previous_token: StoredSessionToken, data: SessionData) -> StoredSessionToken:
        return self._mint(data.session_id or previous_token.session_id, data)

    def get(self, session_id: str) -> SessionData | None:
        data = self._records.get(session_id)
        return dataclasses.replace(data) if data is not None else None

    def __len__(self) -> int:
        return len(self._records)

    def _mint(self, session_id: str, data: SessionData) -> StoredSessionToken:
        return StoredSessionToken(
            session_id=session_id,
            user_id=data.user_id,
            refreshed_utc=data.refreshed_utc,
            refresh_after=self._refresh_after,
            valid_for=data.valid_for,
            generation=data.generation,
            is_persistent=data.is_persistent,
        )
