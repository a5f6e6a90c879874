"""セッション関連データモデル"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionAccessOptions(enum.Flag):
    """セッショントークン取得時のオプションフラグ。"""

    NONE = 0
    FORCE_REFRESH = enum.auto()
    OPTIONAL_USER_ID_PRECONDITION = enum.auto()
    ALLOW_ALL_ORIGINS = enum.auto()


class SessionToken(BaseModel):
    """クッキーに格納されるセッショントークン。

    アプリケーションはこのクラスを継承してセッション ID などのフィールドを追加できる。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str = Field(min_length=1)
    refreshed_utc: datetime
    refresh_after: timedelta
    valid_for: timedelta
    generation: int = Field(default=0, ge=0)
    is_persistent: bool = False

    @field_validator("refreshed_utc")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def is_stale(self, now: datetime) -> bool:
        """リフレッシュ時期を過ぎているか確認する。"""
        return now > self.refreshed_utc + self.refresh_after

    def is_expired(self, now: datetime) -> bool:
        """リフレッシュ不可能なほど古いか確認する。"""
        return now > self.refreshed_utc + self.valid_for


@dataclass
class SessionData:
    """サーバー側で保持するセッションレコード。generation はこちらが正。

    session_id はストアが割り当てるレコードキー。
    """

    session_id: str
    user_id: str
    device: str
    ip_address: str | None
    refreshed_utc: datetime
    valid_for: timedelta
    generation: int = 0
    is_persistent: bool = False

    def time_since_refresh(self, now: datetime) -> timedelta:
        return now - self.refreshed_utc


@dataclass(frozen=True)
class SignInInfo:
    """サインイン時に生成され、最初のトークン発行に渡される情報。"""

    device: str
    ip_address: str | None
    session_expiry: timedelta
    is_persistent: bool
