"""Origin ヘッダーの信頼判定"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from urllib.parse import urlsplit


class OriginValidator(ABC):
    """オリジン判定の抽象基底クラス。"""

    @abstractmethod
    def is_allowed(self, origin: str) -> bool:
        """オリジンがセッションへのアクセスを許可されているか確認する。"""
        ...


class TrustedOriginValidator(OriginValidator):
    """信頼済みホストパターンのリストでオリジンを判定する。

    ``*`` で始まるパターンは残りの部分でホストの後方一致を行う。
    例: ``*.example.com`` は ``api.example.com`` に一致するが ``example.com`` には一致しない。
    それ以外のパターンはホスト名の完全一致（大文字小文字を区別しない）。
    """

    def __init__(self, trusted_origins: Iterable[str] = ()) -> None:
        self._trusted_origins = tuple(trusted_origins)

    @property
    def trusted_origins(self) -> tuple[str, ...]:
        return self._trusted_origins

    def is_allowed(self, origin: str) -> bool:
        host = _parse_host(origin)
        if host is None:
            return False

        for pattern in self._trusted_origins:
            if pattern.startswith("*"):
                if host.endswith(pattern[1:].lower()):
                    return True
            elif host == pattern.lower():
                return True
        return False


def _parse_host(origin: str) -> str | None:
    """絶対 URI からホスト名（小文字）を取り出す。解析できなければ None。"""
    try:
        parts = urlsplit(origin.strip())
        # port の不正値はここで ValueError になる
        _ = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    return parts.hostname
