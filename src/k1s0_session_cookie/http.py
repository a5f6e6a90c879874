"""Framework-neutral request / response seam.

Host adapters copy the incoming request's headers, cookies, query string
and remote address into a :class:`SessionRequest`, and after the handler
has run, replay every :class:`SessionCookie` collected on the
:class:`SessionResponse` onto their own response object.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Literal

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _normalize(pairs: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for name, value in pairs:
        result.setdefault(name.lower(), []).append(value)
    return result


def _pairs(values: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None) -> list[tuple[str, str]]:
    if values is None:
        return []
    if isinstance(values, Mapping):
        pairs: list[tuple[str, str]] = []
        for name, value in values.items():
            if isinstance(value, str):
                pairs.append((name, value))
            else:
                pairs.extend((name, v) for v in value)
        return pairs
    return list(values)


@dataclass
class SessionRequest:
    """The parts of an HTTP request the session context reads.

    Header and query names are case-insensitive; every occurrence of a
    repeated field is kept so that ambiguous requests can be rejected.
    """

    headers: dict[str, list[str]] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    query: dict[str, list[str]] = field(default_factory=dict)
    remote_addr: str | None = None

    @classmethod
    def build(
        cls,
        headers: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None = None,
        cookies: Mapping[str, str] | None = None,
        query: Mapping[str, str | list[str]] | Iterable[tuple[str, str]] | None = None,
        remote_addr: str | None = None,
    ) -> SessionRequest:
        return cls(
            headers=_normalize(_pairs(headers)),
            cookies=dict(cookies or {}),
            query=_normalize(_pairs(query)),
            remote_addr=remote_addr,
        )

    def header_values(self, name: str) -> list[str]:
        return self.headers.get(name.lower(), [])

    def query_values(self, name: str) -> list[str]:
        return self.query.get(name.lower(), [])


@dataclass(frozen=True)
class SessionCookie:
    """A cookie mutation to apply to the outgoing response."""

    name: str
    value: str
    max_age: timedelta | None = None
    expires: datetime | None = None
    path: str = "/"
    http_only: bool = True
    secure: bool = True
    same_site: Literal["None", "Lax", "Strict"] = "None"

    @property
    def is_deletion(self) -> bool:
        return self.value == "" and self.max_age == timedelta(0)

    def to_header(self) -> str:
        """Render the ``Set-Cookie`` header value."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={int(self.max_age.total_seconds())}")
        if self.expires is not None:
            parts.append(f"Expires={format_datetime(self.expires.astimezone(timezone.utc), usegmt=True)}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        parts.append(f"SameSite={self.same_site}")
        return "; ".join(parts)


@dataclass
class SessionResponse:
    """Collects cookie mutations in the order they were made."""

    cookies: list[SessionCookie] = field(default_factory=list)

    def set_cookie(self, cookie: SessionCookie) -> None:
        self.cookies = [c for c in self.cookies if c.name != cookie.name]
        self.cookies.append(cookie)

    def delete_cookie(self, name: str) -> None:
        self.set_cookie(
            SessionCookie(name=name, value="", max_age=timedelta(0), expires=_EPOCH)
        )

    def get_cookie(self, name: str) -> SessionCookie | None:
        for cookie in self.cookies:
            if cookie.name == name:
                return cookie
        return None

    def set_cookie_headers(self) -> list[str]:
        return [cookie.to_header() for cookie in self.cookies]
