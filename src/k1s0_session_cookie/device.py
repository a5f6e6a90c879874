"""User-Agent からデバイス文字列を組み立てる"""

from __future__ import annotations

from user_agents import parse

_UNKNOWN_FAMILY = "Other"


def device_from_user_agent(user_agent: str) -> str:
    """User-Agent を "{OS} ({ブラウザ} {バージョン})" 形式に変換する。

    OS・ブラウザ名・バージョンのいずれかが判別できなければ User-Agent をそのまま返す。
    """
    parsed = parse(user_agent)
    platform = parsed.os.family
    browser = parsed.browser.family
    version = parsed.browser.version_string

    if _UNKNOWN_FAMILY in (platform, browser) or not version:
        return user_agent
    return f"{platform} ({browser} {version})"
