"""structlog ベースのロガー設定

どの出力形式でも ``redact_sensitive`` が機密キーの値をマスクしてから描画する。
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

LOGGER_NAME = "k1s0_session_cookie"
REDACTED = "***"
SENSITIVE_KEYS = frozenset({"secret", "envelope", "cookie", "set_cookie"})


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """機密キーの値をマスクする structlog プロセッサ。"""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _renderer(format: str) -> structlog.types.Processor:
    if format == "json":
        return structlog.processors.JSONRenderer()
    if format == "text":
        return structlog.dev.ConsoleRenderer()
    raise ValueError(f"unsupported log format: {format!r}")


def configure_logging(
    level: str = "INFO", format: str = "json", stream: TextIO | None = None
) -> structlog.stdlib.BoundLogger:
    """structlog を設定し、ライブラリ用のロガーを返す。

    Args:
        level: ログレベル ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        format: 出力形式 ("json" or "text")
        stream: 出力先。省略時は標準出力

    Raises:
        ValueError: 未知の出力形式が指定された場合
    """
    renderer = _renderer(format)
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return get_logger(LOGGER_NAME)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)
