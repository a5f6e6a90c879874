"""セッション処理設定（pydantic BaseModel）と YAML ローダー"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from .exceptions import ConfigError, ConfigErrorCodes
from .models import SessionAccessOptions


class SessionHandlingOptions(BaseModel):
    """セッション処理設定。"""

    session_cookie_name: str = Field(default="session-token", min_length=1)
    user_id_precondition_name: str | None = "If-User-Id"
    user_id_precondition_source: Literal["header", "query"] = "header"
    forced_access_options: SessionAccessOptions = SessionAccessOptions.NONE
    multiple_refresh_grace_period: timedelta = timedelta(seconds=10)
    temp_session_expiry: timedelta = timedelta(days=1)
    persistent_session_expiry: timedelta = timedelta(days=30)
    trusted_origins: list[str] = Field(default_factory=list)
    envelope: Literal["aead", "hmac"] = "aead"
    secret: SecretStr

    @field_validator("user_id_precondition_name")
    @classmethod
    def _non_empty_name(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("user_id_precondition_name must be non-empty or null")
        return value

    @field_validator("forced_access_options", mode="before")
    @classmethod
    def _parse_flags(cls, value: Any) -> Any:
        """YAML ではフラグ名のリスト（例: ["FORCE_REFRESH"]）でも指定できる。"""
        if isinstance(value, int) and not isinstance(value, SessionAccessOptions):
            return SessionAccessOptions(value)
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            flags = SessionAccessOptions.NONE
            for name in value:
                try:
                    flags |= SessionAccessOptions[str(name).upper()]
                except KeyError as e:
                    raise ValueError(f"Unknown session access option: {name}") from e
            return flags
        return value

    @field_validator("secret")
    @classmethod
    def _secret_length(cls, value: SecretStr) -> SecretStr:
        if len(value.get_secret_value()) < 16:
            raise ValueError("secret must be at least 16 characters")
        return value

    @field_validator(
        "multiple_refresh_grace_period",
        "temp_session_expiry",
        "persistent_session_expiry",
    )
    @classmethod
    def _non_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("duration must not be negative")
        return value

    def session_expiry(self, persistent: bool) -> timedelta:
        """永続/一時セッションの有効期間を返す。"""
        return self.persistent_session_expiry if persistent else self.temp_session_expiry


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """base と override をディープマージして新しい辞書を返す。"""
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code=ConfigErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_options(
    base_path: Path,
    env_path: Path | None = None,
    section: str | None = "session",
) -> SessionHandlingOptions:
    """設定ファイルを読み込んで SessionHandlingOptions を返す。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合はベースにマージ。
    section: 設定が置かれているトップレベルキー。None ならファイル全体を使う。
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = deep_merge(data, _read_yaml(env_path))
    if section is not None:
        data = data.get(section) or {}
    try:
        return SessionHandlingOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            code=ConfigErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
