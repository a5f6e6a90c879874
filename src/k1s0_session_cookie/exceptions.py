"""session_cookie ライブラリの例外型定義"""

from __future__ import annotations


class SessionError(Exception):
    """session_cookie ライブラリのエラー基底クラス。

    status_code はホスト側パイプラインが HTTP レスポンスへ変換する際に使う。
    """

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class SessionErrorCodes:
    """SessionError のエラーコード定数。"""

    BAD_REQUEST: str = "BAD_REQUEST"
    UNAUTHORIZED: str = "UNAUTHORIZED"
    FORBIDDEN: str = "FORBIDDEN"
    USER_CHANGED: str = "USER_CHANGED"
    USER_REQUIRED: str = "USER_REQUIRED"


class BadRequestError(SessionError):
    """リクエストヘッダーが不正または曖昧な場合のエラー。"""

    status_code = 400

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SessionErrorCodes.BAD_REQUEST, message, cause)


class UnauthorizedError(SessionError):
    """有効なセッションが必要なのに存在しない場合のエラー。"""

    status_code = 401

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SessionErrorCodes.UNAUTHORIZED, message, cause)


class ForbiddenError(SessionError):
    """信頼されていないオリジンからのリクエスト。"""

    status_code = 403

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SessionErrorCodes.FORBIDDEN, message, cause)


class UserChangedError(SessionError):
    """前提条件のユーザー ID がセッションのユーザーと一致しない。"""

    status_code = 412

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SessionErrorCodes.USER_CHANGED, message, cause)


class UserRequiredError(SessionError):
    """前提条件のユーザー ID が指定されていない。"""

    status_code = 428

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SessionErrorCodes.USER_REQUIRED, message, cause)


class EnvelopeError(Exception):
    """トークンエンベロープのデコード失敗。

    コンテキスト内部で常に吸収され、呼び出し元には「未サインイン」として扱われる。
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class EnvelopeErrorCodes:
    """EnvelopeError のエラーコード定数。"""

    INVALID_ENVELOPE: str = "INVALID_ENVELOPE"
    AUTHENTICATION_FAILED: str = "AUTHENTICATION_FAILED"
    EMPTY_PAYLOAD: str = "EMPTY_PAYLOAD"


class ConfigError(Exception):
    """設定読み込みのエラー。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ConfigErrorCodes:
    """ConfigError のエラーコード定数。"""

    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
