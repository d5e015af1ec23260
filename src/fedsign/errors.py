"""
エラー定義

サインインで発生するエラー種別と、プロバイダ起因の失敗をそれらへ写像する関数
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from fedsign.provider.base import ProviderErrorCode, ProviderUser


class ErrorCode(Enum):
    """設定エラーのコード

    サインイン結果のエラーは SignInErrorKind で表し、こちらは設定読み込み専用。
    """
    CONFIG_MISSING_CLIENT_ID = "CONFIG_001"
    CONFIG_INVALID_VALUE = "CONFIG_002"
    CONFIG_PARSE_ERROR = "CONFIG_003"


class SignInErrorKind(Enum):
    """サインインエラーの種別（閉じた集合）"""
    FAILED_SIGN_IN = "SIGNIN_001"
    NO_STORED_CREDENTIAL = "SIGNIN_002"
    UNDEFINED_USER = "SIGNIN_003"
    PERMISSION_DENIED = "SIGNIN_004"
    INVALID_USER_DATA = "SIGNIN_005"
    UNEXPECTED = "SIGNIN_006"


STATUS_CODES: Dict[SignInErrorKind, int] = {
    SignInErrorKind.FAILED_SIGN_IN: 400,
    SignInErrorKind.NO_STORED_CREDENTIAL: 401,
    SignInErrorKind.UNDEFINED_USER: 401,
    SignInErrorKind.INVALID_USER_DATA: 422,
    SignInErrorKind.UNEXPECTED: 500,
    SignInErrorKind.PERMISSION_DENIED: 501,
}

KIND_LOG_LEVEL: Dict[SignInErrorKind, int] = {
    SignInErrorKind.FAILED_SIGN_IN: logging.WARNING,
    SignInErrorKind.NO_STORED_CREDENTIAL: logging.INFO,
    SignInErrorKind.UNDEFINED_USER: logging.ERROR,
    SignInErrorKind.PERMISSION_DENIED: logging.WARNING,
    SignInErrorKind.INVALID_USER_DATA: logging.ERROR,
    SignInErrorKind.UNEXPECTED: logging.ERROR,
}

FAILED_SIGN_IN_MESSAGE = "Sign-in failed"
UNDEFINED_USER_MESSAGE = "The identity provider returned neither a user nor an error"
PERMISSION_DENIED_MESSAGE = "The account has not granted the required permissions"
INVALID_USER_DATA_MESSAGE = "The identity provider returned incomplete user data"
UNEXPECTED_MESSAGE = "Unexpected system error"


@dataclass(frozen=True)
class SignInError:
    """サインインエラー情報

    Attributes:
        kind: エラー種別
        code: 種別ごとに固定の数値コード
        message: 表示用メッセージ
        cause: 元になったプロバイダの例外
        provider_code: プロバイダ固有のステータスコード
        details: 追加のエラー詳細情報
        log_level: ログ出力レベル
    """
    kind: SignInErrorKind
    code: int
    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)
    provider_code: Optional[int] = None
    details: Optional[Dict[str, Any]] = field(default=None, compare=False)
    log_level: int = field(default=logging.ERROR, compare=False)

    @property
    def category(self) -> str:
        """カテゴリ文字列（例: SIGNIN_004）"""
        return self.kind.value

    def __str__(self) -> str:
        return f"[{self.category}] {self.message}"


@dataclass
class ConfigError:
    """設定エラー情報

    Attributes:
        code: エラーコード文字列
        message: エラーメッセージ
        details: 追加のエラー詳細情報
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class FedsignException(Exception):
    """設定層で送出する例外

    サインイン操作の公開APIからは送出されない。
    """

    def __init__(self, error: ConfigError):
        self.error = error
        super().__init__(f"[{error.code}] {error.message}")


def mask_secret(value: Optional[str]) -> str:
    """鍵やトークンをマスクしてログ出力を避ける"""
    if not value:
        return "***"
    if len(value) <= 4:
        return "*" * len(value)
    return f"***{value[-4:]}"


def describe_error(error: BaseException) -> str:
    """プロバイダ例外から表示用の説明文を取り出す"""
    description = getattr(error, "description", None)
    if isinstance(description, str) and description:
        return description
    return str(error) or type(error).__name__


def provider_error_code(error: BaseException) -> Optional[int]:
    """プロバイダ例外のステータスコードを取り出す（無ければ None）"""
    code = getattr(error, "code", None)
    if isinstance(code, ProviderErrorCode):
        return code.value
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


def _make_error(
    kind: SignInErrorKind,
    message: str,
    cause: Optional[BaseException] = None,
    provider_code: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> SignInError:
    return SignInError(
        kind=kind,
        code=STATUS_CODES[kind],
        message=message,
        cause=cause,
        provider_code=provider_code,
        details=details,
        log_level=KIND_LOG_LEVEL[kind],
    )


def create_failed_sign_in_error(cause: BaseException) -> SignInError:
    """プロバイダが返したエラーからサインイン失敗を作成

    プロバイダのコードが「保存済み認証情報なし」と一致する場合は
    NO_STORED_CREDENTIAL に読み替え、メッセージに "401: " を前置する。

    Args:
        cause: プロバイダが返したエラー

    Returns:
        SignInError: FAILED_SIGN_IN または NO_STORED_CREDENTIAL
    """
    code = provider_error_code(cause)
    description = describe_error(cause)
    if code == ProviderErrorCode.HAS_NO_AUTH_IN_KEYCHAIN.value:
        status = STATUS_CODES[SignInErrorKind.NO_STORED_CREDENTIAL]
        return _make_error(
            SignInErrorKind.NO_STORED_CREDENTIAL,
            f"{status}: {FAILED_SIGN_IN_MESSAGE}: {description}",
            cause=cause,
            provider_code=code,
        )
    return _make_error(
        SignInErrorKind.FAILED_SIGN_IN,
        description,
        cause=cause,
        provider_code=code,
    )


def create_undefined_user_error() -> SignInError:
    """ユーザーもエラーも返らなかった応答を表すエラーを作成"""
    return _make_error(SignInErrorKind.UNDEFINED_USER, UNDEFINED_USER_MESSAGE)


def create_permission_denied_error(
    details: Optional[Dict[str, Any]] = None,
) -> SignInError:
    """必要スコープを満たさないユーザーのエラーを作成"""
    return _make_error(
        SignInErrorKind.PERMISSION_DENIED,
        PERMISSION_DENIED_MESSAGE,
        details=details,
    )


def create_invalid_user_data_error(
    details: Optional[Dict[str, Any]] = None,
) -> SignInError:
    """セッション構築に失敗したユーザーデータのエラーを作成"""
    return _make_error(
        SignInErrorKind.INVALID_USER_DATA,
        INVALID_USER_DATA_MESSAGE,
        details=details,
    )


def create_unexpected_error(
    message: Optional[str] = None,
    cause: Optional[BaseException] = None,
) -> SignInError:
    """想定外のエラーを作成

    Args:
        message: 表示用メッセージ（省略時は汎用メッセージ）
        cause: 元になった例外
    """
    return _make_error(
        SignInErrorKind.UNEXPECTED,
        message or UNEXPECTED_MESSAGE,
        cause=cause,
        provider_code=provider_error_code(cause) if cause is not None else None,
    )


def create_config_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> ConfigError:
    """設定エラーを作成"""
    return ConfigError(code=code.value, message=message, details=details)


def classify_provider_result(
    user: Optional[ProviderUser],
    error: Optional[BaseException],
) -> Optional[SignInError]:
    """プロバイダの (user, error) の組をエラー種別へ分類する

    Returns:
        ユーザーのみが返った場合は None（エラー経路ではない）、
        それ以外は対応する SignInError
    """
    if user is not None and error is None:
        return None
    if user is None and error is not None:
        return create_failed_sign_in_error(error)
    if user is None:
        return create_undefined_user_error()
    # プロバイダ契約上は到達しない組み合わせ
    return create_unexpected_error(cause=error)
