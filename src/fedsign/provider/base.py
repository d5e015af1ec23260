"""認証プロバイダSDKとの境界。

プロバイダSDKは外部コンポーネントであり、ここではコールバック形式の契約と
SDKが返すデータ型のみを定義する。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, FrozenSet, Optional, Sequence


class ProviderErrorCode(Enum):
    """プロバイダが返すステータスコード。"""

    UNKNOWN = -1
    KEYCHAIN = -2
    HAS_NO_AUTH_IN_KEYCHAIN = -4
    CANCELED = -5
    EMM = -6
    SCOPES_ALREADY_GRANTED = -8
    MISMATCH_WITHOUT_CURRENT_USER = -9


class ProviderError(Exception):
    """プロバイダが返すエラー。"""

    def __init__(
        self,
        description: str,
        code: int | ProviderErrorCode = ProviderErrorCode.UNKNOWN,
        domain: str = "signin",
    ) -> None:
        super().__init__(description)
        self.description = description
        self.code = code.value if isinstance(code, ProviderErrorCode) else code
        self.domain = domain


@dataclass(frozen=True, slots=True)
class SignInConfiguration:
    """プロバイダに渡すクライアント設定。"""

    client_id: str
    server_client_id: str | None = None
    hosted_domain: str | None = None
    openid_realm: str | None = None


@dataclass(frozen=True)
class ProviderProfile:
    """プロバイダが返すプロフィール情報。欠損があり得る。"""

    email: str | None = None
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class ProviderAuthentication:
    """プロバイダが発行した認証情報。"""

    access_token: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class ProviderUser:
    """プロバイダが返すユーザー。"""

    user_id: str | None
    profile: ProviderProfile | None = None
    granted_scopes: FrozenSet[str] | None = None
    authentication: ProviderAuthentication | None = None


SignInCallback = Callable[[Optional[ProviderUser], Optional[BaseException]], None]
DisconnectCallback = Callable[[Optional[BaseException]], None]


class IdentityProviderSDK(ABC):
    """認証プロバイダSDKの抽象基底クラス。

    完了通知はすべてコールバックで行われ、任意のスレッドから呼ばれ得る。
    """

    @abstractmethod
    def configure(self, configuration: SignInConfiguration) -> None:
        """クライアント設定を適用する。"""

    @abstractmethod
    def sign_in(
        self,
        presentation_context: Any,
        scopes: Sequence[str] | None,
        on_complete: SignInCallback,
        hint: str | None = None,
        nonce: str | None = None,
    ) -> None:
        """対話的サインインを開始し、完了時に (user, error) を通知する。"""

    @abstractmethod
    def restore_previous_sign_in(self, on_complete: SignInCallback) -> None:
        """保存済みのサインイン状態を復元し、完了時に (user, error) を通知する。"""

    @abstractmethod
    def sign_out(self) -> None:
        """ローカルのサインイン状態を破棄する（完了通知なし）。"""

    @abstractmethod
    def disconnect(self, on_complete: DisconnectCallback) -> None:
        """アカウント連携を解除し、完了時に error（成功時 None）を通知する。"""

    @abstractmethod
    def handle_url(self, url: str) -> bool:
        """リダイレクトURLを処理し、SDKが受理したかを返す。"""
