"""
共通データモデル

セッション状態と、プロバイダのユーザーデータから構築する不変のセッションを定義
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, FrozenSet, List, Optional, Union

from fedsign.errors import SignInError, mask_secret
from fedsign.provider.base import ProviderUser


class SessionStatus(Enum):
    """セッション状態の種別"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class SessionConstructionError(ValueError):
    """プロバイダのユーザーデータからセッションを構築できない場合のエラー

    Attributes:
        part: 構築に失敗した部分（"profile" / "remote_session" / "session"）
        missing: 欠損していた項目名
    """

    def __init__(self, part: str, missing: List[str]):
        self.part = part
        self.missing = list(missing)
        super().__init__(f"{part} の構築に必要な項目がありません: {', '.join(self.missing)}")


def _present(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


@dataclass(frozen=True)
class Profile:
    """ユーザープロフィール

    Attributes:
        user_id: プロバイダ上の安定したユーザーID
        name: 表示名
        email: メールアドレス
        given_name: 名
        family_name: 姓
        image_url: アバター画像のURL
    """
    user_id: str
    name: str
    email: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_provider_user(cls, user: Optional[ProviderUser]) -> "Profile":
        """プロバイダのユーザーからプロフィールを構築する

        Raises:
            SessionConstructionError: ID・表示名・メールアドレスのいずれかが無い場合
        """
        if user is None:
            raise SessionConstructionError("profile", ["user"])

        profile = user.profile
        missing = []
        if not _present(user.user_id):
            missing.append("user_id")
        if profile is None:
            missing.append("profile")
        else:
            if not _present(profile.name):
                missing.append("name")
            if not _present(profile.email):
                missing.append("email")
        if missing:
            raise SessionConstructionError("profile", missing)

        return cls(
            user_id=user.user_id,
            name=profile.name,
            email=profile.email,
            given_name=profile.given_name,
            family_name=profile.family_name,
            image_url=profile.image_url,
        )


@dataclass(frozen=True)
class RemoteSession:
    """バックエンド呼び出しに使うプロバイダ発行の認証情報

    Attributes:
        access_token: アクセストークン
        id_token: IDトークン
        refresh_token: リフレッシュトークン
        expires_at: アクセストークンの有効期限
        granted_scopes: 付与済みスコープ
    """
    access_token: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    granted_scopes: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_provider_user(cls, user: Optional[ProviderUser]) -> "RemoteSession":
        """プロバイダのユーザーから認証情報を構築する

        Raises:
            SessionConstructionError: 認証オブジェクトまたはアクセストークンが無い場合
        """
        if user is None:
            raise SessionConstructionError("remote_session", ["user"])

        auth = user.authentication
        if auth is None:
            raise SessionConstructionError("remote_session", ["authentication"])
        if not _present(auth.access_token):
            raise SessionConstructionError("remote_session", ["access_token"])

        return cls(
            access_token=auth.access_token,
            id_token=auth.id_token,
            refresh_token=auth.refresh_token,
            expires_at=auth.expires_at,
            granted_scopes=frozenset(s for s in (user.granted_scopes or ()) if s),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """アクセストークンが期限切れかどうか（期限不明なら False）"""
        if self.expires_at is None:
            return False
        current = now or datetime.now(self.expires_at.tzinfo)
        return current >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"RemoteSession(access_token={mask_secret(self.access_token)}, "
            f"id_token={mask_secret(self.id_token) if self.id_token else None}, "
            f"refresh_token={mask_secret(self.refresh_token) if self.refresh_token else None}, "
            f"expires_at={self.expires_at}, granted_scopes={sorted(self.granted_scopes)})"
        )


@dataclass(frozen=True)
class Session:
    """プロフィールと認証情報の組。両方が揃った場合にのみ存在する"""
    profile: Profile
    remote_session: RemoteSession


def build_session(user: Optional[ProviderUser]) -> Session:
    """プロバイダのユーザーからセッションを構築する

    プロフィールと認証情報を独立に構築し、両方成功した場合のみ Session を返す。

    Raises:
        SessionConstructionError: いずれかの構築に失敗した場合（欠損項目をすべて含む）
    """
    failures: List[SessionConstructionError] = []
    profile: Optional[Profile] = None
    remote_session: Optional[RemoteSession] = None

    try:
        profile = Profile.from_provider_user(user)
    except SessionConstructionError as exc:
        failures.append(exc)

    try:
        remote_session = RemoteSession.from_provider_user(user)
    except SessionConstructionError as exc:
        failures.append(exc)

    if failures or profile is None or remote_session is None:
        missing = [f"{exc.part}.{name}" for exc in failures for name in exc.missing]
        raise SessionConstructionError("session", missing)

    return Session(profile=profile, remote_session=remote_session)


@dataclass(frozen=True)
class Disconnected:
    """未接続（初期状態）"""
    status: ClassVar[SessionStatus] = SessionStatus.DISCONNECTED


@dataclass(frozen=True)
class Connecting:
    """対話的サインインの完了待ち"""
    status: ClassVar[SessionStatus] = SessionStatus.CONNECTING


@dataclass(frozen=True)
class Connected:
    """サインイン済み"""
    session: Session
    status: ClassVar[SessionStatus] = SessionStatus.CONNECTED


@dataclass(frozen=True)
class Failed:
    """直近の試行が失敗した"""
    error: SignInError
    status: ClassVar[SessionStatus] = SessionStatus.FAILED


SessionState = Union[Disconnected, Connecting, Connected, Failed]
