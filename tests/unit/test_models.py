"""
データモデルのユニットテスト
"""

import unittest
from datetime import datetime, timedelta, timezone

from fedsign.errors import create_unexpected_error
from fedsign.models import (
    Connected,
    Disconnected,
    Failed,
    Profile,
    RemoteSession,
    Session,
    SessionConstructionError,
    SessionStatus,
    build_session,
)
from fedsign.provider.base import ProviderAuthentication, ProviderProfile, ProviderUser


def make_user(**overrides) -> ProviderUser:
    values = dict(
        user_id="1234567890",
        profile=ProviderProfile(
            email="ritsuko@example.com",
            name="Ritsuko Akagi",
            given_name="Ritsuko",
            family_name="Akagi",
            image_url="https://example.com/avatar.png",
        ),
        granted_scopes=frozenset({"email", "profile"}),
        authentication=ProviderAuthentication(
            access_token="ya29.access-token-value",
            id_token="eyJ.id-token",
            refresh_token="1//refresh-token",
            expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        ),
    )
    values.update(overrides)
    return ProviderUser(**values)


class TestBuildSession(unittest.TestCase):
    """build_sessionのテスト"""

    def test_builds_session_from_complete_user(self):
        """プロフィールと認証情報が揃ったユーザーからセッションを構築できること"""
        session = build_session(make_user())

        self.assertIsInstance(session, Session)
        self.assertEqual(session.profile.user_id, "1234567890")
        self.assertEqual(session.profile.email, "ritsuko@example.com")
        self.assertEqual(session.profile.image_url, "https://example.com/avatar.png")
        self.assertEqual(session.remote_session.access_token, "ya29.access-token-value")
        self.assertEqual(session.remote_session.granted_scopes, frozenset({"email", "profile"}))

    def test_missing_authentication_fails(self):
        """認証オブジェクトが無い場合は構築に失敗すること"""
        with self.assertRaises(SessionConstructionError) as ctx:
            build_session(make_user(authentication=None))
        self.assertEqual(ctx.exception.part, "session")
        self.assertEqual(ctx.exception.missing, ["remote_session.authentication"])

    def test_missing_access_token_fails(self):
        """アクセストークンが空の場合は構築に失敗すること"""
        with self.assertRaises(SessionConstructionError) as ctx:
            build_session(make_user(authentication=ProviderAuthentication(access_token="")))
        self.assertIn("remote_session.access_token", ctx.exception.missing)

    def test_reports_every_missing_field(self):
        """プロフィールと認証情報の両方の欠損を報告すること"""
        user = make_user(
            profile=ProviderProfile(email=None, name="Ritsuko"),
            authentication=None,
        )
        with self.assertRaises(SessionConstructionError) as ctx:
            build_session(user)
        self.assertEqual(
            ctx.exception.missing,
            ["profile.email", "remote_session.authentication"],
        )

    def test_none_user_fails(self):
        with self.assertRaises(SessionConstructionError):
            build_session(None)

    def test_construction_error_is_value_error(self):
        self.assertTrue(issubclass(SessionConstructionError, ValueError))


class TestProfile(unittest.TestCase):
    """Profileのテスト"""

    def test_blank_name_is_missing(self):
        """空白のみの表示名は欠損扱いになること"""
        with self.assertRaises(SessionConstructionError) as ctx:
            Profile.from_provider_user(make_user(profile=ProviderProfile(email="a@b.c", name="  ")))
        self.assertEqual(ctx.exception.missing, ["name"])

    def test_missing_profile_and_id(self):
        with self.assertRaises(SessionConstructionError) as ctx:
            Profile.from_provider_user(make_user(user_id=None, profile=None))
        self.assertEqual(ctx.exception.missing, ["user_id", "profile"])

    def test_avatar_is_optional(self):
        profile = Profile.from_provider_user(
            make_user(profile=ProviderProfile(email="a@b.c", name="A"))
        )
        self.assertIsNone(profile.image_url)

    def test_profile_is_immutable(self):
        profile = Profile.from_provider_user(make_user())
        with self.assertRaises(AttributeError):
            profile.name = "other"  # type: ignore[misc]


class TestRemoteSession(unittest.TestCase):
    """RemoteSessionのテスト"""

    def test_repr_masks_tokens(self):
        """reprでトークンがマスクされること"""
        remote = RemoteSession.from_provider_user(make_user())
        text = repr(remote)
        self.assertNotIn("ya29.access-token-value", text)
        self.assertNotIn("1//refresh-token", text)
        self.assertIn("***alue", text)

    def test_is_expired(self):
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        remote = RemoteSession(access_token="token", expires_at=expires)
        self.assertFalse(remote.is_expired(expires - timedelta(seconds=1)))
        self.assertTrue(remote.is_expired(expires))
        self.assertFalse(RemoteSession(access_token="token").is_expired())

    def test_none_scopes_become_empty(self):
        remote = RemoteSession.from_provider_user(make_user(granted_scopes=None))
        self.assertEqual(remote.granted_scopes, frozenset())


class TestSessionState(unittest.TestCase):
    """セッション状態の値のテスト"""

    def test_status_tags(self):
        session = build_session(make_user())
        self.assertEqual(Disconnected().status, SessionStatus.DISCONNECTED)
        self.assertEqual(Connected(session).status, SessionStatus.CONNECTED)
        self.assertEqual(Failed(create_unexpected_error()).status, SessionStatus.FAILED)

    def test_value_equality(self):
        self.assertEqual(Disconnected(), Disconnected())
        self.assertEqual(Connected(build_session(make_user())), Connected(build_session(make_user())))
        self.assertNotEqual(Disconnected(), Failed(create_unexpected_error()))


if __name__ == "__main__":
    unittest.main()
