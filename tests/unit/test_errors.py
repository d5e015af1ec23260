"""
エラー定義のユニットテスト

プロバイダの失敗からエラー種別への写像を検証する
"""

import logging
import unittest

from fedsign.errors import (
    ErrorCode,
    FedsignException,
    SignInError,
    SignInErrorKind,
    classify_provider_result,
    create_config_error,
    create_failed_sign_in_error,
    create_invalid_user_data_error,
    create_permission_denied_error,
    create_undefined_user_error,
    create_unexpected_error,
    describe_error,
    mask_secret,
    provider_error_code,
)
from fedsign.provider.base import ProviderError, ProviderErrorCode, ProviderUser


class TestSignInErrorKind(unittest.TestCase):
    """SignInErrorKind列挙型のテスト"""

    def test_categories_are_stable(self):
        """カテゴリ文字列が固定であること"""
        self.assertEqual(SignInErrorKind.FAILED_SIGN_IN.value, "SIGNIN_001")
        self.assertEqual(SignInErrorKind.NO_STORED_CREDENTIAL.value, "SIGNIN_002")
        self.assertEqual(SignInErrorKind.UNDEFINED_USER.value, "SIGNIN_003")
        self.assertEqual(SignInErrorKind.PERMISSION_DENIED.value, "SIGNIN_004")
        self.assertEqual(SignInErrorKind.INVALID_USER_DATA.value, "SIGNIN_005")
        self.assertEqual(SignInErrorKind.UNEXPECTED.value, "SIGNIN_006")

    def test_config_codes(self):
        """設定エラーのコードが定義されていること"""
        self.assertEqual(ErrorCode.CONFIG_MISSING_CLIENT_ID.value, "CONFIG_001")
        self.assertEqual(ErrorCode.CONFIG_INVALID_VALUE.value, "CONFIG_002")
        self.assertEqual(ErrorCode.CONFIG_PARSE_ERROR.value, "CONFIG_003")


class TestErrorFactories(unittest.TestCase):
    """エラーファクトリ関数のテスト"""

    def test_failed_sign_in_uses_provider_description(self):
        """通常のプロバイダエラーは FAILED_SIGN_IN になること"""
        cause = ProviderError("The user canceled the sign-in flow.", ProviderErrorCode.CANCELED)
        error = create_failed_sign_in_error(cause)

        self.assertIsInstance(error, SignInError)
        self.assertEqual(error.kind, SignInErrorKind.FAILED_SIGN_IN)
        self.assertEqual(error.code, 400)
        self.assertEqual(error.message, "The user canceled the sign-in flow.")
        self.assertIs(error.cause, cause)
        self.assertEqual(error.provider_code, -5)

    def test_no_stored_credential_is_remapped(self):
        """保存済み認証情報なしのコードは NO_STORED_CREDENTIAL になること"""
        cause = ProviderError("no auth in keychain", ProviderErrorCode.HAS_NO_AUTH_IN_KEYCHAIN)
        error = create_failed_sign_in_error(cause)

        self.assertEqual(error.kind, SignInErrorKind.NO_STORED_CREDENTIAL)
        self.assertEqual(error.code, 401)
        self.assertTrue(error.message.startswith("401: "))
        self.assertIn("no auth in keychain", error.message)
        self.assertEqual(error.log_level, logging.INFO)

    def test_fixed_codes(self):
        """固定コードを持つエラーのコードを確認"""
        self.assertEqual(create_undefined_user_error().code, 401)
        self.assertEqual(create_permission_denied_error().code, 501)
        self.assertEqual(create_invalid_user_data_error().code, 422)
        self.assertEqual(create_unexpected_error().code, 500)

    def test_unexpected_default_message(self):
        """メッセージ省略時は汎用メッセージになること"""
        self.assertEqual(create_unexpected_error().message, "Unexpected system error")
        self.assertEqual(create_unexpected_error("boom").message, "boom")

    def test_equality_ignores_cause_and_details(self):
        """比較は cause と details を無視すること"""
        a = create_permission_denied_error(details={"reason": "a"})
        b = create_permission_denied_error(details={"reason": "b"})
        self.assertEqual(a, b)

    def test_str_includes_category(self):
        """文字列表現にカテゴリが含まれること"""
        self.assertIn("SIGNIN_004", str(create_permission_denied_error()))

    def test_config_error_exception(self):
        """FedsignExceptionがコードを含むこと"""
        exc = FedsignException(
            create_config_error(ErrorCode.CONFIG_INVALID_VALUE, "不正な値")
        )
        self.assertEqual(exc.error.code, "CONFIG_002")
        self.assertIn("CONFIG_002", str(exc))
        self.assertIsInstance(exc, Exception)


class TestProviderErrorHelpers(unittest.TestCase):
    """プロバイダ例外の補助関数のテスト"""

    def test_provider_error_code(self):
        self.assertEqual(provider_error_code(ProviderError("x", -4)), -4)
        self.assertEqual(provider_error_code(ProviderError("x", ProviderErrorCode.EMM)), -6)
        self.assertIsNone(provider_error_code(RuntimeError("x")))

    def test_describe_error_falls_back(self):
        self.assertEqual(describe_error(ProviderError("desc")), "desc")
        self.assertEqual(describe_error(RuntimeError("plain")), "plain")
        self.assertEqual(describe_error(RuntimeError()), "RuntimeError")


class TestClassifyProviderResult(unittest.TestCase):
    """(user, error) の分類テスト"""

    def setUp(self):
        self.user = ProviderUser(user_id="u-1")
        self.error = ProviderError("failed")

    def test_user_only_is_not_an_error(self):
        self.assertIsNone(classify_provider_result(self.user, None))

    def test_error_only(self):
        result = classify_provider_result(None, self.error)
        self.assertEqual(result.kind, SignInErrorKind.FAILED_SIGN_IN)

    def test_neither(self):
        result = classify_provider_result(None, None)
        self.assertEqual(result.kind, SignInErrorKind.UNDEFINED_USER)
        self.assertEqual(result.code, 401)

    def test_both(self):
        result = classify_provider_result(self.user, self.error)
        self.assertEqual(result.kind, SignInErrorKind.UNEXPECTED)
        self.assertIs(result.cause, self.error)


class TestMaskSecret(unittest.TestCase):
    """mask_secretのテスト"""

    def test_short_values_are_fully_masked(self):
        self.assertEqual(mask_secret(""), "***")
        self.assertEqual(mask_secret(None), "***")
        self.assertEqual(mask_secret("abc"), "***")

    def test_keeps_last_four_characters(self):
        """末尾4文字のみ残すこと"""
        self.assertEqual(mask_secret("abcdefgh"), "***efgh")


if __name__ == "__main__":
    unittest.main()
