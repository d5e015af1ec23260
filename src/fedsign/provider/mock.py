"""
スクリプト駆動の認証プロバイダ

実際のSDKを使わずにホストアプリの開発・テストを行うためのモック実装。
"""
import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple

from fedsign.provider.base import (
    DisconnectCallback,
    IdentityProviderSDK,
    ProviderError,
    ProviderErrorCode,
    ProviderUser,
    SignInCallback,
    SignInConfiguration,
)

logger = logging.getLogger(__name__)


class ScriptedIdentityProvider(IdentityProviderSDK):
    """事前に登録した結果を返すモックプロバイダ

    サインインに成功したユーザーは「保存済み」とみなされ、
    以降の復元で返される（実SDKと同じ振る舞い）。
    """

    def __init__(
        self,
        previous_user: Optional[ProviderUser] = None,
        restore_completes: bool = True,
        deliver_in_thread: bool = False,
        delay_sec: float = 0.0,
        redirect_prefixes: Sequence[str] = ("fedsign://oauth-callback",),
    ):
        """
        Args:
            previous_user: 復元時に返す保存済みユーザー
            restore_completes: False の場合、復元のコールバックを呼ばない
            deliver_in_thread: True の場合、別スレッドからコールバックする
            delay_sec: コールバックまでの遅延秒数（deliver_in_thread 時のみ）
            redirect_prefixes: handle_url が受理するURLの接頭辞
        """
        self.previous_user = previous_user
        self.restore_completes = restore_completes
        self.deliver_in_thread = deliver_in_thread
        self.delay_sec = delay_sec
        self.redirect_prefixes = tuple(redirect_prefixes)

        self.configuration: Optional[SignInConfiguration] = None
        self.disconnect_error: Optional[BaseException] = None
        self.signed_out = False
        self.calls: List[Tuple[str, Any]] = []
        self._sign_in_results: Deque[Tuple[Optional[ProviderUser], Optional[BaseException]]] = deque()

    def enqueue_sign_in(
        self,
        user: Optional[ProviderUser] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """次回の sign_in が返す結果を登録する"""
        self._sign_in_results.append((user, error))

    def call_names(self) -> List[str]:
        """呼ばれたメソッド名を順に返す"""
        return [name for name, _ in self.calls]

    def configure(self, configuration: SignInConfiguration) -> None:
        self.calls.append(("configure", configuration))
        self.configuration = configuration

    def sign_in(
        self,
        presentation_context: Any,
        scopes: Optional[Sequence[str]],
        on_complete: SignInCallback,
        hint: Optional[str] = None,
        nonce: Optional[str] = None,
    ) -> None:
        self.calls.append(
            ("sign_in", {"context": presentation_context, "scopes": scopes, "hint": hint, "nonce": nonce})
        )
        if self._sign_in_results:
            user, error = self._sign_in_results.popleft()
        else:
            user, error = None, ProviderError(
                "The user canceled the sign-in flow.", ProviderErrorCode.CANCELED
            )

        if user is not None and error is None:
            self.previous_user = user
            self.signed_out = False
        self._deliver(on_complete, user, error)

    def restore_previous_sign_in(self, on_complete: SignInCallback) -> None:
        self.calls.append(("restore_previous_sign_in", None))
        if not self.restore_completes:
            logger.debug("Scripted restore will never complete")
            return

        if self.previous_user is not None:
            self._deliver(on_complete, self.previous_user, None)
        else:
            self._deliver(
                on_complete,
                None,
                ProviderError(
                    "The user has not signed in before or they have since signed out.",
                    ProviderErrorCode.HAS_NO_AUTH_IN_KEYCHAIN,
                ),
            )

    def sign_out(self) -> None:
        self.calls.append(("sign_out", None))
        self.signed_out = True
        self.previous_user = None

    def disconnect(self, on_complete: DisconnectCallback) -> None:
        self.calls.append(("disconnect", None))
        self._deliver(on_complete, self.disconnect_error)

    def handle_url(self, url: str) -> bool:
        self.calls.append(("handle_url", url))
        return any(url.startswith(prefix) for prefix in self.redirect_prefixes)

    def _deliver(self, callback: Callable[..., None], *args: Any) -> None:
        if not self.deliver_in_thread:
            callback(*args)
            return

        def _run() -> None:
            if self.delay_sec > 0:
                time.sleep(self.delay_sec)
            callback(*args)

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
