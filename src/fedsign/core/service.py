"""
SignInServiceの実装

プロバイダSDKの呼び出し結果をセッション状態へ変換する状態機械。
状態は SessionStatePublisher を通じてのみ公開され、失敗も値として配信される。
"""

import asyncio
import logging
from functools import partial
from typing import Any, Iterable, Optional

from fedsign.config.settings import SignInSettings
from fedsign.core.broadcaster import SessionStatePublisher, StateSubscription
from fedsign.core.permissions import ScopePermissionGuard
from fedsign.errors import (
    classify_provider_result,
    create_invalid_user_data_error,
    create_permission_denied_error,
    create_unexpected_error,
    describe_error,
)
from fedsign.models import (
    Connected,
    Connecting,
    Disconnected,
    Failed,
    SessionConstructionError,
    SessionState,
    build_session,
)
from fedsign.provider.base import IdentityProviderSDK, ProviderUser
from fedsign.provider.callbacks import await_callback

logger = logging.getLogger(__name__)


class SignInService:
    """
    サインイン・サインアウト・セッション復元を調停し、セッション状態を配信するクラス。

    公開操作は例外を送出せず、失敗は Failed として配信される。
    同時に複数の sign_in を呼んだ場合の直列化は行わない。
    """

    def __init__(
        self,
        provider: IdentityProviderSDK,
        settings: SignInSettings,
        required_scopes: Optional[Iterable[str]] = None,
        publisher: Optional[SessionStatePublisher] = None,
    ):
        """
        Args:
            provider: 認証プロバイダSDK
            settings: サインイン設定
            required_scopes: 必要スコープ。指定時は settings.required_scopes より優先
            publisher: 状態パブリッシャー（省略時は新規作成）
        """
        self.provider = provider
        self.settings = settings
        scopes = required_scopes if required_scopes is not None else settings.required_scopes
        self._guard = ScopePermissionGuard(scopes)
        self.publisher = publisher or SessionStatePublisher(
            queue_maxsize=settings.subscriber_queue_size
        )
        self._restore_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionState:
        """現在のセッション状態"""
        return self.publisher.current()

    @property
    def guard(self) -> ScopePermissionGuard:
        return self._guard

    @property
    def restore_task(self) -> Optional[asyncio.Task]:
        return self._restore_task

    def subscribe(self) -> StateSubscription:
        """セッション状態を購読する"""
        return self.publisher.subscribe()

    def initialize(self) -> asyncio.Task:
        """
        セッション復元をバックグラウンドで開始する（呼び出し元はブロックしない）。
        2回目以降は既存のタスクを返す。

        Raises:
            RuntimeError: 実行中のイベントループが無い場合
        """
        if self._restore_task is None:
            self._restore_task = asyncio.create_task(
                self.restore_previous_session(), name="fedsign.restore"
            )
            self._restore_task.add_done_callback(self._on_restore_done)
            logger.debug("signin.restore.scheduled")
        return self._restore_task

    async def restore_previous_session(self) -> Optional[SessionState]:
        """
        保存済みのサインイン状態を復元する。

        ユーザーが返らなかった場合は何も配信せず None を返す。
        既定では必要スコープの再検証は行わない（settings.verify_scopes_on_restore で有効化）。
        """
        try:
            user, error = await await_callback(
                self.provider.restore_previous_sign_in,
                timeout=self.settings.restore_timeout,
                label="restore_previous_sign_in",
            )
        except asyncio.TimeoutError:
            logger.warning(
                "signin.restore.timeout timeout=%s", self.settings.restore_timeout
            )
            return None
        except Exception as exc:
            logger.exception("signin.restore.error")
            return self._publish(Failed(create_unexpected_error(cause=exc)))

        if user is None:
            logger.info(
                "signin.restore.skipped reason=no_previous_session error=%s",
                describe_error(error) if error is not None else None,
            )
            return None

        if self.settings.verify_scopes_on_restore:
            denied = self._check_permissions(user)
            if denied is not None:
                return self._publish(denied)

        return self._publish(self._connect(user))

    async def sign_in(self, presentation_context: Any) -> SessionState:
        """
        対話的サインインを行い、結果の状態を配信する。

        Args:
            presentation_context: プロバイダがUIを表示するための文脈（そのまま渡す）

        Returns:
            配信した状態（Connected または Failed）
        """
        if self.settings.publish_connecting:
            self._publish(Connecting())

        try:
            self.provider.configure(self.settings.to_configuration())
            invoke = partial(
                self.provider.sign_in,
                presentation_context,
                self._guard.scope_list(),
                hint=None,
                nonce=None,
            )
            user, error = await await_callback(invoke, label="sign_in")
        except Exception as exc:
            logger.exception("signin.sign_in.error")
            return self._publish(Failed(create_unexpected_error(cause=exc)))

        return self.handle_sign_in_result(user, error)

    def handle_sign_in_result(
        self,
        user: Optional[ProviderUser],
        error: Optional[BaseException],
    ) -> SessionState:
        """
        サインイン結果 (user, error) を状態へ変換して配信する。
        Connected か Failed のいずれか1つだけを配信し、Disconnected は配信しない。
        """
        failure = classify_provider_result(user, error)
        if failure is not None:
            return self._publish(Failed(failure))

        denied = self._check_permissions(user)
        if denied is not None:
            return self._publish(denied)

        return self._publish(self._connect(user))

    async def sign_out(self) -> SessionState:
        """
        ローカルのサインアウト後にアカウント連携を解除する。

        配信される状態は連携解除の結果のみを反映する。
        解除に失敗した場合もローカルのサインアウトは完了している。
        """
        try:
            self.provider.sign_out()
            result = await await_callback(self.provider.disconnect, label="disconnect")
        except Exception as exc:
            logger.exception("signin.sign_out.error")
            return self._publish(Failed(create_unexpected_error(cause=exc)))

        error = result[0] if result else None
        if error is not None:
            description = describe_error(error)
            logger.warning(
                "signin.disconnect.failed local_sign_out=done error=%s", description
            )
            return self._publish(Failed(create_unexpected_error(description, cause=error)))

        return self._publish(Disconnected())

    def handle_inbound_redirect(self, url: str) -> bool:
        """リダイレクトURLをプロバイダへ渡し、受理されたかを返す（状態は配信しない）"""
        try:
            handled = bool(self.provider.handle_url(url))
        except Exception:
            logger.exception("signin.redirect.error")
            return False
        logger.debug("signin.redirect.handled handled=%s", handled)
        return handled

    async def aclose(self) -> None:
        """実行中のセッション復元をキャンセルする

        呼び出し元自身がキャンセルされた場合は CancelledError をそのまま送出する。
        """
        task = self._restore_task
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if not task.cancelled() or (current is not None and current.cancelling()):
                    raise

    def _check_permissions(self, user: ProviderUser) -> Optional[Failed]:
        result = self._guard.check(user.granted_scopes)
        if result.allowed:
            return None

        required = sorted(self._guard.required_scopes or ())
        logger.warning(
            "signin.permission.denied user=%s required=%s reason=%s",
            user.user_id,
            ",".join(required),
            result.reason,
        )
        return Failed(
            create_permission_denied_error(
                details={"required_scopes": required, "reason": result.reason}
            )
        )

    def _connect(self, user: ProviderUser) -> SessionState:
        try:
            session = build_session(user)
        except SessionConstructionError as exc:
            return Failed(create_invalid_user_data_error(details={"missing": exc.missing}))
        return Connected(session)

    def _publish(self, state: SessionState) -> SessionState:
        if isinstance(state, Failed):
            logger.log(
                state.error.log_level,
                "signin.state.failed category=%s code=%s message=%s",
                state.error.category,
                state.error.code,
                state.error.message,
            )
        else:
            logger.info("signin.state.published status=%s", state.status.value)
        self.publisher.publish(state)
        return state

    @staticmethod
    def _on_restore_done(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("signin.restore.cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("signin.restore.crashed error=%s", exc)
