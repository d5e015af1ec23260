"""セッション調停のコア - 権限ガード・状態配信・サインインサービス"""

from fedsign.core.broadcaster import SessionStatePublisher, StateSubscription
from fedsign.core.permissions import PermissionCheckResult, ScopePermissionGuard, satisfies
from fedsign.core.service import SignInService

__all__ = [
    "PermissionCheckResult",
    "ScopePermissionGuard",
    "SessionStatePublisher",
    "SignInService",
    "StateSubscription",
    "satisfies",
]
