"""fedsign - 外部IDプロバイダによるサインインとセッション状態の調停"""

from fedsign.config import ConfigManager, SignInSettings
from fedsign.core import SessionStatePublisher, SignInService, satisfies
from fedsign.errors import FedsignException, SignInError, SignInErrorKind
from fedsign.models import (
    Connected,
    Connecting,
    Disconnected,
    Failed,
    Profile,
    RemoteSession,
    Session,
    SessionState,
    SessionStatus,
    build_session,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigManager",
    "Connected",
    "Connecting",
    "Disconnected",
    "Failed",
    "FedsignException",
    "Profile",
    "RemoteSession",
    "Session",
    "SessionState",
    "SessionStatePublisher",
    "SessionStatus",
    "SignInError",
    "SignInErrorKind",
    "SignInService",
    "SignInSettings",
    "__version__",
    "build_session",
    "satisfies",
]
