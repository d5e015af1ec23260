"""認証プロバイダSDKとの境界の公開API。"""

from __future__ import annotations

from fedsign.provider.base import (
    DisconnectCallback,
    IdentityProviderSDK,
    ProviderAuthentication,
    ProviderError,
    ProviderErrorCode,
    ProviderProfile,
    ProviderUser,
    SignInCallback,
    SignInConfiguration,
)
from fedsign.provider.callbacks import await_callback
from fedsign.provider.mock import ScriptedIdentityProvider

__all__ = [
    "DisconnectCallback",
    "IdentityProviderSDK",
    "ProviderAuthentication",
    "ProviderError",
    "ProviderErrorCode",
    "ProviderProfile",
    "ProviderUser",
    "ScriptedIdentityProvider",
    "SignInCallback",
    "SignInConfiguration",
    "await_callback",
]
