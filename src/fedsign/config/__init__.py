"""設定管理 - 設定の読み込みと管理"""

from fedsign.config.manager import ConfigManager
from fedsign.config.settings import SignInSettings
from fedsign.errors import mask_secret

__all__ = [
    "ConfigManager",
    "SignInSettings",
    "mask_secret",
]
