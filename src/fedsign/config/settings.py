"""Pydantic V2 ベースのサインイン設定モデル"""

import json
import logging
from typing import Annotated, Any, List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from fedsign.errors import mask_secret
from fedsign.provider.base import SignInConfiguration

logger = logging.getLogger(__name__)


class SignInSettings(BaseSettings):
    """サインインの統合設定"""

    model_config = SettingsConfigDict(
        env_prefix="FEDSIGN_",
        env_file=".env",
        extra="forbid",
    )

    # プロバイダのクライアント設定
    client_id: str = Field(..., min_length=1, description="OAuth client ID")
    server_client_id: Optional[str] = None
    hosted_domain: Optional[str] = None
    openid_realm: Optional[str] = None

    # 権限設定（None なら制限なし）
    required_scopes: Annotated[Optional[List[str]], NoDecode] = None
    verify_scopes_on_restore: bool = False

    # セッション復元・状態配信の設定
    restore_timeout: Optional[float] = Field(default=None, gt=0)
    publish_connecting: bool = Field(
        default=False,
        description=(
            "sign_in 開始時に Connecting を配信する。"
            "有効時は1回の sign_in で Connecting と結果の2回配信される"
        ),
    )
    subscriber_queue_size: int = Field(default=100, ge=1)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[Any, ...]:
        """設定ソースの優先順位をカスタマイズ（env > dotenv > init）"""
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )

    @field_validator("required_scopes", mode="before")
    @classmethod
    def parse_required_scopes(cls, value: Any) -> Any:
        """カンマ区切り文字列や JSON 配列文字列をリストに変換する"""
        if not isinstance(value, str):
            return value
        text = value.strip()
        if not text:
            return None
        if text.startswith("["):
            return json.loads(text)
        return [item.strip() for item in text.split(",") if item.strip()]

    def to_configuration(self) -> SignInConfiguration:
        """プロバイダへ渡すクライアント設定を生成する"""
        return SignInConfiguration(
            client_id=self.client_id,
            server_client_id=self.server_client_id,
            hosted_domain=self.hosted_domain,
            openid_realm=self.openid_realm,
        )

    def dump_masked(self) -> dict:
        """機微情報をマスクした設定を返却する"""
        data = self.model_dump()
        data["client_id"] = mask_secret(data.get("client_id"))
        if data.get("server_client_id"):
            data["server_client_id"] = mask_secret(data["server_client_id"])
        return data
