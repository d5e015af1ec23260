"""
設定管理

設定ファイルと環境変数からサインイン設定を読み込み、キャッシュする
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from fedsign.config.settings import SignInSettings
from fedsign.errors import ErrorCode, FedsignException, create_config_error

logger = logging.getLogger(__name__)


class ConfigManager:
    """設定の読み込みと管理

    設定ファイル（YAML）の値を読み込み、環境変数で上書きする。
    優先順位: 環境変数 > .env > 呼び出し時の上書き値 > 設定ファイル
    """

    def __init__(self) -> None:
        self._settings: Optional[SignInSettings] = None

    def load(
        self,
        config_path: Optional[Path] = None,
        force_reload: bool = False,
        **overrides: Any,
    ) -> SignInSettings:
        """設定を読み込む

        Args:
            config_path: 設定ファイルのパス（省略時はデフォルトパスを検索）
            force_reload: キャッシュを無視して再読み込みするかどうか
            **overrides: 設定ファイルの値を上書きする値

        Returns:
            SignInSettings: 読み込んだ設定

        Raises:
            FedsignException: 設定ファイルが不正、またはクライアントIDが無い場合
        """
        if self._settings is not None and not force_reload:
            return self._settings

        data: Dict[str, Any] = {}
        data.update(self._load_from_file(config_path))
        data.update(overrides)

        try:
            settings = SignInSettings(**data)
        except ValidationError as exc:
            raise FedsignException(self._to_config_error(exc)) from exc

        logger.debug("config.loaded settings=%s", settings.dump_masked())
        self._settings = settings
        return settings

    def _load_from_file(self, config_path: Optional[Path] = None) -> Dict[str, Any]:
        """設定ファイルから読み込み

        Args:
            config_path: 設定ファイルのパス

        Returns:
            Dict[str, Any]: 読み込んだ設定値
        """
        if config_path is None:
            for path in self._get_default_config_paths():
                if path.exists():
                    config_path = path
                    break

        if config_path is None:
            return {}

        if not config_path.exists():
            raise FedsignException(
                create_config_error(
                    ErrorCode.CONFIG_PARSE_ERROR,
                    f"設定ファイルが見つかりません: {config_path}",
                    details={"path": str(config_path)},
                )
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise FedsignException(
                create_config_error(
                    ErrorCode.CONFIG_PARSE_ERROR,
                    f"設定ファイルの形式が不正です: {config_path}",
                    details={"path": str(config_path), "error": str(exc)},
                )
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FedsignException(
                create_config_error(
                    ErrorCode.CONFIG_PARSE_ERROR,
                    f"設定ファイルのトップレベルはマッピングである必要があります: {config_path}",
                    details={"path": str(config_path)},
                )
            )

        # signin: セクションがあればそれを優先する
        section = data.get("signin")
        if isinstance(section, dict):
            data = section

        logger.debug("config.file.loaded path=%s keys=%s", config_path, sorted(data))
        return dict(data)

    def _get_default_config_paths(self) -> List[Path]:
        """デフォルトの設定ファイルパスを取得"""
        home = Path.home()
        return [
            Path.cwd() / "fedsign.yaml",
            Path.cwd() / "fedsign.yml",
            home / ".config" / "fedsign" / "config.yaml",
            home / ".config" / "fedsign" / "config.yml",
        ]

    @staticmethod
    def _to_config_error(exc: ValidationError):
        errors = exc.errors()
        missing_client_id = any(
            err.get("type") in ("missing", "string_too_short")
            and tuple(err.get("loc", ())) == ("client_id",)
            for err in errors
        )
        if missing_client_id:
            return create_config_error(
                ErrorCode.CONFIG_MISSING_CLIENT_ID,
                "クライアントIDが設定されていません。環境変数 FEDSIGN_CLIENT_ID または設定ファイルで設定してください。",
            )
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in errors]
        return create_config_error(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"設定値が不正です: {', '.join(fields)}",
            details={"errors": [err.get("msg") for err in errors], "fields": fields},
        )
