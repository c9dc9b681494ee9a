"""クライアント設定と設定ファイル読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import UploadClientError, UploadClientErrorCodes
from .models import Credentials


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    # True のときクライアント生成時に structlog / logging を設定する
    configure: bool = False


class UploadClientConfig(BaseModel):
    """アップロードクライアント設定。"""

    public_key: str = Field(min_length=1)
    private_key: str = Field(min_length=1, repr=False)
    api_host: str = "api.uploadcare.com"
    upload_host: str = "upload.uploadcare.com"
    ssl: bool = True
    timeout_seconds: float = Field(default=10.0, gt=0)
    poll_interval_seconds: float = Field(default=0.1, ge=0)
    store: bool | None = None
    log: LogSection = Field(default_factory=LogSection)

    @property
    def credentials(self) -> Credentials:
        return Credentials(public_key=self.public_key, private_key=self.private_key)

    @property
    def api_url(self) -> str:
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.api_host}"

    @property
    def upload_url(self) -> str:
        # Upload API は常に HTTPS
        return f"https://{self.upload_host}"


def _overlay(base: dict[str, Any], env: dict[str, Any]) -> dict[str, Any]:
    """env の値で base を上書きした辞書を返す。log などのセクションはキー単位で重ねる。"""
    merged = {**base, **env}
    for key, value in env.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = {**base[key], **value}
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise UploadClientError(
            code=UploadClientErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise UploadClientError(
            code=UploadClientErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    return data or {}


def load_config(base_path: Path, env_path: Path | None = None) -> UploadClientConfig:
    """YAML からクライアント設定を読み込む。

    env_path が存在する場合は base_path の内容に重ねる（キー / ログ設定の上書き）。

    Raises:
        UploadClientError: 読み込み / パース / 検証に失敗した場合
    """
    data = _load_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = _overlay(data, _load_yaml(env_path))
    try:
        return UploadClientConfig.model_validate(data)
    except ValidationError as e:
        raise UploadClientError(
            code=UploadClientErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
