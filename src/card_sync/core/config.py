"""同步任务的配置模型。"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from card_sync.core.exceptions import ConfigurationError

DEFAULT_API_BASE_URL = "https://api.riftcodex.com"
DEFAULT_CACHE_CONTROL = "public, max-age=31536000, immutable"
DEFAULT_TMP_DIRNAME = "riftbound-card-sync"


def _strip_trailing_slashes(value: str) -> str:
    return value.rstrip("/")


def _default_tmp_dir() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_TMP_DIRNAME


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """卡牌目录接口相关配置。"""

    api_base_url: str = DEFAULT_API_BASE_URL
    page_size: int = 100
    timeout: float = 60.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "api_base_url", _strip_trailing_slashes(self.api_base_url))
        if not self.api_base_url:
            raise ConfigurationError("api_base_url 不能为空")
        if self.page_size <= 0:
            raise ConfigurationError("page_size 必须大于 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CatalogConfig":
        env = os.environ if environ is None else environ
        api_base_url = env.get("CATALOG_API_URL")
        return cls(api_base_url=api_base_url) if api_base_url else cls()


@dataclass(frozen=True, slots=True)
class TimeoutConfig:
    """单卡流程中网络调用的超时（秒）。"""

    head: float = 10.0
    download: float = 60.0


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """S3 兼容对象存储的上传目标。"""

    bucket: str
    endpoint_url: str
    aws_cli: str = "aws"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """单次同步任务的配置集合，启动时构建一次后只读传递。"""

    cdn_base_url: str
    storage: StorageConfig
    check_base_url: Optional[str] = None
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    concurrency: int = 4
    webp_quality: int = 85
    object_prefix: str = "cards"
    cache_control: str = DEFAULT_CACHE_CONTROL
    tmp_dir: Path = field(default_factory=_default_tmp_dir)

    def __post_init__(self) -> None:
        # frozen dataclass 只能通过 object.__setattr__ 做归一化。
        cdn = _strip_trailing_slashes(self.cdn_base_url)
        object.__setattr__(self, "cdn_base_url", cdn)
        check = _strip_trailing_slashes(self.check_base_url) if self.check_base_url else cdn
        object.__setattr__(self, "check_base_url", check)
        object.__setattr__(
            self,
            "storage",
            replace(self.storage, endpoint_url=_strip_trailing_slashes(self.storage.endpoint_url)),
        )

        if not cdn:
            raise ConfigurationError("cdn_base_url 不能为空")
        if not self.storage.bucket:
            raise ConfigurationError("storage.bucket 不能为空")
        if not self.storage.endpoint_url:
            raise ConfigurationError("storage.endpoint_url 不能为空")
        if not 0 <= self.webp_quality <= 100:
            raise ConfigurationError("webp_quality 必须位于 0~100")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "SyncConfig":
        """从环境变量构建配置，缺少必填项时抛出 ConfigurationError。"""

        env = os.environ if environ is None else environ

        storage = StorageConfig(
            bucket=_require(env, "SPACES_BUCKET"),
            endpoint_url=_require(env, "SPACES_ENDPOINT_URL"),
            aws_cli=env.get("AWS_CLI") or "aws",
        )
        values: dict[str, Any] = {
            "cdn_base_url": _require(env, "CDN_BASE_URL"),
            "check_base_url": env.get("CHECK_BASE_URL") or None,
            "storage": storage,
            "catalog": CatalogConfig.from_env(env),
        }
        values.update(overrides)
        return cls(**values)


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigurationError(f"缺少必要的环境变量: {name}")
    return value
