"""配置管理模块 - 处理采集器的配置"""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from loguru import logger

EASTMONEY = "eastmoney"
TONGHUASHUN = "tonghuashun"


@dataclass(frozen=True)
class CollectorConfig:
    """单个采集器的不可变配置

    ``base_url`` 是行情主站的根地址: 东方财富的列表与详情, 同花顺的K线与当日数据
    都基于它拼接. 其余接口 (历史K线、数据中心、资金流向列表) 使用固定域名.
    """

    name: str
    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 30.0
    rate_limit: int = 10

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name cannot be empty")
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.rate_limit <= 0:
            object.__setattr__(self, "rate_limit", 1)
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass
class SourceSettings:
    """数据源配置"""

    enabled: bool = True
    base_url: str = ""
    timeout: float = 30.0
    rate_limit: int = 10
    headers: dict[str, str] = field(default_factory=dict)

    def to_collector_config(self, name: str) -> CollectorConfig:
        return CollectorConfig(
            name=name,
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            rate_limit=self.rate_limit,
        )


@dataclass
class IdentitySettings:
    """浏览器身份轮换配置"""

    rotation_interval: float = 60.0


@dataclass
class FallbackSettings:
    """多数据源回退配置"""

    primary: str = EASTMONEY
    fallbacks: list[str] = field(default_factory=lambda: [TONGHUASHUN])


@dataclass
class LoggingSettings:
    """日志配置"""

    level: str = "INFO"
    file: str | None = None


def _default_sources() -> dict[str, SourceSettings]:
    return {
        EASTMONEY: SourceSettings(
            base_url="https://push2.eastmoney.com",
            rate_limit=10,
            headers={
                "Accept": "*/*",
                "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
                "Connection": "keep-alive",
                "Referer": "https://data.eastmoney.com/",
                "sec-fetch-dest": "script",
                "sec-fetch-mode": "no-cors",
                "sec-fetch-site": "same-site",
            },
        ),
        TONGHUASHUN: SourceSettings(
            base_url="https://d.10jqka.com.cn",
            rate_limit=100,
            headers={
                "Accept": "*/*",
                "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
                "Connection": "keep-alive",
            },
        ),
    }


@dataclass
class Settings:
    """quotecollector主配置"""

    sources: dict[str, SourceSettings] = field(default_factory=_default_sources)
    identity: IdentitySettings = field(default_factory=IdentitySettings)
    fallback: FallbackSettings = field(default_factory=FallbackSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Settings:
        """从字典创建配置, 未给出的数据源字段沿用默认值"""
        sources = _default_sources()
        for name, overrides in config_dict.get("sources", {}).items():
            base = asdict(sources[name]) if name in sources else {}
            base.update(overrides)
            sources[name] = SourceSettings(**base)

        return cls(
            sources=sources,
            identity=IdentitySettings(**config_dict.get("identity", {})),
            fallback=FallbackSettings(**config_dict.get("fallback", {})),
            logging=LoggingSettings(**config_dict.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "sources": {name: asdict(source) for name, source in self.sources.items()},
            "identity": asdict(self.identity),
            "fallback": asdict(self.fallback),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_path: Path | None = None, use_env: bool = True):
        """初始化配置管理器

        Args:
            config_path: 配置文件路径，如果为None则使用默认路径
            use_env: 是否叠加 QUOTECOLLECTOR_* 环境变量
        """
        self.config_path = config_path or Path.home() / ".quotecollector" / "config.toml"
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> Settings:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                # 配置文件有问题时使用默认配置
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                config_dict = {}

        if self.use_env:
            _deep_update(config_dict, load_config_from_env())

        try:
            return Settings.from_dict(config_dict)
        except TypeError as e:
            logger.warning(f"Invalid configuration in {self.config_path}: {e}")
            return Settings()

    def get_config(self) -> Settings:
        """获取当前配置"""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """更新配置"""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = Settings.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> Settings:
    """获取默认配置"""
    return Settings()


def load_config_from_env() -> dict[str, Any]:
    """从环境变量加载配置"""
    config: dict[str, Any] = {}

    # 数据源配置, 例如 QUOTECOLLECTOR_EASTMONEY_RATE_LIMIT=5
    sources: dict[str, Any] = {}
    for name in (EASTMONEY, TONGHUASHUN):
        prefix = f"QUOTECOLLECTOR_{name.upper()}_"
        source: dict[str, Any] = {}
        rate_limit = os.getenv(prefix + "RATE_LIMIT")
        if rate_limit is not None:
            source["rate_limit"] = int(rate_limit)
        timeout = os.getenv(prefix + "TIMEOUT")
        if timeout is not None:
            source["timeout"] = float(timeout)
        enabled = os.getenv(prefix + "ENABLED")
        if enabled is not None:
            source["enabled"] = enabled.lower() == "true"
        if source:
            sources[name] = source
    if sources:
        config["sources"] = sources

    rotation_interval = os.getenv("QUOTECOLLECTOR_ROTATION_INTERVAL")
    if rotation_interval is not None:
        config["identity"] = {"rotation_interval": float(rotation_interval)}

    # 回退配置
    fallback: dict[str, Any] = {}
    primary = os.getenv("QUOTECOLLECTOR_PRIMARY_SOURCE")
    if primary:
        fallback["primary"] = primary
    fallbacks = os.getenv("QUOTECOLLECTOR_FALLBACK_SOURCES")
    if fallbacks is not None:
        fallback["fallbacks"] = [name.strip() for name in fallbacks.split(",") if name.strip()]
    if fallback:
        config["fallback"] = fallback

    # 日志配置
    logging_config: dict[str, Any] = {}
    level = os.getenv("QUOTECOLLECTOR_LOGGING_LEVEL")
    if level is not None:
        logging_config["level"] = level
    log_file = os.getenv("QUOTECOLLECTOR_LOGGING_FILE")
    if log_file is not None:
        logging_config["file"] = log_file
    if logging_config:
        config["logging"] = logging_config

    return config
