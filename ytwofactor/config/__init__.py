"""配置模块

提供配置管理功能：
- AppSettings: 聚合配置，支持 YAML + 环境变量
- 子配置类: TwoFactorSettings, LoggingSettings, DatabaseSettings
- ConfigLoader: YAML 配置加载器

快速开始:
    from ytwofactor.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)
"""

from .settings import (
    AppSettings,
    TwoFactorSettings,
    LoggingSettings,
    DatabaseSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "TwoFactorSettings",
    "LoggingSettings",
    "DatabaseSettings",
    "ConfigLoader",
    "load_yaml_config",
]
