"""日志模块

提供日志解决方案：
- 日志配置与管理
- 敏感数据（验证码、token）过滤

使用示例:
    from ytwofactor.log import setup_logger, get_logger, log_filter_hook_manager

    logger = setup_logger("ytwofactor", level="DEBUG", log_file="logs/2fa.log")

    safe_data = log_filter_hook_manager.apply_filters(log_data)
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    auth_logger,
    audit_logger,
    logger,
    get_logger,
)

from .filter_hooks import (
    LogFilterHook,
    SensitiveDataFilterHook,
    LogFilterHookManager,
    log_filter_hook_manager,
    DEFAULT_SENSITIVE_PATTERNS,
    FILTERED_PLACEHOLDER,
)

__all__ = [
    # 日志工具
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "auth_logger",
    "audit_logger",
    "logger",
    "get_logger",

    # 日志过滤钩子
    "LogFilterHook",
    "SensitiveDataFilterHook",
    "LogFilterHookManager",
    "log_filter_hook_manager",
    "DEFAULT_SENSITIVE_PATTERNS",
    "FILTERED_PLACEHOLDER",
]
