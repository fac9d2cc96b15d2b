"""
YTwoFactor - 二次验证（2FA）登录协调核心库

提供提供者状态协调、二次验证门控、挑战校验，以及日志、配置、异常等基础功能
"""

from .version import __version__, __author__, __description__

# 导出二次验证模块
from .auth.twofactor import (
    # 管理器
    TwoFactorManager,
    ProviderStateReconciler,
    SecondFactorGate,
    ChallengeVerifier,
    ProviderSet,
    # 基础定义
    TwoFactorUser,
    TwoFactorProvider,
    TwoFactorProviderEvent,
    LoginToken,
    ActivityEvent,
    # FastAPI
    create_two_factor_dependency,
)

# 导出配置模块
from .config import (
    AppSettings,
    TwoFactorSettings,
    LoggingSettings,
    DatabaseSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出日志模块
from .log import (
    setup_logger,
    setup_root_logger,
    get_logger,
    log_filter_hook_manager,
)

# 导出异常模块
from .exceptions import (
    Err,
    ErrorCode,
    BusinessException,
    AuthenticationException,
    InvalidTokenException,
    TwoFactorRequiredException,
    ActivityPublishError,
    register_exception_handlers,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    # 二次验证
    "TwoFactorManager",
    "ProviderStateReconciler",
    "SecondFactorGate",
    "ChallengeVerifier",
    "ProviderSet",
    "TwoFactorUser",
    "TwoFactorProvider",
    "TwoFactorProviderEvent",
    "LoginToken",
    "ActivityEvent",
    "create_two_factor_dependency",

    # 配置
    "AppSettings",
    "TwoFactorSettings",
    "LoggingSettings",
    "DatabaseSettings",
    "ConfigLoader",
    "load_yaml_config",

    # 日志
    "setup_logger",
    "setup_root_logger",
    "get_logger",
    "log_filter_hook_manager",

    # 异常
    "Err",
    "ErrorCode",
    "BusinessException",
    "AuthenticationException",
    "InvalidTokenException",
    "TwoFactorRequiredException",
    "ActivityPublishError",
    "register_exception_handlers",
]
