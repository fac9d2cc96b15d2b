"""二次验证模块

提供二次验证流程的协调逻辑：
- ProviderStateReconciler: 提供者启用状态协调
- SecondFactorGate: 判断当前登录是否还需要二次验证
- ChallengeVerifier: 校验 challenge 并记录结果
- TwoFactorManager: 组合以上三者的管理器

使用示例:
    from ytwofactor.auth.twofactor import TwoFactorManager, TwoFactorUser

    manager = TwoFactorManager(registry, loader, session, token_provider, user_config, activity_manager)

    if manager.needs_second_factor(TwoFactorUser(uid="jos")):
        ...
"""

from .base import (
    TwoFactorUser,
    LoginToken,
    TwoFactorProvider,
    ProviderRegistry,
    ProviderLoader,
    SessionStore,
    TokenProvider,
    UserConfig,
    ActivityEvent,
    ActivityManager,
    TwoFactorProviderEvent,
)
from .constants import (
    SESSION_UID_KEY,
    SESSION_UID_DONE,
    SESSION_APP_PASSWORD,
    REMEMBER_LOGIN,
    CORE_APP,
    TWO_FACTOR_DISABLED_KEY,
    LOGIN_TOKEN_2FA_APP,
    SUBJECT_SUCCESS,
    SUBJECT_FAILED,
    BACKUP_CODES_PROVIDER_ID,
)
from .provider_set import ProviderSet
from .reconciler import ProviderStateReconciler
from .gate import SecondFactorGate
from .verifier import ChallengeVerifier, RememberMeHandler
from .manager import TwoFactorManager
from .memory import (
    InMemoryProviderRegistry,
    StaticProviderLoader,
    InMemorySession,
    SessionDataAdapter,
    InMemoryUserConfig,
    InMemoryTokenProvider,
    InMemoryActivityManager,
    LoggingActivityManager,
)
from .dependencies import create_two_factor_dependency

__all__ = [
    # 基础定义
    "TwoFactorUser",
    "LoginToken",
    "TwoFactorProvider",
    "ProviderRegistry",
    "ProviderLoader",
    "SessionStore",
    "TokenProvider",
    "UserConfig",
    "ActivityEvent",
    "ActivityManager",
    "TwoFactorProviderEvent",
    "RememberMeHandler",

    # 常量
    "SESSION_UID_KEY",
    "SESSION_UID_DONE",
    "SESSION_APP_PASSWORD",
    "REMEMBER_LOGIN",
    "CORE_APP",
    "TWO_FACTOR_DISABLED_KEY",
    "LOGIN_TOKEN_2FA_APP",
    "SUBJECT_SUCCESS",
    "SUBJECT_FAILED",
    "BACKUP_CODES_PROVIDER_ID",

    # 核心
    "ProviderSet",
    "ProviderStateReconciler",
    "SecondFactorGate",
    "ChallengeVerifier",
    "TwoFactorManager",

    # 内存适配器
    "InMemoryProviderRegistry",
    "StaticProviderLoader",
    "InMemorySession",
    "SessionDataAdapter",
    "InMemoryUserConfig",
    "InMemoryTokenProvider",
    "InMemoryActivityManager",
    "LoggingActivityManager",

    # FastAPI
    "create_two_factor_dependency",
]
