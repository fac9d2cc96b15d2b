"""二次验证管理器

把提供者状态协调、门控和挑战校验组合成一个对象，对外提供完整的二次验证流程。

使用示例:
    from ytwofactor.auth.twofactor import TwoFactorManager

    manager = TwoFactorManager(
        registry=registry,
        loader=loader,
        session=session,
        token_provider=token_provider,
        user_config=user_config,
        activity_manager=activity_manager,
    )

    # 主凭证校验通过后
    if manager.is_two_factor_authenticated(user):
        manager.prepare_two_factor_login(user, remember_login=False)

    # 每个请求
    if manager.needs_second_factor(user):
        providers = manager.get_provider_set(user).get_primary_providers()

    # 用户提交验证码
    manager.verify_challenge("email", user, "123456")
"""

import time
from typing import Optional, Any, Callable

from ytwofactor.config import TwoFactorSettings
from ytwofactor.log import get_logger
from .base import (
    TwoFactorProvider,
    ProviderRegistry,
    ProviderLoader,
    SessionStore,
    TokenProvider,
    UserConfig,
    ActivityManager,
)
from .constants import CORE_APP, TWO_FACTOR_DISABLED_KEY
from .gate import SecondFactorGate
from .provider_set import ProviderSet
from .reconciler import ProviderStateReconciler
from .verifier import ChallengeVerifier, RememberMeHandler

logger = get_logger()


def _default_clock() -> int:
    return int(time.time())


class TwoFactorManager:
    """二次验证管理器

    Args:
        registry: 提供者启用状态注册表
        loader: 提供者加载器
        session: 当前请求的会话
        token_provider: 登录令牌管理器
        user_config: 用户偏好存储
        activity_manager: 审计接收端
        remember_me_handler: 验证通过且需要记住登录时调用
        settings: 二次验证配置，默认从环境变量读取
        clock: 返回当前 unix 秒的函数
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        loader: ProviderLoader,
        session: SessionStore,
        token_provider: TokenProvider,
        user_config: UserConfig,
        activity_manager: ActivityManager,
        remember_me_handler: Optional[RememberMeHandler] = None,
        settings: Optional[TwoFactorSettings] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings or TwoFactorSettings()
        self.session = session
        self.user_config = user_config

        self.reconciler = ProviderStateReconciler(
            registry,
            loader,
            user_config,
            backup_provider_id=self.settings.backup_provider_id,
        )
        self.gate = SecondFactorGate(
            self.reconciler,
            session,
            token_provider,
            user_config,
            clock=clock or _default_clock,
            clear_pending_without_providers=self.settings.clear_pending_without_providers,
        )
        self.verifier = ChallengeVerifier(
            self.reconciler,
            session,
            token_provider,
            user_config,
            activity_manager,
            remember_me_handler=remember_me_handler,
            activity_app=self.settings.activity_app,
            activity_type=self.settings.activity_type,
        )

    # ========== 提供者状态 ==========

    def is_two_factor_authenticated(self, user: Any) -> bool:
        """用户是否启用了二次验证"""
        return self.reconciler.is_two_factor_authenticated(user)

    def get_provider_set(self, user: Any) -> ProviderSet:
        return self.reconciler.get_provider_set(user)

    def get_provider(self, user: Any, provider_id: str) -> Optional[TwoFactorProvider]:
        return self.reconciler.get_provider(user, provider_id)

    def get_backup_provider(self, user: Any) -> Optional[TwoFactorProvider]:
        return self.reconciler.get_backup_provider(user)

    # ========== 用户级开关 ==========

    def enable_two_factor_authentication(self, user: Any) -> None:
        """取消用户对二次验证的关闭"""
        self.user_config.delete_user_value(user.uid, CORE_APP, TWO_FACTOR_DISABLED_KEY)
        logger.info(f"Two-factor authentication enabled for user {user.uid}")

    def disable_two_factor_authentication(self, user: Any) -> None:
        """用户关闭二次验证

        已启用的提供者状态保持不变，重新开启后恢复原有配置。
        """
        self.user_config.set_user_value(user.uid, CORE_APP, TWO_FACTOR_DISABLED_KEY, 1)
        logger.info(f"Two-factor authentication disabled for user {user.uid}")

    # ========== 门控 ==========

    def prepare_two_factor_login(self, user: Any, remember_login: bool) -> None:
        self.gate.prepare_two_factor_login(user, remember_login)

    def needs_second_factor(self, user: Optional[Any]) -> bool:
        return self.gate.needs_second_factor(user)

    def clear_two_factor_pending(self, user_id: str) -> None:
        self.gate.clear_two_factor_pending(user_id)

    def is_remember_login(self) -> bool:
        return self.gate.is_remember_login()

    # ========== 校验 ==========

    def verify_challenge(self, provider_id: str, user: Any, challenge: str) -> bool:
        return self.verifier.verify_challenge(provider_id, user, challenge)

    def on_success(self, func: Callable) -> Callable:
        """注册验证成功事件监听器"""
        return self.verifier.on_success(func)

    def on_failure(self, func: Callable) -> Callable:
        """注册验证失败事件监听器"""
        return self.verifier.on_failure(func)
