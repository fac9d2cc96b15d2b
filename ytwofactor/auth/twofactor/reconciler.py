"""提供者状态协调

注册表中记录了每个用户对每个提供者的启用状态。新安装的提供者在注册表中
还没有记录，第一次遇到时询问提供者本身并把答案写回注册表，此后只以注册表为准。

使用示例:
    reconciler = ProviderStateReconciler(registry, loader, user_config)

    if reconciler.is_two_factor_authenticated(user):
        provider_set = reconciler.get_provider_set(user)
        for provider in provider_set.get_primary_providers():
            print(provider.get_display_name())
"""

from typing import Optional, Any, Dict, List

from ytwofactor.log import get_logger
from .base import TwoFactorProvider, ProviderRegistry, ProviderLoader, UserConfig
from .constants import CORE_APP, TWO_FACTOR_DISABLED_KEY, BACKUP_CODES_PROVIDER_ID
from .provider_set import ProviderSet

logger = get_logger()


class ProviderStateReconciler:
    """提供者状态协调器

    Args:
        registry: 提供者启用状态注册表
        loader: 提供者加载器
        user_config: 用户偏好存储（读取用户级关闭开关）
        backup_provider_id: 备用码提供者 ID
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        loader: ProviderLoader,
        user_config: UserConfig,
        backup_provider_id: str = BACKUP_CODES_PROVIDER_ID,
    ):
        self.registry = registry
        self.loader = loader
        self.user_config = user_config
        self.backup_provider_id = backup_provider_id

    def is_two_factor_authenticated(self, user: Any) -> bool:
        """用户是否启用了至少一个提供者

        用户主动关闭二次验证时直接返回 False，不访问注册表和加载器。
        注册表中已启用但当前无法加载的提供者同样计入。
        """
        disabled = self.user_config.get_user_value(
            user.uid, CORE_APP, TWO_FACTOR_DISABLED_KEY, 0
        )
        if _is_truthy(disabled):
            logger.debug(f"2FA disabled by user preference: user={user.uid}")
            return False

        states = self.registry.get_provider_states(user)
        providers = self.loader.get_providers(user)
        states = self._fix_missing_provider_states(states, providers, user)

        return any(states.values())

    def get_provider_set(self, user: Any) -> ProviderSet:
        """获取用户已启用且可加载的提供者集合

        不检查用户级关闭开关。
        """
        states = self.registry.get_provider_states(user)
        providers = self.loader.get_providers(user)
        states = self._fix_missing_provider_states(states, providers, user)

        enabled_ids = [provider_id for provider_id, enabled in states.items() if enabled]
        loaded_ids = {provider.get_id() for provider in providers}
        missing_ids = [provider_id for provider_id in enabled_ids if provider_id not in loaded_ids]

        for provider_id in missing_ids:
            logger.critical(
                f"Two-factor provider '{provider_id}' is enabled for user {user.uid} "
                f"but could not be loaded"
            )

        enabled_providers = [
            provider for provider in providers
            if states.get(provider.get_id())
        ]

        return ProviderSet(
            enabled_providers,
            provider_missing=bool(missing_ids),
            backup_provider_id=self.backup_provider_id,
        )

    def get_provider(self, user: Any, provider_id: str) -> Optional[TwoFactorProvider]:
        """按 ID 获取用户已启用的提供者，未启用或无法加载时返回 None"""
        return self.get_provider_set(user).get_provider(provider_id)

    def get_backup_provider(self, user: Any) -> Optional[TwoFactorProvider]:
        """获取用户已启用的备用码提供者"""
        return self.get_provider(user, self.backup_provider_id)

    def _fix_missing_provider_states(
        self,
        states: Dict[str, bool],
        providers: List[TwoFactorProvider],
        user: Any,
    ) -> Dict[str, bool]:
        """为注册表中没有记录的提供者补齐状态

        提供者抛出的异常不做处理，直接传播。
        """
        states = dict(states)
        for provider in providers:
            provider_id = provider.get_id()
            if provider_id in states:
                continue

            enabled = bool(provider.is_two_factor_auth_enabled_for_user(user))
            if enabled:
                self.registry.enable_provider_for(provider, user)
            else:
                self.registry.disable_provider_for(provider, user)
            states[provider_id] = enabled

            logger.debug(
                f"Recorded initial provider state: user={user.uid}, "
                f"provider={provider_id}, enabled={enabled}"
            )

        return states


def _is_truthy(value: Any) -> bool:
    """用户偏好值可能以字符串形式存储（"0"/"1"）"""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "off")
    return bool(value)
