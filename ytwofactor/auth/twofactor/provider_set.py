"""用户可用的二次验证提供者集合

每次请求重新计算，不做缓存。
"""

from typing import Optional, Dict, List, Iterable

from .base import TwoFactorProvider
from .constants import BACKUP_CODES_PROVIDER_ID


class ProviderSet:
    """已启用且可加载的提供者集合

    Attributes:
        provider_missing: 是否有已启用但无法加载的提供者（例如所属应用被禁用）
    """

    def __init__(
        self,
        providers: Iterable[TwoFactorProvider],
        provider_missing: bool,
        backup_provider_id: str = BACKUP_CODES_PROVIDER_ID,
    ):
        self._providers: Dict[str, TwoFactorProvider] = {}
        for provider in providers:
            self._providers[provider.get_id()] = provider
        self.provider_missing = provider_missing
        self._backup_provider_id = backup_provider_id

    def get_provider(self, provider_id: str) -> Optional[TwoFactorProvider]:
        return self._providers.get(provider_id)

    def get_providers(self) -> Dict[str, TwoFactorProvider]:
        """返回 {provider_id: provider} 的副本"""
        return dict(self._providers)

    def get_primary_providers(self) -> List[TwoFactorProvider]:
        """除备用码以外的提供者

        备用码只在其他方式不可用时使用，登录页通常不把它列为首选。
        """
        return [
            provider for provider_id, provider in self._providers.items()
            if provider_id != self._backup_provider_id
        ]

    def is_provider_missing(self) -> bool:
        return self.provider_missing

    def __contains__(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        return (
            f"ProviderSet(providers={list(self._providers)!r}, "
            f"provider_missing={self.provider_missing})"
        )
