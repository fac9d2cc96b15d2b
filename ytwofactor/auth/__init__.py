"""认证模块"""

from .twofactor import (
    TwoFactorManager,
    TwoFactorUser,
    TwoFactorProvider,
    create_two_factor_dependency,
)

__all__ = [
    "TwoFactorManager",
    "TwoFactorUser",
    "TwoFactorProvider",
    "create_two_factor_dependency",
]
