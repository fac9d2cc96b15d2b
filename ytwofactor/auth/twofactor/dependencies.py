"""FastAPI 二次验证依赖

在需要完整登录的接口上挂载，当前登录还没有完成二次验证时返回 401。

使用示例:
    from fastapi import Depends, FastAPI
    from ytwofactor.auth.twofactor import create_two_factor_dependency
    from ytwofactor.exceptions import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    require_two_factor = create_two_factor_dependency(
        manager_getter=lambda request: build_manager(request),
        user_getter=lambda request: request.state.user,
    )

    @app.get("/files")
    def list_files(user = Depends(require_two_factor)):
        return {"uid": user.uid}
"""

from typing import Optional, Any, Callable

from fastapi import Request

from ytwofactor.exceptions import TwoFactorRequiredException
from .manager import TwoFactorManager


def create_two_factor_dependency(
    manager_getter: Callable[[Request], TwoFactorManager],
    user_getter: Callable[[Request], Optional[Any]],
) -> Callable:
    """创建二次验证依赖函数

    Args:
        manager_getter: 根据请求构造（或获取）二次验证管理器
        user_getter: 根据请求获取已通过主凭证的用户，未登录返回 None

    Returns:
        FastAPI 依赖函数，返回当前用户（可能为 None）

    Raises:
        TwoFactorRequiredException: 需要完成二次验证
    """
    def dependency(request: Request):
        user = user_getter(request)
        manager = manager_getter(request)

        if manager.needs_second_factor(user):
            providers = manager.get_provider_set(user)
            raise TwoFactorRequiredException(
                providers=sorted(providers.get_providers().keys()),
                provider_missing=providers.is_provider_missing(),
            )

        return user

    return dependency
