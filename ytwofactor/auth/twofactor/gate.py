"""二次验证门控

决定当前请求是否还需要完成二次验证，并在会话和登录令牌两个层面记录进度。

会话中的标记:
    - two_factor_auth_uid: 主凭证已通过、等待二次验证的用户
    - two_factor_auth_passed: 本会话中已完成二次验证的用户
    - app_password: 通过应用专用密码登录，不需要二次验证

登录令牌标记（用户偏好 login_token_2fa）:
    key 为尚未完成二次验证的登录令牌 ID。会话过期后重新建立的会话
    只要仍然属于同一个登录令牌，就能据此判断二次验证是否已经完成。

使用示例:
    gate = SecondFactorGate(reconciler, session, token_provider, user_config)

    # 主凭证校验通过后
    gate.prepare_two_factor_login(user, remember_login=True)

    # 每个请求
    if gate.needs_second_factor(user):
        redirect_to_challenge()
"""

import time
from typing import Optional, Any, Callable

from ytwofactor.exceptions import InvalidTokenException
from ytwofactor.log import get_logger
from .base import SessionStore, TokenProvider, UserConfig
from .constants import (
    SESSION_UID_KEY,
    SESSION_UID_DONE,
    SESSION_APP_PASSWORD,
    REMEMBER_LOGIN,
    LOGIN_TOKEN_2FA_APP,
)
from .reconciler import ProviderStateReconciler

logger = get_logger()


class SecondFactorGate:
    """二次验证门控

    Args:
        reconciler: 提供者状态协调器
        session: 当前请求的会话
        token_provider: 登录令牌管理器
        user_config: 用户偏好存储（保存登录令牌标记）
        clock: 返回当前 unix 秒的函数，默认 time.time
        clear_pending_without_providers: 用户没有任何可用提供者时是否清理待验证状态
    """

    def __init__(
        self,
        reconciler: ProviderStateReconciler,
        session: SessionStore,
        token_provider: TokenProvider,
        user_config: UserConfig,
        clock: Optional[Callable[[], float]] = None,
        clear_pending_without_providers: bool = True,
    ):
        self.reconciler = reconciler
        self.session = session
        self.token_provider = token_provider
        self.user_config = user_config
        self.clock = clock or time.time
        self.clear_pending_without_providers = clear_pending_without_providers

    def prepare_two_factor_login(self, user: Any, remember_login: bool) -> None:
        """主凭证通过后，标记本次登录等待二次验证

        Raises:
            InvalidTokenException: 当前会话没有对应的登录令牌
        """
        self.session.set(SESSION_UID_KEY, user.uid)
        self.session.set(REMEMBER_LOGIN, remember_login)

        token = self.token_provider.get_token(self.session.get_id())
        token_id = token.get_id()
        self.user_config.set_user_value(
            user.uid, LOGIN_TOKEN_2FA_APP, str(token_id), int(self.clock())
        )

        logger.debug(
            f"Prepared two-factor login: user={user.uid}, token={token_id}, "
            f"remember={remember_login}"
        )

    def needs_second_factor(self, user: Optional[Any]) -> bool:
        """当前请求是否还需要完成二次验证

        按顺序判断，第一个命中的条件决定结果:
            1. 没有用户
            2. 应用专用密码登录
            3. 会话中没有待验证用户时，检查本会话或当前登录令牌是否已完成验证
            4. 用户没有任何启用的提供者
        """
        if user is None:
            return False

        if self.session.exists(SESSION_APP_PASSWORD):
            return False

        if not self.session.exists(SESSION_UID_KEY):
            # 本会话已完成验证
            if (self.session.exists(SESSION_UID_DONE)
                    and self.session.get(SESSION_UID_DONE) == user.uid):
                return False

            # 会话可能已重建，检查当前登录令牌是否仍在等待验证
            try:
                token_id = str(self.token_provider.get_token(self.session.get_id()).get_id())
                pending_tokens = [
                    str(key) for key in
                    self.user_config.get_user_keys(user.uid, LOGIN_TOKEN_2FA_APP)
                ]
                if token_id not in pending_tokens:
                    self.session.set(SESSION_UID_DONE, user.uid)
                    return False
            except InvalidTokenException as e:
                logger.warning(f"Login token lookup failed for user {user.uid}: {e.message}")

        if not self.reconciler.is_two_factor_authenticated(user):
            # 没有任何提供者时用户无法完成验证，清理待验证状态
            if self.clear_pending_without_providers:
                self.session.remove(SESSION_UID_KEY)
                self.clear_two_factor_pending(user.uid)
            return False

        return True

    def clear_two_factor_pending(self, user_id: str) -> None:
        """删除用户所有登录令牌的待验证标记"""
        keys = self.user_config.get_user_keys(user_id, LOGIN_TOKEN_2FA_APP)
        for key in keys:
            self.user_config.delete_user_value(user_id, LOGIN_TOKEN_2FA_APP, key)
        if keys:
            logger.debug(f"Cleared {len(keys)} pending two-factor token(s) for user {user_id}")

    def is_remember_login(self) -> bool:
        return bool(self.session.get(REMEMBER_LOGIN))
