"""二次验证挑战校验

校验用户提交的 challenge，成功后清理待验证状态并记录完成标记，
成功和失败都会发布审计事件并通知监听器。

使用示例:
    verifier = ChallengeVerifier(reconciler, session, token_provider, user_config, activity_manager)

    @verifier.on_failure
    def count_failures(event: TwoFactorProviderEvent):
        throttler.register_attempt(event.user.uid)

    if verifier.verify_challenge("email", user, "123456"):
        redirect_to_home()
"""

from typing import Optional, Any, Callable, Dict, List

from ytwofactor.exceptions import InvalidTokenException, ActivityPublishError
from ytwofactor.log import get_logger, audit_logger, log_filter_hook_manager
from .base import (
    TwoFactorProvider,
    TwoFactorProviderEvent,
    SessionStore,
    TokenProvider,
    UserConfig,
    ActivityManager,
)
from .constants import (
    SESSION_UID_KEY,
    SESSION_UID_DONE,
    REMEMBER_LOGIN,
    LOGIN_TOKEN_2FA_APP,
    CORE_APP,
    SUBJECT_SUCCESS,
    SUBJECT_FAILED,
)
from .reconciler import ProviderStateReconciler

logger = get_logger()

# 创建长期登录 cookie 的回调，参数为用户
RememberMeHandler = Callable[[Any], None]


class ChallengeVerifier:
    """二次验证挑战校验器

    Args:
        reconciler: 提供者状态协调器
        session: 当前请求的会话
        token_provider: 登录令牌管理器
        user_config: 用户偏好存储
        activity_manager: 审计接收端
        remember_me_handler: 验证通过且需要记住登录时调用
        activity_app: 审计事件的 app
        activity_type: 审计事件的 type
    """

    def __init__(
        self,
        reconciler: ProviderStateReconciler,
        session: SessionStore,
        token_provider: TokenProvider,
        user_config: UserConfig,
        activity_manager: ActivityManager,
        remember_me_handler: Optional[RememberMeHandler] = None,
        activity_app: str = CORE_APP,
        activity_type: str = "security",
    ):
        self.reconciler = reconciler
        self.session = session
        self.token_provider = token_provider
        self.user_config = user_config
        self.activity_manager = activity_manager
        self.remember_me_handler = remember_me_handler
        self.activity_app = activity_app
        self.activity_type = activity_type

        # 事件监听器
        self._event_listeners: Dict[str, List[Callable]] = {
            "success": [],
            "failure": [],
        }

    # ========== 事件监听 ==========

    def on_success(self, func: Callable) -> Callable:
        """注册验证成功事件监听器"""
        self._event_listeners["success"].append(func)
        return func

    def on_failure(self, func: Callable) -> Callable:
        """注册验证失败事件监听器"""
        self._event_listeners["failure"].append(func)
        return func

    # ========== 校验 ==========

    def verify_challenge(self, provider_id: str, user: Any, challenge: str) -> bool:
        """校验 challenge

        提供者不存在或未对该用户启用时返回 False，不调用提供者，
        不修改会话，也不发布审计事件。提供者抛出的异常直接传播。

        Args:
            provider_id: 提供者 ID
            user: 用户
            challenge: 用户提交的验证码/应答

        Returns:
            bool: 是否通过
        """
        provider = self.reconciler.get_provider(user, provider_id)
        if provider is None:
            logger.debug(f"Provider '{provider_id}' is not available for user {user.uid}")
            return False

        safe_data = log_filter_hook_manager.apply_filters({
            "user": user.uid,
            "provider": provider_id,
            "challenge": challenge,
        })
        logger.debug(f"Verifying two-factor challenge: {safe_data}")

        passed = bool(provider.verify_challenge(user, challenge))

        if passed:
            self._handle_success(provider, user)
        else:
            self._handle_failure(provider, user)

        return passed

    def _handle_success(self, provider: TwoFactorProvider, user: Any) -> None:
        if self.session.get(REMEMBER_LOGIN):
            if self.remember_me_handler is not None:
                self.remember_me_handler(user)
            else:
                logger.warning(
                    f"Remember login requested for user {user.uid} "
                    f"but no remember-me handler is configured"
                )

        self.session.remove(SESSION_UID_KEY)
        self.session.remove(REMEMBER_LOGIN)
        self.session.set(SESSION_UID_DONE, user.uid)

        # 当前登录令牌不再等待验证
        try:
            token = self.token_provider.get_token(self.session.get_id())
            self.user_config.delete_user_value(user.uid, LOGIN_TOKEN_2FA_APP, str(token.get_id()))
        except InvalidTokenException as e:
            logger.warning(
                f"Could not clear pending two-factor token for user {user.uid}: {e.message}"
            )

        logger.info(f"Two-factor challenge passed: user={user.uid}, provider={provider.get_id()}")

        self._publish_event(user, SUBJECT_SUCCESS, provider)
        self._emit_event("success", TwoFactorProviderEvent(
            user=user,
            provider_id=provider.get_id(),
            provider_name=provider.get_display_name(),
            success=True,
        ))

    def _handle_failure(self, provider: TwoFactorProvider, user: Any) -> None:
        logger.warning(f"Two-factor challenge failed: user={user.uid}, provider={provider.get_id()}")

        self._publish_event(user, SUBJECT_FAILED, provider)
        self._emit_event("failure", TwoFactorProviderEvent(
            user=user,
            provider_id=provider.get_id(),
            provider_name=provider.get_display_name(),
            success=False,
        ))

    def _publish_event(self, user: Any, subject: str, provider: TwoFactorProvider) -> None:
        """发布审计事件

        ActivityPublishError 只记录日志，不影响验证结果；其他异常直接传播。
        """
        event = self.activity_manager.generate_event()
        event.set_app(self.activity_app) \
            .set_type(self.activity_type) \
            .set_author(user.uid) \
            .set_affected_user(user.uid) \
            .set_subject(subject, {"provider": provider.get_display_name()})

        try:
            self.activity_manager.publish(event)
        except ActivityPublishError as e:
            audit_logger.error(f"Failed to publish two-factor activity '{subject}': {e.message}")

    def _emit_event(self, event_type: str, event: TwoFactorProviderEvent) -> None:
        """触发事件"""
        listeners = self._event_listeners.get(event_type, [])
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Error in two-factor event listener: {e}")
