"""内存存储适配器

适用于单进程部署和测试，重启后数据丢失。

使用示例:
    from ytwofactor.auth.twofactor.memory import (
        InMemoryProviderRegistry,
        StaticProviderLoader,
        InMemorySession,
        InMemoryUserConfig,
        InMemoryTokenProvider,
        LoggingActivityManager,
    )

    loader = StaticProviderLoader().register_provider(EmailCodeProvider())
    tokens = InMemoryTokenProvider().add_token("session-1", LoginToken(token_id=42, uid="jos"))
"""

from typing import Optional, Any, Dict, List, Iterable, MutableMapping, Union, Callable

from ytwofactor.exceptions import InvalidTokenException, ActivityPublishError
from ytwofactor.log import audit_logger
from .base import (
    TwoFactorProvider,
    ProviderRegistry,
    ProviderLoader,
    SessionStore,
    LoginToken,
    TokenProvider,
    UserConfig,
    ActivityEvent,
    ActivityManager,
)


class InMemoryProviderRegistry(ProviderRegistry):
    """内存提供者状态注册表"""

    def __init__(self):
        self._states: Dict[str, Dict[str, bool]] = {}

    def get_provider_states(self, user: Any) -> Dict[str, bool]:
        return dict(self._states.get(user.uid, {}))

    def enable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        self._states.setdefault(user.uid, {})[provider.get_id()] = True

    def disable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        self._states.setdefault(user.uid, {})[provider.get_id()] = False

    def set_state(self, user_id: str, provider_id: str, enabled: bool) -> "InMemoryProviderRegistry":
        """直接写入状态（可用于写入当前无法加载的提供者）

        Returns:
            self: 支持链式调用
        """
        self._states.setdefault(user_id, {})[provider_id] = enabled
        return self

    def clear(self, user_id: str) -> None:
        """删除用户的所有提供者状态"""
        self._states.pop(user_id, None)


class StaticProviderLoader(ProviderLoader):
    """固定提供者列表的加载器

    所有用户看到相同的提供者集合。
    """

    def __init__(self, providers: Optional[Iterable[TwoFactorProvider]] = None):
        self._providers: Dict[str, TwoFactorProvider] = {}
        for provider in providers or []:
            self.register_provider(provider)

    def register_provider(self, provider: TwoFactorProvider) -> "StaticProviderLoader":
        """注册提供者

        Returns:
            self: 支持链式调用
        """
        self._providers[provider.get_id()] = provider
        return self

    def unregister_provider(self, provider_id: str) -> "StaticProviderLoader":
        """注销提供者（模拟所属应用被禁用）"""
        self._providers.pop(provider_id, None)
        return self

    def get_providers(self, user: Any) -> List[TwoFactorProvider]:
        return list(self._providers.values())


class InMemorySession(SessionStore):
    """内存会话"""

    def __init__(self, session_id: str = "", data: Optional[Dict[str, Any]] = None):
        self._session_id = session_id
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._data

    def get_id(self) -> str:
        return self._session_id

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class SessionDataAdapter(SessionStore):
    """把任意可变映射适配为会话存储

    适用于已有会话对象的场景，例如会话对象上的 data 字典。

    使用示例:
        session = session_manager.get_session(session_id)
        store = SessionDataAdapter(session.data, session.session_id)

    Args:
        data: 会话数据映射，直接在其上读写
        session_id: 会话 ID，或返回会话 ID 的函数（会话 ID 可能在请求中途重新生成）
    """

    def __init__(self, data: MutableMapping[str, Any], session_id: Union[str, Callable[[], str]]):
        self._data = data
        self._session_id = session_id

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._data

    def get_id(self) -> str:
        if callable(self._session_id):
            return self._session_id()
        return self._session_id


class InMemoryUserConfig(UserConfig):
    """内存用户偏好存储"""

    def __init__(self):
        self._values: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def get_user_value(self, uid: str, app: str, key: str, default: Any = None) -> Any:
        return self._values.get(uid, {}).get(app, {}).get(key, default)

    def set_user_value(self, uid: str, app: str, key: str, value: Any) -> None:
        self._values.setdefault(uid, {}).setdefault(app, {})[key] = value

    def delete_user_value(self, uid: str, app: str, key: str) -> None:
        app_values = self._values.get(uid, {}).get(app)
        if app_values is not None:
            app_values.pop(key, None)

    def get_user_keys(self, uid: str, app: str) -> List[str]:
        return list(self._values.get(uid, {}).get(app, {}).keys())


class InMemoryTokenProvider(TokenProvider):
    """内存登录令牌管理器，按会话 ID 查找令牌"""

    def __init__(self):
        self._tokens: Dict[str, LoginToken] = {}

    def add_token(self, session_id: str, token: LoginToken) -> "InMemoryTokenProvider":
        """绑定会话与登录令牌

        Returns:
            self: 支持链式调用
        """
        self._tokens[session_id] = token
        return self

    def revoke(self, session_id: str) -> None:
        self._tokens.pop(session_id, None)

    def get_token(self, session_id: str) -> LoginToken:
        token = self._tokens.get(session_id)
        if token is None:
            raise InvalidTokenException(details=[f"会话 {session_id} 没有对应的登录令牌"])
        return token


class InMemoryActivityManager(ActivityManager):
    """记录已发布事件的审计接收端"""

    def __init__(self):
        self.events: List[ActivityEvent] = []

    def publish(self, event: ActivityEvent) -> None:
        if not event.is_complete():
            raise ActivityPublishError(details=["审计事件缺少必要字段"])
        self.events.append(event)

    def get_events(self, subject: Optional[str] = None) -> List[ActivityEvent]:
        if subject is None:
            return list(self.events)
        return [event for event in self.events if event.subject == subject]

    def clear(self) -> None:
        self.events.clear()


class LoggingActivityManager(ActivityManager):
    """把审计事件写入 ytwofactor.audit 日志"""

    def publish(self, event: ActivityEvent) -> None:
        if not event.is_complete():
            raise ActivityPublishError(details=["审计事件缺少必要字段"])
        audit_logger.info(f"Activity: {event.to_dict()}")
