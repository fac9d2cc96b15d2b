"""二次验证基础定义

核心只依赖这里定义的窄接口，具体的提供者、注册表、会话、令牌管理器、
用户偏好存储和审计接收端都由外部实现。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any, Dict, List


@dataclass
class TwoFactorUser:
    """参与二次验证的用户

    核心只读取 uid；其余字段供提供者使用。

    Attributes:
        uid: 用户 ID
        display_name: 显示名
        email: 邮箱（邮件验证码等提供者使用）
    """
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None


@dataclass
class LoginToken:
    """长期登录令牌

    一个登录令牌跨越多个请求乃至多个会话，标识同一次登录。

    Attributes:
        token_id: 令牌 ID
        uid: 所属用户 ID
        name: 令牌名称（如浏览器标识）
    """
    token_id: int
    uid: Optional[str] = None
    name: str = ""

    def get_id(self) -> int:
        return self.token_id


class TwoFactorProvider(ABC):
    """二次验证提供者抽象基类

    每种验证方式（邮件验证码、TOTP、U2F、备用码）实现一个提供者。
    """

    @abstractmethod
    def get_id(self) -> str:
        """稳定且唯一的提供者 ID"""
        pass

    @abstractmethod
    def get_display_name(self) -> str:
        """面向用户的名称"""
        pass

    def get_description(self) -> str:
        """面向用户的说明"""
        return ""

    @abstractmethod
    def is_two_factor_auth_enabled_for_user(self, user: Any) -> bool:
        """用户是否启用了该提供者

        只在注册表中还没有该用户记录时被调用一次。
        """
        pass

    @abstractmethod
    def verify_challenge(self, user: Any, challenge: str) -> bool:
        """校验用户提交的 challenge

        Args:
            user: 用户
            challenge: 用户提交的验证码/应答

        Returns:
            bool: 是否通过
        """
        pass


class ProviderRegistry(ABC):
    """提供者启用状态注册表（持久化）

    没有记录表示"尚未判定"，与 False 不同。
    """

    @abstractmethod
    def get_provider_states(self, user: Any) -> Dict[str, bool]:
        """获取用户所有已判定的提供者状态 {provider_id: enabled}"""
        pass

    @abstractmethod
    def enable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        pass

    @abstractmethod
    def disable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        pass


class ProviderLoader(ABC):
    """提供者加载器

    返回当前能够实例化的提供者，注册过但已卸载的提供者不会出现在结果中。
    """

    @abstractmethod
    def get_providers(self, user: Any) -> List[TwoFactorProvider]:
        pass


class SessionStore(ABC):
    """请求级会话存储"""

    @abstractmethod
    def get(self, key: str) -> Any:
        """获取值，不存在返回 None"""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """删除键，键不存在时什么也不做"""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def get_id(self) -> str:
        """当前会话 ID"""
        pass


class TokenProvider(ABC):
    """登录令牌生命周期管理器"""

    @abstractmethod
    def get_token(self, session_id: str) -> LoginToken:
        """根据会话 ID 查找登录令牌

        Raises:
            InvalidTokenException: 令牌不存在、已失效或已撤销
        """
        pass


class UserConfig(ABC):
    """长期用户偏好存储

    以 (uid, app, key) 定位一个值。
    """

    @abstractmethod
    def get_user_value(self, uid: str, app: str, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set_user_value(self, uid: str, app: str, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete_user_value(self, uid: str, app: str, key: str) -> None:
        """删除值，值不存在时什么也不做"""
        pass

    @abstractmethod
    def get_user_keys(self, uid: str, app: str) -> List[str]:
        pass


@dataclass
class ActivityEvent:
    """审计事件

    setter 返回自身，支持链式调用:
        event.set_app("core").set_type("security").set_subject("twofactor_success", {...})
    """
    app: Optional[str] = None
    type: Optional[str] = None
    author: Optional[str] = None
    affected_user: Optional[str] = None
    subject: Optional[str] = None
    subject_parameters: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def set_app(self, app: str) -> "ActivityEvent":
        self.app = app
        return self

    def set_type(self, type_: str) -> "ActivityEvent":
        self.type = type_
        return self

    def set_author(self, author: str) -> "ActivityEvent":
        self.author = author
        return self

    def set_affected_user(self, affected_user: str) -> "ActivityEvent":
        self.affected_user = affected_user
        return self

    def set_subject(self, subject: str, parameters: Dict[str, Any] = None) -> "ActivityEvent":
        self.subject = subject
        self.subject_parameters = dict(parameters or {})
        return self

    def is_complete(self) -> bool:
        """发布所需字段是否齐全"""
        return all([self.app, self.type, self.affected_user, self.subject])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app": self.app,
            "type": self.type,
            "author": self.author,
            "affected_user": self.affected_user,
            "subject": self.subject,
            "subject_parameters": dict(self.subject_parameters),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class ActivityManager(ABC):
    """审计接收端"""

    def generate_event(self) -> ActivityEvent:
        return ActivityEvent()

    @abstractmethod
    def publish(self, event: ActivityEvent) -> None:
        """发布事件

        Raises:
            ActivityPublishError: 事件不完整或暂时无法写入
        """
        pass


@dataclass
class TwoFactorProviderEvent:
    """挑战校验结果事件，分发给 on_success / on_failure 监听器"""
    user: Any
    provider_id: str
    provider_name: str
    success: bool
