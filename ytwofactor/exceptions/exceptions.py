"""业务异常类定义

定义二次验证核心使用的业务异常类体系。
"""

import copy
from enum import Enum
from typing import Optional, List, Any, Dict, Union

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。

    使用示例:
        raise AuthenticationException("登录令牌无效", code=ErrorCode.INVALID_TOKEN)

        if error_code == ErrorCode.TWO_FACTOR_REQUIRED:
            redirect_to_challenge()
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # ==================== 认证相关 (401) ====================
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TWO_FACTOR_REQUIRED = "TWO_FACTOR_REQUIRED"

    # ==================== 服务相关 (503) ====================
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    ACTIVITY_PUBLISH_FAILED = "ACTIVITY_PUBLISH_FAILED"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    所有业务异常都应该继承此类。

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断，支持 ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            # 返回深拷贝，避免调用方修改返回值反向污染异常对象内部状态
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class AuthenticationException(BusinessException):
    """认证异常 (401)"""

    def __init__(
        self,
        message: str = "认证失败",
        code: ErrorCodeType = ErrorCode.AUTHENTICATION_FAILED,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
            **extra
        )


class InvalidTokenException(AuthenticationException):
    """登录令牌无效或已撤销

    由登录令牌管理器在 get_token() 找不到有效令牌时抛出。
    二次验证门控会在本地恢复此异常，不向调用方传播。
    """

    def __init__(
        self,
        message: str = "登录令牌无效",
        code: ErrorCodeType = ErrorCode.INVALID_TOKEN,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(message=message, code=code, details=details, **extra)


class TwoFactorRequiredException(AuthenticationException):
    """当前登录还需要完成二次验证"""

    def __init__(
        self,
        message: str = "需要完成二次验证",
        code: ErrorCodeType = ErrorCode.TWO_FACTOR_REQUIRED,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(message=message, code=code, details=details, **extra)


class ServiceUnavailableException(BusinessException):
    """服务不可用异常 (503)"""

    def __init__(
        self,
        message: str = "服务暂时不可用",
        code: ErrorCodeType = ErrorCode.SERVICE_UNAVAILABLE,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            **extra
        )


class ActivityPublishError(ServiceUnavailableException):
    """审计事件无法发布

    审计接收端在事件缺少必要字段或暂时不可写时抛出。
    验证流程会记录日志后继续，不影响验证结果。
    """

    def __init__(
        self,
        message: str = "审计事件发布失败",
        code: ErrorCodeType = ErrorCode.ACTIVITY_PUBLISH_FAILED,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(message=message, code=code, details=details, **extra)


class Err:
    """异常快捷创建类

    使用示例:
        from ytwofactor import Err

        raise Err.auth("用户名或密码错误")
        raise Err.invalid_token()
        raise Err.two_factor_required()
    """

    @staticmethod
    def auth(message: str = "认证失败", **kwargs) -> AuthenticationException:
        """认证失败 (401)"""
        return AuthenticationException(message, **kwargs)

    @staticmethod
    def invalid_token(message: str = "登录令牌无效", **kwargs) -> InvalidTokenException:
        """登录令牌无效或已撤销 (401)"""
        return InvalidTokenException(message, **kwargs)

    @staticmethod
    def two_factor_required(message: str = "需要完成二次验证", **kwargs) -> TwoFactorRequiredException:
        """需要二次验证 (401)"""
        return TwoFactorRequiredException(message, **kwargs)

    @staticmethod
    def unavailable(message: str = "服务暂时不可用", **kwargs) -> ServiceUnavailableException:
        """服务不可用 (503)"""
        return ServiceUnavailableException(message, **kwargs)

    @staticmethod
    def fail(message: str = "操作失败", **kwargs) -> BusinessException:
        """通用业务异常 (400)"""
        return BusinessException(message, **kwargs)
