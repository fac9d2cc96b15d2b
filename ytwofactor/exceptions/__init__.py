"""异常处理模块

提供业务异常类、全局异常处理器等功能。

使用示例:
    from ytwofactor.exceptions import Err, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    raise Err.two_factor_required()
"""

from .exceptions import (
    Err,
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    AuthenticationException,
    InvalidTokenException,
    TwoFactorRequiredException,
    ServiceUnavailableException,
    ActivityPublishError,
)

from .handlers import (
    register_exception_handlers,
    business_exception_handler,
    general_exception_handler,
)

__all__ = [
    "Err",
    "ErrorCode",
    "register_exception_handlers",

    "ErrorCodeType",
    "BusinessException",
    "AuthenticationException",
    "InvalidTokenException",
    "TwoFactorRequiredException",
    "ServiceUnavailableException",
    "ActivityPublishError",

    "business_exception_handler",
    "general_exception_handler",
]
