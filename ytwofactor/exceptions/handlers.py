"""全局异常处理器

提供 FastAPI 全局异常处理器，自动将异常转换为统一的 JSON 响应格式。
"""

import os

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ytwofactor.log import get_logger
from .exceptions import BusinessException

logger = get_logger()

# 响应状态
RESPONSE_STATUS_ERROR = "error"


def _is_debug() -> bool:
    return os.getenv("DEBUG", "false").lower() == "true"


async def business_exception_handler(
    request: Request,
    exc: BusinessException
) -> JSONResponse:
    """业务异常处理器

    处理所有继承自 BusinessException 的异常，转换为统一的 JSON 响应。
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        f"Business exception occurred: {exc.code} - {exc.message}",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
        }
    )

    content = {
        "status": RESPONSE_STATUS_ERROR,
        "message": exc.message,
        "msg_details": exc.details,
        "data": {}
    }

    if exc.code:
        content["error_code"] = exc.code

    if _is_debug() and exc.extra:
        content["debug_info"] = exc.extra

    return JSONResponse(
        status_code=exc.status_code,
        content=content
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """通用异常处理器

    兜底处理未捕获异常。二次验证中提供者抛出的异常会走到这里，
    对用户只返回通用错误，细节只进日志。
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=exc,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
    )

    content = {
        "status": RESPONSE_STATUS_ERROR,
        "message": "服务器内部错误",
        "msg_details": [],
        "data": {},
        "error_code": "INTERNAL_SERVER_ERROR"
    }

    if _is_debug():
        content["msg_details"] = [
            f"异常类型: {type(exc).__name__}",
            f"异常消息: {str(exc)}"
        ]

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content
    )


def register_exception_handlers(app) -> None:
    """注册异常处理器到 FastAPI 应用

    使用示例:
        from fastapi import FastAPI
        from ytwofactor.exceptions import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(BusinessException, business_exception_handler)

    # 通用异常处理器（必须放在最后）
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered successfully")
