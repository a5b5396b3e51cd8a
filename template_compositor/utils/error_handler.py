"""错误处理工具模块.

提供统一的错误处理机制、用户友好的错误消息以及错误到 HTTP 状态码的映射。
"""

from __future__ import annotations

from typing import Any

from template_compositor.utils.exceptions import (
    AppException,
    ConfigError,
    RenderError,
    RenderErrorKind,
    ValidationError,
)
from template_compositor.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射
ERROR_MESSAGES = {
    ValidationError: "模板数据无效，请检查必填字段",
    RenderError: "图片渲染失败，请稍后重试",
    ConfigError: "配置错误，请检查配置文件",
}

# 错误到 HTTP 状态码的映射（调用方负责实际响应）
HTTP_STATUS_CODES = {
    ValidationError: 400,
    RenderError: 500,
    ConfigError: 500,
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    if isinstance(exception, RenderError) and exception.kind == RenderErrorKind.ALLOCATION_FAILED:
        return "画布尺寸过大，无法渲染"

    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "操作失败，请稍后重试"


def http_status_for(exception: Exception) -> int:
    """获取异常对应的 HTTP 状态码.

    校验错误属于客户端错误，渲染错误属于服务端错误。

    Args:
        exception: 异常对象

    Returns:
        HTTP 状态码
    """
    for exc_type, status in HTTP_STATUS_CODES.items():
        if isinstance(exception, exc_type):
            return status
    return 500


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
        "status": http_status_for(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    if isinstance(exception, ValidationError):
        details["field"] = exception.field

    if isinstance(exception, RenderError):
        details["kind"] = exception.kind.value

    return details


def handle_exception(
    exception: Exception,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> None:
    """统一异常处理.

    Args:
        exception: 异常对象
        context: 上下文描述
        reraise: 是否重新抛出异常
        log_traceback: 是否记录堆栈跟踪
    """
    msg = "异常发生"
    if context:
        msg = f"{context}: {msg}"

    if log_traceback:
        logger.exception(f"{msg}: {exception}")
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
