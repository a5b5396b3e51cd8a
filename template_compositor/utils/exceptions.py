"""自定义异常类."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# 模板校验异常
# ===================
class ValidationError(AppException):
    """模板数据不完整或类型错误.

    在合成器运行之前抛出，由调用方处理。

    Attributes:
        field: 出错字段路径（如 ``canvasWidth`` 或 ``layers.2.size``）
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"字段 '{field}' 无效: {message}", "VALIDATION_ERROR")


class MissingFieldError(ValidationError):
    """必填字段缺失异常."""

    def __init__(self, field: str) -> None:
        super().__init__(field, "缺少必填字段")


# ===================
# 渲染相关异常
# ===================
class RenderErrorKind(str, Enum):
    """渲染错误类型."""

    ALLOCATION_FAILED = "allocation_failed"  # 画布过大或内存不足
    INTERNAL = "internal"  # 意外的内部状态


class RenderError(AppException):
    """渲染错误异常.

    渲染中止，不返回任何部分结果。

    Attributes:
        kind: 错误类型
    """

    def __init__(self, kind: RenderErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message, "RENDER_ERROR")


class SurfaceAllocationError(RenderError):
    """画布分配失败异常."""

    def __init__(self, width: int, height: int, reason: Optional[str] = None) -> None:
        msg = f"无法分配 {width}x{height} 画布"
        if reason:
            msg += f": {reason}"
        super().__init__(RenderErrorKind.ALLOCATION_FAILED, msg)
