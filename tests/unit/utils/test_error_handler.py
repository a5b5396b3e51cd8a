"""错误处理工具单元测试."""

import pytest

from template_compositor.utils.error_handler import (
    get_error_details,
    get_user_friendly_message,
    handle_exception,
    http_status_for,
)
from template_compositor.utils.exceptions import (
    AppException,
    ConfigError,
    MissingFieldError,
    RenderError,
    RenderErrorKind,
    SurfaceAllocationError,
    ValidationError,
)


class TestExceptions:
    """测试自定义异常."""

    def test_str_includes_code(self):
        """字符串包含错误代码."""
        assert str(AppException("出错了", "E1")) == "[E1] 出错了"

    def test_validation_error(self):
        """校验错误记录字段."""
        error = ValidationError("layers.0.size", "必须大于0")
        assert error.field == "layers.0.size"
        assert error.code == "VALIDATION_ERROR"
        assert "layers.0.size" in error.message

    def test_missing_field_is_validation_error(self):
        """缺失字段属于校验错误."""
        assert isinstance(MissingFieldError("layers"), ValidationError)

    def test_surface_allocation_error(self):
        """画布分配失败."""
        error = SurfaceAllocationError(100, 200, "太大")
        assert error.kind == RenderErrorKind.ALLOCATION_FAILED
        assert "100x200" in error.message
        assert "太大" in error.message
        assert error.code == "RENDER_ERROR"


class TestHttpStatus:
    """测试状态码映射."""

    def test_validation_is_client_error(self):
        """校验错误为400."""
        assert http_status_for(MissingFieldError("canvasWidth")) == 400

    def test_render_is_server_error(self):
        """渲染错误为500."""
        assert http_status_for(RenderError(RenderErrorKind.INTERNAL, "x")) == 500
        assert http_status_for(SurfaceAllocationError(1, 1)) == 500

    def test_unknown_exception(self):
        """其他异常为500."""
        assert http_status_for(KeyError("x")) == 500


class TestUserFriendlyMessage:
    """测试用户友好消息."""

    def test_allocation_failed(self):
        """画布过大."""
        assert get_user_friendly_message(SurfaceAllocationError(1, 1)) == "画布尺寸过大，无法渲染"

    def test_mapped_types(self):
        """已知异常类型."""
        assert get_user_friendly_message(ValidationError("x", "y")) == "模板数据无效，请检查必填字段"
        assert get_user_friendly_message(ConfigError("x")) == "配置错误，请检查配置文件"

    def test_app_exception_message(self):
        """其他应用异常使用自身消息."""
        assert get_user_friendly_message(AppException("自定义")) == "自定义"

    def test_unknown_exception(self):
        """未知异常."""
        assert get_user_friendly_message(ValueError("x")) == "操作失败，请稍后重试"


class TestErrorDetails:
    """测试错误详情."""

    def test_validation_details(self):
        """校验错误详情包含字段."""
        details = get_error_details(ValidationError("canvasWidth", "必须为正数"))
        assert details["type"] == "ValidationError"
        assert details["status"] == 400
        assert details["code"] == "VALIDATION_ERROR"
        assert details["field"] == "canvasWidth"

    def test_render_details(self):
        """渲染错误详情包含类型."""
        details = get_error_details(SurfaceAllocationError(5, 5))
        assert details["kind"] == "allocation_failed"
        assert details["status"] == 500

    def test_plain_exception(self):
        """普通异常没有代码."""
        details = get_error_details(ValueError("bad"))
        assert "code" not in details
        assert details["message"] == "bad"


class TestHandleException:
    """测试统一异常处理."""

    def test_reraise(self):
        """默认重新抛出."""
        with pytest.raises(ValueError):
            handle_exception(ValueError("x"), "测试")

    def test_no_reraise(self):
        """不重新抛出."""
        handle_exception(ValueError("x"), reraise=False, log_traceback=False)
