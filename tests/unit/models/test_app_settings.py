"""应用设置单元测试."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from template_compositor.models.app_settings import Settings


class TestSettings:
    """测试应用设置."""

    def test_defaults(self):
        """默认值."""
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.max_canvas_side == 8192
        assert settings.max_canvas_pixels == 40_000_000
        assert settings.supersample == 4
        assert settings.default_font_family == "Arial"
        assert settings.font_dirs == []
        assert settings.watermark_text is None
        assert settings.debug is False

    def test_log_level_normalized(self):
        """日志级别转为大写."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """无效日志级别."""
        with pytest.raises(PydanticValidationError, match="无效的日志级别"):
            Settings(_env_file=None, log_level="verbose")

    @pytest.mark.parametrize("value", [0, 9])
    def test_supersample_range(self, value):
        """超采样倍数范围为1-8."""
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, supersample=value)

    def test_load_from_environment(self, monkeypatch):
        """从环境变量加载."""
        monkeypatch.setenv("SUPERSAMPLE", "2")
        monkeypatch.setenv("WATERMARK_TEXT", "preview")
        monkeypatch.setenv("FONT_DIRS", '["/opt/fonts"]')
        settings = Settings(_env_file=None)
        assert settings.supersample == 2
        assert settings.watermark_text == "preview"
        assert settings.font_dirs == [Path("/opt/fonts")]
