"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

from typing import Any, Callable

import pytest
from PIL import ImageFont

from template_compositor.core.compositor import Compositor
from template_compositor.core.config_manager import ConfigManager
from template_compositor.services import render_service


def _builtin_font(family: str, size: float, bold: bool = False, italic: bool = False) -> ImageFont.FreeTypeFont:
    """与系统字体无关的内置字体，保证测试结果稳定."""
    return ImageFont.load_default(size)


@pytest.fixture
def compositor() -> Compositor:
    """使用内置字体的合成器."""
    return Compositor(supersample=4, font_resolver=_builtin_font)


@pytest.fixture
def template_data() -> Callable[..., dict[str, Any]]:
    """构造模板字典的工厂."""

    def factory(*layers: dict[str, Any], width: int = 200, height: int = 100) -> dict[str, Any]:
        return {"canvasWidth": width, "canvasHeight": height, "layers": list(layers)}

    return factory


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch: pytest.MonkeyPatch):
    """隔离全局配置与渲染服务单例."""
    for name in (
        "LOG_LEVEL",
        "MAX_CANVAS_SIDE",
        "MAX_CANVAS_PIXELS",
        "SUPERSAMPLE",
        "DEFAULT_FONT_FAMILY",
        "FONT_DIRS",
        "WATERMARK_TEXT",
        "DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    ConfigManager._instance = None
    render_service.reset_render_service()
    yield
    ConfigManager._instance = None
    render_service.reset_render_service()


@pytest.fixture
def builtin_font():
    """内置字体查找函数."""
    return _builtin_font
