"""核心渲染模块."""

from template_compositor.core.compositor import (
    Compositor,
    paint_order,
    render,
)
from template_compositor.core.config_manager import (
    ConfigManager,
    get_config,
)
from template_compositor.core.geometry import Rect
from template_compositor.core.raster import RasterImage
from template_compositor.core.surface import Surface

__all__ = [
    # 合成器
    "Compositor",
    "paint_order",
    "render",
    # 配置
    "ConfigManager",
    "get_config",
    # 绘图
    "Rect",
    "RasterImage",
    "Surface",
]
