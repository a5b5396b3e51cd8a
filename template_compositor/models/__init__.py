"""数据模型模块."""

from template_compositor.models.app_settings import Settings
from template_compositor.models.template_config import (
    # 枚举
    LayerType,
    TextAlign,
    ImageEffect,
    # 常量
    CANVAS_PRESETS,
    # 图层类
    LayerElement,
    TextLayer,
    ImageLayer,
    ShapeLayer,
    UnknownLayer,
    AnyLayer,
    # 模板类
    Canvas,
    Template,
    # 辅助函数
    apply_canvas_defaults,
    generate_layer_id,
    parse_canvas_preset,
    unique_layer_name,
    validate_css_color,
    validate_template,
)

__all__ = [
    # 设置
    "Settings",
    # 枚举
    "LayerType",
    "TextAlign",
    "ImageEffect",
    # 常量
    "CANVAS_PRESETS",
    # 图层类
    "LayerElement",
    "TextLayer",
    "ImageLayer",
    "ShapeLayer",
    "UnknownLayer",
    "AnyLayer",
    # 模板类
    "Canvas",
    "Template",
    # 辅助函数
    "apply_canvas_defaults",
    "generate_layer_id",
    "parse_canvas_preset",
    "unique_layer_name",
    "validate_css_color",
    "validate_template",
]
