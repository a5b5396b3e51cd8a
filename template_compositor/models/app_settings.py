"""应用设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from template_compositor.utils.constants import (
    DEFAULT_SUPERSAMPLE,
    DEFAULT_TEXT_FONT,
    MAX_CANVAS_PIXELS,
    MAX_CANVAS_SIDE,
)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        max_canvas_side: 画布单边最大尺寸
        max_canvas_pixels: 画布最大像素数
        supersample: 几何绘制的超采样倍数
        default_font_family: 字体缺省时使用的字体
        font_dirs: 额外的字体搜索目录
        watermark_text: 水印文字，为空则不绘制
        debug: 调试模式（绘制调试信息面板）
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="日志级别",
    )

    # 渲染配置
    max_canvas_side: int = Field(
        default=MAX_CANVAS_SIDE,
        ge=1,
        le=65535,
        description="画布单边最大尺寸",
    )

    max_canvas_pixels: int = Field(
        default=MAX_CANVAS_PIXELS,
        ge=1,
        description="画布最大像素数",
    )

    supersample: int = Field(
        default=DEFAULT_SUPERSAMPLE,
        ge=1,
        le=8,
        description="超采样倍数",
    )

    # 字体配置
    default_font_family: str = Field(
        default=DEFAULT_TEXT_FONT,
        description="默认字体",
    )

    font_dirs: list[Path] = Field(
        default_factory=list,
        description="额外的字体搜索目录",
    )

    # 输出附加内容
    watermark_text: Optional[str] = Field(
        default=None,
        max_length=200,
        description="水印文字",
    )

    debug: bool = Field(
        default=False,
        description="调试模式",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v
