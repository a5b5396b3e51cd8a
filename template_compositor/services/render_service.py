"""模板渲染服务.

调用方使用的完整流程：校验模板数据 -> 合成 -> 编码 PNG。
"""

from __future__ import annotations

import io
from typing import Any, Mapping, Optional, Union

from PIL import Image

from template_compositor.core.compositor import Compositor
from template_compositor.core.config_manager import get_config
from template_compositor.core.raster import RasterImage
from template_compositor.models.app_settings import Settings
from template_compositor.models.template_config import Template, validate_template
from template_compositor.utils.exceptions import RenderError, ValidationError
from template_compositor.utils.logger import setup_logger

logger = setup_logger(__name__)

TemplateInput = Union[Template, Mapping[str, Any], str, bytes]


def encode_png(raster: RasterImage) -> bytes:
    """将渲染结果编码为 PNG.

    Args:
        raster: 渲染结果

    Returns:
        PNG 数据
    """
    buffer = io.BytesIO()
    raster.to_image().save(buffer, format="PNG")
    return buffer.getvalue()


class RenderService:
    """模板渲染服务.

    Example:
        >>> service = RenderService()
        >>> png = service.render_png({"canvasWidth": 100, "canvasHeight": 100, "layers": []})
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """初始化渲染服务.

        Args:
            settings: 应用设置，None 时使用全局配置
        """
        self.settings = settings or get_config().settings
        self.compositor = Compositor.from_settings(self.settings)

    def load(self, data: TemplateInput) -> Template:
        """校验模板数据.

        Raises:
            ValidationError: 数据不完整或类型错误
        """
        if isinstance(data, Template):
            return data
        try:
            return validate_template(data)
        except ValidationError as e:
            logger.error(f"模板校验失败: {e}")
            raise

    def render(self, data: TemplateInput) -> RasterImage:
        """渲染模板.

        设置中的 ``debug`` 为真时总是绘制调试信息。

        Args:
            data: 模板对象、字典或 JSON 字符串

        Returns:
            渲染结果

        Raises:
            ValidationError: 模板数据无效
            RenderError: 渲染失败
        """
        template = self.load(data)
        try:
            return self.compositor.render(
                template.canvas,
                template.layers,
                debug=template.debug or self.settings.debug,
            )
        except RenderError as e:
            logger.error(f"模板渲染失败: {e}")
            raise

    def render_png(self, data: TemplateInput) -> bytes:
        """渲染模板并编码为 PNG."""
        return encode_png(self.render(data))

    def save(self, data: TemplateInput, path: str) -> None:
        """渲染模板并保存到文件."""
        png = self.render_png(data)
        with open(path, "wb") as f:
            f.write(png)
        logger.info(f"已保存渲染结果: {path}")


def render_template(data: TemplateInput, settings: Optional[Settings] = None) -> RasterImage:
    """渲染模板（便捷函数）.

    Args:
        data: 模板对象、字典或 JSON 字符串
        settings: 应用设置

    Returns:
        渲染结果
    """
    if settings is not None:
        return RenderService(settings).render(data)
    return get_render_service().render(data)


def render_template_png(data: TemplateInput, settings: Optional[Settings] = None) -> bytes:
    """渲染模板并编码为 PNG（便捷函数）."""
    return encode_png(render_template(data, settings))


def decode_png(data: bytes) -> RasterImage:
    """解码 PNG 数据为渲染结果."""
    with Image.open(io.BytesIO(data)) as image:
        return RasterImage.from_image(image)


# 单例实例
_render_service_instance: Optional[RenderService] = None


def get_render_service() -> RenderService:
    """获取渲染服务单例.

    Returns:
        RenderService 实例
    """
    global _render_service_instance

    if _render_service_instance is None:
        _render_service_instance = RenderService()

    return _render_service_instance


def reset_render_service() -> None:
    """重置渲染服务单例."""
    global _render_service_instance
    _render_service_instance = None
