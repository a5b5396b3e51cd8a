"""图层合成引擎.

将画布尺寸与有序图层列表渲染为像素图像。

Features:
    - 按编辑器顺序的逆序绘制（列表第一个图层位于最上层），跳过隐藏图层
    - 每个图层独立的不透明度，绘制完成后恢复为 1
    - 文字：顶部基线、锚点对齐、可选背景矩形
    - 图片占位符与形状：矩形/圆角矩形填充，可选纹理效果
    - 边框在填充之后描边，奇数线宽偏移半个像素
    - 未知类型图层静默跳过

渲染是纯函数：不修改输入，不共享状态，可在多个线程中并发调用。
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Sequence, Union

from PIL import ImageFont

from template_compositor.core.effects import paint_effect
from template_compositor.core.geometry import (
    Rect,
    floor_rect,
    rounded_rect_path,
    stroke_offset,
    text_anchor,
    text_background_rect,
)
from template_compositor.core.raster import RasterImage
from template_compositor.core.surface import Surface
from template_compositor.models.app_settings import Settings
from template_compositor.models.template_config import (
    AnyLayer,
    Canvas,
    ImageLayer,
    LayerElement,
    ShapeLayer,
    Template,
    TextLayer,
)
from template_compositor.services.font_resolver import find_font
from template_compositor.utils.constants import (
    DEBUG_FONT_SIZE,
    DEBUG_PANEL_COLOR,
    DEBUG_TEXT_COLOR,
    DEFAULT_SUPERSAMPLE,
    DEFAULT_TEXT_FONT,
    MAX_CANVAS_PIXELS,
    MAX_CANVAS_SIDE,
    WATERMARK_COLOR,
    WATERMARK_FONT_SIZE,
)
from template_compositor.utils.exceptions import (
    RenderError,
    RenderErrorKind,
    SurfaceAllocationError,
)
from template_compositor.utils.logger import setup_logger

logger = setup_logger(__name__)

# 字体查找函数：(字体名, 字号, 粗体, 斜体) -> 字体
FontResolver = Callable[[str, float, bool, bool], ImageFont.FreeTypeFont]

CanvasLike = Union[Canvas, tuple[int, int]]


def paint_order(layers: Sequence[AnyLayer]) -> list[AnyLayer]:
    """确定绘制顺序.

    编辑器中的图层列表从上到下排列，绘制时从下往上：返回逆序后的新列表，
    并去掉隐藏图层。输入序列不会被修改。

    Args:
        layers: 编辑器顺序的图层

    Returns:
        绘制顺序的图层
    """
    return [layer for layer in reversed(list(layers)) if getattr(layer, "visible", True) is not False]


class Compositor:
    """图层合成器.

    Attributes:
        supersample: 几何图形超采样倍数
        max_canvas_side: 画布单边最大尺寸
        max_canvas_pixels: 画布最大像素数
        watermark_text: 水印文字，None 表示不绘制

    Example:
        >>> compositor = Compositor()
        >>> layers = [ShapeLayer(x=10, y=10, width=50, height=20, fill_color="#ff0000")]
        >>> image = compositor.render(Canvas(width=100, height=100), layers)
        >>> image.pixel(20, 20)
        (255, 0, 0, 255)
    """

    def __init__(
        self,
        supersample: int = DEFAULT_SUPERSAMPLE,
        max_canvas_side: int = MAX_CANVAS_SIDE,
        max_canvas_pixels: int = MAX_CANVAS_PIXELS,
        watermark_text: Optional[str] = None,
        font_resolver: Optional[FontResolver] = None,
        default_font_family: str = DEFAULT_TEXT_FONT,
    ) -> None:
        """初始化合成器.

        Args:
            supersample: 几何图形超采样倍数
            max_canvas_side: 画布单边最大尺寸
            max_canvas_pixels: 画布最大像素数
            watermark_text: 水印文字
            font_resolver: 字体查找函数，默认按系统字体目录查找
            default_font_family: 字体缺省时使用的字体
        """
        self.supersample = supersample
        self.max_canvas_side = max_canvas_side
        self.max_canvas_pixels = max_canvas_pixels
        self.watermark_text = watermark_text
        self._default_font_family = default_font_family
        self._font_resolver = font_resolver

    @classmethod
    def from_settings(cls, settings: Settings) -> "Compositor":
        """根据应用设置创建合成器."""
        font_dirs = tuple(settings.font_dirs)

        def resolve(family: str, size: float, bold: bool, italic: bool) -> ImageFont.FreeTypeFont:
            return find_font(
                family,
                size,
                bold,
                italic,
                default_family=settings.default_font_family,
                font_dirs=font_dirs,
            )

        return cls(
            supersample=settings.supersample,
            max_canvas_side=settings.max_canvas_side,
            max_canvas_pixels=settings.max_canvas_pixels,
            watermark_text=settings.watermark_text,
            font_resolver=resolve,
            default_font_family=settings.default_font_family,
        )

    # ===================
    # 公共接口
    # ===================

    def render(
        self,
        canvas: CanvasLike,
        layers: Sequence[AnyLayer],
        debug: bool = False,
    ) -> RasterImage:
        """渲染图层.

        Args:
            canvas: 画布尺寸
            layers: 编辑器顺序的图层（第一个在最上层）
            debug: 是否绘制调试信息

        Returns:
            渲染结果

        Raises:
            RenderError: 画布无法分配（ALLOCATION_FAILED）或尺寸无效（INTERNAL）
        """
        start = time.perf_counter()
        surface = self.allocate_surface(canvas)

        painted = self.paint_layers(surface, layers)
        if self.watermark_text:
            self._paint_watermark(surface, self.watermark_text)
        if debug:
            self._paint_debug_panel(surface, len(paint_order(layers)))

        try:
            raster = surface.to_raster()
        except MemoryError:
            raise SurfaceAllocationError(surface.width, surface.height, "导出时内存不足") from None
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            f"渲染完成: 画布={surface.width}x{surface.height}, "
            f"图层={len(layers)}, 绘制={painted}, 耗时={elapsed:.1f}ms"
        )
        return raster

    def render_template(self, template: Template) -> RasterImage:
        """渲染模板."""
        return self.render(template.canvas, template.layers, debug=template.debug)

    def allocate_surface(self, canvas: CanvasLike) -> Surface:
        """分配白色底色的绘图表面.

        Raises:
            RenderError: 尺寸无效或超出上限
        """
        width, height = canvas.size if isinstance(canvas, Canvas) else canvas
        if width <= 0 or height <= 0:
            raise RenderError(RenderErrorKind.INTERNAL, f"画布尺寸无效: {width}x{height}")
        if max(width, height) > self.max_canvas_side:
            raise SurfaceAllocationError(width, height, f"单边超过上限 {self.max_canvas_side}")
        if width * height > self.max_canvas_pixels:
            raise SurfaceAllocationError(width, height, f"像素数超过上限 {self.max_canvas_pixels}")
        return Surface(width, height, supersample=self.supersample)

    def paint_layers(self, surface: Surface, layers: Sequence[AnyLayer]) -> int:
        """按绘制顺序将图层绘制到表面.

        单个图层绘制失败只记录错误，不影响其余图层。

        Args:
            surface: 绘图表面
            layers: 编辑器顺序的图层

        Returns:
            实际绘制的图层数量
        """
        painted = 0
        for layer in paint_order(layers):
            try:
                with surface.layer_alpha(getattr(layer, "opacity", 1.0)):
                    if self._paint_layer(surface, layer):
                        painted += 1
            except MemoryError:
                raise SurfaceAllocationError(surface.width, surface.height, "绘制时内存不足") from None
            except Exception as e:
                logger.error(f"渲染图层失败: {getattr(layer, 'id', '?')}, 错误: {e}")
        return painted

    # ===================
    # 图层绘制
    # ===================

    def _paint_layer(self, surface: Surface, layer: AnyLayer) -> bool:
        """绘制单个图层.

        Returns:
            是否绘制（未知类型返回 False）
        """
        if isinstance(layer, TextLayer):
            self._paint_text_layer(surface, layer)
        elif isinstance(layer, ShapeLayer):
            self._paint_box(surface, layer, layer.fill_color)
        elif isinstance(layer, ImageLayer):
            self._paint_image_layer(surface, layer)
        else:
            logger.debug(f"跳过未知类型图层: {getattr(layer, 'type', None)!r}")
            return False

        self._paint_outline(surface, layer)
        return True

    def _paint_text_layer(self, surface: Surface, layer: TextLayer) -> None:
        """绘制文字图层：先背景，后文字."""
        if layer.use_background:
            surface.fill_rect(text_background_rect(layer), layer.background_color)

        font = self._resolve_font(layer.font, layer.size, layer.bold, layer.italic)
        logger.debug(f"绘制文字图层: {layer.id}, 字体={layer.css_font}")
        surface.fill_text(
            layer.text,
            text_anchor(layer),
            font,
            layer.color,
            align=layer.text_align.value,
        )

    def _paint_image_layer(self, surface: Surface, layer: ImageLayer) -> None:
        """绘制图片占位符及纹理."""
        rect = self._paint_box(surface, layer, layer.placeholder_color)
        if layer.use_color_fill:
            clip = rounded_rect_path(rect, layer.corner_radius)
            paint_effect(surface, layer.effect, rect, clip)

    def _paint_box(self, surface: Surface, layer: LayerElement, color: str) -> Rect:
        """填充图层的矩形或圆角矩形区域.

        Returns:
            填充使用的矩形（向下取整）
        """
        rect = floor_rect(layer)
        radius = layer.corner_radius_or_zero
        if radius > 0:
            surface.fill_rounded_rect(rect, radius, color)
        else:
            surface.fill_rect(rect, color)
        return rect

    def _paint_outline(self, surface: Surface, layer: LayerElement) -> None:
        """描边图层轮廓，路径与填充相同."""
        width, color = layer.outline
        if width <= 0:
            return

        offset = stroke_offset(width)
        rect = floor_rect(layer).offset(offset, offset)
        radius = layer.corner_radius_or_zero
        if radius > 0:
            surface.stroke_rounded_rect(rect, radius, width, color)
        else:
            surface.stroke_rect(rect, width, color)

    # ===================
    # 附加内容
    # ===================

    def _paint_watermark(self, surface: Surface, text: str) -> None:
        """在左下角绘制水印（基线位于底边上方 10 像素）."""
        font = self._resolve_font(self._default_font_family, WATERMARK_FONT_SIZE, False, False)
        ascent, _ = font.getmetrics()
        surface.fill_text(text, (10, surface.height - 10 - ascent), font, WATERMARK_COLOR)

    def _paint_debug_panel(self, surface: Surface, layer_count: int) -> None:
        """在左上角绘制调试信息面板.

        Args:
            surface: 绘图表面
            layer_count: 可见图层数量（含未知类型）
        """
        surface.fill_rect(Rect(10, 10, 230, 80), DEBUG_PANEL_COLOR)
        font = self._resolve_font("monospace", DEBUG_FONT_SIZE, False, False)
        lines = [
            f"Canvas: {surface.width}x{surface.height}",
            f"Layers: {layer_count}",
        ]
        for i, line in enumerate(lines):
            surface.fill_text(line, (20, 30 + i * 20), font, DEBUG_TEXT_COLOR)

    def _resolve_font(self, family: str, size: float, bold: bool, italic: bool) -> ImageFont.FreeTypeFont:
        if self._font_resolver is not None:
            return self._font_resolver(family, size, bold, italic)
        return find_font(family, size, bold, italic, default_family=self._default_font_family)


def render(canvas: CanvasLike, layers: Sequence[AnyLayer]) -> RasterImage:
    """渲染图层（使用默认选项的便捷函数）.

    Args:
        canvas: 画布尺寸
        layers: 编辑器顺序的图层（第一个在最上层）

    Returns:
        渲染结果
    """
    return Compositor().render(canvas, layers)
