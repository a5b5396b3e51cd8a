"""离屏绘图表面.

基于 Pillow 实现类似 2D canvas 的绘图原语：矩形与路径的填充/描边、
文字绘制、全局透明度与裁剪。

每次绘制先在局部覆盖度蒙版上以超采样方式光栅化几何图形，缩小后
按 ``颜色透明度 x 全局透明度`` 与画布做 alpha 合成。超采样保证半像素
偏移的描边与编辑器预览一致。
"""

from __future__ import annotations

import math
import re
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterator, Optional, Sequence

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont

from template_compositor.core.geometry import (
    Point,
    Rect,
    path_bounds,
    rounded_rect_path,
    stroke_outline,
)
from template_compositor.core.raster import RasterImage
from template_compositor.utils.constants import CANVAS_BACKGROUND, DEFAULT_SUPERSAMPLE
from template_compositor.utils.exceptions import SurfaceAllocationError

# 文字对齐方式 -> Pillow 锚点（水平对齐 + 顶部对齐）
TEXT_ANCHORS = {
    "left": "la",
    "center": "ma",
    "right": "ra",
}

# 与 canvas fillText 一致：换行等 ASCII 空白替换为空格，文字始终单行绘制
_LINE_BREAKS = re.compile(r"[\t\n\f\r]")

RGBAColor = tuple[int, int, int, int]


@lru_cache(maxsize=256)
def parse_color(color: str) -> RGBAColor:
    """解析 CSS 颜色为 RGBA 元组."""
    rgb = ImageColor.getrgb(color)
    if len(rgb) == 3:
        return (*rgb, 255)
    return rgb  # type: ignore[return-value]


@lru_cache(maxsize=64)
def _alpha_table(alpha: float) -> list[int]:
    """覆盖度 -> 最终 alpha 的查找表."""
    return [round(i * alpha) for i in range(256)]


@dataclass
class PaintState:
    """当前绘制状态.

    Attributes:
        global_alpha: 全局透明度，作用于之后的所有绘制操作
    """

    global_alpha: float = 1.0

    def reset(self) -> None:
        """恢复默认状态."""
        self.global_alpha = 1.0


class Surface:
    """RGBA 离屏绘图表面.

    Attributes:
        state: 当前绘制状态

    Example:
        >>> surface = Surface(100, 100)
        >>> with surface.layer_alpha(0.5):
        ...     surface.fill_rect(Rect(10, 10, 20, 20), "#ff0000")
        >>> surface.state.global_alpha
        1.0
    """

    def __init__(
        self,
        width: int,
        height: int,
        supersample: int = DEFAULT_SUPERSAMPLE,
        background: RGBAColor = CANVAS_BACKGROUND,
    ) -> None:
        """初始化绘图表面.

        Args:
            width: 宽度
            height: 高度
            supersample: 几何图形超采样倍数
            background: 底色

        Raises:
            SurfaceAllocationError: 内存不足
        """
        try:
            self._image = Image.new("RGBA", (width, height), background)
        except MemoryError:
            raise SurfaceAllocationError(width, height, "内存不足") from None
        self._supersample = max(1, int(supersample))
        self._clip: Optional[Image.Image] = None
        self.state = PaintState()

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    # ===================
    # 状态管理
    # ===================

    @contextmanager
    def layer_alpha(self, opacity: float) -> Iterator[None]:
        """在上下文中使用图层透明度，退出后恢复为 1."""
        self.state.global_alpha = min(max(opacity, 0.0), 1.0)
        try:
            yield
        finally:
            self.state.reset()

    @contextmanager
    def scaled_alpha(self, factor: float) -> Iterator[None]:
        """在上下文中将全局透明度乘以系数，退出后恢复原值."""
        previous = self.state.global_alpha
        self.state.global_alpha = previous * min(max(factor, 0.0), 1.0)
        try:
            yield
        finally:
            self.state.global_alpha = previous

    @contextmanager
    def clip_path(self, points: Sequence[Point]) -> Iterator[None]:
        """在上下文中将绘制裁剪到路径内部."""
        mask = Image.new("L", self._image.size, 0)
        left, top, right, bottom = path_bounds(list(points))
        box = self._pixel_box(left, top, right, bottom)
        if box is not None:
            coverage = self._polygon_coverage(box, points)
            mask.paste(coverage, box[:2])

        previous = self._clip
        self._clip = mask if previous is None else ImageChops.multiply(previous, mask)
        try:
            yield
        finally:
            self._clip = previous

    # ===================
    # 绘制原语
    # ===================

    def fill_rect(self, rect: Rect, color: str) -> None:
        """填充矩形."""
        if rect.is_empty:
            return
        box = self._pixel_box(rect.x, rect.y, rect.right, rect.bottom)
        if box is None:
            return
        coverage = self._rasterize(box, lambda draw, tf: self._draw_rect(draw, rect, tf, 255))
        self._blend(coverage, box, color)

    def stroke_rect(self, rect: Rect, line_width: float, color: str) -> None:
        """描边矩形，线宽以矩形边为中心."""
        if line_width <= 0:
            return
        half = line_width / 2
        outer = rect.inflate(half)
        inner = rect.inflate(-half)
        box = self._pixel_box(outer.x, outer.y, outer.right, outer.bottom)
        if box is None:
            return

        def draw_ring(draw: ImageDraw.ImageDraw, tf: Callable[[float, float], Point]) -> None:
            self._draw_rect(draw, outer, tf, 255)
            if not inner.is_empty:
                self._draw_rect(draw, inner, tf, 0)

        coverage = self._rasterize(box, draw_ring)
        self._blend(coverage, box, color)

    def fill_path(self, points: Sequence[Point], color: str) -> None:
        """填充闭合路径."""
        if len(points) < 3:
            return
        box = self._pixel_box(*path_bounds(list(points)))
        if box is None:
            return
        coverage = self._polygon_coverage(box, points)
        self._blend(coverage, box, color)

    def fill_rounded_rect(self, rect: Rect, radius: float, color: str) -> None:
        """填充圆角矩形."""
        if rect.is_empty:
            return
        self.fill_path(rounded_rect_path(rect, radius), color)

    def stroke_rounded_rect(self, rect: Rect, radius: float, line_width: float, color: str) -> None:
        """描边圆角矩形，线宽以路径为中心."""
        if line_width <= 0:
            return
        outer, inner = stroke_outline(rect, radius, line_width)
        box = self._pixel_box(*path_bounds(outer))
        if box is None:
            return
        outer_mask = self._polygon_coverage(box, outer)
        if inner is not None:
            inner_mask = self._polygon_coverage(box, inner)
            outer_mask = ImageChops.subtract(outer_mask, inner_mask)
        self._blend(outer_mask, box, color)

    def fill_circle(self, cx: float, cy: float, radius: float, color: str) -> None:
        """填充圆形."""
        if radius <= 0:
            return
        box = self._pixel_box(cx - radius, cy - radius, cx + radius, cy + radius)
        if box is None:
            return

        def draw_circle(draw: ImageDraw.ImageDraw, tf: Callable[[float, float], Point]) -> None:
            x0, y0 = tf(cx - radius, cy - radius)
            x1, y1 = tf(cx + radius, cy + radius)
            draw.ellipse((x0, y0, x1 - 1, y1 - 1), fill=255)

        coverage = self._rasterize(box, draw_circle)
        self._blend(coverage, box, color)

    def stroke_lines(self, lines: Sequence[Sequence[Point]], line_width: float, color: str) -> None:
        """描边多条折线."""
        points = [p for line in lines for p in line]
        if line_width <= 0 or not points:
            return
        left, top, right, bottom = path_bounds(points)
        half = line_width / 2
        box = self._pixel_box(left - half, top - half, right + half, bottom + half)
        if box is None:
            return
        width = max(1, round(line_width * self._supersample))

        def draw_lines(draw: ImageDraw.ImageDraw, tf: Callable[[float, float], Point]) -> None:
            for line in lines:
                if len(line) >= 2:
                    draw.line([tf(x, y) for x, y in line], fill=255, width=width)

        coverage = self._rasterize(box, draw_lines)
        self._blend(coverage, box, color)

    def fill_text(
        self,
        text: str,
        position: tuple[int, int],
        font: ImageFont.FreeTypeFont,
        color: str,
        align: str = "left",
    ) -> None:
        """绘制单行文字.

        文字以顶部为基线，水平方向按 ``align`` 以锚点左对齐、居中或右对齐。

        Args:
            text: 文字内容
            position: 锚点坐标
            font: 字体
            color: 文字颜色
            align: 对齐方式（left/center/right）
        """
        text = _LINE_BREAKS.sub(" ", text)
        if not text:
            return
        anchor = TEXT_ANCHORS.get(align, "la")
        x, y = position
        left, top, right, bottom = font.getbbox(text, anchor=anchor)
        box = self._pixel_box(x + left, y + top, x + right, y + bottom)
        if box is None:
            return

        # 文字由 FreeType 抗锯齿，直接在原始分辨率绘制
        mask = Image.new("L", (box[2] - box[0], box[3] - box[1]), 0)
        ImageDraw.Draw(mask).text((x - box[0], y - box[1]), text, fill=255, font=font, anchor=anchor)
        self._blend(mask, box, color)

    # ===================
    # 输出
    # ===================

    def to_raster(self) -> RasterImage:
        """导出当前画面."""
        return RasterImage(
            width=self.width,
            height=self.height,
            data=self._image.tobytes(),
        )

    def to_image(self) -> Image.Image:
        """导出当前画面的 Pillow 副本."""
        return self._image.copy()

    # ===================
    # 内部方法
    # ===================

    def _pixel_box(
        self,
        left: float,
        top: float,
        right: float,
        bottom: float,
    ) -> Optional[tuple[int, int, int, int]]:
        """几何边界对应的像素区域（已裁剪到画布），为空返回 None."""
        x0 = max(0, math.floor(left))
        y0 = max(0, math.floor(top))
        x1 = min(self.width, math.ceil(right))
        y1 = min(self.height, math.ceil(bottom))
        if x1 <= x0 or y1 <= y0:
            return None
        return (x0, y0, x1, y1)

    def _rasterize(
        self,
        box: tuple[int, int, int, int],
        draw_fn: Callable[[ImageDraw.ImageDraw, Callable[[float, float], Point]], None],
        erode: bool = False,
    ) -> Image.Image:
        """在超采样蒙版上绘制并缩小为覆盖度蒙版.

        Args:
            box: 像素区域
            draw_fn: 绘制函数，参数为 ImageDraw 与坐标变换
            erode: 是否去掉右侧和底部多出的一行超采样像素
        """
        s = self._supersample
        x0, y0, x1, y1 = box
        width, height = x1 - x0, y1 - y0

        # 右下各留 1 像素余量，容纳闭区间绘制的边界
        mask = Image.new("L", (width * s + 1, height * s + 1), 0)

        def transform(x: float, y: float) -> Point:
            return ((x - x0) * s, (y - y0) * s)

        draw_fn(ImageDraw.Draw(mask), transform)
        if erode:
            mask = self._erode_bottom_right(mask)
        mask = mask.crop((0, 0, width * s, height * s))
        if s > 1:
            mask = mask.resize((width, height), Image.Resampling.BOX)
        return mask

    def _polygon_coverage(self, box: tuple[int, int, int, int], points: Sequence[Point]) -> Image.Image:
        """多边形的覆盖度蒙版."""

        def draw_polygon(draw: ImageDraw.ImageDraw, tf: Callable[[float, float], Point]) -> None:
            draw.polygon([tf(x, y) for x, y in points], fill=255)

        return self._rasterize(box, draw_polygon, erode=True)

    @staticmethod
    def _erode_bottom_right(mask: Image.Image) -> Image.Image:
        """2x2 腐蚀.

        Pillow 的多边形填充包含右侧和底部边界，腐蚀后覆盖区域变为半开区间。
        """
        right = ImageChops.offset(mask, -1, 0)
        down = ImageChops.offset(mask, 0, -1)
        diagonal = ImageChops.offset(mask, -1, -1)
        return ImageChops.darker(ImageChops.darker(mask, right), ImageChops.darker(down, diagonal))

    @staticmethod
    def _draw_rect(
        draw: ImageDraw.ImageDraw,
        rect: Rect,
        transform: Callable[[float, float], Point],
        value: int,
    ) -> None:
        """在蒙版上绘制半开区间矩形."""
        x0, y0 = transform(rect.x, rect.y)
        x1, y1 = transform(rect.right, rect.bottom)
        x0, y0, x1, y1 = (math.floor(v + 0.5) for v in (x0, y0, x1, y1))
        if x1 > x0 and y1 > y0:
            draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=value)

    def _blend(self, coverage: Image.Image, box: tuple[int, int, int, int], color: str) -> None:
        """按覆盖度、颜色透明度与全局透明度合成到画布."""
        r, g, b, a = parse_color(color)
        alpha = (a / 255) * self.state.global_alpha
        if alpha <= 0:
            return

        if self._clip is not None:
            coverage = ImageChops.multiply(coverage, self._clip.crop(box))

        source = Image.new("RGBA", coverage.size, (r, g, b, 0))
        source.putalpha(coverage.point(_alpha_table(alpha)))
        self._image.alpha_composite(source, dest=box[:2])
