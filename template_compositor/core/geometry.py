"""图层几何计算.

取整规则：
    - 文字锚点与文字背景使用四舍五入（``floor(v + 0.5)``）
    - 图片占位符、形状与边框使用向下取整

两种规则并存，保证输出与编辑器预览逐像素一致。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from template_compositor.models.template_config import (
    LayerElement,
    TextAlign,
    TextLayer,
)

Point = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """轴对齐矩形（画布坐标）."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def offset(self, dx: float, dy: float) -> "Rect":
        """平移矩形."""
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def inflate(self, amount: float) -> "Rect":
        """向四周扩展（负值为收缩）."""
        return Rect(
            self.x - amount,
            self.y - amount,
            self.width + 2 * amount,
            self.height + 2 * amount,
        )


def round_half_up(value: float) -> int:
    """四舍五入到整数（.5 向正方向进位）."""
    return math.floor(value + 0.5)


def floor_rect(layer: LayerElement) -> Rect:
    """图层的向下取整矩形，负尺寸按 0 处理."""
    return Rect(
        math.floor(layer.x),
        math.floor(layer.y),
        max(math.floor(layer.width), 0),
        max(math.floor(layer.height), 0),
    )


def text_anchor(layer: TextLayer) -> tuple[int, int]:
    """文字锚点.

    left 对齐锚点在 ``x``，center 在 ``x + width / 2``，right 在 ``x + width``。

    Returns:
        (锚点X, 锚点Y)
    """
    width = max(layer.width, 0.0)
    if layer.text_align == TextAlign.CENTER:
        anchor_x = layer.x + width / 2
    elif layer.text_align == TextAlign.RIGHT:
        anchor_x = layer.x + width
    else:
        anchor_x = layer.x
    return (round_half_up(anchor_x), round_half_up(layer.y))


def text_background_rect(layer: TextLayer) -> Rect:
    """文字背景矩形：按内边距向外扩展后四舍五入."""
    padding = max(layer.bg_padding, 0.0)
    return Rect(
        round_half_up(layer.x - padding),
        round_half_up(layer.y - padding),
        max(round_half_up(max(layer.width, 0.0) + padding * 2), 0),
        max(round_half_up(max(layer.height, 0.0) + padding * 2), 0),
    )


def stroke_offset(stroke_width: float) -> float:
    """描边路径偏移量.

    奇数整数宽度偏移半个像素，使描边落在像素中心；其余宽度不偏移。
    """
    return 0.5 if stroke_width % 2 == 1 else 0.0


def clamp_radius(rect: Rect, radius: float) -> float:
    """圆角半径不超过短边的一半."""
    return max(0.0, min(radius, rect.width / 2, rect.height / 2))


def _arc_points(cx: float, cy: float, radius: float, start_deg: float) -> list[Point]:
    """四分之一圆弧上的点（顺时针，不含起点）."""
    segments = max(4, math.ceil(radius * math.pi / 4))
    points = []
    for i in range(1, segments + 1):
        angle = math.radians(start_deg + 90 * i / segments)
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def rounded_rect_path(rect: Rect, radius: float) -> list[Point]:
    """圆角矩形路径.

    从上边起点 ``(x + r, y)`` 开始顺时针：四条边各缩短 r，
    四个角用半径 r 的四分之一圆弧连接。半径为 0 时退化为四个顶点。

    Args:
        rect: 矩形
        radius: 圆角半径（超过短边一半时截断）

    Returns:
        闭合多边形顶点列表（首尾不重复）
    """
    x, y, w, h = rect.x, rect.y, rect.width, rect.height
    r = clamp_radius(rect, radius)
    if r <= 0:
        return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]

    points: list[Point] = [(x + r, y), (x + w - r, y)]
    points.extend(_arc_points(x + w - r, y + r, r, -90))
    points.append((x + w, y + h - r))
    points.extend(_arc_points(x + w - r, y + h - r, r, 0))
    points.append((x + r, y + h))
    points.extend(_arc_points(x + r, y + h - r, r, 90))
    points.append((x, y + r))
    points.extend(_arc_points(x + r, y + r, r, 180))
    # 最后一段圆弧终点与起点重合
    points.pop()
    return points


def stroke_outline(
    rect: Rect,
    radius: float,
    stroke_width: float,
) -> tuple[list[Point], list[Point] | None]:
    """以路径为中心线的描边区域.

    描边区域 = 外扩半个线宽的路径 - 内缩半个线宽的路径。

    Returns:
        (外轮廓, 内轮廓)，描边填满矩形时内轮廓为 None
    """
    half = stroke_width / 2
    r = clamp_radius(rect, radius)

    outer = rounded_rect_path(rect.inflate(half), r + half if r > 0 else 0)

    inner_rect = rect.inflate(-half)
    if inner_rect.is_empty:
        return outer, None
    inner = rounded_rect_path(inner_rect, max(r - half, 0.0))
    return outer, inner


def path_bounds(points: list[Point]) -> tuple[float, float, float, float]:
    """路径边界 (left, top, right, bottom)."""
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))
