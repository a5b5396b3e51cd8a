"""图片占位符纹理效果.

在颜色填充的占位符上叠加白色半透明纹理，纹理单元为 20 像素。
纹理裁剪在占位符路径内部。
"""

from __future__ import annotations

from typing import Callable

from template_compositor.core.geometry import Point, Rect
from template_compositor.core.surface import Surface
from template_compositor.models.template_config import ImageEffect
from template_compositor.utils.constants import (
    EFFECT_ALPHA,
    EFFECT_COLOR,
    EFFECT_PATTERN_SIZE,
)

# 二次曲线折线化的分段数
CURVE_SEGMENTS = 8


def _frange(start: float, stop: float, step: float, inclusive: bool = False) -> list[float]:
    values = []
    value = start
    while value < stop or (inclusive and value <= stop):
        values.append(value)
        value += step
    return values


def _quadratic(p0: Point, control: Point, p1: Point) -> list[Point]:
    """二次贝塞尔曲线折线化（含起点与终点）."""
    points = []
    for i in range(CURVE_SEGMENTS + 1):
        t = i / CURVE_SEGMENTS
        u = 1 - t
        points.append((
            u * u * p0[0] + 2 * u * t * control[0] + t * t * p1[0],
            u * u * p0[1] + 2 * u * t * control[1] + t * t * p1[1],
        ))
    return points


def paint_dots(surface: Surface, rect: Rect, size: float = EFFECT_PATTERN_SIZE) -> None:
    """圆点：每个单元中心一个半径为 size/6 的圆点，只绘制完整落在区域内的圆点."""
    radius = size / 6
    for cx in _frange(rect.x + size / 2, rect.right, size):
        for cy in _frange(rect.y + size / 2, rect.bottom, size):
            if (
                cx - radius >= rect.x
                and cx + radius <= rect.right
                and cy - radius >= rect.y
                and cy + radius <= rect.bottom
            ):
                surface.fill_circle(cx, cy, radius, EFFECT_COLOR)


def paint_lines(surface: Surface, rect: Rect, size: float = EFFECT_PATTERN_SIZE) -> None:
    """斜线：从左/上边到上/右边的 45 度斜线，线宽 2."""
    lines: list[list[Point]] = []
    for i in _frange(0, rect.width + rect.height, size):
        if i <= rect.height:
            start = (rect.x, rect.y + i)
        else:
            start = (rect.x + i - rect.height, rect.bottom)
        if i <= rect.width:
            end = (rect.x + i, rect.y)
        else:
            end = (rect.right, rect.y + i - rect.width)
        lines.append([start, end])
    surface.stroke_lines(lines, 2, EFFECT_COLOR)


def paint_waves(surface: Surface, rect: Rect, size: float = EFFECT_PATTERN_SIZE) -> None:
    """波浪：每行由完整的正弦状二次曲线组成，振幅 size/4，线宽 2."""
    amplitude = size / 4
    lines: list[list[Point]] = []
    for row in _frange(0, rect.height, size):
        mid_y = rect.y + row + size / 2
        for col in _frange(0, rect.width, size):
            if col + size > rect.width:
                continue
            x = rect.x + col
            first = _quadratic((x, mid_y), (x + size / 4, mid_y - amplitude), (x + size / 2, mid_y))
            second = _quadratic((x + size / 2, mid_y), (x + 3 * size / 4, mid_y + amplitude), (x + size, mid_y))
            lines.append(first + second[1:])
    surface.stroke_lines(lines, 2, EFFECT_COLOR)


def paint_grid(surface: Surface, rect: Rect, size: float = EFFECT_PATTERN_SIZE) -> None:
    """网格：间隔 size 的水平与垂直线，线宽 1."""
    lines: list[list[Point]] = []
    for x in _frange(rect.x, rect.right, size, inclusive=True):
        lines.append([(x, rect.y), (x, rect.bottom)])
    for y in _frange(rect.y, rect.bottom, size, inclusive=True):
        lines.append([(rect.x, y), (rect.right, y)])
    surface.stroke_lines(lines, 1, EFFECT_COLOR)


EFFECT_PAINTERS: dict[ImageEffect, Callable[[Surface, Rect], None]] = {
    ImageEffect.DOTS: paint_dots,
    ImageEffect.LINES: paint_lines,
    ImageEffect.WAVES: paint_waves,
    ImageEffect.GRID: paint_grid,
}


def paint_effect(
    surface: Surface,
    effect: ImageEffect,
    rect: Rect,
    clip: list[Point],
) -> bool:
    """在占位符上绘制纹理.

    纹理透明度为 0.3，并与当前图层透明度相乘。``none`` 与
    ``checkerboard`` 不绘制任何内容。

    Args:
        surface: 绘图表面
        effect: 纹理类型
        rect: 占位符矩形
        clip: 裁剪路径

    Returns:
        是否绘制了纹理
    """
    painter = EFFECT_PAINTERS.get(effect)
    if painter is None or rect.is_empty:
        return False

    with surface.clip_path(clip), surface.scaled_alpha(EFFECT_ALPHA):
        painter(surface, rect)
    return True
