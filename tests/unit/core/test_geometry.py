"""图层几何计算单元测试."""

import pytest

from template_compositor.core.geometry import (
    Rect,
    clamp_radius,
    floor_rect,
    path_bounds,
    round_half_up,
    rounded_rect_path,
    stroke_offset,
    stroke_outline,
    text_anchor,
    text_background_rect,
)
from template_compositor.models.template_config import ShapeLayer, TextLayer


class TestRect:
    """测试矩形."""

    def test_edges(self):
        rect = Rect(10, 20, 30, 40)
        assert rect.right == 40
        assert rect.bottom == 60

    def test_offset(self):
        assert Rect(0, 0, 5, 5).offset(0.5, 0.5) == Rect(0.5, 0.5, 5, 5)

    def test_inflate(self):
        assert Rect(10, 10, 20, 20).inflate(2) == Rect(8, 8, 24, 24)
        assert Rect(10, 10, 20, 20).inflate(-2) == Rect(12, 12, 16, 16)

    def test_is_empty(self):
        assert Rect(0, 0, 0, 5).is_empty
        assert not Rect(0, 0, 1, 1).is_empty


class TestRounding:
    """测试取整规则."""

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (-0.5, 0), (10.3, 10), (10.7, 11)])
    def test_round_half_up(self, value, expected):
        """.5 向正方向进位（不是银行家舍入）."""
        assert round_half_up(value) == expected

    def test_floor_rect(self):
        """形状矩形向下取整."""
        layer = ShapeLayer(x=10.7, y=10.3, width=50.9, height=20.2)
        assert floor_rect(layer) == Rect(10, 10, 50, 20)

    def test_floor_rect_clamps_negative_size(self):
        """未校验的负尺寸按0处理."""
        layer = ShapeLayer.model_construct(x=0, y=0, width=-5, height=3)
        assert floor_rect(layer) == Rect(0, 0, 0, 3)

    def test_text_anchor_rounds(self):
        """文字锚点四舍五入."""
        layer = TextLayer(x=10.7, y=10.3, width=50.9, height=20.2)
        assert text_anchor(layer) == (11, 10)

    @pytest.mark.parametrize("align,expected_x", [("left", 10), ("center", 60), ("right", 110)])
    def test_text_anchor_alignment(self, align, expected_x):
        """锚点X由对齐方式决定."""
        layer = TextLayer(x=10, y=10, width=100, height=20, text_align=align)
        assert text_anchor(layer) == (expected_x, 10)

    def test_text_background_rect(self):
        """背景矩形按内边距扩展."""
        layer = TextLayer(x=10, y=10, width=100, height=20, use_background=True, bg_padding=5)
        rect = text_background_rect(layer)
        assert (rect.x, rect.y, rect.right, rect.bottom) == (5, 5, 115, 35)

    def test_text_background_rect_fractional(self):
        """背景矩形四舍五入."""
        layer = TextLayer(x=10.5, y=10.4, width=20.5, height=10, bg_padding=0)
        assert text_background_rect(layer) == Rect(11, 10, 21, 10)


class TestStrokeOffset:
    """测试描边偏移."""

    @pytest.mark.parametrize("width,expected", [(1, 0.5), (3, 0.5), (2, 0.0), (4, 0.0), (1.5, 0.0), (0, 0.0)])
    def test_odd_integer_width_offsets_half_pixel(self, width, expected):
        """奇数整数宽度偏移半像素."""
        assert stroke_offset(width) == expected


class TestRoundedRectPath:
    """测试圆角矩形路径."""

    def test_zero_radius_is_rectangle(self):
        """半径为0时为四个顶点."""
        assert rounded_rect_path(Rect(0, 0, 10, 20), 0) == [(0, 0), (10, 0), (10, 20), (0, 20)]

    def test_starts_at_top_edge(self):
        """从 (x + r, y) 开始."""
        points = rounded_rect_path(Rect(10, 10, 100, 50), 8)
        assert points[0] == (18, 10)
        assert points[1] == (102, 10)

    def test_bounds_match_rect(self):
        """路径边界与矩形一致."""
        left, top, right, bottom = path_bounds(rounded_rect_path(Rect(10, 10, 100, 50), 8))
        assert left == pytest.approx(10)
        assert top == pytest.approx(10)
        assert right == pytest.approx(110)
        assert bottom == pytest.approx(60)

    def test_no_duplicate_closing_point(self):
        """首尾不重复."""
        points = rounded_rect_path(Rect(0, 0, 40, 40), 10)
        assert points[-1] != pytest.approx(points[0])

    def test_radius_clamped(self):
        """半径不超过短边一半."""
        assert clamp_radius(Rect(0, 0, 100, 20), 50) == 10
        assert clamp_radius(Rect(0, 0, 100, 20), -1) == 0


class TestStrokeOutline:
    """测试描边区域."""

    def test_square_outline(self):
        """直角矩形描边."""
        outer, inner = stroke_outline(Rect(10, 10, 20, 20), 0, 2)
        assert outer == [(9, 9), (31, 9), (31, 31), (9, 31)]
        assert inner == [(11, 11), (29, 11), (29, 29), (11, 29)]

    def test_stroke_fills_small_rect(self):
        """描边覆盖整个矩形时没有内轮廓."""
        _, inner = stroke_outline(Rect(0, 0, 4, 4), 0, 10)
        assert inner is None

    def test_rounded_outline_radius(self):
        """外轮廓半径加半个线宽."""
        outer, _ = stroke_outline(Rect(10, 10, 40, 40), 5, 2)
        assert outer[0] == (15, 9)
