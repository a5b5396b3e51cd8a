"""渲染结果单元测试."""

import pytest
from PIL import Image

from template_compositor.core.raster import RasterImage
from template_compositor.utils.exceptions import RenderError, RenderErrorKind


class TestRasterImage:
    """测试像素缓冲区."""

    def test_pixel(self):
        """按行优先读取像素."""
        data = bytes([1, 2, 3, 4, 5, 6, 7, 8])
        raster = RasterImage(width=2, height=1, data=data)
        assert raster.pixel(0, 0) == (1, 2, 3, 4)
        assert raster.pixel(1, 0) == (5, 6, 7, 8)

    def test_pixel_out_of_range(self):
        """坐标超出范围."""
        raster = RasterImage(width=1, height=1, data=bytes(4))
        with pytest.raises(IndexError):
            raster.pixel(1, 0)
        with pytest.raises(IndexError):
            raster.pixel(0, -1)

    def test_buffer_size_checked(self):
        """缓冲区大小必须与尺寸一致."""
        with pytest.raises(RenderError) as exc_info:
            RasterImage(width=2, height=2, data=bytes(15))
        assert exc_info.value.kind == RenderErrorKind.INTERNAL

    def test_image_conversion(self):
        """与 Pillow 图像互相转换."""
        image = Image.new("RGB", (3, 2), (10, 20, 30))
        raster = RasterImage.from_image(image)
        assert raster.size == (3, 2)
        assert raster.mode == "RGBA"
        assert raster.pixel(2, 1) == (10, 20, 30, 255)
        assert raster.to_image().getpixel((0, 0)) == (10, 20, 30, 255)

    def test_frozen(self):
        """不可修改."""
        raster = RasterImage(width=1, height=1, data=bytes(4))
        with pytest.raises(AttributeError):
            raster.width = 2
