"""渲染结果."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from template_compositor.utils.exceptions import RenderError, RenderErrorKind

BYTES_PER_PIXEL = 4


@dataclass(frozen=True)
class RasterImage:
    """内存中的 RGBA 像素缓冲区.

    像素按行优先排列，alpha 为非预乘（straight alpha）。

    Attributes:
        width: 宽度
        height: 高度
        data: 像素数据，长度为 ``width * height * 4``
        mode: 像素格式，固定为 RGBA
    """

    width: int
    height: int
    data: bytes
    mode: str = "RGBA"

    def __post_init__(self) -> None:
        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(self.data) != expected:
            raise RenderError(
                RenderErrorKind.INTERNAL,
                f"像素缓冲区大小不正确: {len(self.data)}，应为 {expected}",
            )

    @property
    def size(self) -> tuple[int, int]:
        """获取尺寸."""
        return (self.width, self.height)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """获取指定像素的 RGBA 值.

        Raises:
            IndexError: 坐标超出范围
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"像素坐标超出范围: ({x}, {y})")
        offset = (y * self.width + x) * BYTES_PER_PIXEL
        r, g, b, a = self.data[offset:offset + BYTES_PER_PIXEL]
        return (r, g, b, a)

    def to_image(self) -> Image.Image:
        """转换为 Pillow 图像."""
        return Image.frombytes(self.mode, self.size, self.data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterImage":
        """从 Pillow 图像创建."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(width=image.width, height=image.height, data=image.tobytes())
