"""模板与图层数据模型.

提供模板渲染所需的数据模型：画布尺寸与有序的图层列表（文字、图片占位符、形状）。

Features:
    - 图层基类与子类（文字、图片、形状），按 ``type`` 标签区分
    - 未知类型图层原样保留，渲染时跳过
    - 模板校验，错误信息指明出错字段
    - 编辑器辅助：画布预设、图层命名

图层列表按编辑器中的顺序排列：列表第一个图层位于最上层。
所有模型均为不可变对象，渲染过程中不会被修改。
"""

from __future__ import annotations

import json
import math
import uuid
from enum import Enum
from typing import Annotated, Any, Iterable, Literal, Mapping, Optional, Union

from PIL import ImageColor
from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from template_compositor.utils.constants import (
    DEFAULT_BORDER_COLOR,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_SHAPE_FILL_COLOR,
    DEFAULT_SHAPE_STROKE_COLOR,
    DEFAULT_TEXT_BACKGROUND_COLOR,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_FONT,
    DEFAULT_TEXT_SIZE,
    PLACEHOLDER_EMPTY_COLOR,
    PLACEHOLDER_FILL_COLOR,
)
from template_compositor.utils.exceptions import MissingFieldError, ValidationError


# ===================
# 枚举定义
# ===================


class LayerType(str, Enum):
    """图层类型枚举."""

    TEXT = "text"  # 文字图层
    IMAGE = "image"  # 图片占位符图层
    SHAPE = "shape"  # 形状图层


class TextAlign(str, Enum):
    """文字对齐方式."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ImageEffect(str, Enum):
    """图片占位符纹理效果."""

    NONE = "none"
    DOTS = "dots"
    LINES = "lines"
    WAVES = "waves"
    GRID = "grid"
    CHECKERBOARD = "checkerboard"


# ===================
# 编辑器常量
# ===================

# 画布预设（标签, 值），值为 "宽x高"
CANVAS_PRESETS: list[tuple[str, str]] = [
    ("Custom", ""),
    ("Instagram Post (1080 x 1080)", "1080x1080"),
    ("Instagram Story (1080 x 1920)", "1080x1920"),
    ("Twitter Post (1200 x 675)", "1200x675"),
    ("Facebook Post (1200 x 630)", "1200x630"),
]

_KNOWN_TAGS = {t.value for t in LayerType}
_UNKNOWN_TAG = "unknown"


# ===================
# 辅助函数
# ===================


def generate_layer_id() -> str:
    """生成唯一的图层ID.

    Returns:
        8位UUID字符串
    """
    return uuid.uuid4().hex[:8]


def validate_css_color(color: str) -> str:
    """验证 CSS 颜色字符串.

    支持 ``#rgb``、``#rrggbb``、``#rrggbbaa``、``rgb()``、``rgba()``、
    ``hsl()`` 以及颜色名称。

    Args:
        color: 颜色字符串

    Returns:
        去除首尾空白后的颜色字符串

    Raises:
        ValueError: 无法解析的颜色
    """
    color = color.strip()
    try:
        ImageColor.getrgb(color)
    except ValueError:
        raise ValueError(f"无法识别的颜色: {color!r}") from None
    return color


def parse_canvas_preset(value: str) -> Optional[tuple[int, int]]:
    """解析画布预设值.

    Args:
        value: 预设值，如 ``"1080x1920"``；空字符串表示自定义

    Returns:
        (宽, 高)，自定义时返回 None

    Raises:
        ValueError: 格式不正确
    """
    if not value:
        return None
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise ValueError(f"无效的画布预设: {value!r}") from None
    if width <= 0 or height <= 0:
        raise ValueError(f"无效的画布预设: {value!r}")
    return (width, height)


def unique_layer_name(layers: Iterable["AnyLayer"], layer_type: LayerType | str) -> str:
    """为新图层生成不重复的名称.

    名称格式为 ``"<类型> <序号>"``，如 ``"Text 1"``、``"Shape 2"``。

    Args:
        layers: 现有图层
        layer_type: 新图层类型

    Returns:
        图层名称
    """
    type_name = LayerType(layer_type).value
    prefix = type_name[:1].upper() + type_name[1:]
    existing = {getattr(layer, "name", None) for layer in layers}

    counter = 1
    while f"{prefix} {counter}" in existing:
        counter += 1
    return f"{prefix} {counter}"


def _layer_tag(value: Any) -> str:
    """确定图层数据对应的模型标签."""
    if isinstance(value, Mapping):
        layer_type = value.get("type")
    else:
        layer_type = getattr(value, "type", None)

    if isinstance(layer_type, str) and layer_type in _KNOWN_TAGS:
        return LayerType(layer_type).value
    return _UNKNOWN_TAG


# ===================
# 图层基类
# ===================


class LayerElement(BaseModel):
    """图层元素基类.

    所有图层类型的基类，定义通用属性。值为 ``null`` 的字段视为缺省，使用默认值。

    Attributes:
        id: 图层唯一标识符
        name: 图层名称
        x: X坐标（像素，可为小数）
        y: Y坐标
        width: 宽度
        height: 高度
        visible: 是否可见
        opacity: 不透明度（0-1）
        border_width: 边框宽度（0 表示无边框）
        border_color: 边框颜色
        lock_aspect_ratio: 是否锁定宽高比（仅编辑器使用）
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str = Field(default_factory=generate_layer_id, description="图层唯一ID")
    name: str = Field(default="", description="图层名称")

    # 位置和尺寸
    x: float = Field(default=0.0, description="X坐标")
    y: float = Field(default=0.0, description="Y坐标")
    width: float = Field(default=0.0, ge=0, description="宽度")
    height: float = Field(default=0.0, ge=0, description="高度")

    visible: bool = Field(default=True, description="是否可见")
    opacity: float = Field(default=1.0, ge=0, le=1, description="不透明度")

    # 边框
    border_width: float = Field(default=0.0, ge=0, description="边框宽度")
    border_color: str = Field(default=DEFAULT_BORDER_COLOR, description="边框颜色")

    lock_aspect_ratio: bool = Field(default=False, description="锁定宽高比")

    @model_validator(mode="before")
    @classmethod
    def drop_null_fields(cls, data: Any) -> Any:
        """移除值为 null 的字段，使其回退到默认值."""
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("opacity", mode="before")
    @classmethod
    def coerce_opacity(cls, v: Any) -> float:
        """非数值的不透明度按 1 处理，数值限制在 [0, 1]."""
        if isinstance(v, bool) or not isinstance(v, (int, float)) or math.isnan(v):
            return 1.0
        return min(max(float(v), 0.0), 1.0)

    @field_validator("x", "y", "width", "height", "border_width")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """拒绝 NaN 与无穷大."""
        if not math.isfinite(v):
            raise ValueError("必须是有限数值")
        return v

    @property
    def outline(self) -> tuple[float, str]:
        """获取轮廓描边参数.

        Returns:
            (描边宽度, 描边颜色)
        """
        return (self.border_width, self.border_color)

    @property
    def corner_radius_or_zero(self) -> float:
        """获取圆角半径，没有圆角属性的图层返回 0."""
        return 0.0


def _empty_color_to_default(cls: type[BaseModel], v: Any, info: ValidationInfo) -> Any:
    """空字符串颜色回退到字段默认值."""
    if isinstance(v, str) and not v.strip():
        return cls.model_fields[info.field_name].default
    return v


# ===================
# 文字图层
# ===================


class TextLayer(LayerElement):
    """文字图层.

    单行文字，不做自动换行。可选的背景矩形绘制在文字后方。

    Attributes:
        text: 文字内容
        font: 字体名称
        size: 字号（像素）
        color: 文字颜色
        bold: 是否粗体
        italic: 是否斜体
        text_align: 对齐方式（决定锚点位置）
        use_background: 是否绘制背景
        background_color: 背景颜色
        bg_padding: 背景内边距

    Example:
        >>> layer = TextLayer(text="SALE", x=10, y=10, width=100, height=20, bold=True)
        >>> layer.css_font
        'bold 16px Arial'
    """

    type: Literal["text"] = Field(default="text", description="图层类型")

    text: str = Field(default="", description="文字内容")
    font: str = Field(default=DEFAULT_TEXT_FONT, description="字体名称")
    size: float = Field(default=DEFAULT_TEXT_SIZE, gt=0, description="字号")
    color: str = Field(default=DEFAULT_TEXT_COLOR, description="文字颜色")

    bold: bool = Field(default=False, description="粗体")
    italic: bool = Field(default=False, description="斜体")
    text_align: TextAlign = Field(default=TextAlign.LEFT, description="对齐方式")

    use_background: bool = Field(default=False, description="启用背景")
    background_color: str = Field(
        default=DEFAULT_TEXT_BACKGROUND_COLOR,
        description="背景颜色",
    )
    bg_padding: float = Field(default=0.0, ge=0, description="背景内边距")

    @field_validator("color", "background_color", "border_color", mode="before")
    @classmethod
    def default_empty_color(cls, v: Any, info: ValidationInfo) -> Any:
        """空颜色使用默认值."""
        return _empty_color_to_default(cls, v, info)

    @field_validator("color", "background_color", "border_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_css_color(v)

    @field_validator("font", mode="before")
    @classmethod
    def default_empty_font(cls, v: Any) -> Any:
        """空字体名使用默认字体."""
        if isinstance(v, str) and not v.strip():
            return DEFAULT_TEXT_FONT
        return v

    @property
    def css_font(self) -> str:
        """CSS 字体简写，样式关键字顺序固定为 italic 在 bold 之前."""
        parts = []
        if self.italic:
            parts.append("italic")
        if self.bold:
            parts.append("bold")
        parts.append(f"{self.size:g}px {self.font}")
        return " ".join(parts)


# ===================
# 图片图层
# ===================


class ImageLayer(LayerElement):
    """图片图层.

    只渲染占位符，不解码 ``src`` 指向的图片。

    Attributes:
        src: 图片地址（渲染时忽略）
        use_color_fill: 是否使用颜色填充
        fill_color: 填充颜色，未设置时为 None
        corner_radius: 圆角半径
        effect: 占位符纹理效果（仅颜色填充时生效）
    """

    type: Literal["image"] = Field(default="image", description="图层类型")

    src: str = Field(default="", description="图片地址")
    use_color_fill: bool = Field(default=False, description="使用颜色填充")
    fill_color: Optional[str] = Field(default=None, description="填充颜色")
    corner_radius: float = Field(default=0.0, ge=0, description="圆角半径")
    effect: ImageEffect = Field(default=ImageEffect.NONE, description="纹理效果")

    @field_validator("fill_color", mode="before")
    @classmethod
    def empty_fill_to_none(cls, v: Any) -> Any:
        """空填充色视为未设置."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("border_color", mode="before")
    @classmethod
    def default_empty_color(cls, v: Any, info: ValidationInfo) -> Any:
        """空颜色使用默认值."""
        return _empty_color_to_default(cls, v, info)

    @field_validator("fill_color", "border_color")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        """验证颜色值."""
        return None if v is None else validate_css_color(v)

    @property
    def placeholder_color(self) -> str:
        """占位符填充色.

        启用颜色填充时使用 ``fill_color``（未设置则为 ``#cccccc``），
        否则固定为 ``#eeeeee``。
        """
        if self.use_color_fill:
            return self.fill_color or PLACEHOLDER_FILL_COLOR
        return PLACEHOLDER_EMPTY_COLOR

    @property
    def corner_radius_or_zero(self) -> float:
        return self.corner_radius


# ===================
# 形状图层
# ===================


class ShapeLayer(LayerElement):
    """形状图层（矩形或圆角矩形）.

    Attributes:
        fill_color: 填充颜色
        stroke_width: 描边宽度
        stroke_color: 描边颜色
        corner_radius: 圆角半径

    ``stroke_width > 0`` 时形状自身的描边优先于通用边框属性。
    """

    type: Literal["shape"] = Field(default="shape", description="图层类型")

    fill_color: str = Field(default=DEFAULT_SHAPE_FILL_COLOR, description="填充颜色")
    stroke_width: float = Field(default=0.0, ge=0, description="描边宽度")
    stroke_color: str = Field(default=DEFAULT_SHAPE_STROKE_COLOR, description="描边颜色")
    corner_radius: float = Field(default=0.0, ge=0, description="圆角半径")

    @field_validator("fill_color", "stroke_color", "border_color", mode="before")
    @classmethod
    def default_empty_color(cls, v: Any, info: ValidationInfo) -> Any:
        """空颜色使用默认值."""
        return _empty_color_to_default(cls, v, info)

    @field_validator("fill_color", "stroke_color", "border_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_css_color(v)

    @property
    def outline(self) -> tuple[float, str]:
        if self.stroke_width > 0:
            return (self.stroke_width, self.stroke_color)
        return (self.border_width, self.border_color)

    @property
    def corner_radius_or_zero(self) -> float:
        return self.corner_radius


# ===================
# 未知图层
# ===================


class UnknownLayer(BaseModel):
    """未知类型图层.

    保留原始数据，渲染时不绘制任何内容。
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Any = Field(default=None, description="原始类型标签")


# ===================
# 图层联合类型
# ===================

AnyLayer = Annotated[
    Union[
        Annotated[TextLayer, Tag(LayerType.TEXT.value)],
        Annotated[ImageLayer, Tag(LayerType.IMAGE.value)],
        Annotated[ShapeLayer, Tag(LayerType.SHAPE.value)],
        Annotated[UnknownLayer, Tag(_UNKNOWN_TAG)],
    ],
    Discriminator(_layer_tag),
]


# ===================
# 画布与模板
# ===================


class Canvas(BaseModel):
    """画布尺寸."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0, strict=True, description="画布宽度")
    height: int = Field(gt=0, strict=True, description="画布高度")

    @property
    def size(self) -> tuple[int, int]:
        """获取画布尺寸."""
        return (self.width, self.height)


class Template(BaseModel):
    """模板.

    画布尺寸加有序图层列表。图层顺序即编辑器中的顺序（第一个在最上层）。

    Attributes:
        canvas_width: 画布宽度
        canvas_height: 画布高度
        layers: 图层列表
        debug: 是否在输出中绘制调试信息

    Example:
        >>> template = Template(canvas_width=200, canvas_height=100, layers=[])
        >>> template.canvas.size
        (200, 100)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    canvas_width: int = Field(gt=0, strict=True, description="画布宽度")
    canvas_height: int = Field(gt=0, strict=True, description="画布高度")
    layers: tuple[AnyLayer, ...] = Field(description="图层列表")
    debug: bool = Field(default=False, description="绘制调试信息")

    @property
    def canvas(self) -> Canvas:
        """获取画布."""
        return Canvas(width=self.canvas_width, height=self.canvas_height)

    @property
    def layer_count(self) -> int:
        """获取图层数量."""
        return len(self.layers)

    def get_layer_by_id(self, layer_id: str) -> Optional[AnyLayer]:
        """根据ID获取图层.

        Args:
            layer_id: 图层ID

        Returns:
            图层对象，不存在返回None
        """
        for layer in self.layers:
            if getattr(layer, "id", None) == layer_id:
                return layer
        return None

    def to_dict(self) -> dict[str, Any]:
        """序列化为 camelCase 字典."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        """序列化为JSON字符串.

        Args:
            indent: 缩进空格数

        Returns:
            JSON字符串
        """
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "Template":
        """从JSON字符串反序列化并校验."""
        return validate_template(json_str)


# ===================
# 模板校验
# ===================


def _error_field(loc: tuple[Any, ...]) -> str:
    """将 pydantic 错误位置转换为 camelCase 字段路径."""
    parts: list[str] = []
    previous: Any = None
    for part in loc:
        if isinstance(part, int):
            parts.append(str(part))
        elif isinstance(previous, int) and part in _KNOWN_TAGS | {_UNKNOWN_TAG}:
            # 联合类型的标签不属于字段路径
            pass
        else:
            part = str(part)
            parts.append(to_camel(part) if "_" in part else part)
        previous = part
    return ".".join(parts) or "template"


def validate_template(data: Mapping[str, Any] | str | bytes) -> Template:
    """校验模板数据.

    ``canvasWidth``、``canvasHeight`` 与 ``layers`` 必须存在且类型正确，
    ``layers`` 可以为空列表。

    Args:
        data: 模板字典或 JSON 字符串

    Returns:
        校验后的模板

    Raises:
        ValidationError: 数据缺失或无效，``field`` 指明出错字段
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ValidationError("template", f"JSON 解析失败: {e}") from None

    if not isinstance(data, Mapping):
        raise ValidationError("template", "模板必须是对象")

    for field_name in ("canvasWidth", "canvasHeight", "layers"):
        snake = {"canvasWidth": "canvas_width", "canvasHeight": "canvas_height"}.get(
            field_name, field_name
        )
        if data.get(field_name) is None and data.get(snake) is None:
            raise MissingFieldError(field_name)

    try:
        return Template.model_validate(data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        raise ValidationError(_error_field(tuple(error["loc"])), error["msg"]) from None


def apply_canvas_defaults(data: Mapping[str, Any]) -> dict[str, Any]:
    """为缺失的画布尺寸填充默认值（1080x1080）.

    Args:
        data: 模板字典

    Returns:
        新的模板字典，原字典不变
    """
    result = dict(data)
    if not result.get("canvasWidth"):
        result["canvasWidth"] = DEFAULT_CANVAS_WIDTH
    if not result.get("canvasHeight"):
        result["canvasHeight"] = DEFAULT_CANVAS_HEIGHT
    return result
