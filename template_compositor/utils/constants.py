"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "template-compositor"
APP_VERSION = "0.3.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".template-compositor"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# ===================
# 画布常量
# ===================
# 上游未提供画布尺寸时使用的默认值
DEFAULT_CANVAS_WIDTH = 1080
DEFAULT_CANVAS_HEIGHT = 1080

# 画布底色（不透明白色）
CANVAS_BACKGROUND = (255, 255, 255, 255)

# 单边最大尺寸 / 最大像素数
MAX_CANVAS_SIDE = 8192
MAX_CANVAS_PIXELS = 40_000_000

# 超采样倍数（用于半像素描边与抗锯齿）
DEFAULT_SUPERSAMPLE = 4

# ===================
# 图层默认值
# ===================
DEFAULT_TEXT_FONT = "Arial"
DEFAULT_TEXT_SIZE = 16.0
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_TEXT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_BORDER_COLOR = "#000000"
DEFAULT_SHAPE_FILL_COLOR = "#000000"
DEFAULT_SHAPE_STROKE_COLOR = "#000000"

# 图片占位符颜色
PLACEHOLDER_FILL_COLOR = "#cccccc"  # 启用颜色填充但未设置 fillColor
PLACEHOLDER_EMPTY_COLOR = "#eeeeee"  # 未启用颜色填充

# ===================
# 占位符纹理
# ===================
EFFECT_PATTERN_SIZE = 20
EFFECT_COLOR = "#ffffff"
EFFECT_ALPHA = 0.3

# ===================
# 水印与调试信息
# ===================
WATERMARK_FONT_SIZE = 12
WATERMARK_COLOR = "rgba(0,0,0,77)"
DEBUG_PANEL_COLOR = "rgba(0,0,0,179)"
DEBUG_TEXT_COLOR = "#ffffff"
DEBUG_FONT_SIZE = 14
