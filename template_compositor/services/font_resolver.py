"""字体查找.

根据字体名称与粗体/斜体样式查找字体文件，找不到时按字体类别回退，
最终使用 Pillow 内置字体。

字体对象按线程缓存，不同线程之间不共享 FreeType 字体实例。
"""

from __future__ import annotations

import os
import threading
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

from PIL import ImageFont

from template_compositor.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/local/share/fonts/",
    "~/.fonts/",
    "~/.local/share/fonts/",
]

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")

# 字体类别回退列表
SANS_SERIF_FONTS = ["Arimo", "Arial", "Helvetica", "LiberationSans", "DejaVuSans"]
SERIF_FONTS = ["Tinos", "Times New Roman", "LiberationSerif", "DejaVuSerif"]
MONOSPACE_FONTS = ["Cousine", "Courier New", "LiberationMono", "DejaVuSansMono"]

# 特定字体的回退（与编辑器预览的 CSS 字体栈一致）
FAMILY_FALLBACKS: dict[str, list[str]] = {
    "impact": ["Arial Black", *SANS_SERIF_FONTS],
    "arial black": ["Impact", *SANS_SERIF_FONTS],
    "tinos": SERIF_FONTS,
    "cousine": MONOSPACE_FONTS,
    "serif": SERIF_FONTS,
    "monospace": MONOSPACE_FONTS,
}

# 样式文件名后缀
STYLE_SUFFIXES: dict[tuple[bool, bool], list[str]] = {
    (False, False): ["", "-Regular", " Regular"],
    (True, False): ["-Bold", " Bold", "bd"],
    (False, True): ["-Italic", " Italic", "-Oblique", "i"],
    (True, True): ["-BoldItalic", " Bold Italic", "-BoldOblique", "bi", "z"],
}

_thread_local = threading.local()


# ===================
# 字体文件索引
# ===================


def _normalize(name: str) -> str:
    return name.lower().replace(" ", "").replace("_", "")


@lru_cache(maxsize=8)
def _font_index(extra_dirs: tuple[str, ...] = ()) -> dict[str, str]:
    """扫描字体目录，建立 ``规范化文件名 -> 路径`` 索引.

    Args:
        extra_dirs: 额外的字体目录，优先于系统目录

    Returns:
        字体索引
    """
    index: dict[str, str] = {}
    for search_path in (*extra_dirs, *FONT_SEARCH_PATHS):
        expanded_path = os.path.expanduser(search_path)
        if not os.path.isdir(expanded_path):
            continue
        for root, _dirs, files in os.walk(expanded_path):
            for file_name in files:
                stem, ext = os.path.splitext(file_name)
                if ext.lower() in FONT_EXTENSIONS:
                    index.setdefault(_normalize(stem), os.path.join(root, file_name))
    logger.debug(f"字体索引完成: {len(index)} 个字体文件")
    return index


def _family_candidates(family: str, default_family: str) -> list[str]:
    """字体名称及其回退列表."""
    candidates = [family]
    candidates.extend(FAMILY_FALLBACKS.get(family.lower(), SANS_SERIF_FONTS))
    if default_family not in candidates:
        candidates.append(default_family)
    return candidates


def _lookup_path(
    candidates: Iterable[str],
    bold: bool,
    italic: bool,
    index: dict[str, str],
) -> Optional[str]:
    """在索引中查找第一个匹配的字体文件."""
    suffixes = STYLE_SUFFIXES[(bold, italic)]
    for name in candidates:
        # 直接给出的字体文件路径
        if os.path.splitext(name)[1].lower() in FONT_EXTENSIONS and os.path.isfile(name):
            return name
        for suffix in suffixes:
            path = index.get(_normalize(f"{name}{suffix}"))
            if path:
                return path
    return None


# ===================
# 字体查找
# ===================


def find_font(
    family: Optional[str],
    size: float,
    bold: bool = False,
    italic: bool = False,
    default_family: str = "Arial",
    font_dirs: Iterable[Path | str] = (),
) -> ImageFont.FreeTypeFont:
    """查找字体.

    Args:
        family: 字体名称，为空时使用 ``default_family``
        size: 字号（像素）
        bold: 是否粗体
        italic: 是否斜体
        default_family: 默认字体
        font_dirs: 额外的字体搜索目录

    Returns:
        ImageFont 对象
    """
    key = (family or default_family, float(size), bold, italic, default_family, tuple(str(d) for d in font_dirs))
    cache: Optional[dict] = getattr(_thread_local, "fonts", None)
    if cache is None:
        cache = _thread_local.fonts = {}
    font = cache.get(key)
    if font is None:
        font = cache[key] = _load_font(*key)
    return font


def _load_font(
    family: str,
    size: float,
    bold: bool,
    italic: bool,
    default_family: str,
    font_dirs: tuple[str, ...],
) -> ImageFont.FreeTypeFont:
    """加载字体文件."""
    index = _font_index(font_dirs)
    path = _lookup_path(_family_candidates(family, default_family), bold, italic, index)

    # 找不到对应样式时退回常规样式
    if path is None and (bold or italic):
        path = _lookup_path(_family_candidates(family, default_family), False, False, index)
        if path:
            logger.debug(f"字体 '{family}' 缺少样式 bold={bold} italic={italic}，使用常规样式")

    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as e:
            logger.warning(f"加载字体文件失败: {path}, 错误: {e}")

    logger.warning(f"字体 '{family}' 未找到，使用默认字体")
    return ImageFont.load_default(size)


def clear_font_cache() -> None:
    """清除当前线程的字体缓存与字体目录索引."""
    _thread_local.fonts = {}
    _font_index.cache_clear()
