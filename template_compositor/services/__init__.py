"""服务层模块.

渲染服务依赖核心模块，请从 ``template_compositor.services.render_service`` 导入。
"""

from template_compositor.services.font_resolver import (
    clear_font_cache,
    find_font,
)

__all__ = [
    # 字体查找
    "clear_font_cache",
    "find_font",
]
