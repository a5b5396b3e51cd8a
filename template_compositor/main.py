"""模板合成命令行工具 - 应用入口."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from template_compositor.utils.constants import APP_NAME, APP_VERSION

# 退出码
EXIT_OK = 0
EXIT_RENDER_ERROR = 1
EXIT_VALIDATION_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """创建命令行解析器."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="将图层模板渲染为 PNG 图片",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="渲染模板 JSON 文件")
    render_parser.add_argument("template", type=Path, help="模板 JSON 文件")
    render_parser.add_argument("-o", "--output", type=Path, required=True, help="输出 PNG 文件")
    render_parser.add_argument("--debug", action="store_true", default=None, help="绘制调试信息")
    render_parser.add_argument("--watermark", default=None, help="水印文字")
    render_parser.add_argument("--log-level", default=None, help="日志级别")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """应用主入口函数.

    Args:
        argv: 命令行参数，默认使用 sys.argv

    Returns:
        退出码：0 成功，1 渲染失败，2 模板无效
    """
    args = build_parser().parse_args(argv)

    from template_compositor.core.config_manager import get_config
    from template_compositor.services.render_service import RenderService
    from template_compositor.utils.error_handler import get_user_friendly_message
    from template_compositor.utils.exceptions import ConfigError, RenderError, ValidationError
    from template_compositor.utils.logger import set_log_level, setup_logger

    logger = setup_logger(__name__)

    try:
        settings = get_config().override(
            log_level=args.log_level,
            debug=args.debug,
            watermark_text=args.watermark,
        )
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_VALIDATION_ERROR
    set_log_level(settings.log_level)

    try:
        content = args.template.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"读取模板文件失败: {args.template}, 错误: {e}")
        return EXIT_RENDER_ERROR

    service = RenderService(settings)
    try:
        service.save(content, str(args.output))
    except ValidationError as e:
        logger.error(f"{get_user_friendly_message(e)}: {e}")
        return EXIT_VALIDATION_ERROR
    except RenderError as e:
        logger.error(f"{get_user_friendly_message(e)}: {e}")
        return EXIT_RENDER_ERROR
    except OSError as e:
        logger.error(f"写入输出文件失败: {args.output}, 错误: {e}")
        return EXIT_RENDER_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
