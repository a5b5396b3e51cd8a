"""命令行入口单元测试."""

import json

import pytest
from PIL import Image

from template_compositor.main import (
    EXIT_OK,
    EXIT_RENDER_ERROR,
    EXIT_VALIDATION_ERROR,
    build_parser,
    main,
)


@pytest.fixture
def template_file(tmp_path, template_data):
    """模板 JSON 文件."""
    path = tmp_path / "template.json"
    data = template_data(
        {"type": "shape", "x": 0, "y": 0, "width": 10, "height": 10, "fillColor": "#00ff00"},
        width=50,
        height=30,
    )
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestParser:
    """测试参数解析."""

    def test_render_arguments(self):
        """render 子命令参数."""
        args = build_parser().parse_args(["render", "t.json", "-o", "out.png", "--watermark", "wm"])
        assert args.command == "render"
        assert str(args.template) == "t.json"
        assert str(args.output) == "out.png"
        assert args.watermark == "wm"
        assert args.debug is None

    def test_output_required(self):
        """必须指定输出文件."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["render", "t.json"])


class TestMain:
    """测试命令执行."""

    def test_render_success(self, template_file, tmp_path):
        """渲染成功."""
        output = tmp_path / "out.png"
        assert main(["render", str(template_file), "-o", str(output)]) == EXIT_OK
        with Image.open(output) as image:
            assert image.size == (50, 30)
            assert image.convert("RGBA").getpixel((5, 5)) == (0, 255, 0, 255)

    def test_invalid_template(self, tmp_path):
        """模板无效返回2."""
        path = tmp_path / "bad.json"
        path.write_text('{"canvasWidth": 10}', encoding="utf-8")
        assert main(["render", str(path), "-o", str(tmp_path / "out.png")]) == EXIT_VALIDATION_ERROR
        assert not (tmp_path / "out.png").exists()

    def test_missing_file(self, tmp_path):
        """模板文件不存在返回1."""
        assert main(["render", str(tmp_path / "missing.json"), "-o", str(tmp_path / "o.png")]) == EXIT_RENDER_ERROR

    def test_render_error(self, tmp_path, template_data, monkeypatch):
        """画布超限返回1."""
        monkeypatch.setenv("MAX_CANVAS_SIDE", "20")
        path = tmp_path / "big.json"
        path.write_text(json.dumps(template_data(width=100, height=100)), encoding="utf-8")
        assert main(["render", str(path), "-o", str(tmp_path / "o.png")]) == EXIT_RENDER_ERROR

    def test_invalid_log_level(self, template_file, tmp_path):
        """无效日志级别返回2."""
        args = ["render", str(template_file), "-o", str(tmp_path / "o.png"), "--log-level", "loud"]
        assert main(args) == EXIT_VALIDATION_ERROR
