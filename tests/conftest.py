"""测试配置文件。

提供测试所需的fixtures和配置。所有测试图片都在临时目录中用 Pillow 生成。
"""

import shutil
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from py_img_compressor.config import reset_config
from py_img_compressor.core.backends import BackendSet, EncodeBackend, PrimaryTranscoder
from py_img_compressor.exceptions import EncodeBackendError


SAMPLE_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<!-- 测试用矢量图 -->
<svg xmlns="http://www.w3.org/2000/svg" width="120" height="80" viewBox="0 0 120 80">
  <metadata>test</metadata>
  <rect x="10.123456" y="10.654321" width="50.55555" height="40.44444" fill="#ff0000"/>
  <circle cx="90.98765" cy="40.12345" r="20.5" fill="#0000ff"/>
</svg>
"""


class FakeBackend(EncodeBackend):
    """记录调用的编码器，复制源文件作为输出或按要求失败"""

    def __init__(self, name: str, fail: bool = False):
        self.name = name
        self.fail = fail
        self.calls: list[tuple[Path, Path, object]] = []

    def is_available(self) -> bool:
        return True

    def encode(self, source_path, destination_path, params) -> None:
        self.calls.append((source_path, destination_path, params))
        if self.fail:
            raise EncodeBackendError(f"{self.name} 模拟失败", source_path, self.name)
        shutil.copyfile(source_path, destination_path)


def _draw_pattern(img: Image.Image) -> None:
    draw = ImageDraw.Draw(img)
    for i in range(30):
        x, y = (i * 13) % img.width, (i * 7) % img.height
        color = (i * 8 % 256, i * 5 % 256, i * 11 % 256)
        draw.rectangle([x, y, x + 20, y + 15], fill=color)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """每个测试使用干净的全局配置"""
    for name in (
        "IMGC_CONCURRENCY",
        "IMGC_EXECUTOR",
        "IMGC_DISABLE_SPECIALIZED",
        "IMGC_MOZJPEG_PATH",
        "IMGC_GIFSICLE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """输入图片目录"""
    directory = tmp_path / "input"
    directory.mkdir()
    return directory


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture
def png_image(image_dir: Path) -> Path:
    path = image_dir / "photo.png"
    img = Image.new("RGB", (200, 150), color="white")
    _draw_pattern(img)
    img.save(path, "PNG")
    return path


@pytest.fixture
def transparent_png(image_dir: Path) -> Path:
    path = image_dir / "transparent.png"
    img = Image.new("RGBA", (120, 120), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse([10, 10, 110, 110], fill=(255, 80, 0, 180))
    img.save(path, "PNG")
    return path


@pytest.fixture
def jpeg_image(image_dir: Path) -> Path:
    path = image_dir / "landscape.jpg"
    img = Image.new("RGB", (320, 240), color="skyblue")
    _draw_pattern(img)
    img.save(path, "JPEG", quality=98)
    return path


@pytest.fixture
def animated_gif(image_dir: Path) -> Path:
    path = image_dir / "anim.gif"
    frames = [
        Image.new("RGB", (60, 40), color=color) for color in ("red", "green", "blue")
    ]
    frames[0].save(
        path, "GIF", save_all=True, append_images=frames[1:], duration=120, loop=0
    )
    return path


@pytest.fixture
def svg_image(image_dir: Path) -> Path:
    path = image_dir / "icon.svg"
    path.write_text(SAMPLE_SVG, encoding="utf-8")
    return path


@pytest.fixture
def primary_only() -> BackendSet:
    """只有基础转码器的编码器集合"""
    return BackendSet(primary=PrimaryTranscoder())


@pytest.fixture
def fake_backends() -> BackendSet:
    """全部由假编码器组成的集合"""
    return BackendSet(
        primary=FakeBackend("fake-primary"),
        jpeg=FakeBackend("fake-jpeg"),
        gif=FakeBackend("fake-gif"),
        vector=FakeBackend("fake-vector"),
    )


@pytest.fixture
def make_fake_backend():
    """创建假编码器的工厂"""
    return FakeBackend
