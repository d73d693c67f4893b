"""编码器测试。

基础转码器使用真实的 Pillow 编码；外部工具只测试命令构建和可用性探测。
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest
from PIL import ExifTags, Image, features

from py_img_compressor.config import get_config, reset_config
from py_img_compressor.core.backends import (
    PrimaryTranscoder,
    SpecializedGIFEncoder,
    SpecializedJPEGEncoder,
    VectorOptimizer,
    _find_mozjpeg,
    detect_backends,
)
from py_img_compressor.exceptions import EncodeBackendError
from py_img_compressor.models import CropSpec, EncodeParams, ImageFormat, ResizeSpec


class TestPrimaryTranscoder:
    """Pillow 转码器测试"""

    @pytest.fixture
    def transcoder(self) -> PrimaryTranscoder:
        return PrimaryTranscoder()

    def test_png_to_jpeg(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.jpeg"
        params = EncodeParams(target_format=ImageFormat.JPEG, quality=70)

        transcoder.encode(png_image, destination, params)

        with Image.open(destination) as img:
            assert img.format == "JPEG"
            assert img.size == (200, 150)

    def test_transparent_to_jpeg_flattened(
        self, transcoder, transparent_png: Path, tmp_path: Path
    ):
        destination = tmp_path / "out.jpeg"
        transcoder.encode(
            transparent_png, destination, EncodeParams(target_format=ImageFormat.JPEG)
        )
        with Image.open(destination) as img:
            assert img.mode == "RGB"

    def test_lossless_png_preserves_pixels(
        self, transcoder, png_image: Path, tmp_path: Path
    ):
        destination = tmp_path / "out.png"
        params = EncodeParams(target_format=ImageFormat.PNG, lossless=True)

        transcoder.encode(png_image, destination, params)

        with Image.open(png_image) as original, Image.open(destination) as result:
            assert list(original.convert("RGB").getdata()) == list(
                result.convert("RGB").getdata()
            )

    def test_lossy_png_quantized(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.png"
        transcoder.encode(
            png_image, destination, EncodeParams(target_format=ImageFormat.PNG, quality=50)
        )
        with Image.open(destination) as img:
            assert img.mode == "P"

    def test_lossless_webp(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.webp"
        params = EncodeParams(target_format=ImageFormat.WEBP, lossless=True)
        transcoder.encode(png_image, destination, params)
        with Image.open(destination) as img:
            assert img.format == "WEBP"

    def test_tiff_output(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.tiff"
        transcoder.encode(
            png_image, destination, EncodeParams(target_format=ImageFormat.TIFF, quality=80)
        )
        with Image.open(destination) as img:
            assert img.format == "TIFF"

    @pytest.mark.skipif(not features.check("avif"), reason="Pillow 未启用 AVIF 支持")
    def test_avif_output(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.avif"
        transcoder.encode(
            png_image, destination, EncodeParams(target_format=ImageFormat.AVIF, quality=60)
        )
        assert destination.stat().st_size > 0

    def test_resize_inside(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.png"
        params = EncodeParams(
            target_format=ImageFormat.PNG,
            lossless=True,
            resize=ResizeSpec(width=100, height=100, fit="inside"),
        )
        transcoder.encode(png_image, destination, params)
        with Image.open(destination) as img:
            assert img.size == (100, 75)

    def test_resize_cover_exact_size(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.png"
        params = EncodeParams(
            target_format=ImageFormat.PNG,
            lossless=True,
            resize=ResizeSpec(width=80, height=80),
        )
        transcoder.encode(png_image, destination, params)
        with Image.open(destination) as img:
            assert img.size == (80, 80)

    def test_resize_without_enlargement(
        self, transcoder, png_image: Path, tmp_path: Path
    ):
        destination = tmp_path / "out.png"
        params = EncodeParams(
            target_format=ImageFormat.PNG,
            lossless=True,
            resize=ResizeSpec(width=400, without_enlargement=True),
        )
        transcoder.encode(png_image, destination, params)
        with Image.open(destination) as img:
            assert img.size == (200, 150)

    def test_crop(self, transcoder, png_image: Path, tmp_path: Path):
        destination = tmp_path / "out.png"
        params = EncodeParams(
            target_format=ImageFormat.PNG,
            lossless=True,
            crop=CropSpec(left=10, top=20, width=50, height=40),
        )
        transcoder.encode(png_image, destination, params)
        with Image.open(destination) as img:
            assert img.size == (50, 40)

    def test_crop_out_of_bounds(self, transcoder, png_image: Path, tmp_path: Path):
        params = EncodeParams(
            target_format=ImageFormat.PNG,
            crop=CropSpec(left=150, top=0, width=100, height=10),
        )
        with pytest.raises(EncodeBackendError):
            transcoder.encode(png_image, tmp_path / "out.png", params)

    def test_animated_gif_keeps_frames(
        self, transcoder, animated_gif: Path, tmp_path: Path
    ):
        destination = tmp_path / "out.gif"
        transcoder.encode(
            animated_gif, destination, EncodeParams(target_format=ImageFormat.GIF)
        )
        with Image.open(destination) as img:
            assert img.n_frames == 3

    def test_first_frame_only(self, transcoder, animated_gif: Path, tmp_path: Path):
        destination = tmp_path / "out.png"
        params = EncodeParams(
            target_format=ImageFormat.PNG, lossless=True, first_frame_only=True
        )
        transcoder.encode(animated_gif, destination, params)
        with Image.open(destination) as img:
            assert img.convert("RGB").getpixel((0, 0)) == (255, 0, 0)

    def test_kept_exif_drops_orientation(self, transcoder, tmp_path: Path):
        """保留元数据时，已校正方向的图片不应再带方向标签"""
        source = tmp_path / "rotated.jpg"
        exif = Image.Exif()
        exif[ExifTags.Base.Orientation] = 6
        exif[ExifTags.Base.Make] = "TestCam"
        Image.new("RGB", (200, 100), "red").save(source, "JPEG", exif=exif.tobytes())

        destination = tmp_path / "out.jpeg"
        params = EncodeParams(target_format=ImageFormat.JPEG, strip_metadata=False)
        transcoder.encode(source, destination, params)

        with Image.open(destination) as img:
            assert img.size == (100, 200)
            kept = img.getexif()
            assert kept.get(ExifTags.Base.Orientation) is None
            assert kept.get(ExifTags.Base.Make) == "TestCam"

    def test_invalid_source(self, transcoder, tmp_path: Path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")
        with pytest.raises(EncodeBackendError) as exc_info:
            transcoder.encode(
                broken, tmp_path / "out.png", EncodeParams(target_format=ImageFormat.PNG)
            )
        assert exc_info.value.backend == "Pillow 转码"


class TestSpecializedEncoders:
    """外部编码器测试"""

    def test_unavailable_without_executable(self):
        assert not SpecializedJPEGEncoder(None).is_available()
        assert not SpecializedGIFEncoder(None).is_available()

    def test_jpeg_encode_unavailable_raises(self, jpeg_image: Path, tmp_path: Path):
        with pytest.raises(EncodeBackendError):
            SpecializedJPEGEncoder(None).encode(
                jpeg_image,
                tmp_path / "out.jpeg",
                EncodeParams(target_format=ImageFormat.JPEG, quality=80),
            )

    def test_missing_executable_raises(self, jpeg_image: Path, tmp_path: Path):
        encoder = SpecializedJPEGEncoder(str(tmp_path / "no-such-cjpeg"))
        with pytest.raises(EncodeBackendError):
            encoder.encode(
                jpeg_image,
                tmp_path / "out.jpeg",
                EncodeParams(target_format=ImageFormat.JPEG, quality=80),
            )

    @pytest.mark.parametrize(
        ("quality", "level", "colors"),
        [(100, 1, 256), (85, 1, 256), (70, 1, 128), (50, 2, 64), (1, 3, 64)],
    )
    def test_gif_quality_mapping(self, quality: int, level: int, colors: int):
        assert SpecializedGIFEncoder.optimization_level(quality) == level
        assert SpecializedGIFEncoder.palette_colors(quality) == colors

    def test_gif_command(self):
        encoder = SpecializedGIFEncoder("/usr/bin/gifsicle")
        params = EncodeParams(
            target_format=ImageFormat.GIF,
            quality=80,
            resize=ResizeSpec(width=40, fit="inside"),
            crop=CropSpec(left=1, top=2, width=30, height=20),
        )
        command = encoder.build_command(Path("in.gif"), Path("out.gif"), params)

        assert command[:4] == ["/usr/bin/gifsicle", "-O1", "--colors", "128"]
        assert "--crop" in command and "1,2+30x20" in command
        assert command[command.index("--resize-fit") + 1] == "40x_"
        assert command[-3:] == ["in.gif", "-o", "out.gif"]


class TestVectorOptimizer:
    """SVG 精简测试"""

    @pytest.fixture
    def optimizer(self) -> VectorOptimizer:
        optimizer = VectorOptimizer()
        if not optimizer.is_available():
            pytest.skip("scour 未安装")
        return optimizer

    def test_lossless_keeps_viewbox(self, optimizer, svg_image: Path, tmp_path: Path):
        destination = tmp_path / "out.svg"
        params = EncodeParams(target_format=ImageFormat.SVG, lossless=True, precision=5)

        optimizer.encode(svg_image, destination, params)

        root = ET.fromstring(destination.read_text(encoding="utf-8"))
        view_box = root.get("viewBox")
        assert view_box is not None
        assert [float(v) for v in view_box.split()] == [0, 0, 120, 80]
        assert "metadata" not in destination.read_text(encoding="utf-8")

    def test_output_smaller(self, optimizer, svg_image: Path, tmp_path: Path):
        destination = tmp_path / "out.svg"
        params = EncodeParams(target_format=ImageFormat.SVG, precision=3)
        optimizer.encode(svg_image, destination, params)
        assert destination.stat().st_size < svg_image.stat().st_size


class TestBackendDetection:
    """编码器探测测试"""

    def test_primary_always_present(self):
        backends = detect_backends()
        assert backends.primary.is_available()
        assert backends.describe()["primary"] == "pillow"

    def test_specialized_disabled(self, monkeypatch):
        monkeypatch.setenv("IMGC_DISABLE_SPECIALIZED", "true")
        reset_config()
        backends = detect_backends(get_config())
        assert backends.jpeg is None
        assert backends.gif is None

    def test_configured_path_missing(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("IMGC_MOZJPEG_PATH", str(tmp_path / "missing-cjpeg"))
        reset_config()
        assert detect_backends(get_config()).jpeg is None


def _fake_cjpeg(directory: Path, banner: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    script = directory / "cjpeg"
    script.write_text(f'#!/bin/sh\necho "{banner}" >&2\n', encoding="utf-8")
    script.chmod(0o755)
    return script


@pytest.mark.skipif(sys.platform == "win32", reason="需要 POSIX shell 脚本")
class TestMozjpegDetection:
    """区分 mozjpeg 与 libjpeg-turbo 的 cjpeg"""

    def test_libjpeg_turbo_cjpeg_skipped(self, monkeypatch, tmp_path: Path):
        _fake_cjpeg(tmp_path / "bin", "libjpeg-turbo version 2.1.5 (build 20230208)")
        monkeypatch.setenv("PATH", str(tmp_path / "bin"))

        assert _find_mozjpeg(("cjpeg",), (), None) is None

    def test_mozjpeg_cjpeg_found(self, monkeypatch, tmp_path: Path):
        script = _fake_cjpeg(tmp_path / "bin", "mozjpeg version 4.1.5 (build 20240101)")
        monkeypatch.setenv("PATH", str(tmp_path / "bin"))

        assert _find_mozjpeg(("mozjpeg", "cjpeg"), (), None) == str(script)

    def test_search_path_checked_after_path(self, monkeypatch, tmp_path: Path):
        _fake_cjpeg(tmp_path / "bin", "libjpeg-turbo version 2.1.5 (build 20230208)")
        mozjpeg = _fake_cjpeg(tmp_path / "opt", "mozjpeg version 4.1.5 (build 20240101)")
        monkeypatch.setenv("PATH", str(tmp_path / "bin"))

        assert _find_mozjpeg(("cjpeg",), (str(mozjpeg),), None) == str(mozjpeg)

    def test_explicit_path_trusted(self, tmp_path: Path):
        script = _fake_cjpeg(tmp_path / "bin", "libjpeg-turbo version 2.1.5")
        assert _find_mozjpeg(("cjpeg",), (), str(script)) == str(script)
