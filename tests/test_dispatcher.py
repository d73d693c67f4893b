"""格式分发测试。

测试分发决策表，以及可选编码器不可用或失败时的回退行为。
"""

from pathlib import Path

import pytest

from py_img_compressor.core.backends import BackendSet
from py_img_compressor.core.dispatcher import (
    EncodeRoute,
    FormatDispatcher,
    execute_plan,
    intermediate_path,
)
from py_img_compressor.core.options import resolve_options
from py_img_compressor.exceptions import (
    EncodeBackendError,
    UnsupportedConversionError,
    UnsupportedFormatForModeError,
)
from py_img_compressor.models import CompressionOptions


def _effective(**kwargs):
    return resolve_options(CompressionOptions(**kwargs))


class TestDispatchTable:
    """分发决策表测试"""

    @pytest.fixture
    def dispatcher(self, fake_backends: BackendSet) -> FormatDispatcher:
        return FormatDispatcher(fake_backends)

    def test_svg_to_svg_precision(self, dispatcher: FormatDispatcher):
        lossy = dispatcher.dispatch(Path("a.svg"), _effective(format="svg"))
        lossless = dispatcher.dispatch(
            Path("a.svg"), _effective(format="svg", compression_mode="lossless")
        )
        assert lossy.route == EncodeRoute.VECTOR
        assert lossy.backend.name == "fake-vector"
        assert lossless.params.precision > lossy.params.precision

    def test_svg_to_raster_rejected(self, dispatcher: FormatDispatcher):
        with pytest.raises(UnsupportedConversionError):
            dispatcher.dispatch(Path("a.svg"), _effective(format="png"))

    def test_raster_to_svg_rejected(self, dispatcher: FormatDispatcher):
        with pytest.raises(UnsupportedConversionError):
            dispatcher.dispatch(Path("a.png"), _effective(format="svg"))

    def test_unknown_source_extension(self, dispatcher: FormatDispatcher):
        with pytest.raises(UnsupportedConversionError):
            dispatcher.dispatch(Path("a.bmp"), _effective(format="png"))

    def test_gif_to_gif(self, dispatcher: FormatDispatcher):
        plan = dispatcher.dispatch(Path("a.gif"), _effective(format="gif"))
        assert plan.route == EncodeRoute.ANIMATED
        assert plan.backend.name == "fake-gif"

    def test_gif_to_raster_uses_first_frame(self, dispatcher: FormatDispatcher):
        plan = dispatcher.dispatch(Path("a.gif"), _effective(format="webp"))
        assert plan.route == EncodeRoute.RASTER
        assert plan.backend.name == "fake-primary"
        assert plan.params.first_frame_only

    def test_raster_to_gif_rejected(self, dispatcher: FormatDispatcher):
        with pytest.raises(UnsupportedFormatForModeError):
            dispatcher.dispatch(Path("a.png"), _effective(format="gif"))

    @pytest.mark.parametrize("fmt", ["png", "webp", "tiff", "avif"])
    def test_lossless_supported(self, dispatcher: FormatDispatcher, fmt: str):
        plan = dispatcher.dispatch(
            Path("a.png"), _effective(format=fmt, compression_mode="lossless")
        )
        assert plan.params.lossless

    def test_lossless_jpeg_rejected(self, dispatcher: FormatDispatcher):
        with pytest.raises(UnsupportedFormatForModeError):
            dispatcher.dispatch(
                Path("a.png"), _effective(format="jpeg", compression_mode="lossless")
            )

    def test_jpeg_two_stage(self, dispatcher: FormatDispatcher):
        plan = dispatcher.dispatch(Path("a.png"), _effective(format="jpeg", quality=75))
        assert plan.route == EncodeRoute.JPEG_TWO_STAGE
        assert plan.recompressor.name == "fake-jpeg"
        assert plan.params.quality == 75

    def test_jpeg_without_specialized_encoder(self, dispatcher: FormatDispatcher):
        plan = dispatcher.dispatch(
            Path("a.png"), _effective(format="jpeg", use_specialized_encoder=False)
        )
        assert plan.route == EncodeRoute.RASTER
        assert plan.recompressor is None

    def test_jpeg_specialized_unavailable(self, make_fake_backend):
        dispatcher = FormatDispatcher(BackendSet(primary=make_fake_backend("p")))
        plan = dispatcher.dispatch(Path("a.png"), _effective(format="jpeg"))
        assert plan.route == EncodeRoute.RASTER
        assert plan.fallback_reason is not None

    def test_geometry_passed_to_backend(self, dispatcher: FormatDispatcher):
        plan = dispatcher.dispatch(
            Path("a.jpg"),
            _effective(
                format="webp",
                resize={"width": 100},
                crop={"left": 0, "top": 0, "width": 10, "height": 10},
            ),
        )
        assert plan.params.resize.width == 100
        assert plan.params.crop.is_complete


class TestPlanExecution:
    """编码计划执行与回退测试"""

    def test_two_stage_success_cleans_intermediate(
        self, png_image: Path, output_dir: Path, fake_backends: BackendSet
    ):
        output_dir.mkdir()
        destination = output_dir / "photo.jpeg"
        plan = FormatDispatcher(fake_backends).dispatch(
            png_image, _effective(format="jpeg")
        )

        backend_used = execute_plan(plan, png_image, destination, fake_backends)

        assert backend_used == "fake-jpeg"
        assert destination.exists()
        assert not intermediate_path(destination).exists()
        # 专用编码器的输入是中间文件
        assert fake_backends.jpeg.calls[0][0] == intermediate_path(destination)

    def test_two_stage_recompress_failure_keeps_intermediate(
        self, png_image: Path, output_dir: Path, make_fake_backend
    ):
        output_dir.mkdir()
        backends = BackendSet(
            primary=make_fake_backend("primary"),
            jpeg=make_fake_backend("jpeg", fail=True),
        )
        destination = output_dir / "photo.jpeg"
        plan = FormatDispatcher(backends).dispatch(png_image, _effective(format="jpeg"))

        backend_used = execute_plan(plan, png_image, destination, backends)

        assert backend_used == "primary"
        assert destination.read_bytes() == png_image.read_bytes()
        assert not intermediate_path(destination).exists()

    def test_two_stage_primary_failure_cleans_up(
        self, png_image: Path, output_dir: Path, make_fake_backend
    ):
        output_dir.mkdir()
        backends = BackendSet(
            primary=make_fake_backend("primary", fail=True),
            jpeg=make_fake_backend("jpeg"),
        )
        destination = output_dir / "photo.jpeg"
        plan = FormatDispatcher(backends).dispatch(png_image, _effective(format="jpeg"))

        with pytest.raises(EncodeBackendError):
            execute_plan(plan, png_image, destination, backends)
        assert not intermediate_path(destination).exists()
        assert not backends.jpeg.calls

    def test_gif_failure_falls_back_to_primary(
        self, animated_gif: Path, output_dir: Path, make_fake_backend
    ):
        output_dir.mkdir()
        backends = BackendSet(
            primary=make_fake_backend("primary"),
            gif=make_fake_backend("gif", fail=True),
        )
        destination = output_dir / "anim.gif"
        plan = FormatDispatcher(backends).dispatch(animated_gif, _effective(format="gif"))

        assert execute_plan(plan, animated_gif, destination, backends) == "primary"
        assert destination.exists()

    def test_svg_copied_without_optimizer(
        self, svg_image: Path, output_dir: Path, make_fake_backend
    ):
        output_dir.mkdir()
        backends = BackendSet(primary=make_fake_backend("primary"))
        destination = output_dir / "icon.svg"
        plan = FormatDispatcher(backends).dispatch(svg_image, _effective(format="svg"))

        assert execute_plan(plan, svg_image, destination, backends) == "copy"
        assert destination.read_text(encoding="utf-8") == svg_image.read_text(
            encoding="utf-8"
        )
