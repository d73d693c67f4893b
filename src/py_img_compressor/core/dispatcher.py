"""格式分发模块。

根据源文件类型（扩展名）、目标格式和压缩模式选择编码路径，
并执行选定的路径，在可选编码器不可用或失败时回退到基础转码器。
"""

import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..exceptions import (
    EncodeBackendError,
    UnsupportedConversionError,
    UnsupportedFormatForModeError,
)
from ..models.compression_config import EffectiveOptions, EncodeParams
from ..models.constants import (
    LOSSLESS_FORMATS,
    LOSSY_FORMATS,
    ImageFormat,
    QualityDefaults,
)
from ..utils.cleanup_helpers import TempFileManager
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .backends import BackendSet, EncodeBackend


logger = get_logger()


class EncodeRoute(str, Enum):
    """编码路径"""

    VECTOR = "vector"
    ANIMATED = "animated"
    RASTER = "raster"
    JPEG_TWO_STAGE = "jpeg_two_stage"


@dataclass(frozen=True)
class DispatchPlan:
    """分发结果：编码路径、编码器和参数"""

    route: EncodeRoute
    backend: EncodeBackend | None
    params: EncodeParams
    recompressor: EncodeBackend | None = None
    fallback_reason: str | None = None

    @property
    def backend_name(self) -> str:
        """实际承担输出的编码器名称"""
        if self.route == EncodeRoute.JPEG_TWO_STAGE and self.recompressor is not None:
            return self.recompressor.name
        if self.backend is None:
            return "copy"
        return self.backend.name


def _check_mode_support(target: ImageFormat, options: EffectiveOptions) -> None:
    supported = LOSSLESS_FORMATS if options.is_lossless else LOSSY_FORMATS
    if target not in supported:
        available = ", ".join(sorted(f.value for f in supported))
        raise UnsupportedFormatForModeError(
            f"{target.value} 不支持 {options.compression_mode.value} 压缩。"
            f"支持的格式: {available}"
        )


class FormatDispatcher:
    """格式分发器

    可用编码器集合在构造时注入，分发过程不查询任何全局状态。
    """

    def __init__(self, backends: BackendSet):
        self.backends = backends

    def dispatch(self, source_path: Path, options: EffectiveOptions) -> DispatchPlan:
        """选择编码路径

        Args:
            source_path: 源文件路径，类型由扩展名确定
            options: 解析后的有效选项

        Returns:
            DispatchPlan: 编码计划

        Raises:
            UnsupportedConversionError: 源格式无法转换为目标格式
            UnsupportedFormatForModeError: 目标格式不支持该压缩模式
        """
        source_format = ImageFormat.from_path(source_path)
        target = options.format

        if source_format is None:
            raise UnsupportedConversionError(
                f"无法识别的源文件类型: {source_path.suffix or source_path.name}",
                source_path,
            )

        match (source_format, target):
            case (ImageFormat.SVG, ImageFormat.SVG):
                return self._vector_plan(options)
            case (ImageFormat.SVG, _):
                raise UnsupportedConversionError(
                    f"SVG 只能输出为 SVG，不支持转换为 {target.value}", source_path
                )
            case (_, ImageFormat.SVG):
                raise UnsupportedConversionError(
                    f"{source_format.value} 不能转换为 SVG", source_path
                )
            case (ImageFormat.GIF, ImageFormat.GIF):
                return self._animated_plan(options)
            case (_, ImageFormat.GIF):
                raise UnsupportedFormatForModeError(
                    f"只有 GIF 源文件可以输出为 GIF: {source_path.name}", source_path
                )

        _check_mode_support(target, options)
        first_frame_only = source_format.is_animated_capable

        if (
            target == ImageFormat.JPEG
            and not options.is_lossless
            and options.use_specialized_encoder
        ):
            return self._jpeg_plan(options, first_frame_only)

        return DispatchPlan(
            route=EncodeRoute.RASTER,
            backend=self.backends.primary,
            params=EncodeParams.from_options(options, first_frame_only=first_frame_only),
        )

    def _vector_plan(self, options: EffectiveOptions) -> DispatchPlan:
        precision = (
            QualityDefaults.VECTOR_PRECISION_LOSSLESS
            if options.is_lossless
            else QualityDefaults.VECTOR_PRECISION_LOSSY
        )
        vector = self.backends.vector
        return DispatchPlan(
            route=EncodeRoute.VECTOR,
            backend=vector,
            params=EncodeParams.from_options(options, precision=precision),
            fallback_reason=None if vector else "SVG 优化器不可用",
        )

    def _animated_plan(self, options: EffectiveOptions) -> DispatchPlan:
        # gifsicle 按质量选择调色板大小，无损模式使用最高质量
        params = EncodeParams.from_options(
            options,
            quality=options.quality or QualityDefaults.LOSSLESS,
            lossless=False,
        )
        if self.backends.gif is not None:
            return DispatchPlan(
                route=EncodeRoute.ANIMATED, backend=self.backends.gif, params=params
            )
        return DispatchPlan(
            route=EncodeRoute.ANIMATED,
            backend=self.backends.primary,
            params=params,
            fallback_reason="gifsicle 不可用",
        )

    def _jpeg_plan(self, options: EffectiveOptions, first_frame_only: bool) -> DispatchPlan:
        params = EncodeParams.from_options(options, first_frame_only=first_frame_only)
        if self.backends.jpeg is None:
            return DispatchPlan(
                route=EncodeRoute.RASTER,
                backend=self.backends.primary,
                params=params,
                fallback_reason="mozjpeg 不可用",
            )
        return DispatchPlan(
            route=EncodeRoute.JPEG_TWO_STAGE,
            backend=self.backends.primary,
            params=params,
            recompressor=self.backends.jpeg,
        )


def intermediate_path(destination_path: Path) -> Path:
    """两阶段 JPEG 的中间文件路径"""
    return destination_path.with_name(f"{destination_path.name}.temp.jpg")


def execute_plan(
    plan: DispatchPlan,
    source_path: Path,
    destination_path: Path,
    backends: BackendSet,
) -> str:
    """执行编码计划

    Returns:
        str: 实际生成输出的编码器名称

    Raises:
        EncodeBackendError: 基础转码器失败
    """
    if plan.fallback_reason:
        logger.debug(f"{source_path.name}: {plan.fallback_reason}")

    match plan.route:
        case EncodeRoute.VECTOR:
            if plan.backend is None:
                shutil.copyfile(source_path, destination_path)
                return "copy"
            plan.backend.encode(source_path, destination_path, plan.params)
            return plan.backend.name

        case EncodeRoute.ANIMATED:
            assert plan.backend is not None
            try:
                plan.backend.encode(source_path, destination_path, plan.params)
                return plan.backend.name
            except EncodeBackendError as e:
                if plan.backend is backends.primary:
                    raise
                logger.warning(
                    MessageFormatter.backend_fallback(
                        plan.backend.name, backends.primary.name, e
                    )
                )
                backends.primary.encode(source_path, destination_path, plan.params)
                return backends.primary.name

        case EncodeRoute.JPEG_TWO_STAGE:
            assert plan.backend is not None and plan.recompressor is not None
            return _execute_two_stage(plan, source_path, destination_path)

        case EncodeRoute.RASTER:
            assert plan.backend is not None
            plan.backend.encode(source_path, destination_path, plan.params)
            return plan.backend.name


def _execute_two_stage(
    plan: DispatchPlan, source_path: Path, destination_path: Path
) -> str:
    """先由基础转码器生成中间 JPEG，再由专用编码器重新压缩

    中间文件在任何退出路径上都会被清理；重新压缩失败时中间文件成为输出。
    """
    assert plan.backend is not None and plan.recompressor is not None

    with TempFileManager() as temp_manager:
        intermediate = temp_manager.register_temp_file(intermediate_path(destination_path))
        plan.backend.encode(source_path, intermediate, plan.params)

        try:
            plan.recompressor.encode(intermediate, destination_path, plan.params)
            return plan.recompressor.name
        except EncodeBackendError as e:
            logger.warning(
                MessageFormatter.backend_fallback(
                    plan.recompressor.name, plan.backend.name, e
                )
            )
            shutil.move(intermediate, destination_path)
            return plan.backend.name
