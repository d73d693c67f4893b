"""选项解析模块。

将预设、压缩级别、显式质量和压缩模式合并为一份有效选项。
纯函数，不做任何 I/O。
"""

from ..exceptions import InvalidCompressionLevelError
from ..models.compression_config import (
    CompressionOptions,
    EffectiveOptions,
    QualitySource,
)
from ..models.constants import (
    LEVEL_QUALITY,
    CompressionLevel,
    CompressionMode,
    QualityDefaults,
)
from ..models.presets import Preset, get_preset
from ..utils.logging_helpers import get_logger


logger = get_logger()


def level_to_quality(level: str) -> int:
    """压缩级别映射为质量值

    Raises:
        InvalidCompressionLevelError: 级别名称不是 high/medium/low
    """
    try:
        return LEVEL_QUALITY[CompressionLevel(level.strip().lower())]
    except ValueError:
        available = ", ".join(lvl.value for lvl in CompressionLevel)
        raise InvalidCompressionLevelError(
            f"不支持的压缩级别: {level}。可用级别: {available}"
        ) from None


def _resolve_quality(
    options: CompressionOptions, preset: Preset | None
) -> tuple[int | None, QualitySource]:
    """按优先级确定质量：显式质量 > 压缩级别 > 预设 > 默认值"""
    if options.compression_mode == CompressionMode.LOSSLESS:
        return None, "ignored"

    # 级别名称总是校验，即使显式质量优先
    level_quality = (
        level_to_quality(options.compression_level)
        if options.compression_level is not None
        else None
    )

    if options.quality is not None:
        return options.quality, "explicit"
    if level_quality is not None:
        return level_quality, "level"
    if preset is not None:
        return preset.quality, "preset"
    return QualityDefaults.DEFAULT_LOSSY, "default"


def resolve_options(options: CompressionOptions) -> EffectiveOptions:
    """解析压缩选项

    Args:
        options: 调用方提供的选项

    Returns:
        EffectiveOptions: 质量已确定的有效选项

    Raises:
        InvalidPresetError: 预设名称未知
        InvalidCompressionLevelError: 有损模式下压缩级别名称未知
    """
    preset = get_preset(options.preset_name) if options.preset_name else None
    quality, quality_source = _resolve_quality(options, preset)

    # 调用方未指定尺寸时沿用预设的尺寸
    resize = options.resize
    if resize is None and preset is not None:
        resize = preset.resize

    crop = options.crop
    if crop is not None and not crop.is_complete:
        logger.warning(f"裁剪参数不完整，已忽略: {crop.model_dump(exclude_none=True)}")
        crop = None

    effective = EffectiveOptions(
        format=options.format,
        compression_mode=options.compression_mode,
        quality=quality,
        quality_source=quality_source,
        preset_name=options.preset_name,
        resize=resize,
        crop=crop,
        strip_metadata=options.strip_metadata,
        progressive=options.progressive,
        use_specialized_encoder=options.use_specialized_encoder,
        generate_preview=options.generate_preview,
    )
    logger.debug(
        f"解析选项: 格式={effective.format.value}, 模式={effective.compression_mode.value}, "
        f"质量={effective.quality} ({quality_source})"
    )
    return effective
