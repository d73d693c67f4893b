"""数据模型包。

定义压缩选项、任务、结果及相关常量。
"""

from .compression_config import (
    CompressionOptions,
    CropSpec,
    EffectiveOptions,
    EncodeParams,
    EncodeTask,
    ResizeSpec,
    build_destination_path,
)
from .compression_result import (
    BatchResult,
    CompressionFailure,
    CompressionStats,
    EncodeResult,
)
from .constants import (
    DEFAULT_CONCURRENCY,
    LEVEL_QUALITY,
    LOSSLESS_FORMATS,
    LOSSY_FORMATS,
    NETWORK_SPEED_MBPS,
    SUPPORTED_EXTENSIONS,
    CompressionLevel,
    CompressionMode,
    FitMode,
    ImageFormat,
    QualityDefaults,
    get_extension,
    is_supported_image,
)
from .presets import QUALITY_PRESETS, Preset, get_preset, list_presets


__all__ = [
    "DEFAULT_CONCURRENCY",
    "LEVEL_QUALITY",
    "LOSSLESS_FORMATS",
    "LOSSY_FORMATS",
    "NETWORK_SPEED_MBPS",
    "QUALITY_PRESETS",
    "SUPPORTED_EXTENSIONS",
    "BatchResult",
    "CompressionFailure",
    "CompressionLevel",
    "CompressionMode",
    "CompressionOptions",
    "CompressionStats",
    "CropSpec",
    "EffectiveOptions",
    "EncodeParams",
    "EncodeResult",
    "EncodeTask",
    "FitMode",
    "ImageFormat",
    "Preset",
    "QualityDefaults",
    "ResizeSpec",
    "build_destination_path",
    "get_extension",
    "get_preset",
    "is_supported_image",
    "list_presets",
]
