"""Python 图像压缩库。

按目标格式和压缩模式选择编码器，支持单文件和有界并发的批量压缩。
"""

__version__ = "0.1.0"
__description__ = "图像压缩与格式转换库，支持批量处理和 MCP 服务"

# 核心功能导出
from .compressor import ImageCompressor, compress_many, compress_one
from .exceptions import (
    CompressionError,
    EncodeBackendError,
    InvalidOptionsError,
    NoMatchingInputsError,
    UnsupportedConversionError,
    UnsupportedFormatForModeError,
)
from .models import (
    BatchResult,
    CompressionFailure,
    CompressionOptions,
    CompressionStats,
    EncodeResult,
)


__all__ = [
    "BatchResult",
    "CompressionError",
    "CompressionFailure",
    "CompressionOptions",
    "CompressionStats",
    "EncodeBackendError",
    "EncodeResult",
    "ImageCompressor",
    "InvalidOptionsError",
    "NoMatchingInputsError",
    "UnsupportedConversionError",
    "UnsupportedFormatForModeError",
    "compress_many",
    "compress_one",
    "get_version",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
