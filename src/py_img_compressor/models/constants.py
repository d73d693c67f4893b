"""图像压缩相关常量定义。

格式、压缩模式等封闭枚举，以及格式与扩展名、压缩模式之间的对应关系。
"""

from enum import Enum
from pathlib import Path
from typing import Final


class ImageFormat(str, Enum):
    """支持的图像格式"""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"
    TIFF = "tiff"
    GIF = "gif"
    SVG = "svg"

    @classmethod
    def parse(cls, value: "str | ImageFormat") -> "ImageFormat":
        """解析格式名称，支持常见别名（jpg、tif），大小写不敏感"""
        if isinstance(value, ImageFormat):
            return value
        normalized = str(value).strip().lower().lstrip(".")
        normalized = FORMAT_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            available = ", ".join(f.value for f in cls)
            raise ValueError(f"不支持的格式: {value}。可用格式: {available}") from None

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageFormat | None":
        """根据扩展名检测文件类型（不读取文件内容）"""
        return EXTENSION_FORMATS.get(Path(path).suffix.lower())

    @property
    def pillow_format(self) -> str:
        """Pillow 保存时使用的格式名"""
        return self.value.upper()

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @property
    def is_vector(self) -> bool:
        return self is ImageFormat.SVG

    @property
    def is_animated_capable(self) -> bool:
        return self is ImageFormat.GIF


class CompressionMode(str, Enum):
    """压缩模式"""

    LOSSY = "lossy"
    LOSSLESS = "lossless"


class CompressionLevel(str, Enum):
    """压缩级别，对应固定的质量值"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FitMode(str, Enum):
    """尺寸调整的适配方式"""

    COVER = "cover"  # 等比缩放并裁剪，填满目标尺寸
    CONTAIN = "contain"  # 等比缩放并留边
    FILL = "fill"  # 拉伸到目标尺寸
    INSIDE = "inside"  # 等比缩放，不超过目标尺寸
    OUTSIDE = "outside"  # 等比缩放，不小于目标尺寸


FORMAT_ALIASES: Final[dict[str, str]] = {
    "jpg": "jpeg",
    "tif": "tiff",
}

EXTENSION_FORMATS: Final[dict[str, ImageFormat]] = {
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".png": ImageFormat.PNG,
    ".webp": ImageFormat.WEBP,
    ".avif": ImageFormat.AVIF,
    ".tiff": ImageFormat.TIFF,
    ".tif": ImageFormat.TIFF,
    ".gif": ImageFormat.GIF,
    ".svg": ImageFormat.SVG,
}

SUPPORTED_EXTENSIONS: Final[frozenset[str]] = frozenset(EXTENSION_FORMATS)

MIME_TYPES: Final[dict[ImageFormat, str]] = {
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
    ImageFormat.WEBP: "image/webp",
    ImageFormat.AVIF: "image/avif",
    ImageFormat.TIFF: "image/tiff",
    ImageFormat.GIF: "image/gif",
    ImageFormat.SVG: "image/svg+xml",
}

# 各压缩模式下可用的目标格式
LOSSLESS_FORMATS: Final[frozenset[ImageFormat]] = frozenset(
    {ImageFormat.PNG, ImageFormat.WEBP, ImageFormat.TIFF, ImageFormat.AVIF}
)
LOSSY_FORMATS: Final[frozenset[ImageFormat]] = frozenset(
    {
        ImageFormat.JPEG,
        ImageFormat.PNG,
        ImageFormat.WEBP,
        ImageFormat.AVIF,
        ImageFormat.TIFF,
    }
)

# 压缩级别对应的质量值
LEVEL_QUALITY: Final[dict[CompressionLevel, int]] = {
    CompressionLevel.HIGH: 90,
    CompressionLevel.MEDIUM: 70,
    CompressionLevel.LOW: 50,
}


class QualityDefaults:
    """质量相关默认值"""

    DEFAULT_LOSSY: Final[int] = 80
    LOSSLESS: Final[int] = 100

    MIN_QUALITY: Final[int] = 1
    MAX_QUALITY: Final[int] = 100

    # SVG 数值精度（有效数字位数），无损模式更高
    VECTOR_PRECISION_LOSSY: Final[int] = 3
    VECTOR_PRECISION_LOSSLESS: Final[int] = 5


# 估算加载时间使用的网络速度（Mbps），不支持按调用配置
NETWORK_SPEED_MBPS: Final[float] = 5.0

DEFAULT_CONCURRENCY: Final[int] = 5


def is_supported_image(path: str | Path) -> bool:
    """检查文件扩展名是否受支持"""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def get_extension(image_format: ImageFormat) -> str:
    """目标格式对应的输出扩展名"""
    return f".{image_format.value}"
