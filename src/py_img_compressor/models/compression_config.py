"""压缩配置模型。

定义调用方传入的压缩选项、解析后的有效选项以及单文件任务。
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import CompressionMode, FitMode, ImageFormat, get_extension


QualitySource = Literal["explicit", "level", "preset", "default", "ignored"]


class ResizeSpec(BaseModel):
    """尺寸调整配置"""

    model_config = ConfigDict(frozen=True)

    width: int | None = Field(None, gt=0, description="目标宽度")
    height: int | None = Field(None, gt=0, description="目标高度")
    fit: FitMode = Field(FitMode.COVER, description="适配方式")
    without_enlargement: bool = Field(False, description="禁止放大")

    @model_validator(mode="after")
    def validate_dimensions(self) -> "ResizeSpec":
        if self.width is None and self.height is None:
            raise ValueError("尺寸调整至少需要指定宽度或高度")
        return self


class CropSpec(BaseModel):
    """裁剪区域，四个字段全部提供时才生效"""

    model_config = ConfigDict(frozen=True)

    left: int | None = Field(None, ge=0, description="左边距")
    top: int | None = Field(None, ge=0, description="上边距")
    width: int | None = Field(None, gt=0, description="裁剪宽度")
    height: int | None = Field(None, gt=0, description="裁剪高度")

    @property
    def is_complete(self) -> bool:
        return None not in (self.left, self.top, self.width, self.height)

    @property
    def box(self) -> tuple[int, int, int, int]:
        """Pillow 使用的 (left, top, right, bottom) 区域"""
        if not self.is_complete:
            raise ValueError("裁剪区域不完整")
        assert self.left is not None and self.top is not None
        assert self.width is not None and self.height is not None
        return (self.left, self.top, self.left + self.width, self.top + self.height)


class CompressionOptions(BaseModel):
    """调用方提供的压缩选项，构造后不可修改"""

    model_config = ConfigDict(frozen=True)

    format: ImageFormat = Field(description="目标格式")
    compression_mode: CompressionMode = Field(
        CompressionMode.LOSSY, description="压缩模式"
    )

    # 质量来源，优先级：quality > compression_level > preset > 默认值
    quality: int | None = Field(None, ge=1, le=100, description="显式质量值")
    compression_level: str | None = Field(None, description="压缩级别 high/medium/low")
    preset_name: str | None = Field(None, description="质量预设名称")

    # 几何变换
    resize: ResizeSpec | None = Field(None, description="尺寸调整")
    crop: CropSpec | None = Field(None, description="裁剪区域")

    # 编码选项
    strip_metadata: bool = Field(True, description="移除元数据")
    progressive: bool = Field(True, description="渐进式编码")
    use_specialized_encoder: bool = Field(True, description="优先使用专用编码器")
    generate_preview: bool = Field(False, description="生成对比预览")

    @field_validator("format", mode="before")
    @classmethod
    def parse_format(cls, v: object) -> object:
        if isinstance(v, str):
            return ImageFormat.parse(v)
        return v

    @field_validator("compression_mode", mode="before")
    @classmethod
    def parse_mode(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class EffectiveOptions(BaseModel):
    """解析后的有效选项，质量已确定为整数（无损模式为 None）"""

    model_config = ConfigDict(frozen=True)

    format: ImageFormat
    compression_mode: CompressionMode
    quality: int | None = Field(None, ge=1, le=100)
    quality_source: QualitySource = "default"
    preset_name: str | None = None
    resize: ResizeSpec | None = None
    crop: CropSpec | None = None
    strip_metadata: bool = True
    progressive: bool = True
    use_specialized_encoder: bool = True
    generate_preview: bool = False

    @property
    def is_lossless(self) -> bool:
        return self.compression_mode == CompressionMode.LOSSLESS


class EncodeParams(BaseModel):
    """交给编码器的参数集合"""

    model_config = ConfigDict(frozen=True)

    target_format: ImageFormat
    quality: int | None = Field(None, ge=1, le=100)
    lossless: bool = False
    resize: ResizeSpec | None = None
    crop: CropSpec | None = None
    strip_metadata: bool = True
    progressive: bool = True
    first_frame_only: bool = False
    precision: int | None = Field(None, ge=1, description="SVG 数值精度")

    @classmethod
    def from_options(cls, options: EffectiveOptions, **overrides: object) -> "EncodeParams":
        values: dict[str, object] = {
            "target_format": options.format,
            "quality": options.quality,
            "lossless": options.is_lossless,
            "resize": options.resize,
            "crop": options.crop,
            "strip_metadata": options.strip_metadata,
            "progressive": options.progressive,
        }
        values.update(overrides)
        return cls.model_validate(values)


class EncodeTask(BaseModel):
    """批量处理中的单个文件任务"""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    output_dir: Path
    options: EffectiveOptions

    @property
    def destination_path(self) -> Path:
        return build_destination_path(self.source_path, self.output_dir, self.options.format)


def build_destination_path(
    source_path: Path, output_dir: Path, image_format: ImageFormat
) -> Path:
    """输出文件名总是由源文件名派生，扩展名替换为目标格式"""
    return output_dir / f"{source_path.stem}{get_extension(image_format)}"
