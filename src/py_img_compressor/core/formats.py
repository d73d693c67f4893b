"""格式处理模块。

为目标格式准备图片色彩模式，执行几何变换，并生成 Pillow 保存参数。
"""

import logging
from typing import Any

from PIL import ExifTags, Image, ImageOps

from ..models.compression_config import CropSpec, EncodeParams, ResizeSpec
from ..models.constants import FitMode, ImageFormat


logger = logging.getLogger(__name__)

_WHITE = (255, 255, 255)


# ============================================================================
# 几何变换
# ============================================================================


def _target_size(img: Image.Image, spec: ResizeSpec) -> tuple[int, int]:
    """补全目标尺寸，只给出一边时按原始宽高比计算另一边"""
    width, height = img.size
    target_width = spec.width or max(1, round(width * (spec.height or height) / height))
    target_height = spec.height or max(1, round(height * target_width / width))
    return target_width, target_height


def resize_image(img: Image.Image, spec: ResizeSpec) -> Image.Image:
    """按适配方式调整尺寸"""
    width, height = img.size
    target_width, target_height = _target_size(img, spec)

    if spec.without_enlargement and target_width >= width and target_height >= height:
        return img

    match spec.fit:
        case FitMode.FILL:
            return img.resize((target_width, target_height), Image.Resampling.LANCZOS)
        case FitMode.COVER:
            return ImageOps.fit(
                img, (target_width, target_height), Image.Resampling.LANCZOS
            )
        case FitMode.CONTAIN:
            return ImageOps.pad(
                img, (target_width, target_height), Image.Resampling.LANCZOS
            )
        case FitMode.INSIDE | FitMode.OUTSIDE:
            pick = min if spec.fit == FitMode.INSIDE else max
            ratio = pick(target_width / width, target_height / height)
            new_size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
            return img.resize(new_size, Image.Resampling.LANCZOS)


def crop_image(img: Image.Image, spec: CropSpec) -> Image.Image:
    """裁剪图片，区域超出图片范围时抛出 ValueError"""
    left, top, right, bottom = spec.box
    if right > img.width or bottom > img.height:
        raise ValueError(
            f"裁剪区域 {spec.box} 超出图像范围 {img.width}x{img.height}"
        )
    return img.crop((left, top, right, bottom))


def apply_geometry(img: Image.Image, params: EncodeParams) -> Image.Image:
    """先调整尺寸再裁剪，两者相互独立"""
    if params.resize is not None:
        img = resize_image(img, params.resize)
    if params.crop is not None and params.crop.is_complete:
        img = crop_image(img, params.crop)
    return img


# ============================================================================
# 色彩模式准备
# ============================================================================


def _flatten_alpha(img: Image.Image) -> Image.Image:
    """将透明通道合成到白色背景上"""
    if img.mode == "P" and "transparency" not in img.info:
        return img.convert("RGB")
    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, _WHITE)
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _prepare_for_png(img: Image.Image, params: EncodeParams) -> Image.Image:
    if img.mode == "P":
        img = img.convert("RGBA" if "transparency" in img.info else "RGB")
    elif img.mode == "CMYK":
        img = img.convert("RGB")

    # 有损 PNG 通过调色板量化实现
    if not params.lossless and params.quality is not None and img.mode in ("RGB", "RGBA"):
        colors = max(2, min(256, round(256 * params.quality / 100)))
        method = (
            Image.Quantize.FASTOCTREE if img.mode == "RGBA" else Image.Quantize.MEDIANCUT
        )
        logger.debug(f"PNG有损压缩，质量={params.quality}，量化为 {colors} 色")
        return img.quantize(colors=colors, method=method)
    return img


def _prepare_for_webp(img: Image.Image) -> Image.Image:
    """WebP/AVIF 只支持 RGB 和 RGBA"""
    if img.mode == "P":
        return img.convert("RGBA" if "transparency" in img.info else "RGB")
    if img.mode == "LA":
        return img.convert("RGBA")
    if img.mode in ("L", "1", "CMYK", "I", "F"):
        return img.convert("RGB")
    return img


def prepare_for_format(img: Image.Image, params: EncodeParams) -> Image.Image:
    """为目标格式准备图片

    Args:
        img: PIL图片对象
        params: 编码参数

    Returns:
        Image.Image: 处理后的图片对象
    """
    match params.target_format:
        case ImageFormat.JPEG:
            return _flatten_alpha(img)
        case ImageFormat.PNG:
            return _prepare_for_png(img, params)
        case ImageFormat.WEBP | ImageFormat.AVIF:
            return _prepare_for_webp(img)
        case ImageFormat.TIFF if not params.lossless:
            # TIFF 的 JPEG 压缩只支持 RGB
            return _flatten_alpha(img)
        case _:
            return img


# ============================================================================
# 保存参数
# ============================================================================


def _exif_without_orientation(raw_exif: bytes) -> bytes:
    """移除方向标签，像素已经按 EXIF 方向校正过"""
    exif = Image.Exif()
    exif.load(raw_exif)
    exif.pop(ExifTags.Base.Orientation, None)
    return exif.tobytes()


def _metadata_params(
    source_info: dict[str, Any], params: EncodeParams, with_exif: bool = True
) -> dict[str, Any]:
    """保留元数据时带上 EXIF 和 ICC 配置"""
    if params.strip_metadata:
        return {}
    metadata: dict[str, Any] = {}
    if with_exif and source_info.get("exif"):
        metadata["exif"] = _exif_without_orientation(source_info["exif"])
    if source_info.get("icc_profile"):
        metadata["icc_profile"] = source_info["icc_profile"]
    return metadata


def get_jpeg_params(quality: int, params: EncodeParams) -> dict[str, Any]:
    """获取JPEG压缩参数

    - optimize: 额外处理以找到最优霍夫曼表
    - progressive: 渐进式JPEG，适合网络传输
    - subsampling: 高质量使用 4:2:2，其余使用 4:2:0
    """
    return {
        "quality": quality,
        "optimize": True,
        "progressive": params.progressive,
        "subsampling": 1 if quality >= 85 else 2,
    }


def get_png_params(quality: int | None, params: EncodeParams) -> dict[str, Any]:
    """获取PNG压缩参数

    无损模式使用最佳压缩级别；有损模式的压缩级别随质量降低而提高，
    optimize 会强制级别为 9，因此有损模式下关闭。
    """
    if params.lossless or quality is None:
        return {"optimize": True, "compress_level": 9}
    return {"optimize": False, "compress_level": round(9 * (100 - quality) / 100)}


def get_webp_params(quality: int | None, params: EncodeParams) -> dict[str, Any]:
    """获取WebP压缩参数

    - 无损模式：lossless=True，exact 保持透明区域的RGB值
    - 有损模式：method=6 最慢但压缩效果最好，透明通道质量随质量提升
    """
    if params.lossless or quality is None:
        return {"lossless": True, "quality": 100, "method": 4, "exact": True}

    if quality >= 85:
        alpha_quality = 100
    elif quality >= 70:
        alpha_quality = min(100, quality + 10)
    else:
        alpha_quality = quality
    return {"quality": quality, "method": 6, "alpha_quality": alpha_quality}


def get_avif_params(quality: int | None, params: EncodeParams) -> dict[str, Any]:
    """获取AVIF压缩参数

    speed: 0=最慢最佳，10=最快。高质量时使用更完整的色度采样。
    """
    if params.lossless or quality is None:
        return {"quality": 100, "speed": 4, "subsampling": "4:4:4"}

    if quality >= 90:
        speed = 2
    elif quality >= 70:
        speed = 4
    else:
        speed = 6

    if quality >= 95:
        subsampling = "4:4:4"
    elif quality >= 80:
        subsampling = "4:2:2"
    else:
        subsampling = "4:2:0"
    return {"quality": quality, "speed": speed, "subsampling": subsampling}


def get_tiff_params(quality: int | None, params: EncodeParams) -> dict[str, Any]:
    """TIFF 无损使用 LZW，有损使用 JPEG 压缩"""
    if params.lossless or quality is None:
        return {"compression": "tiff_lzw"}
    return {"compression": "jpeg", "quality": quality}


def get_save_parameters(
    params: EncodeParams, source_info: dict[str, Any] | None = None
) -> dict[str, Any]:
    """获取保存参数

    Args:
        params: 编码参数
        source_info: 源图片的 info 字典，用于保留元数据

    Returns:
        dict: 传给 Image.save 的参数，包含 format
    """
    source_info = source_info or {}
    quality = params.quality
    save_params: dict[str, Any] = {"format": params.target_format.pillow_format}

    match params.target_format:
        case ImageFormat.JPEG:
            save_params.update(get_jpeg_params(quality or 80, params))
            save_params.update(_metadata_params(source_info, params))
        case ImageFormat.PNG:
            save_params.update(get_png_params(quality, params))
            save_params.update(_metadata_params(source_info, params))
        case ImageFormat.WEBP:
            save_params.update(get_webp_params(quality, params))
            save_params.update(_metadata_params(source_info, params))
        case ImageFormat.AVIF:
            save_params.update(get_avif_params(quality, params))
            save_params.update(_metadata_params(source_info, params))
        case ImageFormat.TIFF:
            save_params.update(get_tiff_params(quality, params))
            save_params.update(_metadata_params(source_info, params, with_exif=False))
        case ImageFormat.GIF:
            save_params["optimize"] = True
        case ImageFormat.SVG:
            raise ValueError("SVG 不能由位图编码器生成")

    return save_params
