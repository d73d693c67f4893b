"""图像压缩 MCP 服务器。

提供单文件压缩、批量压缩和预设查询三个工具。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .compressor import get_default_compressor
from .engine.config import ConfigBuilder
from .exceptions import (
    CompressionError,
    EncodeBackendError,
    InvalidOptionsError,
    NoMatchingInputsError,
    UnsupportedFormatError,
)
from .models import BatchResult, CompressionOptions
from .models import list_presets as list_quality_presets
from .utils.logging_helpers import configure_logging, get_logger
from .utils.message_formatter import MessageFormatter


# MCP 服务器响应类型定义
MCPCompressionResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建统一格式的错误响应，所有工具的失败返回都经过这里。

        Args:
            message: 错误消息
            error_type: validation / file / processing / general
            details: 附加信息，为空时不输出该字段
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str, field: str | None = None) -> dict[str, Any]:
        """参数校验失败的响应。

        Args:
            message: 错误消息
            field: 出错的参数名

        Returns:
            dict: error_type 为 validation 的错误响应
        """
        details = {"field": field} if field else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="validation",
            details=details,
        )

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> dict[str, Any]:
        """输入文件缺失或不匹配时的响应。

        Args:
            message: 错误消息
            file_path: 出错的输入路径或模式

        Returns:
            dict: error_type 为 file 的错误响应
        """
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="file",
            details=details,
        )

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> dict[str, Any]:
        """编码或其他处理阶段失败的响应。

        Args:
            message: 错误消息
            operation: 失败的编码器或操作名称

        Returns:
            dict: error_type 为 processing 的错误响应
        """
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="processing",
            details=details,
        )

    @staticmethod
    def from_exception(error: Exception, target: str) -> dict[str, Any]:
        """按异常类型选择响应类别

        Args:
            error: 捕获的异常
            target: 本次调用的输入路径或模式
        """
        match error:
            case InvalidOptionsError() | UnsupportedFormatError():
                return MCPResponseBuilder.validation_error(error.message)
            case NoMatchingInputsError() | FileNotFoundError():
                return MCPResponseBuilder.file_error(str(error), target)
            case EncodeBackendError():
                return MCPResponseBuilder.processing_error(error.message, error.backend)
            case CompressionError():
                return MCPResponseBuilder.processing_error(error.message)
            case _:
                return MCPResponseBuilder.processing_error(
                    MessageFormatter.operation_failed("图像压缩", target, error)
                )


configure_logging()
logger = get_logger()

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("图像压缩服务")

config_builder = ConfigBuilder()


def _build_options(
    format: str,
    compression_mode: str | None,
    quality: int | None,
    compression_level: str | None,
    preset: str | None,
    width: int | None,
    height: int | None,
    fit: str | None,
    crop: dict[str, int] | None,
    strip_metadata: bool,
    progressive: bool,
    use_specialized_encoder: bool,
    generate_preview: bool,
) -> CompressionOptions:
    resize = None
    if width is not None or height is not None:
        resize = {"width": width, "height": height}
        if fit:
            resize["fit"] = fit

    return config_builder.build(
        format=format,
        compression_mode=compression_mode,
        quality=quality,
        compression_level=compression_level,
        preset_name=preset,
        resize=resize,
        crop=crop,
        strip_metadata=strip_metadata,
        progressive=progressive,
        use_specialized_encoder=use_specialized_encoder,
        generate_preview=generate_preview,
    )


# ============================================================================
# 压缩工具
# ============================================================================


@mcp.tool()
def compress_image(
    input_path: str,
    output_dir: str,
    format: str,
    compression_mode: str | None = None,
    quality: int | None = None,
    compression_level: str | None = None,
    preset: str | None = None,
    width: int | None = None,
    height: int | None = None,
    fit: str | None = None,
    crop: dict[str, int] | None = None,
    strip_metadata: bool = True,
    progressive: bool = True,
    use_specialized_encoder: bool = True,
    generate_preview: bool = False,
) -> MCPCompressionResponse:
    """压缩单个图像文件

    Args:
        input_path: 输入图像路径
        output_dir: 输出目录，输出文件名由源文件名派生
        format: 目标格式 jpeg/png/webp/avif/tiff/gif/svg
        compression_mode: lossy（默认）或 lossless
        quality: 质量 1-100，优先级最高
        compression_level: 压缩级别 high(90)/medium(70)/low(50)
        preset: 质量预设名称，见 list_presets
        width: 目标宽度
        height: 目标高度
        fit: 适配方式 cover/contain/fill/inside/outside
        crop: 裁剪区域 {left, top, width, height}，四项齐全才生效
        strip_metadata: 是否移除元数据
        progressive: 是否渐进式编码
        use_specialized_encoder: 是否优先使用 mozjpeg/gifsicle
        generate_preview: 是否生成 HTML 对比预览

    Returns:
        dict: 压缩统计或错误信息
    """
    try:
        options = _build_options(
            format, compression_mode, quality, compression_level, preset,
            width, height, fit, crop,
            strip_metadata, progressive, use_specialized_encoder, generate_preview,
        )
        stats = get_default_compressor().compress_one(input_path, output_dir, options)
        return {
            "success": True,
            "result": stats.model_dump(mode="json"),
            "summary": stats.get_summary(),
        }
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("单文件压缩", input_path, e))
        return MCPResponseBuilder.from_exception(e, input_path)


@mcp.tool()
def compress_images(
    inputs: str | list[str],
    output_dir: str,
    format: str,
    compression_mode: str | None = None,
    quality: int | None = None,
    compression_level: str | None = None,
    preset: str | None = None,
    width: int | None = None,
    height: int | None = None,
    fit: str | None = None,
    crop: dict[str, int] | None = None,
    strip_metadata: bool = True,
    progressive: bool = True,
    use_specialized_encoder: bool = True,
    generate_preview: bool = False,
    concurrency: int | None = None,
) -> MCPCompressionResponse:
    """批量压缩图像

    Args:
        inputs: 文件路径列表、目录（不递归）或通配符模式（如 "photos/**/*.png"）
        output_dir: 输出目录
        format: 目标格式
        concurrency: 并发数，默认 5
        其余参数与 compress_image 相同

    Returns:
        dict: 批量结果汇总，每个文件一条结果
    """
    target = inputs if isinstance(inputs, str) else ", ".join(inputs)
    try:
        options = _build_options(
            format, compression_mode, quality, compression_level, preset,
            width, height, fit, crop,
            strip_metadata, progressive, use_specialized_encoder, generate_preview,
        )
        results = get_default_compressor().compress_many(
            inputs, output_dir, options, concurrency=concurrency
        )
        batch = BatchResult(output_dir=Path(output_dir), results=results)
        return {"success": batch.get_success_count() > 0, "result": batch.to_dict()}
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("批量压缩", target, e))
        return MCPResponseBuilder.from_exception(e, target)


@mcp.tool()
def list_presets() -> dict[str, Any]:
    """列出可用的质量预设"""
    return {"success": True, "presets": list_quality_presets()}


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    logger.info("启动图片压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
