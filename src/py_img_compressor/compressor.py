"""图像压缩器接口。

对外的单文件与批量压缩接口：单文件调用直接抛出首个错误，
批量调用将每个文件的错误记录为失败结果。
"""

from pathlib import Path
from typing import Any

from .config import get_config
from .core.backends import BackendSet, detect_backends
from .core.compression_engine import compress_file
from .core.options import resolve_options
from .engine.batch import BatchRunner
from .engine.config import ConfigBuilder
from .exceptions import InvalidOptionsError
from .models import CompressionOptions, CompressionStats, EncodeResult
from .utils.file_helpers import InputSpec
from .utils.logging_helpers import get_logger


logger = get_logger()


class ImageCompressor:
    """图像压缩器。

    可用编码器在构造时探测一次，之后所有调用共享同一份只读的编码器集合。
    """

    def __init__(
        self,
        concurrency: int | None = None,
        force_executor_type: str | None = None,
        backends: BackendSet | None = None,
    ):
        """初始化压缩器。

        Args:
            concurrency: 批量处理时的默认并发数，None 使用全局配置
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
            backends: 可用编码器集合，None 时自动探测
        """
        if concurrency is not None and concurrency < 1:
            raise InvalidOptionsError(f"并发数必须大于等于 1，当前值: {concurrency}")

        if force_executor_type is not None and force_executor_type not in {
            "thread",
            "process",
        }:
            raise InvalidOptionsError(
                "force_executor_type 必须是 'thread', 'process' 或 None"
            )

        self.backends = backends or detect_backends(get_config())
        self.config_builder = ConfigBuilder()
        self.batch_runner = BatchRunner(
            concurrency=concurrency,
            force_executor_type=force_executor_type,
            backends=self.backends,
        )

        logger.debug(f"初始化图像压缩器，编码器: {self.backends.describe()}")

    def _build_options(
        self, options: CompressionOptions | None, option_kwargs: dict[str, Any]
    ) -> CompressionOptions:
        if options is not None and option_kwargs:
            raise InvalidOptionsError("options 与关键字参数不能同时提供")
        return options or self.config_builder.build(**option_kwargs)

    def compress_one(
        self,
        source_path: str | Path,
        output_dir: str | Path,
        options: CompressionOptions | None = None,
        **option_kwargs: Any,
    ) -> CompressionStats:
        """压缩单个图像文件。

        Args:
            source_path: 输入文件路径
            output_dir: 输出目录
            options: 压缩选项
            **option_kwargs: 未提供 options 时用于构建选项的参数

        Returns:
            CompressionStats: 压缩统计

        Raises:
            CompressionError: 选项无效、格式组合不受支持或编码失败
            FileNotFoundError: 输入文件不存在

        Examples:
            >>> compressor = ImageCompressor()
            >>> stats = compressor.compress_one("photo.jpg", "out", format="webp", compression_level="medium")
            >>> print(f"节省: {stats.savings_percent:.2f}%")
        """
        compression_options = self._build_options(options, option_kwargs)
        effective = resolve_options(compression_options)
        return compress_file(Path(source_path), Path(output_dir), effective, self.backends)

    def compress_many(
        self,
        input_spec: InputSpec,
        output_dir: str | Path,
        options: CompressionOptions | None = None,
        concurrency: int | None = None,
        **option_kwargs: Any,
    ) -> list[EncodeResult]:
        """批量压缩。

        Args:
            input_spec: 路径列表、目录（不递归）或通配符模式（递归）
            output_dir: 输出目录
            options: 压缩选项
            concurrency: 并发数，覆盖默认值
            **option_kwargs: 未提供 options 时用于构建选项的参数

        Returns:
            list[EncodeResult]: 每个输入文件恰好一个结果

        Raises:
            NoMatchingInputsError: 没有匹配的输入文件
            InvalidInputSpecError: 输入规格无效
        """
        try:
            compression_options = self._build_options(options, option_kwargs)
        except InvalidOptionsError as e:
            # 选项无法构建时每个文件都记录为失败，与选项解析失败一致
            return self.batch_runner.fail_all(input_spec, e, "选项构建")
        return self.batch_runner.run(
            input_spec, output_dir, compression_options, concurrency=concurrency
        )


# 便捷函数

_default_compressor: ImageCompressor | None = None


def get_default_compressor() -> ImageCompressor:
    """获取延迟创建的默认压缩器"""
    global _default_compressor
    if _default_compressor is None:
        _default_compressor = ImageCompressor()
    return _default_compressor


def compress_one(
    source_path: str | Path,
    output_dir: str | Path,
    options: CompressionOptions | None = None,
    **option_kwargs: Any,
) -> CompressionStats:
    """便捷的单文件压缩函数

    Examples:
        >>> stats = compress_one("photo.jpg", "out", convert_to="webp", preset="web-optimized")
    """
    return get_default_compressor().compress_one(
        source_path, output_dir, options, **option_kwargs
    )


def compress_many(
    input_spec: InputSpec,
    output_dir: str | Path,
    options: CompressionOptions | None = None,
    concurrency: int | None = None,
    **option_kwargs: Any,
) -> list[EncodeResult]:
    """便捷的批量压缩函数

    Examples:
        >>> results = compress_many("photos/*.png", "out", format="webp")
        >>> print(f"处理了 {len(results)} 个文件")
    """
    return get_default_compressor().compress_many(
        input_spec, output_dir, options, concurrency=concurrency, **option_kwargs
    )
