"""压缩引擎模块。

单文件压缩流水线：分发、编码、统计、可选预览。
process_task 位于模块顶层，可被进程池序列化调用。
"""

from pathlib import Path

from ..exceptions import ErrorHandler
from ..models.compression_config import EffectiveOptions, EncodeTask, build_destination_path
from ..models.compression_result import CompressionStats, EncodeResult
from ..models.constants import ImageFormat
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .backends import BackendSet
from .dispatcher import FormatDispatcher, execute_plan
from .preview import generate_comparison_preview
from .stats import compute_stats


logger = get_logger()


def compress_file(
    source_path: Path,
    output_dir: Path,
    options: EffectiveOptions,
    backends: BackendSet,
) -> CompressionStats:
    """压缩单个文件

    Args:
        source_path: 源文件路径
        output_dir: 输出目录，不存在时创建
        options: 解析后的有效选项
        backends: 可用编码器集合

    Returns:
        CompressionStats: 压缩统计

    Raises:
        FileNotFoundError: 源文件不存在
        UnsupportedConversionError / UnsupportedFormatForModeError: 格式组合不受支持
        EncodeBackendError: 编码失败
    """
    source_path = Path(source_path)
    output_dir = Path(output_dir)
    if not source_path.is_file():
        raise FileNotFoundError(MessageFormatter.file_not_found(source_path))

    plan = FormatDispatcher(backends).dispatch(source_path, options)

    output_dir.mkdir(parents=True, exist_ok=True)
    destination_path = build_destination_path(source_path, output_dir, options.format)

    input_bytes = source_path.stat().st_size
    backend_used = execute_plan(plan, source_path, destination_path, backends)
    output_bytes = destination_path.stat().st_size

    stats = compute_stats(
        input_bytes,
        output_bytes,
        source_file_name=source_path.name,
        source_path=source_path,
        output_path=destination_path,
        format_used=options.format.value,
        quality_used=plan.params.quality,
        backend_used=backend_used,
    )

    if options.generate_preview:
        preview_path = _try_generate_preview(source_path, destination_path, output_dir, options)
        if preview_path is not None:
            stats = stats.model_copy(update={"preview_path": preview_path})

    logger.info(f"{stats.get_summary()} [{backend_used}]")
    return stats


def _try_generate_preview(
    source_path: Path,
    destination_path: Path,
    output_dir: Path,
    options: EffectiveOptions,
) -> Path | None:
    """预览生成失败只记录警告，不影响压缩结果"""
    source_format = ImageFormat.from_path(source_path) or options.format
    try:
        return generate_comparison_preview(
            source_path.read_bytes(),
            destination_path.read_bytes(),
            output_dir,
            source_path.stem,
            options.format.mime_type,
            original_mime_type=source_format.mime_type,
        )
    except OSError as e:
        logger.warning(MessageFormatter.operation_failed("生成对比预览", source_path, e))
        return None


def process_task(task: EncodeTask, backends: BackendSet) -> EncodeResult:
    """执行单个任务，任何异常都转换为失败记录"""
    try:
        return compress_file(task.source_path, task.output_dir, task.options, backends)
    except Exception as e:
        return ErrorHandler.create_failure(e, task.source_path)
