"""批量处理器模块。

将输入规格展开为文件列表，每个文件作为一个独立任务并发执行。
单个文件的失败只记录为失败结果，不影响其他文件。
"""

from collections import Counter
from functools import partial
from pathlib import Path

from ..config import get_config
from ..core.backends import BackendSet, detect_backends
from ..core.compression_engine import process_task
from ..core.options import resolve_options
from ..exceptions import (
    CompressionError,
    ErrorHandler,
    InvalidOptionsError,
    NoMatchingInputsError,
)
from ..models.compression_config import CompressionOptions, EncodeTask
from ..models.compression_result import EncodeResult
from ..utils.file_helpers import InputSpec, resolve_input_files
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .concurrent_executor import ConcurrentExecutor


logger = get_logger()


class BatchRunner:
    """批量图像处理器

    并发数固定，超出的任务排队等待空闲槽位。
    """

    def __init__(
        self,
        concurrency: int | None = None,
        force_executor_type: str | None = None,
        backends: BackendSet | None = None,
    ):
        """初始化批量处理器

        Args:
            concurrency: 默认并发数，None 使用全局配置
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
            backends: 可用编码器集合，None 时自动探测
        """
        if concurrency is not None and concurrency < 1:
            raise InvalidOptionsError(f"并发数必须大于等于 1，当前值: {concurrency}")

        app_config = get_config()
        self.concurrency = (
            app_config.processing.CONCURRENCY if concurrency is None else concurrency
        )
        self.force_executor_type = (
            force_executor_type or app_config.processing.FORCE_EXECUTOR_TYPE
        )
        self.backends = backends or detect_backends(app_config)

    def run(
        self,
        input_spec: InputSpec,
        output_dir: str | Path,
        options: CompressionOptions,
        concurrency: int | None = None,
    ) -> list[EncodeResult]:
        """批量压缩

        Args:
            input_spec: 路径列表、目录或通配符模式
            output_dir: 输出目录
            options: 压缩选项，对所有文件统一解析一次
            concurrency: 本次调用的并发数，覆盖默认值

        Returns:
            list[EncodeResult]: 每个输入文件恰好一个结果，顺序不保证

        Raises:
            InvalidOptionsError: 并发数小于 1
            InvalidInputSpecError: 输入规格无效
            NoMatchingInputsError: 没有匹配的输入文件
        """
        max_workers = self.concurrency if concurrency is None else concurrency
        if max_workers < 1:
            raise InvalidOptionsError(f"并发数必须大于等于 1，当前值: {max_workers}")

        files = self._expand_inputs(input_spec)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        self._warn_name_collisions(files)

        try:
            effective = resolve_options(options)
        except CompressionError as e:
            # 选项无效时每个文件都记录为失败
            return self._fail_each(files, e, "选项解析")

        tasks = [
            EncodeTask(source_path=path, output_dir=output_dir, options=effective)
            for path in files
        ]
        logger.info(
            f"开始批量处理: {len(tasks)} 个文件 → {output_dir} (并发数 {max_workers})"
        )

        executor = ConcurrentExecutor(max_workers, self.force_executor_type)
        results = executor.execute_tasks(
            tasks, partial(process_task, backends=self.backends)
        )

        failed = sum(1 for r in results if not r.success)
        logger.info(MessageFormatter.batch_finished(len(results), failed))
        return results

    def fail_all(
        self, input_spec: InputSpec, error: CompressionError, operation: str
    ) -> list[EncodeResult]:
        """选项无法构建时，为每个输入文件记录同一个失败

        Raises:
            InvalidInputSpecError: 输入规格无效
            NoMatchingInputsError: 没有匹配的输入文件
        """
        return self._fail_each(self._expand_inputs(input_spec), error, operation)

    @staticmethod
    def _expand_inputs(input_spec: InputSpec) -> list[Path]:
        files = resolve_input_files(input_spec)
        if not files:
            raise NoMatchingInputsError(f"没有匹配的输入文件: {input_spec}")
        return files

    @staticmethod
    def _fail_each(
        files: list[Path], error: CompressionError, operation: str
    ) -> list[EncodeResult]:
        return [ErrorHandler.create_failure(error, path, operation) for path in files]

    def _warn_name_collisions(self, files: list[Path]) -> None:
        """多个源文件映射到同一输出文件名时，后写入的覆盖先写入的"""
        counts = Counter(path.stem for path in files)
        collisions = sorted(stem for stem, count in counts.items() if count > 1)
        if collisions:
            logger.warning(f"输出文件名冲突，后写入的文件将覆盖先写入的: {', '.join(collisions)}")
