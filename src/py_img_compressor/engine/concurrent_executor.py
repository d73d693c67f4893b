"""并发执行器模块。

在固定大小的线程池或进程池中执行压缩任务，每个任务恰好产生一个结果。
"""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed

from ..config import get_config
from ..exceptions import ErrorHandler
from ..models.compression_config import EncodeTask
from ..models.compression_result import EncodeResult


logger = logging.getLogger(__name__)

TaskFunction = Callable[[EncodeTask], EncodeResult]


class ConcurrentExecutor:
    """通用并发执行器

    超出并发上限的任务在执行器内部排队，有空闲槽位时才开始；
    不提供取消，所有任务都会执行完毕。
    """

    def __init__(self, max_workers: int = 4, force_executor_type: str | None = None):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        self.max_workers = max_workers
        self.force_executor_type = force_executor_type

    def execute_tasks(
        self, tasks: Sequence[EncodeTask], task_function: TaskFunction
    ) -> list[EncodeResult]:
        """执行并发任务

        Args:
            tasks: 任务列表
            task_function: 任务函数，使用进程池时必须可序列化

        Returns:
            list[EncodeResult]: 按完成顺序排列的结果，数量与任务数相同
        """
        if not tasks:
            return []

        results: list[EncodeResult] = []
        executor_class = self._choose_executor(tasks)

        with executor_class(max_workers=self.max_workers) as executor:
            future_to_task = self._submit_tasks(executor, tasks, task_function, results)
            self._collect_results(future_to_task, results)

        return results

    def _submit_tasks(
        self,
        executor: Executor,
        tasks: Sequence[EncodeTask],
        task_function: TaskFunction,
        results: list[EncodeResult],
    ) -> dict[Future[EncodeResult], EncodeTask]:
        """提交任务到执行器"""
        future_to_task = {}

        for task in tasks:
            try:
                future = executor.submit(task_function, task)
                future_to_task[future] = task
            except Exception as e:
                results.append(ErrorHandler.create_failure(e, task.source_path, "任务提交"))

        return future_to_task

    def _collect_results(
        self,
        future_to_task: dict[Future[EncodeResult], EncodeTask],
        results: list[EncodeResult],
    ) -> None:
        """收集任务执行结果"""
        for future in as_completed(future_to_task):
            task = future_to_task[future]

            try:
                result = future.result()
            except Exception as e:
                results.append(
                    ErrorHandler.create_failure(e, task.source_path, "并发任务处理")
                )
                continue

            results.append(result)
            if result.success:
                logger.debug(f"处理成功: {task.source_path}")
            else:
                logger.debug(f"处理失败: {task.source_path} - {result.error}")

    def _choose_executor(self, tasks: Sequence[EncodeTask]) -> type[Executor]:
        """根据任务特征选择合适的执行器

        Returns:
            执行器类 (ThreadPoolExecutor 或 ProcessPoolExecutor)
        """
        if self.force_executor_type == "thread":
            return ThreadPoolExecutor
        if self.force_executor_type == "process":
            return ProcessPoolExecutor

        task_count = len(tasks)
        total_size = 0
        for task in tasks:
            try:
                total_size += task.source_path.stat().st_size
            except OSError:
                continue
        avg_size = total_size / task_count

        executor_type = get_config().get_executor_type(task_count, avg_size)
        logger.debug(
            f"使用{executor_type}执行器: 任务数={task_count}, "
            f"平均大小={avg_size / 1024 / 1024:.1f}MB"
        )
        return ProcessPoolExecutor if executor_type == "process" else ThreadPoolExecutor
