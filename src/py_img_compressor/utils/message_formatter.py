"""消息格式化工具模块。

提供统一的错误消息、结果消息格式化功能。
"""

from pathlib import Path


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def directory_not_found(directory: str | Path) -> str:
        """目录不存在错误消息"""
        return f"目录不存在: {directory}"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def backend_fallback(backend: str, fallback: str, reason: object) -> str:
        """编码器回退消息"""
        return f"{backend} 不可用或执行失败，回退到 {fallback}: {reason}"

    @staticmethod
    def format_error(operation: str, path: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{path}]: {error}"

    @staticmethod
    def batch_finished(total: int, failed: int) -> str:
        return f"批量处理完成: 共 {total} 个文件，失败 {failed} 个"
