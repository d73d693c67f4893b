"""图像压缩异常处理模块。

定义统一的异常类和错误处理机制，包含编码器异常转换装饰器。
"""

from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.compression_result import CompressionFailure
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


class CompressionError(Exception):
    """压缩相关错误基类"""

    def __init__(self, message: str, input_path: Path | None = None):
        super().__init__(message)
        self.message = message
        self.input_path = input_path


class InvalidOptionsError(CompressionError):
    """选项无效（预设/级别名称错误、缺少必填字段等）"""


class InvalidPresetError(InvalidOptionsError):
    """未知的质量预设"""


class InvalidCompressionLevelError(InvalidOptionsError):
    """未知的压缩级别"""


class InvalidInputSpecError(InvalidOptionsError):
    """输入既不是路径列表，也不是目录或通配符模式"""


class UnsupportedFormatError(CompressionError):
    """不支持的格式错误"""


class UnsupportedConversionError(UnsupportedFormatError):
    """不支持的格式转换，例如 SVG 转位图"""


class UnsupportedFormatForModeError(UnsupportedFormatError):
    """目标格式不支持当前压缩模式，例如无损 JPEG"""


class EncodeBackendError(CompressionError):
    """编码器执行失败（文件读写或图像变换错误）"""

    def __init__(
        self,
        message: str,
        input_path: Path | None = None,
        backend: str | None = None,
    ):
        super().__init__(message, input_path)
        self.backend = backend


class NoMatchingInputsError(CompressionError):
    """批量输入展开后没有任何文件"""


def handle_backend_errors(backend_name: str):
    """编码器异常转换装饰器

    将 Pillow、文件系统及参数错误统一转换为 EncodeBackendError。
    被装饰函数的第一个位置参数（self 之后）应为源文件路径。

    Args:
        backend_name: 编码器名称，用于日志和异常信息
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(self, source_path: Path, *args, **kwargs) -> T:
            try:
                return func(self, source_path, *args, **kwargs)
            except EncodeBackendError:
                raise
            except UnidentifiedImageError as e:
                logger.debug(f"{backend_name} - 无法识别图像格式: {e}")
                raise EncodeBackendError(
                    f"无法识别图像格式: {e}", source_path, backend_name
                ) from e
            except DecompressionBombError as e:
                logger.debug(f"{backend_name} - 图像过大: {e}")
                raise EncodeBackendError(
                    f"图像文件过大，可能存在安全风险: {e}", source_path, backend_name
                ) from e
            except OSError as e:
                logger.debug(f"{backend_name} - 文件操作失败: {e}")
                raise EncodeBackendError(
                    f"文件操作失败: {e}", source_path, backend_name
                ) from e
            except (ValueError, TypeError, KeyError) as e:
                logger.debug(f"{backend_name} - 参数错误: {e}")
                raise EncodeBackendError(
                    f"编码参数错误: {e}", source_path, backend_name
                ) from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    将异常转换为标准化的失败记录并记录日志。
    """

    @staticmethod
    def _log_error(
        operation: str, path: Path, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录"""
        log_msg = MessageFormatter.format_error(operation, path, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def _create_failure(source_path: Path, error: Exception) -> CompressionFailure:
        message = error.message if isinstance(error, CompressionError) else str(error)
        return CompressionFailure(
            source_file_name=source_path.name,
            source_path=source_path,
            error=message or type(error).__name__,
            error_type=type(error).__name__,
        )

    @staticmethod
    def create_failure(
        error: Exception, source_path: Path, operation: str = "图像压缩"
    ) -> CompressionFailure:
        """按错误类型选择日志级别并创建失败记录"""
        match error:
            case InvalidOptionsError() | UnsupportedFormatError():
                level = "warning"
            case FileNotFoundError():
                level = "warning"
            case EncodeBackendError() as ebe:
                level = "error"
                operation = f"{operation} - {ebe.backend or '编码器'}"
            case PermissionError():
                level = "error"
                operation = f"{operation} - 权限错误"
            case OSError():
                level = "error"
                operation = f"{operation} - 系统错误"
            case _:
                level = "error"

        ErrorHandler._log_error(operation, source_path, error, level)
        return ErrorHandler._create_failure(source_path, error)
