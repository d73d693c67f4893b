"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

from .cleanup_helpers import TempFileManager
from .file_helpers import (
    expand_glob_pattern,
    find_image_files,
    is_glob_pattern,
    resolve_input_files,
)
from .logging_helpers import configure_logging, get_logger
from .message_formatter import MessageFormatter


__all__ = [
    "MessageFormatter",
    "TempFileManager",
    "configure_logging",
    "expand_glob_pattern",
    "find_image_files",
    "get_logger",
    "is_glob_pattern",
    "resolve_input_files",
]
