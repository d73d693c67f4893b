"""清理工具模块。

提供临时文件清理和资源管理功能。
"""

from pathlib import Path
from typing import Any

from .logging_helpers import get_logger


logger = get_logger()


class TempFileManager:
    """临时文件管理器

    作为上下文管理器使用时，退出时总是清理所有注册的临时文件。
    """

    def __init__(self):
        self.temp_files: set[Path] = set()

    def register_temp_file(self, file_path: Path) -> Path:
        """注册临时文件"""
        self.temp_files.add(file_path)
        return file_path

    def cleanup_temp_files(self) -> int:
        """清理所有注册的临时文件"""
        cleaned_count = 0
        for file_path in self.temp_files:
            try:
                if file_path.exists():
                    file_path.unlink()
                    cleaned_count += 1
                    logger.debug(f"已清理临时文件: {file_path}")
            except OSError as e:
                logger.warning(f"清理临时文件失败 {file_path}: {e}")

        self.temp_files.clear()
        return cleaned_count

    def __enter__(self) -> "TempFileManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        del exc_type, exc_val, exc_tb
        self.cleanup_temp_files()
