"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass

from .models.constants import DEFAULT_CONCURRENCY


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 并发设置
    CONCURRENCY: int = DEFAULT_CONCURRENCY
    FORCE_EXECUTOR_TYPE: str | None = None

    # 执行器选择阈值：平均文件大小或任务数超过阈值时使用进程池
    PROCESS_POOL_AVG_SIZE_MB: float = 5.0
    PROCESS_POOL_TASK_COUNT: int = 20


@dataclass(frozen=True)
class BackendDefaults:
    """专用编码器配置"""

    ENABLE_SPECIALIZED: bool = True
    MOZJPEG_PATH: str | None = None
    GIFSICLE_PATH: str | None = None

    # 按顺序查找的可执行文件名
    MOZJPEG_NAMES: tuple[str, ...] = ("mozjpeg", "mozcjpeg", "cjpeg")
    # 常见的 mozjpeg 安装位置，系统 PATH 中的 cjpeg 可能来自 libjpeg-turbo
    MOZJPEG_SEARCH_PATHS: tuple[str, ...] = (
        "/opt/mozjpeg/bin/cjpeg",
        "/usr/local/opt/mozjpeg/bin/cjpeg",
        "/opt/homebrew/opt/mozjpeg/bin/cjpeg",
    )
    GIFSICLE_NAMES: tuple[str, ...] = ("gifsicle",)


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_img_compressor.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.processing = ProcessingDefaults()
        self.backends = BackendDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 处理配置
        if concurrency := os.getenv("IMGC_CONCURRENCY"):
            object.__setattr__(self.processing, "CONCURRENCY", int(concurrency))

        if executor := os.getenv("IMGC_EXECUTOR"):
            object.__setattr__(
                self.processing, "FORCE_EXECUTOR_TYPE", executor.lower()
            )

        # 编码器配置
        if mozjpeg_path := os.getenv("IMGC_MOZJPEG_PATH"):
            object.__setattr__(self.backends, "MOZJPEG_PATH", mozjpeg_path)

        if gifsicle_path := os.getenv("IMGC_GIFSICLE_PATH"):
            object.__setattr__(self.backends, "GIFSICLE_PATH", gifsicle_path)

        if disable_specialized := os.getenv("IMGC_DISABLE_SPECIALIZED"):
            object.__setattr__(
                self.backends, "ENABLE_SPECIALIZED", not _env_flag(disable_specialized)
            )

        # 日志配置
        if log_level := os.getenv("IMGC_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("IMGC_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging, "ENABLE_FILE_LOGGING", _env_flag(enable_file_log)
            )

    def get_executor_type(self, task_count: int, avg_size_bytes: float) -> str:
        """根据任务数量和平均文件大小选择执行器类型"""
        if self.processing.FORCE_EXECUTOR_TYPE in {"thread", "process"}:
            return self.processing.FORCE_EXECUTOR_TYPE
        if (
            avg_size_bytes > self.processing.PROCESS_POOL_AVG_SIZE_MB * 1024 * 1024
            or task_count > self.processing.PROCESS_POOL_TASK_COUNT
        ):
            return "process"
        return "thread"


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
