"""图像压缩处理引擎模块。

包含批量处理、并发执行和选项构建等处理逻辑。
"""

from .batch import BatchRunner
from .concurrent_executor import ConcurrentExecutor
from .config import ConfigBuilder, build_options


__all__ = [
    "BatchRunner",
    "ConcurrentExecutor",
    "ConfigBuilder",
    "build_options",
]
