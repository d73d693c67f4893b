"""核心模块包。

选项解析、格式分发、编码器、统计计算和单文件压缩流水线。
"""

from .backends import (
    BackendSet,
    EncodeBackend,
    PrimaryTranscoder,
    SpecializedGIFEncoder,
    SpecializedJPEGEncoder,
    VectorOptimizer,
    detect_backends,
)
from .compression_engine import compress_file, process_task
from .dispatcher import DispatchPlan, EncodeRoute, FormatDispatcher, execute_plan
from .options import level_to_quality, resolve_options
from .preview import generate_comparison_preview
from .stats import calculate_savings_percent, compute_stats, estimate_load_time


__all__ = [
    "BackendSet",
    "DispatchPlan",
    "EncodeBackend",
    "EncodeRoute",
    "FormatDispatcher",
    "PrimaryTranscoder",
    "SpecializedGIFEncoder",
    "SpecializedJPEGEncoder",
    "VectorOptimizer",
    "calculate_savings_percent",
    "compress_file",
    "compute_stats",
    "detect_backends",
    "estimate_load_time",
    "execute_plan",
    "generate_comparison_preview",
    "level_to_quality",
    "process_task",
    "resolve_options",
]
