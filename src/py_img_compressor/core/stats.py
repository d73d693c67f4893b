"""统计计算模块。

根据压缩前后的字节数计算节省比例和估算加载时间。
"""

from typing import Any

from ..models.compression_result import CompressionStats
from ..models.constants import NETWORK_SPEED_MBPS


def estimate_load_time(size_bytes: int) -> float:
    """估算加载时间（秒），保留两位小数"""
    megabits = size_bytes * 8 / (1024 * 1024)
    return round(megabits / NETWORK_SPEED_MBPS, 2)


def calculate_savings_percent(input_bytes: int, output_bytes: int) -> float:
    """节省比例（百分比），文件变大时为负数，不做截断"""
    if input_bytes == 0:
        return 0.0
    return round((input_bytes - output_bytes) / input_bytes * 100, 2)


def compute_stats(input_bytes: int, output_bytes: int, **details: Any) -> CompressionStats:
    """计算压缩统计信息

    Args:
        input_bytes: 原始字节数
        output_bytes: 压缩后字节数
        **details: 附加的处理信息（source_file_name、output_path 等）

    Returns:
        CompressionStats: 统计结果
    """
    load_time_before = estimate_load_time(input_bytes)
    load_time_after = estimate_load_time(output_bytes)
    details.setdefault("source_file_name", "")

    return CompressionStats(
        input_bytes=input_bytes,
        output_bytes=output_bytes,
        savings_percent=calculate_savings_percent(input_bytes, output_bytes),
        estimated_load_time_before=load_time_before,
        estimated_load_time_after=load_time_after,
        load_time_improvement=round(load_time_before - load_time_after, 2),
        **details,
    )
