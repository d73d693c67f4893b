"""统计计算测试。"""

import pytest

from py_img_compressor.core.stats import (
    calculate_savings_percent,
    compute_stats,
    estimate_load_time,
)
from py_img_compressor.models import BatchResult, CompressionFailure


class TestStatsCalculator:
    """统计计算测试"""

    def test_savings_percent(self):
        assert calculate_savings_percent(1000, 250) == 75.0
        assert calculate_savings_percent(3, 1) == 66.67

    def test_negative_savings_not_clamped(self):
        stats = compute_stats(1000, 1500)
        assert stats.savings_percent == -50.0
        assert stats.get_size_saved() == -500
        assert stats.load_time_improvement <= 0

    def test_zero_input(self):
        assert calculate_savings_percent(0, 100) == 0.0

    def test_load_time(self):
        # 5 Mbps 下 1 MiB 需要 1.6 秒
        assert estimate_load_time(1024 * 1024) == 1.6
        assert estimate_load_time(0) == 0.0

    def test_compute_stats_scenario(self):
        stats = compute_stats(1_000_000, 400_000, source_file_name="photo.jpg")
        assert stats.success
        assert stats.input_bytes == 1_000_000
        assert stats.savings_percent == 60.0
        assert stats.estimated_load_time_before == 1.53
        assert stats.estimated_load_time_after == 0.61
        assert stats.load_time_improvement == pytest.approx(0.92)
        assert "photo.jpg" in stats.get_summary()

    def test_deterministic(self):
        assert compute_stats(12345, 6789) == compute_stats(12345, 6789)


class TestBatchResult:
    """批量结果汇总测试"""

    def test_summary_counts(self):
        results = [
            compute_stats(1000, 500, source_file_name="a.png"),
            compute_stats(2000, 1000, source_file_name="b.png"),
            CompressionFailure(source_file_name="c.png", error="坏文件"),
        ]
        batch = BatchResult(results=results)

        assert batch.get_total_count() == 3
        assert batch.get_success_count() == 2
        assert batch.get_failure_count() == 1
        assert batch.get_total_size_saved() == 1500
        assert batch.get_overall_savings_percent() == 50.0

        data = batch.to_dict()
        assert data["failed_files"] == 1
        assert len(data["results"]) == 3

    def test_empty_batch(self):
        batch = BatchResult(results=[])
        assert batch.get_success_rate() == 0.0
        assert batch.get_overall_savings_percent() == 0.0
