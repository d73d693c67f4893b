"""压缩结果模型。

定义单文件统计、失败记录以及批量结果的数据结构。
"""

from pathlib import Path
from typing import Any, Literal, TypeAlias

from humanize import naturalsize
from pydantic import BaseModel, Field


class BaseResult(BaseModel):
    """结果基类，包含通用字段和方法"""

    success: bool = Field(description="是否成功")
    source_file_name: str = Field(description="源文件名")

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, binary=True)


class CompressionStats(BaseResult):
    """单个文件压缩成功后的统计信息"""

    success: Literal[True] = True

    input_bytes: int = Field(ge=0, description="原始文件大小（字节）")
    output_bytes: int = Field(ge=0, description="压缩后文件大小（字节）")
    savings_percent: float = Field(description="节省比例（百分比，可为负）")
    estimated_load_time_before: float = Field(description="压缩前估算加载时间（秒）")
    estimated_load_time_after: float = Field(description="压缩后估算加载时间（秒）")
    load_time_improvement: float = Field(description="加载时间改善（秒，可为负）")

    # 处理信息
    source_path: Path | None = Field(None, description="输入文件路径")
    output_path: Path | None = Field(None, description="输出文件路径")
    format_used: str | None = Field(None, description="输出格式")
    quality_used: int | None = Field(None, description="使用的质量值")
    backend_used: str | None = Field(None, description="实际使用的编码器")
    preview_path: Path | None = Field(None, description="对比预览文件路径")

    def get_size_saved(self) -> int:
        """节省的字节数，文件变大时为负"""
        return self.input_bytes - self.output_bytes

    def get_input_size_human(self) -> str:
        return self.format_size(self.input_bytes)

    def get_output_size_human(self) -> str:
        return self.format_size(self.output_bytes)

    def get_summary(self) -> str:
        """压缩结果摘要"""
        return (
            f"{self.source_file_name}: {self.get_input_size_human()} → "
            f"{self.get_output_size_human()} ({self.savings_percent:.2f}% 节省, "
            f"加载时间 {self.estimated_load_time_before:.2f}s → "
            f"{self.estimated_load_time_after:.2f}s)"
        )


class CompressionFailure(BaseResult):
    """单个文件处理失败的记录"""

    success: Literal[False] = False

    error: str = Field(description="错误描述")
    error_type: str = Field("CompressionError", description="错误类型")
    source_path: Path | None = Field(None, description="输入文件路径")

    def get_summary(self) -> str:
        return f"{self.source_file_name}: 失败 - {self.error}"


EncodeResult: TypeAlias = CompressionStats | CompressionFailure


class BatchResult(BaseModel):
    """批量处理结果汇总"""

    output_dir: Path | None = Field(None, description="输出目录")
    results: list[EncodeResult] = Field(description="所有文件的处理结果")

    def get_successful_items(self) -> list[CompressionStats]:
        return [r for r in self.results if isinstance(r, CompressionStats)]

    def get_failed_items(self) -> list[CompressionFailure]:
        return [r for r in self.results if isinstance(r, CompressionFailure)]

    def get_total_count(self) -> int:
        return len(self.results)

    def get_success_count(self) -> int:
        return len(self.get_successful_items())

    def get_failure_count(self) -> int:
        return len(self.get_failed_items())

    def get_success_rate(self) -> float:
        """成功率（百分比）"""
        total = self.get_total_count()
        if total == 0:
            return 0.0
        return (self.get_success_count() / total) * 100

    def get_total_input_bytes(self) -> int:
        return sum(r.input_bytes for r in self.get_successful_items())

    def get_total_output_bytes(self) -> int:
        return sum(r.output_bytes for r in self.get_successful_items())

    def get_total_size_saved(self) -> int:
        return self.get_total_input_bytes() - self.get_total_output_bytes()

    def get_overall_savings_percent(self) -> float:
        total_input = self.get_total_input_bytes()
        if total_input == 0:
            return 0.0
        return round(self.get_total_size_saved() / total_input * 100, 2)

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = self.get_total_count()
        successful = self.get_success_count()
        size_saved = BaseResult.format_size(self.get_total_size_saved())

        return (
            f"处理 {successful}/{total} 个文件 "
            f"(成功率 {self.get_success_rate():.1f}%), "
            f"总节省 {size_saved} ({self.get_overall_savings_percent():.2f}%)"
        )

    def to_dict(self) -> dict[str, Any]:
        """转换为可 JSON 序列化的字典"""
        return {
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "total_files": self.get_total_count(),
            "successful_files": self.get_success_count(),
            "failed_files": self.get_failure_count(),
            "success_rate": self.get_success_rate(),
            "total_size_saved": self.get_total_size_saved(),
            "summary": self.get_summary(),
            "results": [r.model_dump(mode="json") for r in self.results],
        }
