"""配置构建器模块。

统一的压缩选项构建逻辑，兼容常见的参数别名，集成参数验证功能。
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvalidOptionsError
from ..models.compression_config import CompressionOptions, CropSpec, ResizeSpec


# 别名 -> 字段名
OPTION_ALIASES: dict[str, str] = {
    "convert_to": "format",
    "compression_type": "compression_mode",
    "preset": "preset_name",
    "use_mozjpeg": "use_specialized_encoder",
}


class ConfigBuilder:
    """压缩选项构建器

    将调用方的关键字参数（包括别名和字典形式的尺寸/裁剪参数）
    转换为不可变的 CompressionOptions。
    """

    def build(self, **kwargs: Any) -> CompressionOptions:
        """构建压缩选项

        Args:
            **kwargs: 选项字段或其别名，值为 None 的参数视为未提供

        Returns:
            CompressionOptions: 构建的选项对象

        Raises:
            InvalidOptionsError: 参数验证失败
        """
        values = self._normalize(kwargs)
        if "format" not in values:
            raise InvalidOptionsError("缺少必填参数: format（或 convert_to）")

        try:
            if isinstance(values.get("resize"), dict):
                values["resize"] = ResizeSpec.model_validate(values["resize"])
            if isinstance(values.get("crop"), dict):
                values["crop"] = CropSpec.model_validate(values["crop"])
            return CompressionOptions.model_validate(values)
        except PydanticValidationError as e:
            raise InvalidOptionsError(self._format_validation_error(e)) from e

    def _normalize(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        """解析别名并丢弃值为 None 的参数"""
        values: dict[str, Any] = {}
        for key, value in kwargs.items():
            if value is None:
                continue
            field = OPTION_ALIASES.get(key, key)
            if field in values and values[field] != value:
                raise InvalidOptionsError(f"参数冲突: {key} 与 {field} 同时提供了不同的值")
            values[field] = value

        unknown = set(values) - set(CompressionOptions.model_fields)
        if unknown:
            raise InvalidOptionsError(f"未知参数: {', '.join(sorted(unknown))}")
        return values

    def _format_validation_error(self, error: PydanticValidationError) -> str:
        """格式化验证错误"""
        messages = []
        for err in error.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            msg = err["msg"]
            if field:
                messages.append(f"{field}: {msg}")
            else:
                messages.append(msg)
        return "; ".join(messages)


# 全局配置构建器实例
_default_builder = ConfigBuilder()


def build_options(**kwargs: Any) -> CompressionOptions:
    """便捷的选项构建函数

    使用全局配置构建器实例构建选项。
    """
    return _default_builder.build(**kwargs)
