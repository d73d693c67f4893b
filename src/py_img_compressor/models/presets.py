"""质量预设表。

常见使用场景的预置质量和尺寸，进程内只读。
"""

from types import MappingProxyType
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from .compression_config import ResizeSpec
from .constants import FitMode


class Preset(BaseModel):
    """质量预设"""

    model_config = ConfigDict(frozen=True)

    name: str
    quality: int = Field(ge=1, le=100)
    resize: ResizeSpec | None = None
    description: str = ""


QUALITY_PRESETS: Final = MappingProxyType(
    {
        "thumbnail": Preset(
            name="thumbnail",
            quality=60,
            resize=ResizeSpec(width=300, height=300, fit=FitMode.INSIDE),
            description="缩略图，小尺寸优先",
        ),
        "web-optimized": Preset(
            name="web-optimized",
            quality=80,
            description="网页使用，平衡质量和文件大小",
        ),
        "high-quality": Preset(
            name="high-quality",
            quality=92,
            description="高质量，适度压缩",
        ),
        "print-quality": Preset(
            name="print-quality",
            quality=95,
            description="印刷用途，接近无损",
        ),
    }
)


def get_preset(name: str) -> Preset:
    """按名称获取预设

    Raises:
        InvalidPresetError: 预设不存在时
    """
    from ..exceptions import InvalidPresetError

    preset = QUALITY_PRESETS.get(name)
    if preset is None:
        available = ", ".join(sorted(QUALITY_PRESETS))
        raise InvalidPresetError(f"未知的质量预设: {name}。可用预设: {available}")
    return preset


def list_presets() -> list[dict[str, object]]:
    """以字典形式列出所有预设，便于展示"""
    return [
        {
            "name": preset.name,
            "quality": preset.quality,
            "resize": preset.resize.model_dump(mode="json") if preset.resize else None,
            "description": preset.description,
        }
        for preset in QUALITY_PRESETS.values()
    ]
