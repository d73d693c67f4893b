"""文件工具模块。

将批量输入（路径列表、目录、通配符模式）展开为具体的文件列表。
"""

import glob
from collections.abc import Sequence
from pathlib import Path

from ..models.constants import is_supported_image
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()

InputSpec = str | Path | Sequence[str | Path]

_GLOB_CHARS = ("*", "?", "[")


def is_glob_pattern(value: str) -> bool:
    """判断字符串是否为通配符模式"""
    return any(char in value for char in _GLOB_CHARS)


def find_image_files(directory: str | Path) -> list[Path]:
    """列出目录中受支持的图像文件（不递归）

    Args:
        directory: 搜索目录

    Returns:
        list[Path]: 按文件名排序的图像文件
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(MessageFormatter.directory_not_found(directory))
        return []

    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and is_supported_image(path)
    )


def expand_glob_pattern(pattern: str) -> list[Path]:
    """递归展开通配符模式，只保留受支持的图像文件"""
    return sorted(
        Path(match)
        for match in glob.glob(pattern, recursive=True)
        if Path(match).is_file() and is_supported_image(match)
    )


def resolve_input_files(input_spec: InputSpec) -> list[Path]:
    """将输入规格展开为文件列表

    - 路径列表：按原顺序返回，不做过滤
    - 目录：列出直接子文件，过滤不支持的扩展名
    - 通配符模式：递归展开，过滤不支持的扩展名

    已存在的目录优先于通配符判断，目录名可以包含 [ 等字符。

    Raises:
        InvalidInputSpecError: 输入既不是列表、目录也不是通配符模式
    """
    from ..exceptions import InvalidInputSpecError

    match input_spec:
        case str() | Path() as spec if Path(spec).is_dir():
            return find_image_files(spec)
        case str() | Path() as spec if is_glob_pattern(str(spec)):
            files = expand_glob_pattern(str(spec))
            logger.debug(f"通配符 {spec} 匹配到 {len(files)} 个文件")
            return files
        case str() | Path() as spec:
            raise InvalidInputSpecError(
                f"输入路径既不是目录也不是通配符模式: {spec}", Path(spec)
            )
        case list() | tuple() as paths:
            resolved = []
            for item in paths:
                if not isinstance(item, str | Path):
                    raise InvalidInputSpecError(f"输入列表包含无效的路径: {item!r}")
                resolved.append(Path(item))
            return resolved
        case _:
            raise InvalidInputSpecError(
                f"无效的输入规格: {input_spec!r}，必须是路径列表、目录或通配符模式"
            )
