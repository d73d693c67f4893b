"""对比预览模块。

生成独立的 HTML 文件，内嵌原图和压缩图（base64），通过滑块对比。
"""

import base64
import html
from pathlib import Path
from string import Template

from humanize import naturalsize

from ..utils.logging_helpers import get_logger


logger = get_logger()

PREVIEW_DIR_NAME = "previews"

_PREVIEW_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang="zh-CN">
<head>
<meta charset="utf-8">
<title>$title</title>
<style>
body { font-family: sans-serif; margin: 2rem; background: #f5f5f5; }
.stats { margin-bottom: 1rem; }
.compare { position: relative; display: inline-block; max-width: 100%; }
.compare img { display: block; max-width: 100%; }
.compare .after { position: absolute; top: 0; left: 0; width: 100%; height: 100%;
  overflow: hidden; clip-path: inset(0 0 0 50%); }
.compare .after img { width: 100%; height: 100%; object-fit: contain; }
input[type=range] { width: 100%; margin-top: 1rem; }
</style>
</head>
<body>
<h1>$title</h1>
<div class="stats">原图 $original_size → 压缩后 $compressed_size</div>
<div class="compare">
  <img src="data:$original_mime;base64,$original_data" alt="原图">
  <div class="after" id="after">
    <img src="data:$mime_type;base64,$compressed_data" alt="压缩后">
  </div>
</div>
<input type="range" min="0" max="100" value="50"
  oninput="document.getElementById('after').style.clipPath='inset(0 0 0 '+this.value+'%)'">
</body>
</html>
"""
)


def generate_comparison_preview(
    original_bytes: bytes,
    compressed_bytes: bytes,
    output_dir: Path,
    base_name: str,
    mime_type: str,
    original_mime_type: str | None = None,
) -> Path:
    """生成对比预览文件

    Args:
        original_bytes: 原图内容
        compressed_bytes: 压缩后内容
        output_dir: 输出目录，预览写入其下的 previews/ 子目录
        base_name: 文件名（不含扩展名）
        mime_type: 压缩后图片的 MIME 类型
        original_mime_type: 原图的 MIME 类型，默认与压缩后相同

    Returns:
        Path: 预览文件路径
    """
    preview_dir = output_dir / PREVIEW_DIR_NAME
    preview_dir.mkdir(parents=True, exist_ok=True)
    preview_path = preview_dir / f"{base_name}-comparison.html"

    content = _PREVIEW_TEMPLATE.substitute(
        title=html.escape(f"{base_name} 压缩对比"),
        original_size=naturalsize(len(original_bytes), binary=True),
        compressed_size=naturalsize(len(compressed_bytes), binary=True),
        original_mime=original_mime_type or mime_type,
        original_data=base64.b64encode(original_bytes).decode("ascii"),
        mime_type=mime_type,
        compressed_data=base64.b64encode(compressed_bytes).decode("ascii"),
    )
    preview_path.write_text(content, encoding="utf-8")

    logger.debug(f"已生成对比预览: {preview_path}")
    return preview_path
