#!/usr/bin/env python3
"""图像压缩演示脚本。

展示 py_img_compressor 的核心功能：
- 单文件压缩与格式转换
- 质量预设与压缩级别
- 批量目录处理与失败隔离
"""

import shutil
from pathlib import Path

from PIL import Image, ImageDraw

from py_img_compressor import BatchResult, ImageCompressor
from py_img_compressor.models import list_presets


def get_output_dir() -> Path:
    """获取输出目录 - 使用项目的 tmp 目录"""
    project_root = Path(__file__).parent.parent
    output_dir = project_root / "tmp" / "demo"
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    return output_dir


def create_sample_images(directory: Path) -> list[Path]:
    """生成几张演示用图片"""
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for index, color in enumerate(("skyblue", "orange", "seagreen")):
        img = Image.new("RGB", (800, 600), color=color)
        draw = ImageDraw.Draw(img)
        for i in range(40):
            x, y = (i * 37) % 800, (i * 23) % 600
            draw.ellipse([x, y, x + 60, y + 60], fill=(i * 6 % 256, 80, 200 - i * 4))
        path = directory / f"sample_{index}.png"
        img.save(path, "PNG")
        paths.append(path)
    (directory / "readme.txt").write_text("不支持的文件会被跳过", encoding="utf-8")
    return paths


def demo_single_file(compressor: ImageCompressor, source: Path, output_dir: Path) -> None:
    print("\n📁 单文件压缩")
    for level in ("high", "medium", "low"):
        stats = compressor.compress_one(
            source, output_dir / level, format="webp", compression_level=level
        )
        print(f"  {level:>6}: {stats.get_summary()}")

    stats = compressor.compress_one(
        source, output_dir / "lossless", format="png", compression_mode="lossless"
    )
    print(f"  无损PNG: {stats.get_summary()}")


def demo_presets(compressor: ImageCompressor, source: Path, output_dir: Path) -> None:
    print("\n🎯 质量预设")
    for preset in list_presets():
        stats = compressor.compress_one(
            source, output_dir / preset["name"], format="jpeg", preset=preset["name"]
        )
        print(f"  {preset['name']:<14} q={stats.quality_used}: {stats.get_summary()}")


def demo_batch(compressor: ImageCompressor, input_dir: Path, output_dir: Path) -> None:
    print("\n📂 批量处理")
    results = compressor.compress_many(
        input_dir, output_dir / "batch", format="avif", concurrency=2
    )
    batch = BatchResult(output_dir=output_dir / "batch", results=results)
    print(f"  {batch.get_summary()}")
    for item in batch.get_failed_items():
        print(f"  ❌ {item.get_summary()}")


def main() -> None:
    output_dir = get_output_dir()
    samples = create_sample_images(output_dir / "input")
    compressor = ImageCompressor()

    print(f"可用编码器: {compressor.backends.describe()}")
    demo_single_file(compressor, samples[0], output_dir)
    demo_presets(compressor, samples[1], output_dir)
    demo_batch(compressor, output_dir / "input", output_dir)
    print(f"\n✅ 演示完成，输出目录: {output_dir}")


if __name__ == "__main__":
    main()
