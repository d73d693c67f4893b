"""Entry point for python -m py_img_compressor.

子命令：
    compress        压缩单个图像
    compress-batch  批量压缩目录、通配符模式或逗号分隔的文件列表

不带子命令时启动 MCP 服务器。
"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from . import __version__
from .compressor import ImageCompressor
from .exceptions import CompressionError
from .models import BatchResult, CompressionStats
from .utils.file_helpers import InputSpec, is_glob_pattern
from .utils.logging_helpers import configure_logging


def _add_option_arguments(parser: argparse.ArgumentParser) -> None:
    """单文件与批量命令共用的压缩选项"""
    parser.add_argument(
        "-c", "--convert-to", default="jpeg",
        help="目标格式 jpeg/png/webp/avif/tiff/gif/svg (默认: jpeg)",
    )
    parser.add_argument(
        "-t", "--compression-type", choices=["lossy", "lossless"], default="lossy",
        help="压缩模式 (默认: lossy)",
    )
    parser.add_argument(
        "-l", "--compression-level", choices=["high", "medium", "low"],
        help="压缩级别 high(90)/medium(70)/low(50)",
    )
    parser.add_argument("-q", "--quality", type=int, help="压缩质量 1-100，优先级最高")
    parser.add_argument("--preset", help="质量预设名称，如 thumbnail、web-optimized")
    parser.add_argument(
        "-p", "--generate-preview", action="store_true", help="生成 HTML 对比预览"
    )
    parser.add_argument("--keep-metadata", action="store_true", help="保留 EXIF/ICC 元数据")
    parser.add_argument(
        "--no-specialized", action="store_true", help="不使用 mozjpeg/gifsicle"
    )
    parser.add_argument("--verbose", action="store_true", help="输出调试日志")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-img-compressor",
        description="图像压缩与格式转换。不带子命令时启动 MCP 服务器。",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"py-img-compressor {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    single = subparsers.add_parser("compress", help="压缩单个图像")
    single.add_argument("input", help="输入图像路径")
    single.add_argument("output", help="输出目录")
    _add_option_arguments(single)

    batch = subparsers.add_parser("compress-batch", help="批量压缩图像")
    batch.add_argument("input", help="目录、通配符模式或逗号分隔的文件列表")
    batch.add_argument("output", help="输出目录")
    _add_option_arguments(batch)
    batch.add_argument("-y", "--concurrency", type=int, help="并发数 (默认: 5)")

    return parser


def _option_kwargs(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "convert_to": args.convert_to,
        "compression_type": args.compression_type,
        "compression_level": args.compression_level,
        "quality": args.quality,
        "preset": args.preset,
        "generate_preview": args.generate_preview,
        "strip_metadata": not args.keep_metadata,
        "use_specialized_encoder": not args.no_specialized,
    }


def _batch_input(value: str) -> InputSpec:
    """目录和通配符原样传递，其余按逗号拆分为文件列表"""
    if Path(value).is_dir() or is_glob_pattern(value):
        return value
    return [part.strip() for part in value.split(",") if part.strip()]


def _print_stats(stats: CompressionStats) -> None:
    print(f"已压缩 {stats.source_file_name}:")
    print(f"- 原始大小: {stats.get_input_size_human()}")
    print(f"- 压缩后大小: {stats.get_output_size_human()}")
    print(f"- 节省: {stats.savings_percent:.2f}%")
    print(f"- 原始估算加载时间: {stats.estimated_load_time_before:.2f} 秒")
    print(f"- 压缩后估算加载时间: {stats.estimated_load_time_after:.2f} 秒")
    print(f"- 加载时间改善: {stats.load_time_improvement:.2f} 秒")
    if stats.preview_path:
        print(f"- 对比预览: {stats.preview_path}")


def _run_compress(args: argparse.Namespace) -> int:
    try:
        stats = ImageCompressor().compress_one(
            args.input, args.output, **_option_kwargs(args)
        )
    except (CompressionError, FileNotFoundError) as e:
        print(f"压缩失败: {e}", file=sys.stderr)
        return 1

    _print_stats(stats)
    return 0


def _run_batch(args: argparse.Namespace) -> int:
    try:
        results = ImageCompressor().compress_many(
            _batch_input(args.input),
            args.output,
            concurrency=args.concurrency,
            **_option_kwargs(args),
        )
    except CompressionError as e:
        print(f"批量压缩失败: {e}", file=sys.stderr)
        return 1

    for result in results:
        if isinstance(result, CompressionStats):
            _print_stats(result)
        else:
            print(result.get_summary(), file=sys.stderr)

    batch = BatchResult(results=results)
    print(batch.get_summary())
    return 0 if batch.get_failure_count() == 0 else 1


def main(argv: Sequence[str] | None = None) -> int:
    """主入口函数"""
    args = build_parser().parse_args(argv)

    match args.command:
        case "compress":
            configure_logging("DEBUG" if args.verbose else None)
            return _run_compress(args)
        case "compress-batch":
            configure_logging("DEBUG" if args.verbose else None)
            return _run_batch(args)
        case _:
            # 启动 MCP 服务器
            from .mcp_server import main as server_main

            server_main()
            return 0


if __name__ == "__main__":
    sys.exit(main())
