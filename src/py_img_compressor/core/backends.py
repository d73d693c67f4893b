"""编码器模块。

每种编码器负责一类格式的压缩输出，并报告自身是否可用：
- PrimaryTranscoder: 基于 Pillow 的基础转码器，总是可用
- SpecializedJPEGEncoder: mozjpeg 的 cjpeg，重新压缩 JPEG
- SpecializedGIFEncoder: gifsicle，保留动画的 GIF 优化
- VectorOptimizer: scour，SVG 精简

可用的编码器在启动时探测一次，组成 BackendSet 注入到分发器中。
"""

import importlib.util
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, ImageSequence

from ..config import AppConfig, get_config
from ..exceptions import EncodeBackendError, handle_backend_errors
from ..models.compression_config import EncodeParams
from ..models.constants import ImageFormat, QualityDefaults
from ..utils.logging_helpers import get_logger
from .formats import apply_geometry, get_save_parameters, prepare_for_format


logger = get_logger()


class EncodeBackend(ABC):
    """编码器基类"""

    name: str = "base"

    @abstractmethod
    def is_available(self) -> bool:
        """编码器当前是否可用（廉价检查，不访问网络）"""

    @abstractmethod
    def encode(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> None:
        """将源文件编码写入目标路径

        Raises:
            EncodeBackendError: 任何读写或变换失败
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class PrimaryTranscoder(EncodeBackend):
    """基于 Pillow 的基础转码器"""

    name = "pillow"

    def is_available(self) -> bool:
        return True

    @handle_backend_errors("Pillow 转码")
    def encode(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> None:
        with Image.open(source_path) as img:
            source_info = dict(img.info)
            animated = getattr(img, "is_animated", False)

            if (
                params.target_format == ImageFormat.GIF
                and animated
                and not params.first_frame_only
            ):
                self._save_animation(img, destination_path, params)
                return

            img.seek(0)
            frame = self._transform(img, params)
            save_params = get_save_parameters(params, source_info)
            frame.save(destination_path, **save_params)

        logger.debug(f"Pillow 已写入 {destination_path}")

    def _transform(self, img: Image.Image, params: EncodeParams) -> Image.Image:
        """EXIF 方向校正、几何变换和色彩模式准备"""
        frame = ImageOps.exif_transpose(img)
        frame = apply_geometry(frame, params)
        return prepare_for_format(frame, params)

    def _save_animation(
        self, img: Image.Image, destination_path: Path, params: EncodeParams
    ) -> None:
        """逐帧变换并保存动画 GIF"""
        frames = [
            apply_geometry(frame.copy(), params)
            for frame in ImageSequence.Iterator(img)
        ]
        frames[0].save(
            destination_path,
            format="GIF",
            save_all=True,
            append_images=frames[1:],
            loop=img.info.get("loop", 0),
            duration=img.info.get("duration", 100),
            optimize=True,
        )


def _find_executable(names: tuple[str, ...], explicit_path: str | None) -> str | None:
    """查找可执行文件，优先使用显式配置的路径"""
    if explicit_path:
        return explicit_path if Path(explicit_path).exists() else shutil.which(explicit_path)
    for name in names:
        if found := shutil.which(name):
            return found
    return None


def _is_mozjpeg(executable: str) -> bool:
    """通过 -version 输出区分 mozjpeg 与 libjpeg-turbo 的 cjpeg"""
    try:
        result = subprocess.run(
            [executable, "-version"], capture_output=True, timeout=5, check=False
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    output = (result.stdout + result.stderr).decode("utf-8", errors="replace")
    return "mozjpeg" in output.lower()


def _find_mozjpeg(
    names: tuple[str, ...], search_paths: tuple[str, ...], explicit_path: str | None
) -> str | None:
    """查找 mozjpeg 的 cjpeg，显式配置的路径不做版本校验"""
    if explicit_path:
        return _find_executable((), explicit_path)

    candidates = [shutil.which(name) for name in names]
    candidates += [path for path in search_paths if Path(path).is_file()]
    for candidate in dict.fromkeys(c for c in candidates if c):
        if _is_mozjpeg(candidate):
            return candidate
        logger.debug(f"{candidate} 不是 mozjpeg，跳过")
    return None


def _run_tool(command: list[str], source_path: Path, backend: str) -> None:
    """运行外部工具，非零退出码转换为 EncodeBackendError"""
    logger.debug(f"执行: {' '.join(command)}")
    try:
        result = subprocess.run(command, capture_output=True, check=False)
    except OSError as e:
        raise EncodeBackendError(f"无法启动 {backend}: {e}", source_path, backend) from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise EncodeBackendError(
            f"{backend} 退出码 {result.returncode}: {stderr}", source_path, backend
        )


class SpecializedJPEGEncoder(EncodeBackend):
    """mozjpeg 编码器，对已有 JPEG 按目标质量重新压缩"""

    name = "mozjpeg"

    def __init__(self, executable: str | None):
        self.executable = executable

    def is_available(self) -> bool:
        return self.executable is not None

    def encode(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> None:
        if self.executable is None:
            raise EncodeBackendError("mozjpeg 不可用", source_path, self.name)

        quality = params.quality or QualityDefaults.DEFAULT_LOSSY
        command = [self.executable, "-quality", str(quality), "-optimize"]
        if params.progressive:
            command.append("-progressive")
        command += ["-outfile", str(destination_path), str(source_path)]

        _run_tool(command, source_path, self.name)
        if not destination_path.exists():
            raise EncodeBackendError("mozjpeg 未生成输出文件", source_path, self.name)


class SpecializedGIFEncoder(EncodeBackend):
    """gifsicle 编码器，保留动画帧"""

    name = "gifsicle"

    def __init__(self, executable: str | None):
        self.executable = executable

    def is_available(self) -> bool:
        return self.executable is not None

    @staticmethod
    def optimization_level(quality: int) -> int:
        """质量映射为 gifsicle 优化级别 1-3"""
        return max(1, min(3, round((100 - quality) / 33)))

    @staticmethod
    def palette_colors(quality: int) -> int:
        if quality > 80:
            return 256
        if quality > 60:
            return 128
        return 64

    def build_command(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> list[str]:
        quality = params.quality or QualityDefaults.LOSSLESS
        command = [
            self.executable or "gifsicle",
            f"-O{self.optimization_level(quality)}",
            "--colors",
            str(self.palette_colors(quality)),
        ]

        if params.crop is not None and params.crop.is_complete:
            crop = params.crop
            command += ["--crop", f"{crop.left},{crop.top}+{crop.width}x{crop.height}"]

        if params.resize is not None:
            width = params.resize.width or "_"
            height = params.resize.height or "_"
            option = "--resize-fit" if params.resize.fit.value == "inside" else "--resize"
            command += [option, f"{width}x{height}"]

        command += [str(source_path), "-o", str(destination_path)]
        return command

    def encode(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> None:
        if self.executable is None:
            raise EncodeBackendError("gifsicle 不可用", source_path, self.name)

        _run_tool(
            self.build_command(source_path, destination_path, params),
            source_path,
            self.name,
        )
        if not destination_path.exists():
            raise EncodeBackendError("gifsicle 未生成输出文件", source_path, self.name)


class VectorOptimizer(EncodeBackend):
    """基于 scour 的 SVG 精简"""

    name = "scour"

    def is_available(self) -> bool:
        return importlib.util.find_spec("scour") is not None

    @handle_backend_errors("SVG 精简")
    def encode(
        self, source_path: Path, destination_path: Path, params: EncodeParams
    ) -> None:
        from scour import scour

        options = scour.sanitizeOptions()
        options.digits = params.precision or QualityDefaults.VECTOR_PRECISION_LOSSY
        options.strip_comments = True
        options.remove_metadata = True
        options.strip_xml_prolog = True
        options.indent_type = "none"
        options.newlines = False

        content = source_path.read_text(encoding="utf-8")
        destination_path.write_text(scour.scourString(content, options), encoding="utf-8")


@dataclass(frozen=True)
class BackendSet:
    """启动时确定的可用编码器集合，不可用的可选编码器为 None"""

    primary: EncodeBackend
    jpeg: EncodeBackend | None = None
    gif: EncodeBackend | None = None
    vector: EncodeBackend | None = None

    def describe(self) -> dict[str, str | None]:
        return {
            "primary": self.primary.name,
            "jpeg": self.jpeg.name if self.jpeg else None,
            "gif": self.gif.name if self.gif else None,
            "vector": self.vector.name if self.vector else None,
        }


def _available(backend: EncodeBackend) -> EncodeBackend | None:
    if backend.is_available():
        return backend
    logger.debug(f"可选编码器 {backend.name} 不可用")
    return None


def detect_backends(config: AppConfig | None = None) -> BackendSet:
    """探测可用编码器，进程内只需调用一次"""
    config = config or get_config()
    backend_config = config.backends

    vector = _available(VectorOptimizer())
    if not backend_config.ENABLE_SPECIALIZED:
        logger.debug("已禁用专用编码器")
        return BackendSet(primary=PrimaryTranscoder(), vector=vector)

    backends = BackendSet(
        primary=PrimaryTranscoder(),
        jpeg=_available(
            SpecializedJPEGEncoder(
                _find_mozjpeg(
                    backend_config.MOZJPEG_NAMES,
                    backend_config.MOZJPEG_SEARCH_PATHS,
                    backend_config.MOZJPEG_PATH,
                )
            )
        ),
        gif=_available(
            SpecializedGIFEncoder(
                _find_executable(
                    backend_config.GIFSICLE_NAMES, backend_config.GIFSICLE_PATH
                )
            )
        ),
        vector=vector,
    )
    logger.debug(f"可用编码器: {backends.describe()}")
    return backends
