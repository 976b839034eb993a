"""压缩引擎模块。

单文件压缩流水线：解析格式 -> 解码 -> 缩放 -> 编码 -> EXIF 回写 -> 写出。
每次调用独占一个临时目录，无论成功与否都会删除。
"""

from collections.abc import Callable
from pathlib import Path

from PIL import Image

from ..config import get_config
from ..exceptions import StorageError, handle_codec_errors
from ..models.compression_config import CompressionConfig
from ..models.compression_result import CompressionStats
from ..models.constants import ImageFormat
from ..utils.cleanup_helpers import ScratchRegistry
from ..utils.file_helpers import copy_to_destination, read_bytes, write_bytes
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .encoders import get_encoder
from .exif import reattach_exif
from .formats import SourceImage
from .resize import apply_resize, plan_resize


logger = get_logger()

OUTPUT_EXTENSIONS = {
    ImageFormat.PNG: "png",
    ImageFormat.JPEG: "jpg",
    ImageFormat.WEBP: "webp",
}


@handle_codec_errors("图像解码")
def decode_image(path: Path) -> Image.Image:
    """解码整张图片到内存，文件句柄随即关闭"""
    with Image.open(path) as img:
        img.load()
    return img


@handle_codec_errors("图像缩放")
def _resize(img: Image.Image, target_size: tuple[int, int]) -> Image.Image:
    return apply_resize(img, target_size)


def _with_exif(original_path: Path, encoded: bytes) -> bytes:
    """把原图 EXIF 写回编码结果，失败时保留不带元数据的输出"""
    try:
        original = read_bytes(original_path)
    except StorageError as e:
        logger.warning(f"读取原图 EXIF 失败，输出不含元数据: {e}")
        return encoded

    outcome = reattach_exif(original, encoded)
    if not outcome.ok:
        logger.warning(f"EXIF 回写失败，输出不含元数据 [{original_path}]: {outcome.error}")
    return outcome.value_or(encoded)


def compress_file(
    original_path: str | Path,
    config: CompressionConfig,
    output_path: str | Path | None = None,
    maintain_aspect_ratio: bool = False,
    registry: ScratchRegistry | None = None,
    before_commit: Callable[[], None] | None = None,
) -> CompressionStats:
    """压缩单个文件

    Args:
        original_path: 源文件路径，格式由扩展名决定
        config: 压缩配置
        output_path: 输出文件路径，None 表示覆盖源文件
        maintain_aspect_ratio: 缩放时是否保持宽高比
        registry: 临时目录登记表，None 时使用默认根目录的新登记表
        before_commit: 写出目标文件前的检查，抛出异常即放弃写出

    Returns:
        CompressionStats: (原始大小, 压缩后大小)

    Raises:
        UnsupportedFormatError: 扩展名缺失或无法识别
        StorageError: 读写或创建目录失败
        EncodeError: 解码、缩放或编码失败
    """
    original_path = Path(original_path)
    destination = Path(output_path) if output_path is not None else original_path
    registry = registry or ScratchRegistry()
    processing = get_config().processing

    source = SourceImage.from_path(original_path)
    img = decode_image(source.path)

    target_size = plan_resize(img.size, config.resize_target, maintain_aspect_ratio)
    img = _resize(img, target_size)

    with registry.scratch_space(processing.COMPRESS_PREFIX) as scratch:
        encoded = get_encoder(source.format).encode(img, config)

        if source.format == ImageFormat.JPEG and config.preserve_exif:
            encoded = _with_exif(source.path, encoded)

        extension = OUTPUT_EXTENSIONS[source.format]
        temp_output = scratch / f"{source.path.stem}_compressed.{extension}"
        write_bytes(temp_output, encoded)
        if before_commit is not None:
            before_commit()
        compressed_size = copy_to_destination(temp_output, destination)

    logger.info(
        f"压缩完成 {original_path.name}: "
        f"{MessageFormatter.compression_summary(source.original_size, compressed_size)}"
    )
    return CompressionStats(source.original_size, compressed_size)
