"""格式处理器模块。

按扩展名解析图片格式，并为目标编码器准备合适的色彩模式。
"""

from pathlib import Path

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import UnsupportedFormatError
from ..models.constants import ImageFormat, get_format_for_extension
from ..utils.file_helpers import stat_path
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter


logger = get_logger()

JPEG_BACKGROUND = (255, 255, 255)


def resolve_format(path: str | Path) -> ImageFormat:
    """仅根据扩展名（大小写不敏感）确定格式，不检查文件内容

    Raises:
        UnsupportedFormatError: 没有扩展名或扩展名无法识别
    """
    path = Path(path)
    extension = path.suffix.lstrip(".")
    if not extension:
        raise UnsupportedFormatError("文件没有扩展名", path)

    image_format = get_format_for_extension(extension)
    if image_format is None:
        raise UnsupportedFormatError(
            MessageFormatter.unsupported_format(extension.lower()), path
        )
    return image_format


class SourceImage(BaseModel):
    """一次操作期间只读的源文件"""

    model_config = ConfigDict(frozen=True)

    path: Path
    format: ImageFormat
    original_size: int = Field(ge=0, description="文件字节数")

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceImage":
        """解析格式并读取大小

        Raises:
            UnsupportedFormatError: 格式不支持
            StorageError: 无法读取文件元数据
        """
        path = Path(path)
        image_format = resolve_format(path)
        return cls(path=path, format=image_format, original_size=stat_path(path))


def prepare_for_jpeg(img: Image.Image) -> Image.Image:
    """为JPEG格式准备图片：透明像素合成到白色背景，其余模式转换为RGB"""
    if img.mode in ("RGB", "L"):
        return img

    if img.mode == "P":
        # 调色板模式：有透明色时走 alpha 合成
        if "transparency" not in img.info:
            return img.convert("RGB")
        img = img.convert("RGBA")

    if img.mode in ("RGBA", "LA", "PA"):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, JPEG_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    # CMYK、I;16 等其他模式
    return img.convert("RGB")


def prepare_for_webp(img: Image.Image, lossless: bool) -> Image.Image:
    """为WebP格式准备图片

    有损模式统一使用 RGBA 像素；无损模式仅在存在透明数据时使用 RGBA。
    """
    if not lossless:
        return img if img.mode == "RGBA" else img.convert("RGBA")

    if img.mode in ("RGB", "RGBA"):
        return img
    return img.convert("RGBA" if img.has_transparency_data else "RGB")


def prepare_for_png(img: Image.Image) -> Image.Image:
    """为PNG无损编码准备图片：PNG 可直接保存的模式保持不变"""
    if img.mode in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"):
        return img
    logger.debug(f"PNG 不支持 {img.mode} 模式，转换为 RGBA")
    return img.convert("RGBA")
