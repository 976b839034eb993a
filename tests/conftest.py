"""测试配置文件。

提供测试所需的fixtures和配置。
"""

import base64
import tempfile
from collections.abc import Callable
from pathlib import Path

import piexif
import pytest
from PIL import Image, ImageDraw

from ximage_compress.models.compression_config import CompressionConfig
from ximage_compress.utils.cleanup_helpers import ScratchRegistry


def _draw_shapes(img: Image.Image) -> Image.Image:
    draw = ImageDraw.Draw(img)
    for i in range(12):
        x, y = (i * 17) % img.width, (i * 11) % img.height
        fill = (i * 20 % 256, i * 45 % 256, i * 70 % 256)
        if img.mode == "RGBA":
            fill = (*fill, 255 - i * 15)
        draw.rectangle([x, y, x + 30, y + 20], fill=fill)
    return img


def _photo_like(size: tuple[int, int]) -> Image.Image:
    """带渐变的照片风格图片"""
    width, height = size
    img = Image.new("RGB", size)
    img.putdata(
        [
            ((x * 255) // width, (y * 255) // height, ((x + y) * 127) // (width + height))
            for y in range(height)
            for x in range(width)
        ]
    )
    return _draw_shapes(img)


@pytest.fixture
def temp_dir():
    """临时目录fixture"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sample_images(temp_dir: Path) -> dict[str, Path]:
    """现场生成的测试图片"""
    images_dir = temp_dir / "images"
    images_dir.mkdir()
    images = {}

    png_path = images_dir / "shapes.png"
    _draw_shapes(Image.new("RGB", (120, 80), "white")).save(png_path, "PNG")
    images["png"] = png_path

    rgba_path = images_dir / "transparent.png"
    rgba = Image.new("RGBA", (64, 64), (10, 200, 30, 0))
    _draw_shapes(rgba).save(rgba_path, "PNG")
    images["rgba"] = rgba_path

    wide_path = images_dir / "wide.png"
    _draw_shapes(Image.new("RGB", (100, 50), "white")).save(wide_path, "PNG")
    images["wide"] = wide_path

    jpeg_path = images_dir / "photo.jpg"
    _photo_like((160, 120)).save(jpeg_path, "JPEG", quality=95)
    images["jpeg"] = jpeg_path

    exif_path = images_dir / "camera.jpg"
    exif_bytes = piexif.dump(
        {
            "0th": {
                piexif.ImageIFD.Make: b"Ximage",
                piexif.ImageIFD.Model: b"Test Camera",
            },
            "Exif": {piexif.ExifIFD.DateTimeOriginal: b"2024:01:02 03:04:05"},
            "GPS": {},
            "1st": {},
            "thumbnail": None,
        }
    )
    _photo_like((160, 120)).save(exif_path, "JPEG", quality=95, exif=exif_bytes)
    images["exif_jpeg"] = exif_path

    webp_path = images_dir / "alpha.webp"
    rgba.save(webp_path, "WEBP", lossless=True, exact=True)
    images["webp"] = webp_path

    return images


@pytest.fixture
def registry(temp_dir: Path) -> ScratchRegistry:
    """测试专用的临时目录登记表"""
    return ScratchRegistry(temp_dir / "scratch")


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """输出目录fixture"""
    output_dir = temp_dir / "output"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def make_config() -> Callable[..., CompressionConfig]:
    """创建 CompressionConfig，未指定的字段使用默认值"""

    def _make(**kwargs) -> CompressionConfig:
        return CompressionConfig(**kwargs)

    return _make


@pytest.fixture
def encode_file() -> Callable[[Path], str]:
    """把文件内容编码为前端上传使用的 base64 字符串"""

    def _encode(path: Path) -> str:
        return base64.b64encode(path.read_bytes()).decode("ascii")

    return _encode


@pytest.fixture
def scratch_leftovers(registry: ScratchRegistry) -> Callable[[], list[Path]]:
    """列出登记表根目录下残留的临时目录"""

    def _leftovers() -> list[Path]:
        if not registry.root.exists():
            return []
        return [
            child for prefix in registry.root.iterdir() for child in prefix.iterdir()
        ]

    return _leftovers
