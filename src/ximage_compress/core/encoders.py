"""分格式编码器模块。

PNG / JPEG / WebP 三种编码器共享 encode(img, config) -> bytes 约定，
由格式解析结果一次性选定。
"""

from io import BytesIO
from typing import Any, Protocol

from PIL import Image

from ..exceptions import EncodeError, handle_codec_errors
from ..models.compression_config import CompressionConfig
from ..models.constants import (
    WEBP_LOSSY_PROFILE,
    WEBP_PILLOW_KEYS,
    ImageFormat,
    JpegSearch,
    PngQuantization,
)
from ..utils.logging_helpers import get_logger
from .formats import prepare_for_jpeg, prepare_for_png, prepare_for_webp
from .optimizer import PaletteQuantizer, optimize_png
from .strategy import (
    clamp_png_quality,
    png_quality_window,
    search_jpeg_quality,
    select_png_tier,
)


logger = get_logger()


class ImageEncoder(Protocol):
    """编码器约定"""

    format: ImageFormat

    def encode(self, img: Image.Image, config: CompressionConfig) -> bytes: ...


def _save_to_bytes(img: Image.Image, format_name: str, **params: Any) -> bytes:
    buffer = BytesIO()
    img.save(buffer, format=format_name, **params)
    return buffer.getvalue()


class PngEncoder:
    """PNG：无损优化，或按质量分档的调色板量化"""

    format = ImageFormat.PNG

    def __init__(self, quantizer: PaletteQuantizer | None = None) -> None:
        self.quantizer = quantizer or PaletteQuantizer()

    @handle_codec_errors("PNG 编码")
    def encode(self, img: Image.Image, config: CompressionConfig) -> bytes:
        if config.lossless:
            return self._encode_lossless(img)
        return self._encode_quantized(img, config.quality_png)

    def _encode_lossless(self, img: Image.Image) -> bytes:
        data = _save_to_bytes(prepare_for_png(img), "PNG")
        outcome = optimize_png(data, level=PngQuantization.LOSSLESS_OPT_LEVEL)
        if not outcome.ok or outcome.value is None:
            raise EncodeError(f"PNG 无损优化失败: {outcome.error}")
        return outcome.value

    def _encode_quantized(self, img: Image.Image, quality: int) -> bytes:
        target = clamp_png_quality(quality)
        tier = select_png_tier(target)
        quantized = self.quantizer.quantize(img, png_quality_window(target, tier), tier)

        # 强优化并移除全部元数据块；失败时保留未优化的量化结果
        outcome = optimize_png(
            quantized, level=PngQuantization.LOSSY_OPT_LEVEL, strip_all=True
        )
        if not outcome.ok:
            logger.warning(f"PNG 结构优化失败，使用未优化的量化结果: {outcome.error}")
        return outcome.value_or(quantized)


class JpegEncoder:
    """JPEG：无损模式固定质量 100，有损模式执行候选质量搜索"""

    format = ImageFormat.JPEG

    @handle_codec_errors("JPEG 编码")
    def encode(self, img: Image.Image, config: CompressionConfig) -> bytes:
        rgb = prepare_for_jpeg(img)

        def encode_at(quality: int) -> bytes:
            return _save_to_bytes(rgb, "JPEG", quality=quality, optimize=True)

        if config.lossless:
            return encode_at(JpegSearch.LOSSLESS_QUALITY)

        return search_jpeg_quality(encode_at, config.quality_jpg).data


class WebpEncoder:
    """WebP：无损直接编码，有损使用固定档位"""

    format = ImageFormat.WEBP

    @handle_codec_errors("WebP 编码")
    def encode(self, img: Image.Image, config: CompressionConfig) -> bytes:
        prepared = prepare_for_webp(img, config.lossless)
        if config.lossless:
            return _save_to_bytes(prepared, "WEBP", lossless=True, exact=True)

        params = {k: v for k, v in WEBP_LOSSY_PROFILE.items() if k in WEBP_PILLOW_KEYS}
        params["exact"] = bool(params.get("exact"))
        return _save_to_bytes(prepared, "WEBP", quality=config.quality_webp, **params)


_ENCODERS: dict[ImageFormat, ImageEncoder] = {}


def get_encoder(image_format: ImageFormat) -> ImageEncoder:
    """获取格式对应的编码器（封闭集合）"""
    if image_format not in _ENCODERS:
        match image_format:
            case ImageFormat.PNG:
                _ENCODERS[image_format] = PngEncoder()
            case ImageFormat.JPEG:
                _ENCODERS[image_format] = JpegEncoder()
            case ImageFormat.WEBP:
                _ENCODERS[image_format] = WebpEncoder()
    return _ENCODERS[image_format]
