"""核心模块包。

格式解析、尺寸规划、编码参数选择、各格式编码器和单文件压缩流水线。
"""

from .compression_engine import compress_file, decode_image
from .encoders import ImageEncoder, JpegEncoder, PngEncoder, WebpEncoder, get_encoder
from .exif import extract_exif, reattach_exif
from .formats import SourceImage, resolve_format
from .optimizer import PaletteQuantizer, optimize_png
from .resize import apply_resize, plan_resize
from .strategy import (
    EncodedCandidate,
    jpeg_candidate_qualities,
    score_candidate,
    search_jpeg_quality,
    select_best_candidate,
    select_png_tier,
)


__all__ = [
    "EncodedCandidate",
    "ImageEncoder",
    "JpegEncoder",
    "PaletteQuantizer",
    "PngEncoder",
    "SourceImage",
    "WebpEncoder",
    "apply_resize",
    "compress_file",
    "decode_image",
    "extract_exif",
    "get_encoder",
    "jpeg_candidate_qualities",
    "optimize_png",
    "plan_resize",
    "reattach_exif",
    "resolve_format",
    "score_candidate",
    "search_jpeg_quality",
    "select_best_candidate",
    "select_png_tier",
]
