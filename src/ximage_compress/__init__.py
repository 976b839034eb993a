"""自适应图像压缩引擎。

按单一质量参数为 PNG / JPEG / WebP 推导编码参数，支持缩放、EXIF 保留
和逐项隔离失败的批量处理。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "自适应图像压缩引擎，基于 Pillow 11"

# 核心功能导出
from .compressor import ImageCompressor
from .core.compression_engine import compress_file
from .models import (
    BatchResult,
    CompressionConfig,
    CompressionResult,
    CompressionStats,
    UploadItem,
)
from .utils.cleanup_helpers import ScratchRegistry


__all__ = [
    "BatchResult",
    "CompressionConfig",
    "CompressionResult",
    "CompressionStats",
    "ImageCompressor",
    "ScratchRegistry",
    "UploadItem",
    "compress_file",
    "get_version",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
