"""数据模型包。

定义压缩配置、上传条目、结果以及策略常量。
"""

from .compression_config import CompressionConfig, UploadItem
from .compression_result import (
    ERROR_STATUS_PREFIX,
    SUCCESS_STATUS,
    BatchResult,
    BestEffort,
    CompressionResult,
    CompressionStats,
)
from .constants import (
    WEBP_LOSSY_PROFILE,
    ImageFormat,
    ImageFormats,
    JpegSearch,
    PngQuantization,
    PngTier,
    ValidationLimits,
    get_format_for_extension,
    is_allowed_upload_format,
)


__all__ = [
    "ERROR_STATUS_PREFIX",
    "SUCCESS_STATUS",
    "WEBP_LOSSY_PROFILE",
    "BatchResult",
    "BestEffort",
    "CompressionConfig",
    "CompressionResult",
    "CompressionStats",
    "ImageFormat",
    "ImageFormats",
    "JpegSearch",
    "PngQuantization",
    "PngTier",
    "UploadItem",
    "ValidationLimits",
    "get_format_for_extension",
    "is_allowed_upload_format",
]
