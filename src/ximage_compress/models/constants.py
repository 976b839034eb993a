"""压缩策略相关常量定义。

集中管理格式映射、质量区间、评分权重和编码参数档位。
"""

from enum import Enum
from typing import Final, NamedTuple


class ImageFormat(str, Enum):
    """引擎支持的图片格式（封闭集合）"""

    PNG = "PNG"
    JPEG = "JPEG"
    WEBP = "WEBP"


class ImageFormats:
    """扩展名到格式的映射"""

    EXTENSIONS: Final[dict[str, ImageFormat]] = {
        "png": ImageFormat.PNG,
        "jpg": ImageFormat.JPEG,
        "jpeg": ImageFormat.JPEG,
        "webp": ImageFormat.WEBP,
    }

    # 上传时允许声明的格式
    UPLOAD_ALLOWED: Final[frozenset[str]] = frozenset(EXTENSIONS)


class JpegSearch:
    """JPEG 质量搜索参数

    权重和速度惩罚是经验值，保持不变以兼容既有输出。
    """

    MIN_QUALITY: Final[int] = 60
    MAX_QUALITY: Final[int] = 95
    LOSSLESS_QUALITY: Final[int] = 100
    OFFSETS: Final[tuple[int, ...]] = (10, 5, 0, -5, -10)

    QUALITY_WEIGHT: Final[float] = 0.5
    SIZE_WEIGHT: Final[float] = 0.4
    SPEED_WEIGHT: Final[float] = 0.1

    # (质量下限, 惩罚)，按下限降序匹配
    SPEED_PENALTIES: Final[tuple[tuple[int, float], ...]] = ((85, 0.05), (75, 0.07))
    DEFAULT_SPEED_PENALTY: Final[float] = 0.10

    BASELINE_SCORE: Final[float] = 0.0


class PngTier(NamedTuple):
    """PNG 量化档位"""

    min_offset: int
    speed: int
    dither: float


class PngQuantization:
    """PNG 调色板量化参数"""

    MIN_QUALITY: Final[int] = 10
    MAX_QUALITY: Final[int] = 100

    # (质量下限, 档位)，按下限降序匹配
    TIERS: Final[tuple[tuple[int, PngTier], ...]] = (
        (80, PngTier(min_offset=25, speed=8, dither=0.6)),
        (60, PngTier(min_offset=30, speed=9, dither=0.8)),
    )
    FALLBACK_TIER: Final[PngTier] = PngTier(min_offset=40, speed=10, dither=1.0)

    MAX_COLORS: Final[int] = 256

    # oxipng 级别：无损快速优化 / 量化后强优化
    LOSSLESS_OPT_LEVEL: Final[int] = 1
    LOSSY_OPT_LEVEL: Final[int] = 2


# libwebp 有损编码固定档位，仅 quality 可由用户调整
WEBP_LOSSY_PROFILE: Final[dict[str, int]] = {
    "method": 4,
    "sns_strength": 70,
    "filter_strength": 30,
    "filter_sharpness": 3,
    "autofilter": 1,
    "alpha_quality": 80,
    "alpha_compression": 1,
    "near_lossless": 60,
    "exact": 0,
    "thread_level": 1,
}

# Pillow WebP 插件可接受的档位参数
WEBP_PILLOW_KEYS: Final[frozenset[str]] = frozenset({"method", "alpha_quality", "exact"})


class ValidationLimits:
    """验证相关限制"""

    MIN_QUALITY: Final[int] = 0
    MAX_QUALITY: Final[int] = 100
    MIN_DIMENSION: Final[int] = 1


def get_format_for_extension(extension: str) -> ImageFormat | None:
    """根据扩展名（不含点，大小写不敏感）获取格式"""
    return ImageFormats.EXTENSIONS.get(extension.lower().lstrip("."))


def is_allowed_upload_format(format_str: str) -> bool:
    """检查上传声明的格式是否在白名单中"""
    return format_str.lower() in ImageFormats.UPLOAD_ALLOWED
