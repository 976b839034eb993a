"""尺寸规划模块。

根据请求的宽高计算目标像素尺寸，并使用 Lanczos 重采样执行缩放。
"""

import math

from PIL import Image

from ..utils.logging_helpers import get_logger


logger = get_logger()

MIN_DIMENSION = 1


def _round_half_away(value: float) -> int:
    """四舍五入（0.5 远离零），用于非负像素尺寸"""
    return int(math.floor(value + 0.5))


def plan_resize(
    original: tuple[int, int],
    requested: tuple[int, int] | None,
    maintain_aspect_ratio: bool = False,
) -> tuple[int, int]:
    """计算目标尺寸

    Args:
        original: 原始 (宽, 高)
        requested: 请求的 (宽, 高)，None 表示不缩放
        maintain_aspect_ratio: 是否保持宽高比

    Returns:
        tuple[int, int]: 目标 (宽, 高)

    Examples:
        >>> plan_resize((100, 50), (40, 40), maintain_aspect_ratio=True)
        (40, 20)
        >>> plan_resize((100, 50), (40, 40), maintain_aspect_ratio=False)
        (40, 40)
    """
    if requested is None:
        return original

    if not maintain_aspect_ratio:
        return requested

    orig_w, orig_h = original
    req_w, req_h = requested
    scale = min(req_w / orig_w, req_h / orig_h)
    return (
        max(MIN_DIMENSION, _round_half_away(orig_w * scale)),
        max(MIN_DIMENSION, _round_half_away(orig_h * scale)),
    )


def apply_resize(img: Image.Image, target: tuple[int, int]) -> Image.Image:
    """缩放到目标尺寸；尺寸未变化时原样返回"""
    if img.size == target:
        return img

    # 调色板/二值图在 Pillow 中只能最近邻缩放，先展开为真彩色
    if img.mode in ("1", "P"):
        img = img.convert("RGBA" if img.has_transparency_data else "RGB")

    logger.debug(f"缩放图片: {img.size} -> {target}")
    return img.resize(target, Image.Resampling.LANCZOS)
