"""PNG 量化与结构优化模块。

封装 libimagequant 调色板量化和 oxipng 无损重压缩。
"""

from io import BytesIO

import imagequant
import numpy as np
import oxipng
from PIL import Image

from ..exceptions import EncodeError
from ..models.compression_result import BestEffort
from ..models.constants import PngQuantization, PngTier
from ..utils.logging_helpers import get_logger


logger = get_logger()

OPAQUE = 255


class PaletteQuantizer:
    """调色板量化器，将 RGBA 像素量化为索引 PNG（最多 256 色）"""

    def __init__(self, max_colors: int = PngQuantization.MAX_COLORS) -> None:
        self.max_colors = max_colors

    def quantize(
        self, img: Image.Image, quality_window: tuple[int, int], tier: PngTier
    ) -> bytes:
        """量化并编码为索引 PNG

        Args:
            img: 待量化图片（任意模式，内部转换为 RGBA）
            quality_window: (最低质量, 目标质量)
            tier: 量化档位（抖动强度等）

        Returns:
            bytes: 带显式调色板的索引 PNG，调色板只保留实际用到的颜色；
                仅当存在非不透明颜色时写入 tRNS

        Raises:
            EncodeError: 量化失败（例如无法达到最低质量）
        """
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        min_quality, max_quality = quality_window

        # libimagequant 的 Python 绑定没有 speed 参数，档位中的 speed 只记录在日志里
        logger.debug(
            f"调色板量化: 质量 {min_quality}-{max_quality}, "
            f"speed={tier.speed}, dither={tier.dither}"
        )
        try:
            indices, palette = imagequant.quantize_raw_rgba_bytes(
                rgba.tobytes(),
                rgba.width,
                rgba.height,
                dithering_level=tier.dither,
                max_colors=self.max_colors,
                min_quality=min_quality,
                max_quality=max_quality,
            )
        except Exception as e:
            raise EncodeError(f"调色板量化失败: {e}") from e

        return self._encode_indexed(rgba.size, bytes(indices), bytes(palette))

    @staticmethod
    def _encode_indexed(size: tuple[int, int], indices: bytes, palette: bytes) -> bytes:
        # libimagequant 总是返回 256 项调色板，未使用的项以 (0, 0, 0, 0) 填充
        used = int(np.frombuffer(indices, dtype=np.uint8).max()) + 1
        entries = np.frombuffer(palette, dtype=np.uint8).reshape(-1, 4)[:used]
        rgb = entries[:, :3]
        alpha = entries[:, 3]

        indexed = Image.frombytes("P", size, indices)
        indexed.putpalette(rgb.tobytes())

        # 不指定 bits，由 Pillow 按调色板长度写出 PLTE 并选择位深
        params: dict[str, object] = {}
        if bool((alpha < OPAQUE).any()):
            params["transparency"] = alpha.tobytes()

        buffer = BytesIO()
        indexed.save(buffer, format="PNG", **params)
        return buffer.getvalue()


def optimize_png(data: bytes, level: int, strip_all: bool = False) -> BestEffort[bytes]:
    """oxipng 无损重压缩，不改变像素值

    Args:
        data: 合法的 PNG 字节流
        level: oxipng 优化级别
        strip_all: 是否移除全部非必要块（元数据）

    Returns:
        BestEffort[bytes]: 成功时为优化后的字节，失败时携带错误信息
    """
    options: dict[str, object] = {"level": level}
    if strip_all:
        options["strip"] = oxipng.StripChunks.all()

    try:
        optimized = oxipng.optimize_from_memory(data, **options)
    except Exception as e:
        return BestEffort.failed(e)

    logger.debug(f"oxipng(level={level}): {len(data)} -> {len(optimized)} 字节")
    return BestEffort.success(bytes(optimized))
