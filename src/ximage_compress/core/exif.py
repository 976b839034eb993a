"""EXIF 回写模块。

从原始 JPEG 中取出 EXIF 段，原样写回重新编码后的 JPEG。
"""

from io import BytesIO

import piexif
from PIL import Image

from ..models.compression_result import BestEffort
from ..utils.logging_helpers import get_logger


logger = get_logger()

EXIF_HEADER = b"Exif\x00\x00"


def extract_exif(original: bytes) -> bytes | None:
    """提取 JPEG 中的 EXIF 负载（以 Exif\\0\\0 开头），没有时返回 None"""
    with Image.open(BytesIO(original)) as img:
        if img.format != "JPEG":
            return None
        exif = img.info.get("exif")

    if not exif or not exif.startswith(EXIF_HEADER):
        return None
    return exif


def reattach_exif(original: bytes, encoded: bytes) -> BestEffort[bytes]:
    """把原图的 EXIF 段原样插入新编码的 JPEG

    原图没有 EXIF 时返回 skipped；任何失败都以结果返回而不是抛出，
    由调用方决定保留不带元数据的输出。
    """
    try:
        exif = extract_exif(original)
        if exif is None:
            return BestEffort.skipped()

        output = BytesIO()
        piexif.insert(exif, encoded, output)
        return BestEffort.success(output.getvalue())
    except Exception as e:
        return BestEffort.failed(e)
