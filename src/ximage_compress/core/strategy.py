"""自适应参数选择模块。

由单一的“质量”参数推导各格式的编码参数：
JPEG 在少量候选质量中按评分选优，PNG 按质量分档选择量化参数。
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from ..models.constants import JpegSearch, PngQuantization, PngTier
from ..utils.logging_helpers import get_logger


logger = get_logger()


@dataclass(frozen=True)
class EncodedCandidate:
    """JPEG 搜索中的一个候选编码，选出最优后即丢弃"""

    quality: int
    data: bytes = field(repr=False)
    score: float = 0.0

    @property
    def size(self) -> int:
        """编码字节数，最小为 1"""
        return max(len(self.data), 1)


def clamp_jpeg_quality(quality: int) -> int:
    """把请求的质量限制到 [60, 95]，作为基准质量"""
    return max(JpegSearch.MIN_QUALITY, min(JpegSearch.MAX_QUALITY, quality))


def jpeg_candidate_qualities(requested: int) -> list[int]:
    """候选质量：基准 ±5/±10，过滤到 [60, 95]，去重并升序"""
    base_q = clamp_jpeg_quality(requested)
    return sorted(
        {
            base_q + offset
            for offset in JpegSearch.OFFSETS
            if JpegSearch.MIN_QUALITY <= base_q + offset <= JpegSearch.MAX_QUALITY
        }
    )


def speed_penalty(quality: int) -> float:
    for floor, penalty in JpegSearch.SPEED_PENALTIES:
        if quality >= floor:
            return penalty
    return JpegSearch.DEFAULT_SPEED_PENALTY


def score_candidate(quality: int, size: int, base_size: int) -> float:
    """候选评分

    score = quality/100 * 0.5 + (base_size - size)/base_size * 0.4 - penalty * 0.1
    """
    size_improve = (base_size - size) / base_size
    quality_score = quality / 100
    return (
        quality_score * JpegSearch.QUALITY_WEIGHT
        + size_improve * JpegSearch.SIZE_WEIGHT
        - speed_penalty(quality) * JpegSearch.SPEED_WEIGHT
    )


def select_best_candidate(
    baseline: EncodedCandidate, candidates: Iterable[EncodedCandidate]
) -> EncodedCandidate:
    """按评分选择最优候选

    基准编码以 0.0 分作为初始最优；按给定顺序遍历，只有严格更高的分数才替换，
    因此同分时保留先出现（质量更低）的候选。
    """
    base_size = baseline.size
    best = replace(baseline, score=JpegSearch.BASELINE_SCORE)

    for candidate in candidates:
        scored = replace(
            candidate, score=score_candidate(candidate.quality, candidate.size, base_size)
        )
        if scored.score > best.score:
            best = scored

    return best


def search_jpeg_quality(
    encode: Callable[[int], bytes], requested: int
) -> EncodedCandidate:
    """执行 JPEG 质量搜索

    基准与每个候选质量都独立编码，互不复用编码结果；基准质量因此会编码两次。

    Args:
        encode: 给定质量返回 JPEG 字节的编码函数
        requested: 用户请求的质量

    Returns:
        EncodedCandidate: 评分最高的候选
    """
    base_q = clamp_jpeg_quality(requested)
    baseline = EncodedCandidate(quality=base_q, data=encode(base_q))
    candidates = [
        EncodedCandidate(quality=quality, data=encode(quality))
        for quality in jpeg_candidate_qualities(requested)
    ]

    best = select_best_candidate(baseline, candidates)
    logger.debug(
        f"JPEG 质量搜索: 基准 {base_q} ({baseline.size} 字节) -> "
        f"选择 {best.quality} ({best.size} 字节, 评分 {best.score:.4f})"
    )
    return best


def clamp_png_quality(quality: int) -> int:
    """把请求的 PNG 质量限制到 [10, 100]"""
    return max(PngQuantization.MIN_QUALITY, min(PngQuantization.MAX_QUALITY, quality))


def select_png_tier(quality: int) -> PngTier:
    """按质量分档选择量化参数

    >=80: (25, 8, 0.6)；60-79: (30, 9, 0.8)；<60: (40, 10, 1.0)
    """
    for floor, tier in PngQuantization.TIERS:
        if quality >= floor:
            return tier
    return PngQuantization.FALLBACK_TIER


def png_quality_window(target: int, tier: PngTier) -> tuple[int, int]:
    """量化质量窗口 (min, max)"""
    return (max(0, target - tier.min_offset), target)
