import math
from typing import Iterable, Optional

from feed_doctor.core.logging import analysis_logger
from feed_doctor.schemas.feed_analysis import AnalysisStats

LOW_QUALITY_THRESHOLD = 50
HIGH_QUALITY_THRESHOLD = 75


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (scores are never negative)."""
    return int(math.floor(value + 0.5))


def quality_band(score: Optional[int]) -> str:
    """low (<50), medium (50-75 inclusive) or high (>75)."""
    score = score or 0
    if score < LOW_QUALITY_THRESHOLD:
        return "low"
    if score <= HIGH_QUALITY_THRESHOLD:
        return "medium"
    return "high"


def compute_stats(total_products: int, scores: Iterable[Optional[int]], tenant_id: Optional[str] = None) -> AnalysisStats:
    """
    Aggregate persisted overall scores for one tenant.

    ``total_products`` comes from the product catalog, ``scores`` holds one
    entry per analysis row. Pending is clamped at zero: stale analysis rows
    for deleted products can make the raw difference negative.
    """
    scores = [s or 0 for s in scores]
    analyzed_count = len(scores)
    bands = [quality_band(s) for s in scores]

    pending = total_products - analyzed_count
    if pending < 0:
        analysis_logger.warning(
            f"Tenant {tenant_id} has {analyzed_count} analyses for {total_products} products; "
            "stale analysis rows detected"
        )
        pending = 0

    return AnalysisStats(
        total_products=total_products,
        analyzed_count=analyzed_count,
        average_score=round_half_up(sum(scores) / analyzed_count) if analyzed_count else 0,
        low_quality_count=bands.count("low"),
        medium_quality_count=bands.count("medium"),
        high_quality_count=bands.count("high"),
        pending_analysis=pending,
    )
