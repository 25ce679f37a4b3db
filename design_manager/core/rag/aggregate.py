"""Readiness aggregation over a RAG status.

Scoring:
- green counts 1.0, amber 0.5, red 0.0
- not-applicable aspects are dropped from numerator and denominator
- with nothing applicable, readiness is 100 (nothing blocks completion)
- percentages round half up (12.5 -> 13)

Always recomputed from the RAG values; never cached on the item.
"""

import math
from collections.abc import Iterable

from pydantic import BaseModel, Field

from design_manager.core.rag.types import RAGCategory, RAGStatus, RAGStatusValue

STATUS_WEIGHTS = {
    RAGStatusValue.GREEN: 1.0,
    RAGStatusValue.AMBER: 0.5,
    RAGStatusValue.RED: 0.0,
}

# Most severe first
SEVERITY_ORDER = (RAGStatusValue.RED, RAGStatusValue.AMBER, RAGStatusValue.GREEN)


class ReadinessSummary(BaseModel):
    """Aggregated readiness for one RAG status."""

    overall_readiness: int = Field(..., ge=0, le=100, description="Overall readiness 0-100")
    category_readiness: dict[RAGCategory, int] = Field(
        ..., description="Readiness 0-100 per category"
    )
    worst_status: RAGStatusValue = Field(
        ..., description="Most severe applicable status (green when none applicable)"
    )
    status_counts: dict[RAGStatusValue, int] = Field(
        ..., description="Number of aspects per status value"
    )


def _readiness(statuses: Iterable[RAGStatusValue]) -> int:
    applicable = [s for s in statuses if s != RAGStatusValue.NOT_APPLICABLE]
    if not applicable:
        return 100
    total = sum(STATUS_WEIGHTS[s] for s in applicable)
    return math.floor(100 * total / len(applicable) + 0.5)


def worst_status(statuses: Iterable[RAGStatusValue]) -> RAGStatusValue:
    """Most severe applicable status; green when nothing is applicable."""
    present = set(statuses)
    for status in SEVERITY_ORDER:
        if status in present:
            return status
    return RAGStatusValue.GREEN


def calculate_overall_readiness(rag_status: RAGStatus) -> int:
    """Overall readiness percentage across all three categories."""
    return _readiness(value.status for _, value in rag_status.iter_aspects())


def aggregate(rag_status: RAGStatus) -> ReadinessSummary:
    """
    Combine every aspect of a RAG status into readiness figures.

    Args:
        rag_status: The item's current RAG status

    Returns:
        ReadinessSummary with overall and per-category readiness,
        the worst applicable status and a tally per status value
    """
    statuses = [value.status for _, value in rag_status.iter_aspects()]

    category_readiness = {
        category: _readiness(value.status for _, value in rag_status.category(category).items())
        for category in RAGCategory
    }

    status_counts = {status: 0 for status in RAGStatusValue}
    for status in statuses:
        status_counts[status] += 1

    return ReadinessSummary(
        overall_readiness=_readiness(statuses),
        category_readiness=category_readiness,
        worst_status=worst_status(statuses),
        status_counts=status_counts,
    )


def readiness_band(readiness: int, green_at: int = 80, amber_at: int = 50) -> RAGStatusValue:
    """Colour a readiness percentage for summaries and badges."""
    if readiness >= green_at:
        return RAGStatusValue.GREEN
    if readiness >= amber_at:
        return RAGStatusValue.AMBER
    return RAGStatusValue.RED
