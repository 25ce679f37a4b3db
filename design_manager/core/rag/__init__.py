"""RAG readiness model and aggregation.

Aspects are grouped into three fixed categories:
- Design Completeness (9 aspects)
- Manufacturing Readiness (6 aspects)
- Quality Gates (4 aspects)

Usage:
    from design_manager.core.rag import Aspects, RAGStatus, aggregate

    summary = aggregate(item.rag_status)
    print(f"{summary.overall_readiness}% ready, worst: {summary.worst_status.value}")
"""

from design_manager.core.rag.aggregate import (
    ReadinessSummary,
    aggregate,
    calculate_overall_readiness,
    readiness_band,
    worst_status,
)
from design_manager.core.rag.types import (
    ASPECT_KEYS,
    ASPECT_LABELS,
    AspectRef,
    Aspects,
    RAGCategory,
    RAGStatus,
    RAGStatusValue,
    RAGValue,
)

__all__ = [
    "aggregate",
    "calculate_overall_readiness",
    "readiness_band",
    "worst_status",
    "ReadinessSummary",
    "AspectRef",
    "Aspects",
    "RAGCategory",
    "RAGStatus",
    "RAGStatusValue",
    "RAGValue",
    "ASPECT_KEYS",
    "ASPECT_LABELS",
]
