"""Stage tracks: the ordered lifecycle stages for each sourcing type.

Tracks:
  manufacturing:  concept → preliminary → technical → pre-production → production-ready
  procurement:    procure-identify → procure-quote → procure-approve → procure-order → procure-received
  architectural:  arch-brief → arch-schematic → arch-development → arch-construction-docs → arch-approved
  construction:   const-scope → const-spec → const-quote → const-approve → const-in-progress
                  → const-inspection → const-complete

Every stage belongs to exactly one track. Timeline helpers are pure functions;
the caller supplies ``now``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from design_manager.core.exceptions import UnknownSourcingTypeError, UnknownStageError

if TYPE_CHECKING:
    from design_manager.core.schemas_design_items import DesignItem


# =============================================================================
# Enums
# =============================================================================


class DesignStage(str, Enum):
    # Manufacturing
    CONCEPT = "concept"
    PRELIMINARY = "preliminary"
    TECHNICAL = "technical"
    PRE_PRODUCTION = "pre-production"
    PRODUCTION_READY = "production-ready"
    # Procurement
    PROCURE_IDENTIFY = "procure-identify"
    PROCURE_QUOTE = "procure-quote"
    PROCURE_APPROVE = "procure-approve"
    PROCURE_ORDER = "procure-order"
    PROCURE_RECEIVED = "procure-received"
    # Architectural
    ARCH_BRIEF = "arch-brief"
    ARCH_SCHEMATIC = "arch-schematic"
    ARCH_DEVELOPMENT = "arch-development"
    ARCH_CONSTRUCTION_DOCS = "arch-construction-docs"
    ARCH_APPROVED = "arch-approved"
    # Construction
    CONST_SCOPE = "const-scope"
    CONST_SPEC = "const-spec"
    CONST_QUOTE = "const-quote"
    CONST_APPROVE = "const-approve"
    CONST_IN_PROGRESS = "const-in-progress"
    CONST_INSPECTION = "const-inspection"
    CONST_COMPLETE = "const-complete"


class StageTrack(str, Enum):
    MANUFACTURING = "manufacturing"
    PROCUREMENT = "procurement"
    ARCHITECTURAL = "architectural"
    CONSTRUCTION = "construction"


class SourcingType(str, Enum):
    """How a design item is delivered; selects its stage track."""

    MANUFACTURED = "MANUFACTURED"
    PROCURED = "PROCURED"
    DESIGN_DOCUMENT = "DESIGN_DOCUMENT"
    CONSTRUCTION = "CONSTRUCTION"


class StagePosition(str, Enum):
    """Where a stage sits relative to an item's current stage."""

    COMPLETED = "completed"
    CURRENT = "current"
    CURRENT_DELAYED = "current-delayed"
    PENDING = "pending"


# =============================================================================
# Track definitions
# =============================================================================

STAGE_TRACKS: dict[StageTrack, tuple[DesignStage, ...]] = {
    StageTrack.MANUFACTURING: (
        DesignStage.CONCEPT,
        DesignStage.PRELIMINARY,
        DesignStage.TECHNICAL,
        DesignStage.PRE_PRODUCTION,
        DesignStage.PRODUCTION_READY,
    ),
    StageTrack.PROCUREMENT: (
        DesignStage.PROCURE_IDENTIFY,
        DesignStage.PROCURE_QUOTE,
        DesignStage.PROCURE_APPROVE,
        DesignStage.PROCURE_ORDER,
        DesignStage.PROCURE_RECEIVED,
    ),
    StageTrack.ARCHITECTURAL: (
        DesignStage.ARCH_BRIEF,
        DesignStage.ARCH_SCHEMATIC,
        DesignStage.ARCH_DEVELOPMENT,
        DesignStage.ARCH_CONSTRUCTION_DOCS,
        DesignStage.ARCH_APPROVED,
    ),
    StageTrack.CONSTRUCTION: (
        DesignStage.CONST_SCOPE,
        DesignStage.CONST_SPEC,
        DesignStage.CONST_QUOTE,
        DesignStage.CONST_APPROVE,
        DesignStage.CONST_IN_PROGRESS,
        DesignStage.CONST_INSPECTION,
        DesignStage.CONST_COMPLETE,
    ),
}

SOURCING_TRACKS: dict[SourcingType, StageTrack] = {
    SourcingType.MANUFACTURED: StageTrack.MANUFACTURING,
    SourcingType.PROCURED: StageTrack.PROCUREMENT,
    SourcingType.DESIGN_DOCUMENT: StageTrack.ARCHITECTURAL,
    SourcingType.CONSTRUCTION: StageTrack.CONSTRUCTION,
}

# Reverse lookup: stage → owning track
TRACK_BY_STAGE: dict[DesignStage, StageTrack] = {
    stage: track for track, stages in STAGE_TRACKS.items() for stage in stages
}

# Legacy values still found in stored items
_SOURCING_ALIASES = {
    "CUSTOM_FURNITURE_MILLWORK": SourcingType.MANUFACTURED,
    "ARCHITECTURAL": SourcingType.DESIGN_DOCUMENT,
}

STAGE_LABELS = {
    DesignStage.CONCEPT: "Concept",
    DesignStage.PRELIMINARY: "Preliminary",
    DesignStage.TECHNICAL: "Technical",
    DesignStage.PRE_PRODUCTION: "Pre-Production",
    DesignStage.PRODUCTION_READY: "Production Ready",
    DesignStage.PROCURE_IDENTIFY: "Identify",
    DesignStage.PROCURE_QUOTE: "Quote",
    DesignStage.PROCURE_APPROVE: "Approve",
    DesignStage.PROCURE_ORDER: "Order",
    DesignStage.PROCURE_RECEIVED: "Received",
    DesignStage.ARCH_BRIEF: "Brief",
    DesignStage.ARCH_SCHEMATIC: "Schematic",
    DesignStage.ARCH_DEVELOPMENT: "Development",
    DesignStage.ARCH_CONSTRUCTION_DOCS: "Construction Docs",
    DesignStage.ARCH_APPROVED: "Approved",
    DesignStage.CONST_SCOPE: "Scope",
    DesignStage.CONST_SPEC: "Specification",
    DesignStage.CONST_QUOTE: "Quote",
    DesignStage.CONST_APPROVE: "Approve",
    DesignStage.CONST_IN_PROGRESS: "In Progress",
    DesignStage.CONST_INSPECTION: "Inspection",
    DesignStage.CONST_COMPLETE: "Complete",
}

# Expected days spent in each stage. Terminal stages have no deadline.
STAGE_EXPECTED_DAYS = {
    DesignStage.CONCEPT: 2,
    DesignStage.PRELIMINARY: 5,
    DesignStage.TECHNICAL: 3,
    DesignStage.PRE_PRODUCTION: 2,
    DesignStage.PROCURE_IDENTIFY: 2,
    DesignStage.PROCURE_QUOTE: 3,
    DesignStage.PROCURE_APPROVE: 2,
    DesignStage.PROCURE_ORDER: 1,
    DesignStage.PROCURE_RECEIVED: 7,
    DesignStage.ARCH_BRIEF: 5,
    DesignStage.ARCH_SCHEMATIC: 10,
    DesignStage.ARCH_DEVELOPMENT: 15,
    DesignStage.ARCH_CONSTRUCTION_DOCS: 10,
    DesignStage.CONST_SCOPE: 3,
    DesignStage.CONST_SPEC: 5,
    DesignStage.CONST_QUOTE: 5,
    DesignStage.CONST_APPROVE: 3,
    DesignStage.CONST_IN_PROGRESS: 14,
    DesignStage.CONST_INSPECTION: 2,
}


# =============================================================================
# Lookups
# =============================================================================


def normalize_sourcing_type(value: str | SourcingType | None) -> SourcingType:
    """Map stored or user-supplied sourcing values onto a SourcingType.

    Missing values default to MANUFACTURED, which is how items were created
    before sourcing types existed.
    """
    if isinstance(value, SourcingType):
        return value
    if value is None or not str(value).strip():
        return SourcingType.MANUFACTURED

    key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    if key in _SOURCING_ALIASES:
        return _SOURCING_ALIASES[key]
    try:
        return SourcingType(key)
    except ValueError:
        raise UnknownSourcingTypeError(f"Unknown sourcing type: {value!r}") from None


def track_for(sourcing_type: SourcingType) -> StageTrack:
    return SOURCING_TRACKS[sourcing_type]


def stages_for(sourcing_type: SourcingType) -> tuple[DesignStage, ...]:
    """Ordered stages for a sourcing type, initial stage first."""
    return STAGE_TRACKS[track_for(sourcing_type)]


def initial_stage(sourcing_type: SourcingType) -> DesignStage:
    return stages_for(sourcing_type)[0]


def final_stage(sourcing_type: SourcingType) -> DesignStage:
    return stages_for(sourcing_type)[-1]


def resolve_stage(stage: str | DesignStage, sourcing_type: SourcingType) -> DesignStage:
    """Coerce ``stage`` to a DesignStage on the sourcing type's track.

    Raises:
        UnknownStageError: If the value is not a stage, or belongs to another track
    """
    try:
        resolved = DesignStage(stage)
    except ValueError:
        raise UnknownStageError(stage, sourcing_type) from None
    if resolved not in stages_for(sourcing_type):
        raise UnknownStageError(resolved.value, sourcing_type)
    return resolved


def stage_index(item: "DesignItem", stage: DesignStage) -> int:
    """Position of ``stage`` in the item's track, or -1 if off-track."""
    stages = stages_for(item.sourcing_type)
    return stages.index(stage) if stage in stages else -1


def is_at_final_stage(item: "DesignItem") -> bool:
    return item.current_stage == final_stage(item.sourcing_type)


def next_stage(item: "DesignItem") -> DesignStage | None:
    """The stage after the item's current one, or None at the end of the track."""
    stages = stages_for(item.sourcing_type)
    idx = stage_index(item, item.current_stage)
    if idx == -1 or idx + 1 >= len(stages):
        return None
    return stages[idx + 1]


def previous_stage(item: "DesignItem") -> DesignStage | None:
    stages = stages_for(item.sourcing_type)
    idx = stage_index(item, item.current_stage)
    if idx <= 0:
        return None
    return stages[idx - 1]


# =============================================================================
# Timeline
# =============================================================================


@dataclass
class StageProgress:
    stage: DesignStage
    label: str
    position: StagePosition
    expected_days: int | None
    days_in_stage: int | None = None


def stage_progress(
    item: "DesignItem",
    now: datetime,
    default_days: int = 3,
) -> list[StageProgress]:
    """Per-stage position for the item's whole track.

    The current stage is ``current-delayed`` once the whole days spent in it
    exceed its expected duration. Without ``stage_entered_at``, or at the
    terminal stage, it is never considered delayed.
    """
    stages = stages_for(item.sourcing_type)
    current_idx = stage_index(item, item.current_stage)
    progress: list[StageProgress] = []

    for idx, stage in enumerate(stages):
        is_terminal = idx == len(stages) - 1
        expected = None if is_terminal else STAGE_EXPECTED_DAYS.get(stage, default_days)
        days_in_stage = None

        if idx < current_idx:
            position = StagePosition.COMPLETED
        elif idx == current_idx:
            position = StagePosition.CURRENT
            if item.stage_entered_at is not None:
                days_in_stage = (now - item.stage_entered_at).days
                if expected is not None and days_in_stage > expected:
                    position = StagePosition.CURRENT_DELAYED
        else:
            position = StagePosition.PENDING

        progress.append(
            StageProgress(
                stage=stage,
                label=STAGE_LABELS[stage],
                position=position,
                expected_days=expected,
                days_in_stage=days_in_stage,
            )
        )

    return progress
