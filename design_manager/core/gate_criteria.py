"""Gate criteria: what an item must satisfy to enter each stage.

Rules are declarative data keyed by target stage. Initial stages have no
entry, so moving into them is never gated. The special aspect ``ALL`` means
every applicable aspect of the RAG status.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from design_manager.core.rag import AspectRef, Aspects, RAGStatusValue
from design_manager.core.stage_tracks import DesignStage

ALL = "ALL"

R = RAGStatusValue
GREEN = (R.GREEN,)
AMBER_OR_GREEN = (R.AMBER, R.GREEN)


# =============================================================================
# Criterion types
# =============================================================================


@dataclass(frozen=True)
class GateCriterion:
    aspect: AspectRef | Literal["ALL"]
    required_status: frozenset[RAGStatusValue]
    # Kept in declaration order for stable messages
    required_order: tuple[RAGStatusValue, ...] = field(default=(), compare=False)
    allow_not_applicable: bool = True

    @property
    def label(self) -> str:
        return ALL if self.aspect == ALL else self.aspect.label


@dataclass(frozen=True)
class GateCriteriaSet:
    must_meet: tuple[GateCriterion, ...] = ()
    should_meet: tuple[GateCriterion, ...] = ()
    minimum_readiness: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.minimum_readiness <= 100:
            raise ValueError(f"minimum_readiness must be 0-100, got {self.minimum_readiness}")


def criterion(
    aspect: AspectRef | Literal["ALL"],
    required: RAGStatusValue | Iterable[RAGStatusValue],
    allow_not_applicable: bool = True,
) -> GateCriterion:
    """Build a criterion from one required status or several."""
    if isinstance(required, RAGStatusValue):
        ordered = (required,)
    else:
        ordered = tuple(required)
    if not ordered:
        raise ValueError("A criterion needs at least one required status")
    return GateCriterion(
        aspect=aspect,
        required_status=frozenset(ordered),
        required_order=ordered,
        allow_not_applicable=allow_not_applicable,
    )


# =============================================================================
# Criteria table
# =============================================================================

_ALL_GREEN = criterion(ALL, R.GREEN)

_GATE_CRITERIA: dict[DesignStage, GateCriteriaSet] = {
    # --- Manufacturing ---------------------------------------------------
    DesignStage.PRELIMINARY: GateCriteriaSet(
        must_meet=(criterion(Aspects.OVERALL_DIMENSIONS, AMBER_OR_GREEN),),
        should_meet=(
            criterion(Aspects.MODEL_3D, AMBER_OR_GREEN),
            criterion(Aspects.MATERIAL_SPECS, AMBER_OR_GREEN),
        ),
        minimum_readiness=20,
    ),
    DesignStage.TECHNICAL: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.OVERALL_DIMENSIONS, GREEN),
            criterion(Aspects.MODEL_3D, AMBER_OR_GREEN),
            criterion(Aspects.MATERIAL_SPECS, AMBER_OR_GREEN),
            criterion(Aspects.INTERNAL_DESIGN_REVIEW, AMBER_OR_GREEN),
        ),
        should_meet=(
            criterion(Aspects.PRODUCTION_DRAWINGS, AMBER_OR_GREEN),
            criterion(Aspects.HARDWARE_SPECS, AMBER_OR_GREEN),
            criterion(Aspects.FINISH_SPECS, AMBER_OR_GREEN),
        ),
        minimum_readiness=40,
    ),
    DesignStage.PRE_PRODUCTION: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.MODEL_3D, GREEN),
            criterion(Aspects.PRODUCTION_DRAWINGS, GREEN),
            criterion(Aspects.MATERIAL_SPECS, GREEN),
            criterion(Aspects.HARDWARE_SPECS, GREEN),
            criterion(Aspects.FINISH_SPECS, GREEN),
            criterion(Aspects.JOINERY_DETAILS, GREEN),
            criterion(Aspects.INTERNAL_DESIGN_REVIEW, GREEN),
            # Custom work never goes to the shop without the client's sign-off
            criterion(Aspects.CLIENT_APPROVAL, GREEN, allow_not_applicable=False),
        ),
        should_meet=(
            criterion(Aspects.TOLERANCES, GREEN),
            criterion(Aspects.ASSEMBLY_INSTRUCTIONS, GREEN),
            criterion(Aspects.MATERIAL_AVAILABILITY, AMBER_OR_GREEN),
            criterion(Aspects.COST_VALIDATION, AMBER_OR_GREEN),
        ),
        minimum_readiness=60,
    ),
    DesignStage.PRODUCTION_READY: GateCriteriaSet(
        must_meet=(_ALL_GREEN,),
        minimum_readiness=90,
    ),
    # --- Procurement -----------------------------------------------------
    DesignStage.PROCURE_QUOTE: GateCriteriaSet(
        must_meet=(criterion(Aspects.MATERIAL_SPECS, AMBER_OR_GREEN),),
        should_meet=(criterion(Aspects.OVERALL_DIMENSIONS, AMBER_OR_GREEN),),
        minimum_readiness=20,
    ),
    DesignStage.PROCURE_APPROVE: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.MATERIAL_SPECS, GREEN),
            criterion(Aspects.COST_VALIDATION, AMBER_OR_GREEN),
        ),
        should_meet=(criterion(Aspects.FINISH_SPECS, GREEN),),
        minimum_readiness=40,
    ),
    DesignStage.PROCURE_ORDER: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.COST_VALIDATION, GREEN),
            criterion(Aspects.CLIENT_APPROVAL, GREEN),
        ),
        should_meet=(criterion(Aspects.INTERNAL_DESIGN_REVIEW, GREEN),),
        minimum_readiness=60,
    ),
    DesignStage.PROCURE_RECEIVED: GateCriteriaSet(
        must_meet=(_ALL_GREEN,),
        minimum_readiness=90,
    ),
    # --- Architectural ---------------------------------------------------
    DesignStage.ARCH_SCHEMATIC: GateCriteriaSet(
        must_meet=(criterion(Aspects.OVERALL_DIMENSIONS, AMBER_OR_GREEN),),
        should_meet=(criterion(Aspects.MODEL_3D, AMBER_OR_GREEN),),
        minimum_readiness=20,
    ),
    DesignStage.ARCH_DEVELOPMENT: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.OVERALL_DIMENSIONS, GREEN),
            criterion(Aspects.MODEL_3D, AMBER_OR_GREEN),
        ),
        should_meet=(criterion(Aspects.INTERNAL_DESIGN_REVIEW, AMBER_OR_GREEN),),
        minimum_readiness=40,
    ),
    DesignStage.ARCH_CONSTRUCTION_DOCS: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.PRODUCTION_DRAWINGS, AMBER_OR_GREEN),
            criterion(Aspects.INTERNAL_DESIGN_REVIEW, GREEN),
        ),
        should_meet=(criterion(Aspects.TOLERANCES, AMBER_OR_GREEN),),
        minimum_readiness=60,
    ),
    DesignStage.ARCH_APPROVED: GateCriteriaSet(
        must_meet=(_ALL_GREEN,),
        minimum_readiness=90,
    ),
    # --- Construction ----------------------------------------------------
    DesignStage.CONST_SPEC: GateCriteriaSet(
        must_meet=(criterion(Aspects.OVERALL_DIMENSIONS, AMBER_OR_GREEN),),
        should_meet=(criterion(Aspects.MATERIAL_SPECS, AMBER_OR_GREEN),),
        minimum_readiness=20,
    ),
    DesignStage.CONST_QUOTE: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.OVERALL_DIMENSIONS, GREEN),
            criterion(Aspects.MATERIAL_SPECS, GREEN),
        ),
        should_meet=(criterion(Aspects.COST_VALIDATION, AMBER_OR_GREEN),),
        minimum_readiness=40,
    ),
    DesignStage.CONST_APPROVE: GateCriteriaSet(
        must_meet=(criterion(Aspects.COST_VALIDATION, GREEN),),
        should_meet=(criterion(Aspects.INTERNAL_DESIGN_REVIEW, GREEN),),
        minimum_readiness=50,
    ),
    DesignStage.CONST_IN_PROGRESS: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.CLIENT_APPROVAL, GREEN),
            criterion(Aspects.MATERIAL_AVAILABILITY, AMBER_OR_GREEN),
        ),
        should_meet=(criterion(Aspects.PROCESS_DOCUMENTATION, AMBER_OR_GREEN),),
        minimum_readiness=60,
    ),
    DesignStage.CONST_INSPECTION: GateCriteriaSet(
        must_meet=(
            criterion(Aspects.MATERIAL_AVAILABILITY, GREEN),
            criterion(Aspects.PROCESS_DOCUMENTATION, AMBER_OR_GREEN),
        ),
        should_meet=(criterion(Aspects.QUALITY_CRITERIA, GREEN),),
        minimum_readiness=75,
    ),
    DesignStage.CONST_COMPLETE: GateCriteriaSet(
        must_meet=(_ALL_GREEN,),
        minimum_readiness=90,
    ),
}

GATE_CRITERIA: MappingProxyType = MappingProxyType(_GATE_CRITERIA)


def criteria_for(stage: DesignStage) -> GateCriteriaSet | None:
    """Entry criteria for ``stage``, or None if entering it is ungated."""
    return GATE_CRITERIA.get(stage)
