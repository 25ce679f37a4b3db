"""Design item API endpoints.

Exposes readiness, gate checks, RAG edits and stage transitions. Every
mutating endpoint loads the item, applies the engine operation and saves it
with an optimistic version check; gate checks are always re-run on the
freshly loaded item.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from design_manager.core.clock import utc_now
from design_manager.core.config import get_settings
from design_manager.core.exceptions import (
    ConcurrentModificationError,
    DesignItemNotFoundError,
    GateBlockedError,
    InvalidOverrideError,
    InvalidRevertError,
    StageGateError,
    UnknownAspectError,
    UnknownSourcingTypeError,
    UnknownStageError,
)
from design_manager.core.gate_evaluator import can_advance
from design_manager.core.logging import get_logger
from design_manager.core.rag import AspectRef, RAGCategory, RAGStatusValue, aggregate, readiness_band
from design_manager.core.schemas_design_items import DesignItem
from design_manager.core.stage_tracks import (
    DesignStage,
    StagePosition,
    next_stage,
    resolve_stage,
    stage_progress,
)
from design_manager.core.stage_transitions import (
    create_design_item,
    revert,
    transition,
    update_rag_aspect,
)
from design_manager.db.design_items import (
    insert_design_item,
    list_design_items,
    load_design_item,
    save_design_item,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/design-items", tags=["design_items"])


# =========================
# Request/Response Models
# =========================


class CreateDesignItemRequest(BaseModel):
    """Request to create a design item at the start of its track."""

    name: str = Field(..., min_length=1)
    created_by: str = Field(..., min_length=1)
    sourcing_type: str | None = None
    item_code: str = ""
    project_id: UUID | None = None


class RAGUpdateRequest(BaseModel):
    """Set one aspect, addressed as ``<category>.<aspect>``."""

    aspect: str = Field(..., description="e.g. design_completeness.model_3d")
    status: RAGStatusValue
    notes: str = ""
    updated_by: str = Field(..., min_length=1)
    expected_version: int | None = None


class TransitionRequest(BaseModel):
    """Request to move an item to another stage."""

    target_stage: str
    actor: str = Field(..., min_length=1)
    note: str | None = None
    is_override: bool = False
    expected_version: int | None = None


class RevertRequest(BaseModel):
    """Request to send an item back to an earlier stage."""

    target_stage: str
    actor: str = Field(..., min_length=1)
    note: str
    expected_version: int | None = None


class ReadinessResponse(BaseModel):
    item_id: UUID
    overall_readiness: int
    band: RAGStatusValue
    category_readiness: dict[RAGCategory, int]
    worst_status: RAGStatusValue
    status_counts: dict[RAGStatusValue, int]


class GateCheckResponse(BaseModel):
    item_id: UUID
    current_stage: DesignStage
    target_stage: DesignStage
    can_advance: bool
    failures: list[str]
    warnings: list[str]
    overall_readiness: int
    minimum_readiness: int | None
    gated: bool


class StageProgressEntry(BaseModel):
    stage: DesignStage
    label: str
    position: StagePosition
    expected_days: int | None
    days_in_stage: int | None


class StageProgressResponse(BaseModel):
    item_id: UUID
    current_stage: DesignStage
    next_stage: DesignStage | None
    stages: list[StageProgressEntry]


# =========================
# Error mapping
# =========================


def _http_error(error: StageGateError) -> HTTPException:
    if isinstance(error, DesignItemNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, GateBlockedError):
        return HTTPException(
            status_code=409,
            detail={
                "message": "Gate check failed",
                "failures": error.failures,
                "warnings": error.warnings,
            },
        )
    if isinstance(error, ConcurrentModificationError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(
        error,
        (
            InvalidOverrideError,
            InvalidRevertError,
            UnknownStageError,
            UnknownAspectError,
            UnknownSourcingTypeError,
        ),
    ):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _load(item_id: UUID) -> DesignItem:
    try:
        return load_design_item(item_id)
    except StageGateError as e:
        raise _http_error(e) from e


def _save(item: DesignItem, expected_version: int | None) -> DesignItem:
    try:
        return save_design_item(item, expected_version)
    except StageGateError as e:
        raise _http_error(e) from e


# =========================
# Endpoints
# =========================


@router.post("", response_model=DesignItem, status_code=201)
def create_item(request: CreateDesignItemRequest):
    """Create a design item with all aspects red at the first stage of its track."""
    try:
        item = create_design_item(
            request.name,
            request.created_by,
            now=utc_now(),
            sourcing_type=request.sourcing_type,
            item_code=request.item_code,
            project_id=request.project_id,
        )
    except StageGateError as e:
        raise _http_error(e) from e

    return insert_design_item(item)


@router.get("", response_model=list[DesignItem])
def list_items(project_id: UUID, stage: DesignStage | None = None):
    """List a project's design items, most recently updated first."""
    rows = list_design_items(project_id, stage)
    return [DesignItem.from_row(row) for row in rows]


@router.get("/{item_id}", response_model=DesignItem)
def get_item(item_id: UUID):
    return _load(item_id)


@router.get("/{item_id}/readiness", response_model=ReadinessResponse)
def get_readiness(item_id: UUID):
    """Readiness summary computed from the item's current RAG status."""
    item = _load(item_id)
    settings = get_settings()
    summary = aggregate(item.rag_status)

    return ReadinessResponse(
        item_id=item.id,
        overall_readiness=summary.overall_readiness,
        band=readiness_band(
            summary.overall_readiness,
            green_at=settings.READINESS_GREEN_THRESHOLD,
            amber_at=settings.READINESS_AMBER_THRESHOLD,
        ),
        category_readiness=summary.category_readiness,
        worst_status=summary.worst_status,
        status_counts=summary.status_counts,
    )


@router.get("/{item_id}/stages", response_model=StageProgressResponse)
def get_stage_progress(item_id: UUID):
    """Position of every stage in the item's track, with delay detection."""
    item = _load(item_id)
    settings = get_settings()
    progress = stage_progress(item, utc_now(), default_days=settings.DEFAULT_STAGE_DURATION_DAYS)

    return StageProgressResponse(
        item_id=item.id,
        current_stage=item.current_stage,
        next_stage=next_stage(item),
        stages=[StageProgressEntry(**vars(p)) for p in progress],
    )


@router.get("/{item_id}/gate-check", response_model=GateCheckResponse)
def gate_check(item_id: UUID, target_stage: str | None = None):
    """Evaluate the gate for ``target_stage`` (defaults to the next stage)."""
    item = _load(item_id)

    if target_stage is None:
        target = next_stage(item)
        if target is None:
            raise HTTPException(status_code=400, detail="Item is already at the final stage")
    else:
        try:
            target = resolve_stage(target_stage, item.sourcing_type)
        except StageGateError as e:
            raise _http_error(e) from e

    result = can_advance(item, target)
    return GateCheckResponse(
        item_id=item.id,
        current_stage=item.current_stage,
        target_stage=result.target_stage,
        can_advance=result.can_advance,
        failures=result.failures,
        warnings=result.warnings,
        overall_readiness=result.overall_readiness,
        minimum_readiness=result.minimum_readiness,
        gated=result.gated,
    )


@router.patch("/{item_id}/rag", response_model=DesignItem)
def update_rag(item_id: UUID, request: RAGUpdateRequest):
    """Set one RAG aspect; readiness is recomputed from the result."""
    item = _load(item_id)

    try:
        aspect = AspectRef.parse(request.aspect)
        updated = update_rag_aspect(
            item,
            aspect,
            request.status,
            request.updated_by,
            request.notes,
            now=utc_now(),
        )
    except StageGateError as e:
        raise _http_error(e) from e

    return _save(updated, request.expected_version)


@router.post("/{item_id}/transition", response_model=DesignItem)
def transition_item(item_id: UUID, request: TransitionRequest):
    """Move an item to another stage, optionally overriding a failed gate.

    Returns 409 with the failure list when the gate blocks the move.
    """
    item = _load(item_id)

    try:
        updated = transition(
            item,
            request.target_stage,
            request.actor,
            request.note,
            request.is_override,
            now=utc_now(),
        )
    except StageGateError as e:
        raise _http_error(e) from e

    return _save(updated, request.expected_version)


@router.post("/{item_id}/revert", response_model=DesignItem)
def revert_item(item_id: UUID, request: RevertRequest):
    """Send an item back to an earlier stage of its track."""
    item = _load(item_id)

    try:
        updated = revert(item, request.target_stage, request.actor, request.note, now=utc_now())
    except StageGateError as e:
        raise _http_error(e) from e

    return _save(updated, request.expected_version)
