"""Stage transitions and RAG edits for design items.

Every operation takes the item snapshot and returns a new item; the input
is never modified, so a rejected call leaves no trace. Timestamps come from
the caller (``now``) and actors are recorded as given.

Transition paths:
- normal:   gate re-evaluated for the requested target, blocked on failures
- override: gate skipped, a justification note is mandatory
- revert:   target must be earlier in the track, note mandatory, gate skipped

Direction is not restricted for normal or override transitions. Callers
must serialize mutations per item (see design_manager.db.design_items).
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from design_manager.core.exceptions import (
    GateBlockedError,
    InvalidOverrideError,
    InvalidRevertError,
)
from design_manager.core.gate_evaluator import can_advance
from design_manager.core.logging import get_logger, log_with_context
from design_manager.core.rag import AspectRef, RAGStatus, RAGStatusValue, RAGValue
from design_manager.core.schemas_design_items import DesignItem, StageTransitionRecord
from design_manager.core.stage_tracks import (
    DesignStage,
    SourcingType,
    initial_stage,
    normalize_sourcing_type,
    resolve_stage,
    stage_index,
)

logger = get_logger(__name__)


# =============================================================================
# Creation
# =============================================================================


def create_initial_rag_status(actor: str, now: datetime) -> RAGStatus:
    """RAG status with every aspect red, stamped with the creator."""
    rag_status = RAGStatus()
    initial = RAGValue(status=RAGStatusValue.RED, updated_at=now, updated_by=actor)
    for ref, _ in list(rag_status.iter_aspects()):
        rag_status = rag_status.with_value(ref, initial)
    return rag_status


def create_design_item(
    name: str,
    actor: str,
    *,
    now: datetime,
    sourcing_type: str | SourcingType | None = None,
    item_code: str = "",
    project_id: UUID | None = None,
) -> DesignItem:
    """New item at the first stage of its track, all aspects red, no history."""
    resolved_type = normalize_sourcing_type(sourcing_type)
    return DesignItem(
        project_id=project_id,
        item_code=item_code,
        name=name,
        sourcing_type=resolved_type,
        current_stage=initial_stage(resolved_type),
        rag_status=create_initial_rag_status(actor, now),
        stage_entered_at=now,
        created_at=now,
        created_by=actor,
        updated_at=now,
        updated_by=actor,
    )


# =============================================================================
# RAG edits
# =============================================================================


def update_rag_aspect(
    item: DesignItem,
    aspect: AspectRef,
    status: RAGStatusValue,
    actor: str,
    notes: str = "",
    *,
    now: datetime,
) -> DesignItem:
    """Set one aspect's status. Readiness follows from the new RAG status."""
    return batch_update_rag_aspects(item, [(aspect, status, notes)], actor, now=now)


def batch_update_rag_aspects(
    item: DesignItem,
    updates: Iterable[tuple[AspectRef, RAGStatusValue, str]],
    actor: str,
    *,
    now: datetime,
) -> DesignItem:
    """Apply several aspect updates as a single edit."""
    rag_status = item.rag_status
    changed: list[str] = []

    for aspect, status, notes in updates:
        value = RAGValue(
            status=RAGStatusValue(status),
            notes=notes or "",
            updated_at=now,
            updated_by=actor,
        )
        rag_status = rag_status.with_value(aspect, value)
        changed.append(f"{aspect.path}={value.status.value}")

    updated = item.model_copy(
        update={"rag_status": rag_status, "updated_at": now, "updated_by": actor}
    )

    log_with_context(
        logger,
        logging.DEBUG,
        "Updated RAG aspects",
        item_id=str(item.id),
        actor=actor,
        aspects=",".join(changed),
        readiness=updated.overall_readiness,
    )
    return updated


# =============================================================================
# Transitions
# =============================================================================


def _record(
    item: DesignItem,
    target: DesignStage,
    actor: str,
    note: str | None,
    now: datetime,
    *,
    is_override: bool = False,
    is_revert: bool = False,
    gate_check_passed: bool | None = None,
) -> DesignItem:
    record = StageTransitionRecord(
        from_stage=item.current_stage,
        to_stage=target,
        transitioned_at=now,
        transitioned_by=actor,
        notes=note,
        is_override=is_override,
        is_revert=is_revert,
        gate_check_passed=gate_check_passed,
        readiness_at_transition=item.overall_readiness,
        rag_snapshot=item.rag_status,
    )
    return item.model_copy(
        update={
            "current_stage": target,
            "stage_history": item.stage_history + (record,),
            "stage_entered_at": now,
            "updated_at": now,
            "updated_by": actor,
        }
    )


def transition(
    item: DesignItem,
    target_stage: str | DesignStage,
    actor: str,
    note: str | None = None,
    is_override: bool = False,
    *,
    now: datetime,
) -> DesignItem:
    """
    Move ``item`` to ``target_stage``.

    The gate is always re-evaluated here; a result from an earlier
    ``can_advance`` call is never trusted.

    Args:
        item: Current item snapshot
        target_stage: Requested stage on the item's track
        actor: Identifier of the user making the change
        note: Optional note; required when ``is_override`` is True
        is_override: Skip gate evaluation (audited)
        now: Transition timestamp

    Returns:
        New DesignItem with the stage changed and one history record appended

    Raises:
        UnknownStageError: If the target is not on the item's track
        InvalidOverrideError: If an override has no note
        GateBlockedError: If a normal transition fails its gate
    """
    target = resolve_stage(target_stage, item.sourcing_type)

    if is_override:
        if note is None or not note.strip():
            raise InvalidOverrideError("An override transition requires a justification note")

        log_with_context(
            logger,
            logging.WARNING,
            "Gate override",
            item_id=str(item.id),
            actor=actor,
            from_stage=item.current_stage.value,
            to_stage=target.value,
        )
        return _record(item, target, actor, note.strip(), now, is_override=True)

    result = can_advance(item, target)
    if not result.can_advance:
        log_with_context(
            logger,
            logging.INFO,
            "Transition blocked by gate",
            item_id=str(item.id),
            actor=actor,
            to_stage=target.value,
            failures=len(result.failures),
        )
        raise GateBlockedError(result.failures, result.warnings)

    log_with_context(
        logger,
        logging.INFO,
        "Stage transition",
        item_id=str(item.id),
        actor=actor,
        from_stage=item.current_stage.value,
        to_stage=target.value,
        warnings=len(result.warnings),
    )
    return _record(item, target, actor, note, now, gate_check_passed=True)


def revert(
    item: DesignItem,
    target_stage: str | DesignStage,
    actor: str,
    note: str | None,
    *,
    now: datetime,
) -> DesignItem:
    """
    Send ``item`` back to an earlier stage of its track.

    Raises:
        UnknownStageError: If the target is not on the item's track
        InvalidRevertError: If the target is not strictly earlier, or there is no note
    """
    target = resolve_stage(target_stage, item.sourcing_type)

    if note is None or not note.strip():
        raise InvalidRevertError("A revert requires a note explaining why")

    current_idx = stage_index(item, item.current_stage)
    if stage_index(item, target) >= current_idx:
        raise InvalidRevertError(
            f"Cannot revert from {item.current_stage.value} to {target.value}: "
            "target must be an earlier stage"
        )

    log_with_context(
        logger,
        logging.INFO,
        "Stage revert",
        item_id=str(item.id),
        actor=actor,
        from_stage=item.current_stage.value,
        to_stage=target.value,
    )
    return _record(item, target, actor, note.strip(), now, is_revert=True)
