"""Gate evaluation: may an item enter a target stage?

Pure functions over the item's RAG status. Criteria are checked in
declaration order so failure and warning messages are stable.
"""

from dataclasses import dataclass, field

from design_manager.core.gate_criteria import ALL, GateCriterion, criteria_for
from design_manager.core.rag import RAGStatus, RAGStatusValue, worst_status
from design_manager.core.schemas_design_items import DesignItem
from design_manager.core.stage_tracks import DesignStage, next_stage


@dataclass
class GateCheckResult:
    target_stage: DesignStage
    can_advance: bool
    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    overall_readiness: int = 0
    minimum_readiness: int | None = None
    gated: bool = True


# =============================================================================
# Criterion checks
# =============================================================================


def _format_statuses(criterion: GateCriterion) -> str:
    ordered = criterion.required_order or tuple(sorted(criterion.required_status))
    return " or ".join(s.value for s in ordered)


def _resolve_status(rag_status: RAGStatus, criterion: GateCriterion) -> RAGStatusValue:
    """Status a criterion is judged on.

    For ALL this is the worst applicable status; not-applicable aspects only
    count when the criterion refuses them.
    """
    if criterion.aspect == ALL:
        statuses = [value.status for _, value in rag_status.iter_aspects()]
        if not criterion.allow_not_applicable and RAGStatusValue.NOT_APPLICABLE in statuses:
            return RAGStatusValue.NOT_APPLICABLE
        return worst_status(statuses)
    return rag_status.get(criterion.aspect).status


def _is_satisfied(status: RAGStatusValue, criterion: GateCriterion) -> bool:
    if status in criterion.required_status:
        return True
    if status == RAGStatusValue.NOT_APPLICABLE:
        return criterion.allow_not_applicable
    return False


def check_criterion(rag_status: RAGStatus, criterion: GateCriterion, verb: str = "must") -> str | None:
    """Return a message if the criterion is violated, else None."""
    status = _resolve_status(rag_status, criterion)
    if _is_satisfied(status, criterion):
        return None
    return f"{criterion.label} {verb} be {_format_statuses(criterion)} (currently {status.value})"


# =============================================================================
# Gate evaluation
# =============================================================================


def can_advance(item: DesignItem, target_stage: DesignStage) -> GateCheckResult:
    """
    Evaluate whether ``item`` may enter ``target_stage``.

    Assumes ``target_stage`` is a valid stage; track membership is checked by
    the transition layer.

    Args:
        item: Design item to evaluate
        target_stage: Stage the item would move into

    Returns:
        GateCheckResult with blocking failures and advisory warnings
    """
    readiness = item.overall_readiness
    criteria = criteria_for(target_stage)

    # Ungated stage: open policy
    if criteria is None:
        return GateCheckResult(
            target_stage=target_stage,
            can_advance=True,
            overall_readiness=readiness,
            gated=False,
        )

    failures: list[str] = []
    warnings: list[str] = []

    for must in criteria.must_meet:
        message = check_criterion(item.rag_status, must, "must")
        if message:
            failures.append(message)

    for should in criteria.should_meet:
        message = check_criterion(item.rag_status, should, "should")
        if message:
            warnings.append(message)

    if readiness < criteria.minimum_readiness:
        failures.append(
            f"Overall readiness {readiness}% is below the {criteria.minimum_readiness}% minimum"
        )

    return GateCheckResult(
        target_stage=target_stage,
        can_advance=not failures,
        failures=failures,
        warnings=warnings,
        overall_readiness=readiness,
        minimum_readiness=criteria.minimum_readiness,
    )


def check_next_stage(item: DesignItem) -> GateCheckResult | None:
    """Gate check for the next stage of the item's track; None at the final stage."""
    target = next_stage(item)
    if target is None:
        return None
    return can_advance(item, target)
