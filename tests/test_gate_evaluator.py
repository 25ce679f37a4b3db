"""Tests for design_manager.core.gate_evaluator: gate checks per target stage."""

from design_manager.core.gate_criteria import ALL, criterion
from design_manager.core.gate_evaluator import can_advance, check_criterion, check_next_stage
from design_manager.core.rag import Aspects
from design_manager.core.stage_tracks import DesignStage, SourcingType
from tests.fixtures_design_items import (
    AMBER,
    GREEN,
    NA,
    PRE_PRODUCTION_MUST,
    RED,
    make_item,
    rag,
    rag_from,
)


def _pre_production_candidate():
    """Every pre-production must-meet aspect green, readiness 55%."""
    values = {ref: GREEN for ref in PRE_PRODUCTION_MUST}
    values.update(
        {
            Aspects.OVERALL_DIMENSIONS: AMBER,
            Aspects.TOLERANCES: AMBER,
            Aspects.ASSEMBLY_INSTRUCTIONS: AMBER,
            Aspects.MATERIAL_AVAILABILITY: AMBER,
            Aspects.COST_VALIDATION: AMBER,
        }
    )
    return make_item(rag_status=rag_from(values, RED), current_stage=DesignStage.TECHNICAL)


class TestTerminalGate:
    def test_single_amber_blocks_production_ready(self):
        item = make_item(
            rag_status=rag(GREEN, client_approval=AMBER),
            current_stage=DesignStage.PRE_PRODUCTION,
        )
        result = can_advance(item, DesignStage.PRODUCTION_READY)

        assert result.can_advance is False
        assert result.overall_readiness == 97
        assert result.failures == ["ALL must be green (currently amber)"]
        assert result.warnings == []

    def test_all_green_passes(self):
        item = make_item(rag_status=rag(GREEN), current_stage=DesignStage.PRE_PRODUCTION)
        result = can_advance(item, DesignStage.PRODUCTION_READY)
        assert result.can_advance is True
        assert result.failures == []
        assert result.minimum_readiness == 90

    def test_not_applicable_aspects_do_not_block_all(self):
        item = make_item(
            rag_status=rag(GREEN, prototype_validation=NA, tooling_readiness=NA),
            current_stage=DesignStage.PRE_PRODUCTION,
        )
        assert can_advance(item, DesignStage.PRODUCTION_READY).can_advance is True

    def test_procurement_received_requires_all_green(self):
        item = make_item(
            rag_status=rag(GREEN, tooling_readiness=AMBER),
            sourcing_type=SourcingType.PROCURED,
            current_stage=DesignStage.PROCURE_ORDER,
        )
        result = can_advance(item, DesignStage.PROCURE_RECEIVED)

        assert result.can_advance is False
        assert result.failures == ["ALL must be green (currently amber)"]
        assert result.minimum_readiness == 90

    def test_all_reports_worst_status(self):
        item = make_item(rag_status=rag(GREEN, tolerances=AMBER, client_approval=RED))
        result = can_advance(item, DesignStage.PRODUCTION_READY)
        assert result.failures[0] == "ALL must be green (currently red)"


class TestMinimumReadiness:
    def test_readiness_below_minimum_is_only_failure(self):
        item = _pre_production_candidate()
        assert item.overall_readiness == 55

        result = can_advance(item, DesignStage.PRE_PRODUCTION)

        assert result.can_advance is False
        assert result.failures == ["Overall readiness 55% is below the 60% minimum"]
        assert result.minimum_readiness == 60

    def test_should_meet_reported_as_warnings(self):
        result = can_advance(_pre_production_candidate(), DesignStage.PRE_PRODUCTION)
        assert result.warnings == [
            "Tolerances should be green (currently amber)",
            "Assembly Instructions should be green (currently amber)",
        ]


class TestShouldMeet:
    def test_warnings_never_block(self):
        item = make_item(rag_status=rag(GREEN, model_3d=RED))
        result = can_advance(item, DesignStage.PRELIMINARY)

        assert result.can_advance is True
        assert result.failures == []
        assert result.warnings == ["3D Model should be amber or green (currently red)"]


class TestMustMeet:
    def test_failures_in_declaration_order(self):
        item = make_item(rag_status=rag(RED))
        result = can_advance(item, DesignStage.TECHNICAL)

        assert result.can_advance is False
        assert result.failures == [
            "Overall Dimensions must be green (currently red)",
            "3D Model must be amber or green (currently red)",
            "Material Specs must be amber or green (currently red)",
            "Internal Design Review must be amber or green (currently red)",
            "Overall readiness 0% is below the 40% minimum",
        ]
        assert len(result.warnings) == 3

    def test_not_applicable_satisfies_by_default(self):
        item = make_item(rag_status=rag(GREEN, overall_dimensions=NA, model_3d=NA))
        result = can_advance(item, DesignStage.TECHNICAL)
        assert result.can_advance is True

    def test_client_approval_cannot_be_not_applicable(self):
        item = make_item(
            rag_status=rag(GREEN, client_approval=NA), current_stage=DesignStage.TECHNICAL
        )
        result = can_advance(item, DesignStage.PRE_PRODUCTION)

        assert item.overall_readiness == 100
        assert result.can_advance is False
        assert result.failures == ["Client Approval must be green (currently not-applicable)"]


class TestCheckCriterion:
    def test_satisfied_returns_none(self):
        assert check_criterion(rag(GREEN), criterion(Aspects.MODEL_3D, GREEN)) is None

    def test_all_refusing_not_applicable(self):
        strict = criterion(ALL, GREEN, allow_not_applicable=False)
        assert check_criterion(rag(GREEN, tolerances=NA), strict) == (
            "ALL must be green (currently not-applicable)"
        )

    def test_all_not_applicable_is_satisfied(self):
        assert check_criterion(rag(NA), criterion(ALL, GREEN)) is None

    def test_verb(self):
        message = check_criterion(rag(RED), criterion(Aspects.TOLERANCES, GREEN), "should")
        assert message == "Tolerances should be green (currently red)"


class TestUngatedAndNavigation:
    def test_initial_stage_is_ungated(self):
        item = make_item(rag_status=rag(RED), current_stage=DesignStage.TECHNICAL)
        result = can_advance(item, DesignStage.CONCEPT)

        assert result.can_advance is True
        assert result.gated is False
        assert result.failures == []
        assert result.minimum_readiness is None

    def test_check_next_stage(self):
        item = make_item(rag_status=rag(RED), sourcing_type=SourcingType.PROCURED)
        result = check_next_stage(item)
        assert result.target_stage == DesignStage.PROCURE_QUOTE
        assert result.failures == [
            "Material Specs must be amber or green (currently red)",
            "Overall readiness 0% is below the 20% minimum",
        ]

    def test_check_next_stage_at_final_stage(self):
        item = make_item(current_stage=DesignStage.PRODUCTION_READY)
        assert check_next_stage(item) is None


class TestDeterminism:
    def test_same_input_same_result(self):
        item = _pre_production_candidate()
        assert can_advance(item, DesignStage.PRE_PRODUCTION) == can_advance(
            item, DesignStage.PRE_PRODUCTION
        )

    def test_does_not_modify_item(self):
        item = _pre_production_candidate()
        before = item.model_dump()
        can_advance(item, DesignStage.PRE_PRODUCTION)
        assert item.model_dump() == before
