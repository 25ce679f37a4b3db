"""Pydantic schemas for design items and their stage history."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from design_manager.core.exceptions import UnknownStageError
from design_manager.core.rag import RAGStatus, calculate_overall_readiness
from design_manager.core.stage_tracks import (
    DesignStage,
    SourcingType,
    normalize_sourcing_type,
    stages_for,
)


class StageTransitionRecord(BaseModel):
    """One accepted stage change. Immutable once appended to an item's history."""

    model_config = ConfigDict(frozen=True)

    from_stage: DesignStage
    to_stage: DesignStage
    transitioned_at: datetime
    transitioned_by: str
    notes: str | None = None
    is_override: bool = False
    is_revert: bool = False
    gate_check_passed: bool | None = Field(
        None, description="Result of the gate check; None when the gate was not evaluated"
    )
    readiness_at_transition: int = Field(..., ge=0, le=100)
    rag_snapshot: RAGStatus | None = Field(
        None, description="RAG status at the moment of the transition"
    )


class DesignItem(BaseModel):
    """A design item tracked through its stage track.

    ``overall_readiness`` is derived from ``rag_status`` on every read and
    cannot be assigned. Engine operations return new instances.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    project_id: UUID | None = None
    item_code: str = ""
    name: str = "Untitled Item"
    sourcing_type: SourcingType = SourcingType.MANUFACTURED
    current_stage: DesignStage
    rag_status: RAGStatus = Field(default_factory=RAGStatus)
    stage_history: tuple[StageTransitionRecord, ...] = ()
    stage_entered_at: datetime | None = None

    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    version: int = Field(default=0, ge=0, description="Optimistic concurrency token")

    @field_validator("sourcing_type", mode="before")
    @classmethod
    def _normalize_sourcing(cls, value: Any) -> SourcingType:
        return normalize_sourcing_type(value)

    @model_validator(mode="after")
    def _stage_on_track(self) -> "DesignItem":
        # current_stage must belong to the sourcing type's track
        if self.current_stage not in stages_for(self.sourcing_type):
            raise UnknownStageError(self.current_stage.value, self.sourcing_type)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overall_readiness(self) -> int:
        return calculate_overall_readiness(self.rag_status)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DesignItem":
        """Build from a storage row, ignoring the persisted readiness column."""
        data = {k: v for k, v in row.items() if k != "overall_readiness"}
        return cls.model_validate(data)

    def to_row(self) -> dict[str, Any]:
        """Serialize for storage; readiness is written for querying only."""
        return self.model_dump(mode="json")
