"""Pydantic models for the RAG (Red/Amber/Green) readiness schema."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from design_manager.core.exceptions import UnknownAspectError


# =============================================================================
# Status values
# =============================================================================


class RAGStatusValue(str, Enum):
    """Readiness of a single aspect."""

    RED = "red"
    AMBER = "amber"
    GREEN = "green"
    NOT_APPLICABLE = "not-applicable"


class RAGCategory(str, Enum):
    """The three fixed groups of readiness aspects."""

    DESIGN_COMPLETENESS = "design_completeness"
    MANUFACTURING_READINESS = "manufacturing_readiness"
    QUALITY_GATES = "quality_gates"


CATEGORY_LABELS = {
    RAGCategory.DESIGN_COMPLETENESS: "Design Completeness",
    RAGCategory.MANUFACTURING_READINESS: "Manufacturing Readiness",
    RAGCategory.QUALITY_GATES: "Quality Gates",
}


class RAGValue(BaseModel):
    """Status of one aspect plus who set it and when."""

    model_config = ConfigDict(frozen=True)

    status: RAGStatusValue = Field(
        default=RAGStatusValue.RED, description="Current RAG status"
    )
    notes: str = Field(default="", description="Free-text justification")
    updated_at: datetime | None = Field(None, description="When the status was last set")
    updated_by: str | None = Field(None, description="Actor who last set the status")


# =============================================================================
# Aspect groups (closed schema, not user-extensible)
# =============================================================================


class _AspectGroup(BaseModel):
    """Base for a category: every field is a RAGValue defaulting to red."""

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    @field_validator("*", mode="before")
    @classmethod
    def _missing_is_red(cls, value: Any) -> Any:
        # A null aspect in stored data means nobody assessed it yet
        if value is None:
            return RAGValue()
        return value

    def items(self) -> list[tuple[str, RAGValue]]:
        return [(key, getattr(self, key)) for key in type(self).model_fields]


class DesignCompletenessAspects(_AspectGroup):
    overall_dimensions: RAGValue = Field(default_factory=RAGValue)
    model_3d: RAGValue = Field(default_factory=RAGValue)
    production_drawings: RAGValue = Field(default_factory=RAGValue)
    material_specs: RAGValue = Field(default_factory=RAGValue)
    hardware_specs: RAGValue = Field(default_factory=RAGValue)
    finish_specs: RAGValue = Field(default_factory=RAGValue)
    joinery_details: RAGValue = Field(default_factory=RAGValue)
    tolerances: RAGValue = Field(default_factory=RAGValue)
    assembly_instructions: RAGValue = Field(default_factory=RAGValue)


class ManufacturingReadinessAspects(_AspectGroup):
    material_availability: RAGValue = Field(default_factory=RAGValue)
    hardware_availability: RAGValue = Field(default_factory=RAGValue)
    tooling_readiness: RAGValue = Field(default_factory=RAGValue)
    process_documentation: RAGValue = Field(default_factory=RAGValue)
    quality_criteria: RAGValue = Field(default_factory=RAGValue)
    cost_validation: RAGValue = Field(default_factory=RAGValue)


class QualityGatesAspects(_AspectGroup):
    internal_design_review: RAGValue = Field(default_factory=RAGValue)
    manufacturing_review: RAGValue = Field(default_factory=RAGValue)
    client_approval: RAGValue = Field(default_factory=RAGValue)
    prototype_validation: RAGValue = Field(default_factory=RAGValue)


CATEGORY_MODELS: dict[RAGCategory, type[_AspectGroup]] = {
    RAGCategory.DESIGN_COMPLETENESS: DesignCompletenessAspects,
    RAGCategory.MANUFACTURING_READINESS: ManufacturingReadinessAspects,
    RAGCategory.QUALITY_GATES: QualityGatesAspects,
}

# Aspect keys per category, in schema declaration order
ASPECT_KEYS: dict[RAGCategory, tuple[str, ...]] = {
    category: tuple(model.model_fields) for category, model in CATEGORY_MODELS.items()
}

ASPECT_LABELS = {
    "overall_dimensions": "Overall Dimensions",
    "model_3d": "3D Model",
    "production_drawings": "Production Drawings",
    "material_specs": "Material Specs",
    "hardware_specs": "Hardware Specs",
    "finish_specs": "Finish Specs",
    "joinery_details": "Joinery Details",
    "tolerances": "Tolerances",
    "assembly_instructions": "Assembly Instructions",
    "material_availability": "Material Availability",
    "hardware_availability": "Hardware Availability",
    "tooling_readiness": "Tooling Readiness",
    "process_documentation": "Process Documentation",
    "quality_criteria": "Quality Criteria",
    "cost_validation": "Cost Validation",
    "internal_design_review": "Internal Design Review",
    "manufacturing_review": "Manufacturing Review",
    "client_approval": "Client Approval",
    "prototype_validation": "Prototype Validation",
}


# =============================================================================
# Typed aspect reference
# =============================================================================


@dataclass(frozen=True)
class AspectRef:
    """A (category, aspect key) pair validated against the schema."""

    category: RAGCategory
    key: str

    def __post_init__(self) -> None:
        try:
            category = RAGCategory(self.category)
        except ValueError:
            raise UnknownAspectError(f"Unknown RAG category: {self.category!s}") from None
        if self.key not in ASPECT_KEYS[category]:
            raise UnknownAspectError(f"Unknown aspect '{self.key}' in {category.value}")
        object.__setattr__(self, "category", category)

    @property
    def path(self) -> str:
        return f"{self.category.value}.{self.key}"

    @property
    def label(self) -> str:
        return ASPECT_LABELS.get(self.key, self.key)

    @classmethod
    def parse(cls, path: str) -> "AspectRef":
        """Parse ``"<category>.<aspect>"`` as received at the API boundary."""
        category, sep, key = path.partition(".")
        if not sep or not key:
            raise UnknownAspectError(f"Aspect path must be '<category>.<aspect>': {path!r}")
        return cls(category, key)

    def __str__(self) -> str:
        return self.path


class Aspects:
    """Every aspect in the schema, resolved once at import time."""

    OVERALL_DIMENSIONS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "overall_dimensions")
    MODEL_3D = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "model_3d")
    PRODUCTION_DRAWINGS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "production_drawings")
    MATERIAL_SPECS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "material_specs")
    HARDWARE_SPECS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "hardware_specs")
    FINISH_SPECS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "finish_specs")
    JOINERY_DETAILS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "joinery_details")
    TOLERANCES = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "tolerances")
    ASSEMBLY_INSTRUCTIONS = AspectRef(RAGCategory.DESIGN_COMPLETENESS, "assembly_instructions")

    MATERIAL_AVAILABILITY = AspectRef(RAGCategory.MANUFACTURING_READINESS, "material_availability")
    HARDWARE_AVAILABILITY = AspectRef(RAGCategory.MANUFACTURING_READINESS, "hardware_availability")
    TOOLING_READINESS = AspectRef(RAGCategory.MANUFACTURING_READINESS, "tooling_readiness")
    PROCESS_DOCUMENTATION = AspectRef(RAGCategory.MANUFACTURING_READINESS, "process_documentation")
    QUALITY_CRITERIA = AspectRef(RAGCategory.MANUFACTURING_READINESS, "quality_criteria")
    COST_VALIDATION = AspectRef(RAGCategory.MANUFACTURING_READINESS, "cost_validation")

    INTERNAL_DESIGN_REVIEW = AspectRef(RAGCategory.QUALITY_GATES, "internal_design_review")
    MANUFACTURING_REVIEW = AspectRef(RAGCategory.QUALITY_GATES, "manufacturing_review")
    CLIENT_APPROVAL = AspectRef(RAGCategory.QUALITY_GATES, "client_approval")
    PROTOTYPE_VALIDATION = AspectRef(RAGCategory.QUALITY_GATES, "prototype_validation")


# =============================================================================
# Complete RAG status
# =============================================================================


class RAGStatus(BaseModel):
    """Fixed-shape readiness assessment for one design item."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    design_completeness: DesignCompletenessAspects = Field(
        default_factory=DesignCompletenessAspects
    )
    manufacturing_readiness: ManufacturingReadinessAspects = Field(
        default_factory=ManufacturingReadinessAspects
    )
    quality_gates: QualityGatesAspects = Field(default_factory=QualityGatesAspects)

    @field_validator("*", mode="before")
    @classmethod
    def _missing_category(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value

    def category(self, category: RAGCategory) -> _AspectGroup:
        return getattr(self, category.value)

    def get(self, ref: AspectRef) -> RAGValue:
        return getattr(self.category(ref.category), ref.key)

    def with_value(self, ref: AspectRef, value: RAGValue) -> "RAGStatus":
        """Return a copy with one aspect replaced."""
        group = self.category(ref.category).model_copy(update={ref.key: value})
        return self.model_copy(update={ref.category.value: group})

    def iter_aspects(self) -> Iterator[tuple[AspectRef, RAGValue]]:
        for category in RAGCategory:
            for key, value in self.category(category).items():
                yield AspectRef(category, key), value
