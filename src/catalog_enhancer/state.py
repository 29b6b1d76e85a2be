# ValidationResult, QualityRating and per-field enhancement state
# Result structures returned by the validation engine and the enhancement workflow

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


@dataclass
class QualityRating:
    """Quality score 0-100 with a short explanation."""

    rating: int
    remarks: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"rating": self.rating, "remarks": self.remarks}


@dataclass
class ValidationResult:
    """Validation verdict for one field of one product"""

    passed: bool
    issues: list[str] = field(default_factory=list)
    quality: Optional[QualityRating] = None
    validation_criteria: list[str] = field(default_factory=list)
    validation_prompt: Optional[str] = None  # asset report for subfield media rules

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "passed": self.passed,
            "issues": list(self.issues),
            "quality": self.quality.to_dict() if self.quality else None,
            "validationCriteria": list(self.validation_criteria),
        }
        if self.validation_prompt is not None:
            data["validationPrompt"] = self.validation_prompt
        return data


@dataclass
class EnhancementResult:
    """New field value plus the exact prompt that produced it."""

    value: str
    prompt: str


# Per-field status in the enhancement workflow
FieldStatus = Literal[
    "idle",
    "evaluating_quality",
    "skipped",
    "enhancing",
    "awaiting_decision",
    "accepted",
    "declined",
]

# Workflow-level stage
WorkflowStage = Literal["fields", "summary", "confirmed"]

# Outcome shown in the summary table
SummaryStatus = Literal["Accepted", "Not Changed", "Declined", "Skipped"]


@dataclass
class FieldEnhancementState:
    """Enhancement state of a single field inside a workflow run."""

    field_name: str
    status: FieldStatus = "idle"
    original: str = ""
    enhanced: Optional[str] = None
    quality: Optional[QualityRating] = None
    validation: Optional[ValidationResult] = None
    prompt: str = ""
    error: Optional[str] = None
    skipped: bool = False  # quality was above threshold; kept even after accept

    @property
    def is_loading(self) -> bool:
        return self.status == "evaluating_quality" or (
            self.status == "enhancing" and self.error is None
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fieldName": self.field_name,
            "status": self.status,
            "isLoading": self.is_loading,
            "original": self.original,
            "enhanced": self.enhanced,
            "quality": self.quality.to_dict() if self.quality else None,
            "validation": self.validation.to_dict() if self.validation else None,
            "prompt": self.prompt,
            "error": self.error,
            "skipped": self.skipped,
        }


@dataclass
class SummaryRow:
    field_name: str
    status: SummaryStatus
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"fieldName": self.field_name, "status": self.status, "value": self.value}
