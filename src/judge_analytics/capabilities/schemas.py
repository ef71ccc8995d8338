"""
Capability output schemas

Pydantic models for the structured output of the detector, validator, and
summary capabilities. Wire names are camelCase (hasAnomalies, validationDetails, ...);
Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]
AnomalyType = Literal["statistical", "criteria-inconsistency", "temporal", "outlier"]
Decision = Literal["VALIDATED", "REJECTED"]
Assessment = Literal["excellent", "good", "concerning", "poor"]

SEVERITY_ORDER: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnomalyCandidate(_WireModel):
    """A finding reported by the detector (validated only if the validator confirms it)"""

    type: AnomalyType
    severity: Severity
    title: str = Field(max_length=100)
    description: str = Field(max_length=300)
    evidence: list[str] = Field(default_factory=list, max_length=5)
    recommendation: str = Field(max_length=200)
    affected_tests: list[str] | None = None


class ValidationDecision(_WireModel):
    """The validator's verdict on one candidate"""

    candidate_title: str = Field(
        max_length=100,
        validation_alias=AliasChoices("candidateTitle", "potentialAnomaly", "candidate_title"),
    )
    decision: Decision
    reason: str = Field(max_length=200)
    mathematical_check: str | None = Field(default=None, max_length=150)
    confidence: int = Field(ge=1, le=10)


class ValidationDetails(_WireModel):
    """Provenance of the validation stage"""

    total_potential_anomalies: int = Field(ge=0)
    validated_anomalies: int = Field(ge=0)
    rejected_anomalies: int = Field(ge=0)
    validation_decisions: list[ValidationDecision] = Field(default_factory=list)


class HandoffRequest(_WireModel):
    """The detector's request to transfer its candidates to the validator"""

    reason: str
    candidate_count: int = Field(
        ge=0,
        validation_alias=AliasChoices("candidateCount", "anomaliesCount", "candidate_count"),
    )
    validation_context: str = ""


class AnomalyDetection(_WireModel):
    """Anomaly report (the validator's output and the pipeline's final result)"""

    has_anomalies: bool
    anomalies: list[AnomalyCandidate] = Field(default_factory=list)
    overall_risk: Severity
    confidence: int = Field(ge=1, le=10)
    validation_details: ValidationDetails | None = None

    @field_validator("anomalies", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value


class DetectorOutput(AnomalyDetection):
    """Detector output: an anomaly report plus the optional hand-off request"""

    handoff: HandoffRequest | None = None


class SummaryReport(_WireModel):
    """Executive summary of a run"""

    overall_assessment: Assessment
    executive_summary: str = Field(max_length=500)
    key_findings: list[str] = Field(min_length=1, max_length=5)
    performance_highlights: list[str] = Field(default_factory=list, max_length=3)
    areas_of_concern: list[str] = Field(default_factory=list, max_length=3)
    recommendations: list[str] = Field(default_factory=list, max_length=5)
    confidence: int = Field(ge=1, le=10)
