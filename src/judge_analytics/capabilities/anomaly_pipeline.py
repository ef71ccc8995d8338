"""
Anomaly detection / validation pipeline

Runs the detector once; if it reports candidate anomalies it must hand them
off to the validator, whose per-candidate decisions determine the final set.

    IDLE -> DETECTING -> NO_FINDINGS -> DONE
                      -> PENDING_VALIDATION -> DONE

Validation never starts before detection has completed, and candidates are
never surfaced without a validator decision.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from judge_analytics.capabilities.prompts import (
    AnalysisContext,
    build_detection_prompt,
    build_validation_prompt,
)
from judge_analytics.capabilities.schemas import (
    SEVERITY_ORDER,
    AnomalyCandidate,
    AnomalyDetection,
    DetectorOutput,
    ValidationDecision,
    ValidationDetails,
)
from judge_analytics.capabilities.structured import StructuredCapability
from judge_analytics.domain.errors import CapabilityContractViolation

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    NO_FINDINGS = "no_findings"
    PENDING_VALIDATION = "pending_validation"
    DONE = "done"


_TRANSITIONS: dict[PipelineState, tuple[PipelineState, ...]] = {
    PipelineState.IDLE: (PipelineState.DETECTING,),
    PipelineState.DETECTING: (PipelineState.NO_FINDINGS, PipelineState.PENDING_VALIDATION),
    PipelineState.NO_FINDINGS: (PipelineState.DONE,),
    PipelineState.PENDING_VALIDATION: (PipelineState.DONE,),
    PipelineState.DONE: (),
}


@dataclass(frozen=True)
class HandoffMessage:
    """What the validator receives from the detector"""
    reason: str
    candidate_count: int
    validation_context: str
    candidates: tuple[AnomalyCandidate, ...]
    detection_prompt: str


def _title_key(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip().casefold()


def check_handoff(detection: DetectorOutput, detection_prompt: str) -> HandoffMessage | None:
    """
    Enforce the hand-off contract on detector output

    Returns:
        HandoffMessage when there are candidates to validate, None when there are none

    Raises:
        CapabilityContractViolation: If candidates come without a hand-off,
            hasAnomalies disagrees with the candidate list, the hand-off count
            does not match, or candidate titles are not unique
    """
    candidates = tuple(detection.anomalies)
    handoff = detection.handoff

    if not candidates:
        if detection.has_anomalies:
            raise CapabilityContractViolation("detector reported hasAnomalies=true without any candidates")
        if handoff is not None and handoff.candidate_count != 0:
            raise CapabilityContractViolation(
                f"detector handed off {handoff.candidate_count} candidates but returned none"
            )
        return None

    if handoff is None:
        raise CapabilityContractViolation(
            f"detector returned {len(candidates)} candidate anomalies without the validation hand-off"
        )
    if not detection.has_anomalies:
        raise CapabilityContractViolation("detector returned candidates with hasAnomalies=false")
    if handoff.candidate_count != len(candidates):
        raise CapabilityContractViolation(
            f"hand-off candidateCount {handoff.candidate_count} does not match {len(candidates)} candidates"
        )
    keys = [_title_key(c.title) for c in candidates]
    if len(set(keys)) != len(keys):
        raise CapabilityContractViolation("detector returned candidates with duplicate titles")

    return HandoffMessage(
        reason=handoff.reason,
        candidate_count=handoff.candidate_count,
        validation_context=handoff.validation_context,
        candidates=candidates,
        detection_prompt=detection_prompt,
    )


def match_decisions(
    candidates: tuple[AnomalyCandidate, ...],
    decisions: list[ValidationDecision],
) -> list[ValidationDecision]:
    """
    Pair each candidate with exactly one decision (by title)

    Titles are compared exactly first, then ignoring case and whitespace.

    Returns:
        Decisions in candidate order

    Raises:
        CapabilityContractViolation: If a decision matches no candidate, a candidate
            gets more than one decision, or a candidate gets none
    """
    exact = {c.title: i for i, c in enumerate(candidates)}
    loose = {_title_key(c.title): i for i, c in enumerate(candidates)}
    assigned: dict[int, ValidationDecision] = {}

    for decision in decisions:
        index = exact.get(decision.candidate_title)
        if index is None:
            index = loose.get(_title_key(decision.candidate_title))
        if index is None:
            raise CapabilityContractViolation(
                f"validator decision for unknown candidate '{decision.candidate_title}'"
            )
        if index in assigned:
            raise CapabilityContractViolation(
                f"validator returned more than one decision for '{candidates[index].title}'"
            )
        assigned[index] = decision

    missing = [c.title for i, c in enumerate(candidates) if i not in assigned]
    if missing:
        raise CapabilityContractViolation(f"validator returned no decision for {missing}")
    return [assigned[i] for i in range(len(candidates))]


def overall_risk(anomalies: list[AnomalyCandidate]) -> str:
    """Highest severity among the anomalies ("low" when there are none)"""
    if not anomalies:
        return "low"
    return max((a.severity for a in anomalies), key=SEVERITY_ORDER.__getitem__)


class AnomalyPipeline:
    """
    Two-stage anomaly detection with a mandatory hand-off

    The detector and validator are independent capabilities. The pipeline
    holds the state of the current run and the last hand-off message for audit.
    """

    def __init__(
        self,
        detector: StructuredCapability[DetectorOutput],
        validator: StructuredCapability[AnomalyDetection],
    ) -> None:
        self._detector = detector
        self._validator = validator
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]
        self.last_handoff: HandoffMessage | None = None

    def _transition(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid pipeline transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    def run(self, context: AnalysisContext) -> AnomalyDetection:
        """
        Detect and validate anomalies for one run

        Args:
            context: Statistics, cases, and data quality counts of the run

        Returns:
            AnomalyDetection with only validated anomalies and the decision trail

        Raises:
            CapabilityCallFailure: If a capability call fails
            CapabilityContractViolation: If a capability breaks its output contract
        """
        self.state = PipelineState.IDLE
        self.history = [PipelineState.IDLE]
        self.last_handoff = None

        self._transition(PipelineState.DETECTING)
        detection_prompt = build_detection_prompt(context)
        detection = self._detector.invoke(detection_prompt)
        handoff = check_handoff(detection, detection_prompt)

        if handoff is None:
            self._transition(PipelineState.NO_FINDINGS)
            logger.info("Detector found no anomalies")
            result = AnomalyDetection(
                has_anomalies=False,
                anomalies=[],
                overall_risk="low",
                confidence=detection.confidence,
                validation_details=ValidationDetails(
                    total_potential_anomalies=0,
                    validated_anomalies=0,
                    rejected_anomalies=0,
                ),
            )
            self._transition(PipelineState.DONE)
            return result

        self._transition(PipelineState.PENDING_VALIDATION)
        self.last_handoff = handoff
        logger.info(
            "Handoff to validator: %s (%d candidates) - %s",
            handoff.reason, handoff.candidate_count, handoff.validation_context,
        )
        validation = self._validator.invoke(build_validation_prompt(handoff))
        result = self._reconcile(handoff.candidates, validation)
        self._transition(PipelineState.DONE)
        return result

    def _reconcile(
        self,
        candidates: tuple[AnomalyCandidate, ...],
        validation: AnomalyDetection,
    ) -> AnomalyDetection:
        """Derive the final result from the validator's decisions"""
        details = validation.validation_details
        if details is None:
            raise CapabilityContractViolation("validator output is missing validationDetails")

        decisions = match_decisions(candidates, details.validation_decisions)
        validated = [c for c, d in zip(candidates, decisions) if d.decision == "VALIDATED"]
        rejected_count = len(candidates) - len(validated)

        reported = (details.total_potential_anomalies, details.validated_anomalies, details.rejected_anomalies)
        if reported != (len(candidates), len(validated), rejected_count):
            logger.warning(
                "Validator counts %s disagree with its decisions; using (%d, %d, %d)",
                reported, len(candidates), len(validated), rejected_count,
            )

        logger.info(
            "Validation results - potential: %d, validated: %d, rejected: %d",
            len(candidates), len(validated), rejected_count,
        )
        for i, d in enumerate(decisions, 1):
            logger.info(
                "Decision #%d: %s - %s (reason: %s; math: %s; confidence: %d/10)",
                i, d.decision, d.candidate_title, d.reason, d.mathematical_check or "-", d.confidence,
            )

        return AnomalyDetection(
            has_anomalies=bool(validated),
            anomalies=validated,
            overall_risk=overall_risk(validated),
            confidence=validation.confidence,
            validation_details=ValidationDetails(
                total_potential_anomalies=len(candidates),
                validated_anomalies=len(validated),
                rejected_anomalies=rejected_count,
                validation_decisions=decisions,
            ),
        )
