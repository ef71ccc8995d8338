"""
Capability prompts

Builds the instructions and per-run prompts for the detector, validator,
and summary capabilities.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from judge_analytics.capabilities.schemas import (
    AnomalyDetection,
    DetectorOutput,
    SummaryReport,
)
from judge_analytics.domain.constants import CRITERIA_LABELS, NARROW_RANGE_THRESHOLD
from judge_analytics.domain.value_objects import CriteriaSummary, RatingSummary

if TYPE_CHECKING:
    from judge_analytics.capabilities.anomaly_pipeline import HandoffMessage
    from judge_analytics.domain.entities import EvaluatedCase

# What each criterion measures (shown to the detector next to the averages)
CRITERIA_DESCRIPTIONS = {
    "helpfulness": "How useful and actionable the response is for the user",
    "relevance": "How well the response addresses the specific question asked",
    "accuracy": "Factual correctness and reliability of information",
    "depth": "Thoroughness and comprehensiveness of analysis",
    "level_of_detail": "Appropriate specificity and detail level",
}

# Short labels for per-test criteria ([H:9 R:9 A:10 D:8 LD:9])
CRITERIA_ABBREVIATIONS = {
    "helpfulness": "H",
    "relevance": "R",
    "accuracy": "A",
    "depth": "D",
    "level_of_detail": "LD",
}


@dataclass(frozen=True)
class AnalysisContext:
    """Everything the capabilities see about one run"""
    rating_summary: RatingSummary
    criteria_summary: CriteriaSummary | None
    cases: tuple[EvaluatedCase, ...]
    invalid_entries_found: int = 0
    invalid_entries: tuple[str, ...] = ()

    @property
    def performance_level(self) -> str:
        avg = self.rating_summary.avg_rating
        if avg >= 9.0:
            return "HIGH-PERFORMANCE"
        if avg >= 7.0:
            return "GOOD-PERFORMANCE"
        return "MIXED-PERFORMANCE"


@dataclass(frozen=True)
class PromptConfig:
    """Role, objectives, and rules of one capability"""
    role: str
    objectives: list[str] = field(default_factory=list)
    rules: list[str] = field(default_factory=list)


def build_instructions(config: PromptConfig, schema: type[BaseModel]) -> str:
    """Render a PromptConfig plus the JSON schema the response must match"""
    parts: list[str] = [config.role, ""]
    if config.objectives:
        parts.append("Objectives:")
        parts.extend(f"  - {o}" for o in config.objectives)
        parts.append("")
    if config.rules:
        parts.append("Rules:")
        parts.extend(f"  {i}. {r}" for i, r in enumerate(config.rules, 1))
        parts.append("")
    parts.append("Respond ONLY with a JSON object matching this JSON schema:")
    parts.append(json.dumps(schema.model_json_schema(by_alias=True), indent=2))
    return "\n".join(parts)


DETECTOR_PROMPT = PromptConfig(
    role="You are an anomaly detector for LLM-as-judge test runs.",
    objectives=[
        "Find statistical, criteria-inconsistency, temporal, and outlier anomalies in the run.",
        "Report only findings that indicate a genuine risk or a systematic issue.",
    ],
    rules=[
        "Back every finding with exact numbers from the data.",
        "A cluster of high scores in a high-performing run is not an anomaly by itself.",
        "If you report any anomalies, you MUST fill the \"handoff\" object "
        "(reason, candidateCount, validationContext) so the findings can be validated.",
        "If there are no genuine issues, return hasAnomalies: false with an empty anomalies list and no handoff.",
        "Each anomaly title must be unique.",
    ],
)

VALIDATOR_PROMPT = PromptConfig(
    role="You are an adversarial reviewer validating anomalies reported for an LLM-as-judge test run.",
    objectives=[
        "Re-examine the full run data and reject false positives.",
        "Confirm only anomalies that the numbers actually support.",
    ],
    rules=[
        "Emit exactly one validationDecision per candidate, using the candidate's title as candidateTitle.",
        "Recompute the relevant arithmetic and state it in mathematicalCheck where applicable.",
        "Give every decision a reason and a confidence from 1 to 10.",
        "List only VALIDATED candidates in anomalies; set hasAnomalies accordingly.",
        "Always fill validationDetails with the totals of your decisions.",
    ],
)

SUMMARY_PROMPT = PromptConfig(
    role="You are a QA lead writing an executive summary of an LLM-as-judge test run.",
    objectives=[
        "Summarize overall quality, strengths, concerns, and next steps.",
    ],
    rules=[
        "Use exact numerical evidence from the data.",
        "Call out perfect criteria scores explicitly.",
        "Mention only the validated anomalies listed in the input.",
        "Give between 1 and 5 key findings.",
    ],
)

DETECTOR_INSTRUCTIONS = build_instructions(DETECTOR_PROMPT, DetectorOutput)
VALIDATOR_INSTRUCTIONS = build_instructions(VALIDATOR_PROMPT, AnomalyDetection)
SUMMARY_INSTRUCTIONS = build_instructions(SUMMARY_PROMPT, SummaryReport)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _distribution_lines(summary: RatingSummary) -> list[str]:
    total = summary.total_tests or 1
    return [
        f"Rating {key}: {count} tests ({count / total * 100:.1f}%)"
        for key, count in sorted(summary.decimal_distribution.items(), key=lambda kv: float(kv[0]))
    ]


def _rating_lines(summary: RatingSummary) -> list[str]:
    mf = summary.most_frequent_rating
    return [
        f"- Rating Range: {summary.rating_range:.1f} points "
        f"({_fmt(summary.min_rating)}-{_fmt(summary.max_rating)})",
        f"- Standard Deviation: {summary.standard_deviation:.3f}",
        f"- Most Frequent Rating: {_fmt(mf.value)} ({mf.percentage:.1f}% of tests)",
        f"- Narrow Range: {'Yes' if summary.is_narrow_range else 'No'} (range < {NARROW_RANGE_THRESHOLD})",
    ]


def _criteria_lines(criteria: CriteriaSummary | None, with_descriptions: bool) -> list[str]:
    if criteria is None:
        return ["Detailed criteria data not available"]
    averages = criteria.averages.as_dict()
    lines = []
    for name, label in CRITERIA_LABELS.items():
        line = f"- {label} ({averages[name]:.2f}/10)"
        if with_descriptions:
            line += f": {CRITERIA_DESCRIPTIONS[name]}"
        lines.append(line)
    perfect = ", ".join(CRITERIA_LABELS[n] for n in criteria.perfect_criteria) or "None achieved"
    lines.append("")
    lines.append(f"Perfect Criteria Achievements (10.0/10): {perfect}")
    return lines


def _case_line(case: EvaluatedCase) -> str:
    if case.criteria is None:
        detail = "[No criteria data]"
    else:
        scores = case.criteria.as_dict()
        detail = "[" + " ".join(
            f"{abbr}:{_fmt(scores[name])}" for name, abbr in CRITERIA_ABBREVIATIONS.items()
        ) + "]"
    return f"- {case.test_name}: {_fmt(case.rating)}/10 {detail}"


def build_detection_prompt(context: AnalysisContext) -> str:
    """Build the detector prompt for one run"""
    summary = context.rating_summary
    parts: list[str] = [
        "Analyze the following LLM test run data for anomalies:",
        "",
        "## Test Summary:",
        f"- Total Tests: {summary.total_tests}",
        f"- Valid Tests: {summary.valid_tests}",
        f"- Pass Rate: {summary.success_rate:.1f}%",
        f"- Average Rating: {summary.avg_rating:.2f}/10",
        "",
        "## Rating Analysis:",
        *_rating_lines(summary),
        "",
        "## Detailed Rating Distribution:",
        *_distribution_lines(summary),
        "",
        "## LLM Judge Criteria Context:",
        *_criteria_lines(context.criteria_summary, with_descriptions=True),
        "",
        "## Individual Test Performance Analysis:",
        *(_case_line(c) for c in context.cases),
        "",
        "## Data Quality Assessment:",
        f"- Invalid Entries Found: {context.invalid_entries_found}",
    ]
    if context.invalid_entries:
        parts.append(f"- Examples of Invalid Entries: {', '.join(context.invalid_entries)}")
    parts += [
        "",
        "## ANALYSIS INSTRUCTIONS:",
        f"Context: This is a {context.performance_level} test run (avg: {summary.avg_rating:.2f}).",
        "Focus on GENUINE anomalies that represent actual risks or systematic issues.",
        "",
        "## HANDOFF REQUIREMENT:",
        "If you detect ANY potential anomalies, you MUST include the handoff object with:",
        '- reason: "Found potential anomalies requiring validation to avoid false positives"',
        "- candidateCount: [number of anomalies detected]",
        f'- validationContext: "Analysis of {summary.total_tests} tests with {summary.avg_rating:.2f} avg rating"',
        "",
        "The validator will receive this entire context and can re-examine all data.",
        "If no genuine issues are found, return hasAnomalies: false directly.",
        "DO NOT return anomalies without the validation handoff.",
    ]
    return "\n".join(parts)


def build_validation_prompt(handoff: HandoffMessage) -> str:
    """Build the validator prompt: the full detection context plus the candidates to review"""
    candidates = [c.model_dump(by_alias=True) for c in handoff.candidates]
    titles = "\n".join(f"  - {c.title}" for c in handoff.candidates)
    parts: list[str] = [
        "The anomaly detector transferred its findings to you for validation.",
        "",
        f"Handoff reason: {handoff.reason}",
        f"Validation context: {handoff.validation_context}",
        "",
        "## Original detection context:",
        handoff.detection_prompt,
        "",
        f"## Candidate anomalies ({handoff.candidate_count}):",
        json.dumps(candidates, indent=2, ensure_ascii=False),
        "",
        "## VALIDATION REQUIREMENT:",
        f"Emit exactly {handoff.candidate_count} validationDecisions, one for each candidate title:",
        titles,
        f"validationDetails.totalPotentialAnomalies must be {handoff.candidate_count}, and "
        "validatedAnomalies + rejectedAnomalies must equal it.",
    ]
    return "\n".join(parts)


def build_summary_prompt(context: AnalysisContext, anomalies: AnomalyDetection) -> str:
    """Build the executive summary prompt from the statistics and the validated anomalies"""
    summary = context.rating_summary
    if anomalies.has_anomalies and anomalies.anomalies:
        anomaly_lines = ["## Detected Anomalies:"] + [
            f"- {a.title} ({a.severity}): {a.description}" for a in anomalies.anomalies
        ]
    else:
        anomaly_lines = ["## No significant anomalies detected"]

    if context.invalid_entries_found == 0:
        integrity = "Clean dataset"
    else:
        integrity = f"{context.invalid_entries_found} invalid entries detected and excluded"

    parts: list[str] = [
        "Create an executive summary for this LLM test run:",
        "",
        "## Test Performance:",
        f"- Tests: {summary.total_tests} ({summary.pass_count} passed)",
        f"- Success Rate: {summary.success_rate:.1f}%",
        f"- Average Rating: {summary.avg_rating:.2f}/10",
        "",
        "## Rating Analysis:",
        *_rating_lines(summary),
        "",
        "## Detailed Rating Distribution:",
        *_distribution_lines(summary),
        "",
        "## Criteria Performance Analysis:",
        *_criteria_lines(context.criteria_summary, with_descriptions=False),
        "",
        "## Data Quality Assessment:",
        f"- Data Integrity: {integrity}",
        "",
        *anomaly_lines,
        "",
        "Generate a comprehensive executive summary in the specified JSON format, "
        "emphasizing perfect criteria scores and using exact numerical evidence.",
    ]
    return "\n".join(parts)
