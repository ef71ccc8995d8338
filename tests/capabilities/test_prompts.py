"""
Tests for capabilities/prompts.py
"""

from judge_analytics.capabilities.anomaly_pipeline import HandoffMessage
from judge_analytics.capabilities.prompts import (
    DETECTOR_INSTRUCTIONS,
    SUMMARY_INSTRUCTIONS,
    VALIDATOR_INSTRUCTIONS,
    AnalysisContext,
    PromptConfig,
    build_detection_prompt,
    build_instructions,
    build_summary_prompt,
    build_validation_prompt,
)
from judge_analytics.capabilities.schemas import AnomalyCandidate, AnomalyDetection, SummaryReport
from judge_analytics.domain.entities import EvaluatedCase
from judge_analytics.domain.value_objects import CriteriaScores
from judge_analytics.rating_stats import summarize_criteria, summarize_ratings


def _cases(ratings, criteria=True):
    return tuple(
        EvaluatedCase(
            timestamp="2025-01-01T10:00:00Z",
            test_name=f"geography-question-{i}-topic",
            rating=r,
            status="PASS" if r >= 7 else "FAIL",
            prompt="p",
            output="o",
            criteria=CriteriaScores(9.0, 10.0, 9.0, 8.0, 9.0) if criteria else None,
        )
        for i, r in enumerate(ratings, 1)
    )


def _context(ratings=(9.0, 9.5, 9.0), criteria=True, invalid=()):
    cases = _cases(ratings, criteria)
    return AnalysisContext(
        rating_summary=summarize_ratings(cases, error_count=len(invalid)),
        criteria_summary=summarize_criteria(cases),
        cases=cases,
        invalid_entries_found=len(invalid),
        invalid_entries=tuple(invalid),
    )


def _candidate(title):
    return AnomalyCandidate(
        type="statistical",
        severity="medium",
        title=title,
        description="All ratings within 0.5 points",
        recommendation="Review judge calibration",
    )


class TestPerformanceLevel:
    def test_levels(self):
        assert _context((9.0, 9.5)).performance_level == "HIGH-PERFORMANCE"
        assert _context((7.0, 8.0)).performance_level == "GOOD-PERFORMANCE"
        assert _context((3.0, 8.0)).performance_level == "MIXED-PERFORMANCE"


class TestInstructions:
    def test_build_instructions(self):
        text = build_instructions(
            PromptConfig(role="You are a tester.", objectives=["Find bugs"], rules=["Be exact", "Be brief"]),
            SummaryReport,
        )
        assert text.startswith("You are a tester.")
        assert "  - Find bugs" in text
        assert "  2. Be brief" in text
        assert '"keyFindings"' in text

    def test_schemas_use_wire_names(self):
        assert '"hasAnomalies"' in DETECTOR_INSTRUCTIONS
        assert '"handoff"' in DETECTOR_INSTRUCTIONS
        assert '"validationDetails"' in VALIDATOR_INSTRUCTIONS
        assert '"executiveSummary"' in SUMMARY_INSTRUCTIONS


class TestDetectionPrompt:
    def test_contains_statistics_and_cases(self):
        prompt = build_detection_prompt(_context())
        assert "- Total Tests: 3" in prompt
        assert "Rating 9: 2 tests (66.7%)" in prompt
        assert "Rating 9.5: 1 tests (33.3%)" in prompt
        assert "- geography-question-1-topic: 9/10 [H:9 R:10 A:9 D:8 LD:9]" in prompt
        assert "Perfect Criteria Achievements (10.0/10): Relevance" in prompt
        assert "Narrow Range: Yes" in prompt
        assert "HANDOFF REQUIREMENT" in prompt

    def test_without_criteria(self):
        prompt = build_detection_prompt(_context(criteria=False))
        assert "Detailed criteria data not available" in prompt
        assert "[No criteria data]" in prompt

    def test_invalid_entries(self):
        prompt = build_detection_prompt(_context(invalid=("bad-1", "bad-2")))
        assert "- Invalid Entries Found: 2" in prompt
        assert "Examples of Invalid Entries: bad-1, bad-2" in prompt


class TestValidationPrompt:
    def test_includes_context_and_titles(self):
        handoff = HandoffMessage(
            reason="Found potential anomalies",
            candidate_count=2,
            validation_context="Analysis of 3 tests",
            candidates=(_candidate("Narrow range"), _candidate("Uniform criteria")),
            detection_prompt="ORIGINAL DETECTION PROMPT",
        )
        prompt = build_validation_prompt(handoff)
        assert "ORIGINAL DETECTION PROMPT" in prompt
        assert "  - Narrow range" in prompt
        assert "  - Uniform criteria" in prompt
        assert "Emit exactly 2 validationDecisions" in prompt
        assert '"affectedTests"' in prompt


class TestSummaryPrompt:
    def test_no_anomalies(self):
        anomalies = AnomalyDetection(has_anomalies=False, overall_risk="low", confidence=8)
        prompt = build_summary_prompt(_context(), anomalies)
        assert "## No significant anomalies detected" in prompt
        assert "Data Integrity: Clean dataset" in prompt

    def test_lists_only_given_anomalies(self):
        anomalies = AnomalyDetection(
            has_anomalies=True,
            anomalies=[_candidate("Narrow range")],
            overall_risk="medium",
            confidence=8,
        )
        prompt = build_summary_prompt(_context(invalid=("bad-1",)), anomalies)
        assert "- Narrow range (medium): All ratings within 0.5 points" in prompt
        assert "1 invalid entries detected and excluded" in prompt
