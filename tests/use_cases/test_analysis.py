"""
End-to-end tests for use_cases/analysis.py

Runs the full pipeline on a temporary CSV and results bundle, with model
clients replaced by a MagicMock factory.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest

from judge_analytics.analytics_config import AnalyticsConfig, CapabilityConfig
from judge_analytics.domain.errors import CapabilityCallFailure, EmptyDatasetError
from judge_analytics.domain.value_objects import ModelResponse
from judge_analytics.logs.correlator import LogCorrelator
from judge_analytics.use_cases.analysis import run_ai_analytics, run_analysis

HEADER = "timestamp,test_name,rating,status,prompt,output,helpfulness,relevance,accuracy,depth,level_of_detail"

ROWS = [
    "2025-01-01T10:00:00Z,geography-question-1-nile,9,PASS,Longest river?,The Nile,9,10,9,8,9",
    "2025-01-01T10:01:00Z,geography-question-2-mount-everest,8.5,PASS,Tallest mountain?,Everest,9,9,9,8,8",
    "2025-01-01T10:02:00Z,geography-question-3-sahara,0,FAIL,Largest desert?,ERROR: timeout,,,,,",
    "2025-01-01T10:03:00Z,geography-question-4-amazon,bad,PASS,Largest rainforest?,Amazon,,,,,",
]

JUDGE_LOG = "\n".join([
    "╔══ JUDGE EVALUATION [2025-01-01T10:01:00.000Z] ════",
    "║ Rating: 8.5/10",
    "║ Status: PASS (threshold: 7)",
    "║ ── EXPLANATION ──",
    "║ Correct, slightly terse.",
    "╚════",
])

DETECTION = json.dumps({
    "hasAnomalies": True,
    "anomalies": [{
        "type": "statistical",
        "severity": "medium",
        "title": "Narrow rating range",
        "description": "Ratings span only 0.5 points",
        "evidence": ["min 8.5", "max 9"],
        "recommendation": "Add harder cases",
    }],
    "overallRisk": "medium",
    "confidence": 6,
    "handoff": {"reason": "validate", "candidateCount": 1, "validationContext": "2 tests"},
})

VALIDATION = json.dumps({
    "hasAnomalies": False,
    "anomalies": [],
    "overallRisk": "low",
    "confidence": 8,
    "validationDetails": {
        "totalPotentialAnomalies": 1,
        "validatedAnomalies": 0,
        "rejectedAnomalies": 1,
        "validationDecisions": [{
            "candidateTitle": "Narrow rating range",
            "decision": "REJECTED",
            "reason": "Two tests cannot establish a narrow range",
            "confidence": 8,
        }],
    },
})

SUMMARY = json.dumps({
    "overallAssessment": "good",
    "executiveSummary": "2 of 4 tests produced valid ratings averaging 8.75/10.",
    "keyFindings": ["One execution timeout", "One malformed row"],
    "confidence": 7,
})


@pytest.fixture
def run_dir(tmp_path):
    (tmp_path / "judge_results.csv").write_text("\n".join([HEADER, *ROWS]) + "\n", encoding="utf-8")
    results_dir = tmp_path / "test-results"
    results_dir.mkdir()
    (results_dir / "results.json").write_text(json.dumps({
        "suites": [{"specs": [{
            "title": "Geography Question 2: Mount Everest",
            "tests": [{"results": [{
                "startTime": "2025-01-01T10:01:00Z",
                "attachments": [{
                    "name": "Judge Logs",
                    "body": base64.b64encode(JUDGE_LOG.encode("utf-8")).decode("ascii"),
                }],
            }]}],
        }]}]
    }), encoding="utf-8")
    return tmp_path


def _factory(*outputs):
    clients = []
    for output in outputs:
        client = MagicMock()
        client.generate.return_value = ModelResponse(output=output, latency_ms=4, model_name="gpt-4o-mini")
        clients.append(client)
    return MagicMock(side_effect=clients), clients


class TestRunAnalysis:
    """Tests for run_analysis"""

    def test_full_run(self, run_dir):
        factory, (detector, validator, summary) = _factory(DETECTION, VALIDATION, SUMMARY)

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            AnalyticsConfig(),
            client_factory=factory,
            correlator=LogCorrelator(base_dir=run_dir),
        )

        rating = snapshot.rating_summary
        assert rating.total_tests == 4
        assert rating.valid_tests == 2
        assert rating.avg_rating == pytest.approx(8.75)
        assert rating.success_rate == 50.0

        errors = snapshot.error_summary
        assert errors.total_errors == 2
        assert errors.error_rate == 50.0
        assert set(errors.categories) == {"Timeout", "Data Quality"}
        assert errors.invalid_entries == ("geography-question-4-amazon",)

        assert [d.test_name for d in snapshot.test_details] == [
            "geography-question-2-mount-everest",
            "geography-question-1-nile",
        ]
        everest = snapshot.test_details[0]
        assert everest.explanation == "Correct, slightly terse."
        assert len(everest.logs.judge_evaluation) == 1
        assert snapshot.test_details[1].logs.is_empty
        assert snapshot.test_details[1].explanation == "Not available"
        assert [g.rating for g in snapshot.rating_groups] == ["9.0", "8.5"]

        ai = snapshot.ai_analytics
        assert ai is not None
        assert ai.anomalies.has_anomalies is False
        assert ai.anomalies.validation_details.rejected_anomalies == 1
        assert ai.summary.overall_assessment == "good"
        assert snapshot.warnings == ()

        detection_prompt = detector.generate.call_args.args[0]
        assert "- Invalid Entries Found: 1" in detection_prompt
        summary_prompt = summary.generate.call_args.args[0]
        assert "## No significant anomalies detected" in summary_prompt

        json.dumps(snapshot.to_dict())

    def test_ai_failure_keeps_statistics(self, run_dir):
        factory, (detector, _, _) = _factory(DETECTION, VALIDATION, SUMMARY)
        detector.generate.side_effect = CapabilityCallFailure("gpt-4o-mini call failed: timeout")

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            AnalyticsConfig(),
            client_factory=factory,
            correlator=LogCorrelator(base_dir=run_dir),
        )

        assert snapshot.ai_analytics is None
        assert snapshot.rating_summary.valid_tests == 2
        assert len(snapshot.test_details) == 2
        assert snapshot.warnings == (
            "AI analytics unavailable: CapabilityCallFailure: gpt-4o-mini call failed: timeout",
        )

    def test_untranslated_client_error_keeps_statistics(self, run_dir):
        """A client error outside the SDK exception list still degrades to a warning"""
        factory, (detector, _, _) = _factory(DETECTION, VALIDATION, SUMMARY)
        detector.generate.side_effect = TimeoutError("read timed out")

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            AnalyticsConfig(),
            client_factory=factory,
            correlator=LogCorrelator(base_dir=run_dir),
        )

        assert snapshot.ai_analytics is None
        assert snapshot.rating_summary.valid_tests == 2
        assert len(snapshot.test_details) == 2
        assert snapshot.warnings == (
            "AI analytics unavailable: CapabilityCallFailure: detector call failed: TimeoutError: read timed out",
        )

    def test_contract_violation_is_a_warning(self, run_dir):
        bad_validation = json.dumps({"hasAnomalies": False, "anomalies": [], "overallRisk": "low", "confidence": 8})
        factory, _ = _factory(DETECTION, bad_validation, SUMMARY)

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            AnalyticsConfig(),
            client_factory=factory,
            correlator=LogCorrelator(base_dir=run_dir),
        )

        assert snapshot.ai_analytics is None
        assert snapshot.warnings[0].startswith("AI analytics unavailable: CapabilityContractViolation")

    def test_disabled(self, run_dir):
        factory = MagicMock()
        config = AnalyticsConfig(capabilities=CapabilityConfig(enabled=False))

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            config,
            client_factory=factory,
            correlator=LogCorrelator(base_dir=run_dir),
        )

        factory.assert_not_called()
        assert snapshot.ai_analytics is None
        assert snapshot.warnings == ("AI analytics disabled (AI_ANALYTICS_ENABLED=false)",)

    def test_missing_bundle_still_produces_snapshot(self, tmp_path, run_dir):
        other_dir = tmp_path / "elsewhere"
        other_dir.mkdir()
        config = AnalyticsConfig(capabilities=CapabilityConfig(enabled=False))

        snapshot = run_analysis(
            run_dir / "judge_results.csv",
            config,
            correlator=LogCorrelator(config.correlation, base_dir=other_dir),
        )

        assert all(d.logs.is_empty for d in snapshot.test_details)

    def test_no_valid_rows_raises(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(HEADER + "\nt,a,bad,PASS,p,o,,,,,\n", encoding="utf-8")
        with pytest.raises(EmptyDatasetError):
            run_analysis(path, AnalyticsConfig(capabilities=CapabilityConfig(enabled=False)))

    def test_missing_csv_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_analysis(tmp_path / "missing.csv", AnalyticsConfig())


class TestRunAIAnalytics:
    def test_missing_credentials_become_warning(self):
        factory = MagicMock(side_effect=ValueError("OPENAI_API_KEY is not set"))
        result, warning = run_ai_analytics(MagicMock(), "x.csv", AnalyticsConfig(), client_factory=factory)
        assert result is None
        assert warning == "AI analytics unavailable: ValueError: OPENAI_API_KEY is not set"
