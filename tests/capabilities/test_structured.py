"""
Tests for capabilities/structured.py
"""

import json
from unittest.mock import MagicMock

import pytest

from judge_analytics.capabilities.schemas import (
    AnomalyDetection,
    DetectorOutput,
    SummaryReport,
    ValidationDecision,
)
from judge_analytics.capabilities.structured import (
    StructuredCapability,
    extract_json,
    parse_structured_output,
)
from judge_analytics.domain.errors import CapabilityCallFailure, CapabilityContractViolation
from judge_analytics.domain.value_objects import ModelResponse


class TestExtractJson:
    def test_fenced_block(self):
        raw = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert extract_json(raw) == '{"a": 1}'

    def test_unlabelled_fence(self):
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_outermost_braces(self):
        assert extract_json('Result: {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_plain_text(self):
        assert extract_json("no json here") == "no json here"


class TestParseStructuredOutput:
    """Tests for schema validation of capability output"""

    def test_camel_case_wire_names(self):
        raw = json.dumps({
            "hasAnomalies": False,
            "anomalies": [],
            "overallRisk": "low",
            "confidence": 8,
        })
        detection = parse_structured_output(raw, DetectorOutput)
        assert detection.has_anomalies is False
        assert detection.overall_risk == "low"
        assert detection.handoff is None

    def test_null_anomalies_is_empty_list(self):
        raw = '{"hasAnomalies": false, "anomalies": null, "overallRisk": "low", "confidence": 7}'
        assert parse_structured_output(raw, AnomalyDetection).anomalies == []

    def test_handoff_accepts_legacy_count_key(self):
        raw = json.dumps({
            "hasAnomalies": True,
            "anomalies": [],
            "overallRisk": "medium",
            "confidence": 6,
            "handoff": {"reason": "validate", "anomaliesCount": 2, "validationContext": "ctx"},
        })
        assert parse_structured_output(raw, DetectorOutput).handoff.candidate_count == 2

    def test_decision_accepts_legacy_title_key(self):
        decision = ValidationDecision.model_validate({
            "potentialAnomaly": "Narrow range",
            "decision": "REJECTED",
            "reason": "expected for a high performing run",
            "confidence": 8,
        })
        assert decision.candidate_title == "Narrow range"

    @pytest.mark.parametrize("raw", [
        "not json at all",
        '{"hasAnomalies": false, "overallRisk": "extreme", "confidence": 5}',
        '{"hasAnomalies": false, "overallRisk": "low", "confidence": 11}',
        '{"overallRisk": "low", "confidence": 5}',
    ])
    def test_violations(self, raw):
        with pytest.raises(CapabilityContractViolation):
            parse_structured_output(raw, AnomalyDetection, "detector")

    def test_summary_requires_key_findings(self):
        raw = json.dumps({
            "overallAssessment": "good",
            "executiveSummary": "fine",
            "keyFindings": [],
            "confidence": 7,
        })
        with pytest.raises(CapabilityContractViolation, match="summary"):
            parse_structured_output(raw, SummaryReport, "summary")

    def test_overlong_title_rejected(self):
        raw = json.dumps({
            "hasAnomalies": True,
            "anomalies": [{
                "type": "outlier",
                "severity": "low",
                "title": "x" * 101,
                "description": "d",
                "recommendation": "r",
            }],
            "overallRisk": "low",
            "confidence": 5,
        })
        with pytest.raises(CapabilityContractViolation):
            parse_structured_output(raw, AnomalyDetection)


class TestStructuredCapability:
    def test_invoke_sends_instructions(self):
        client = MagicMock()
        client.generate.return_value = ModelResponse(
            output='```json\n{"hasAnomalies": false, "anomalies": [], "overallRisk": "low", "confidence": 9}\n```',
            latency_ms=12,
            model_name="gpt-4o-mini",
        )
        capability = StructuredCapability("detector", client, "INSTRUCTIONS", DetectorOutput)

        result = capability.invoke("prompt text")

        client.generate.assert_called_once_with("prompt text", system_prompt="INSTRUCTIONS")
        assert isinstance(result, DetectorOutput)
        assert result.confidence == 9

    def test_untranslated_client_error_becomes_call_failure(self):
        """Errors the client did not translate still surface as CapabilityCallFailure"""
        client = MagicMock()
        client.generate.side_effect = IndexError("list index out of range")
        capability = StructuredCapability("summary", client, "i", SummaryReport)

        with pytest.raises(CapabilityCallFailure, match="summary call failed: IndexError") as exc:
            capability.invoke("prompt")

        assert isinstance(exc.value.__cause__, IndexError)

    def test_call_failure_passes_through(self):
        client = MagicMock()
        failure = CapabilityCallFailure("gpt-4o-mini call failed: timeout")
        client.generate.side_effect = failure
        capability = StructuredCapability("detector", client, "i", DetectorOutput)

        with pytest.raises(CapabilityCallFailure) as exc:
            capability.invoke("prompt")

        assert exc.value is failure
