"""
Tests for use_cases/enrichment.py
"""

from unittest.mock import MagicMock

from judge_analytics.domain.entities import EvaluatedCase
from judge_analytics.domain.value_objects import (
    JudgeEvaluationEntry,
    ModelInteractionEntry,
    StructuredLogs,
    TokenUsage,
)
from judge_analytics.use_cases.enrichment import (
    NOT_AVAILABLE,
    build_detailed_case,
    enrich_cases,
    resolve_explanation,
)


def _case(name="q1", timestamp="2025-01-01T10:00:00Z", prompt="What is 2+2?", explanation=""):
    return EvaluatedCase(
        timestamp=timestamp,
        test_name=name,
        rating=9.0,
        status="PASS",
        prompt=prompt,
        output="4",
        explanation=explanation,
        line_number=2,
    )


def _judge(explanation):
    return JudgeEvaluationEntry(
        timestamp="2025-01-01T10:00:01Z",
        rating=9.0,
        status="PASS",
        question="q",
        answer="a",
        explanation=explanation,
    )


def _interaction(ts, prompt, response):
    return ModelInteractionEntry(
        timestamp=ts,
        model="gpt-4o-mini",
        prompt=f"  {prompt}\n",
        response=f"{response}  ",
        tokens=TokenUsage(10, 5, 15),
        finish_reason="stop",
    )


class TestResolveExplanation:
    def test_csv_explanation_wins(self):
        logs = StructuredLogs(judge_evaluation=(_judge("from logs"),))
        assert resolve_explanation(_case(explanation="from csv"), logs) == "from csv"

    def test_first_judge_entry(self):
        logs = StructuredLogs(judge_evaluation=(_judge("first"), _judge("second")))
        assert resolve_explanation(_case(), logs) == "first"

    def test_not_available(self):
        assert resolve_explanation(_case(), StructuredLogs()) == NOT_AVAILABLE


class TestBuildDetailedCase:
    def test_simple_case_keeps_prompt(self):
        detailed = build_detailed_case(_case(), StructuredLogs())
        assert detailed.prompt == "What is 2+2?"
        assert detailed.output == "4"
        assert detailed.conversation_entries is None
        assert detailed.line_number == 2

    def test_conversation_case(self):
        logs = StructuredLogs(model_interaction=(
            _interaction("2025-01-01T10:00:00Z", "hi", "hello"),
            _interaction("2025-01-01T10:00:05Z", "bye", "goodbye"),
        ))
        case = _case(prompt="[user]: hi\n[assistant]: hello\n[user]: bye")

        detailed = build_detailed_case(case, logs)

        assert detailed.prompt == "Conversation with 2 interactions"
        assert detailed.output == "Conversation evaluated with 2 interactions"
        assert [e.user_message for e in detailed.conversation_entries] == ["hi", "bye"]
        assert detailed.conversation_entries[1].assistant_response == "goodbye"
        assert detailed.conversation_entries[0].tokens == TokenUsage(10, 5, 15)


class TestEnrichCases:
    def test_empty(self):
        assert enrich_cases([], MagicMock()) == []

    def test_correlates_each_case_and_sorts_newest_first(self):
        correlator = MagicMock()
        correlator.correlate.side_effect = lambda name, ts: (
            StructuredLogs(judge_evaluation=(_judge(f"{name} explained"),))
        )
        cases = [
            _case("old", "2025-01-01T09:00:00Z"),
            _case("new", "2025-01-01T11:00:00Z"),
            _case("mid", "2025-01-01T10:00:00Z"),
        ]

        detailed = enrich_cases(cases, correlator, max_workers=2)

        assert [d.test_name for d in detailed] == ["new", "mid", "old"]
        assert detailed[0].explanation == "new explained"
        assert correlator.correlate.call_count == 3
        correlator.correlate.assert_any_call("old", "2025-01-01T09:00:00Z")
