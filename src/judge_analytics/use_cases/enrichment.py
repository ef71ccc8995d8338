"""
Case Enrichment

Correlates every valid case with its logs (in parallel) and builds DetailedCases.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

from judge_analytics.domain.entities import ConversationEntry, DetailedCase, EvaluatedCase
from judge_analytics.domain.timestamps import timestamp_sort_key
from judge_analytics.domain.value_objects import StructuredLogs
from judge_analytics.logs.correlator import LogCorrelator

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not available"


def resolve_explanation(case: EvaluatedCase, logs: StructuredLogs) -> str:
    """CSV explanation, else the first judge log's explanation, else "Not available" """
    if case.explanation.strip():
        return case.explanation
    if logs.judge_evaluation and logs.judge_evaluation[0].explanation:
        return logs.judge_evaluation[0].explanation
    return NOT_AVAILABLE


def conversation_entries(logs: StructuredLogs) -> tuple[ConversationEntry, ...]:
    """One entry per model interaction, in chronological order"""
    return tuple(
        ConversationEntry(
            user_message=entry.prompt.strip(),
            assistant_response=entry.response.strip(),
            timestamp=entry.timestamp,
            tokens=entry.tokens,
        )
        for entry in logs.model_interaction
    )


def build_detailed_case(case: EvaluatedCase, logs: StructuredLogs) -> DetailedCase:
    """
    Enrich a case with its correlated logs

    Conversation cases get one ConversationEntry per model interaction and a
    synthesised prompt/output; simple cases keep their CSV prompt/output.
    """
    explanation = resolve_explanation(case, logs)
    if case.is_conversation:
        n = len(logs.model_interaction)
        return DetailedCase(
            timestamp=case.timestamp,
            test_name=case.test_name,
            rating=case.rating,
            status=case.status,
            prompt=f"Conversation with {n} interactions",
            output=f"Conversation evaluated with {n} interactions",
            criteria=case.criteria,
            explanation=explanation,
            line_number=case.line_number,
            logs=logs,
            conversation_entries=conversation_entries(logs),
        )
    return DetailedCase(
        timestamp=case.timestamp,
        test_name=case.test_name,
        rating=case.rating,
        status=case.status,
        prompt=case.prompt,
        output=case.output,
        criteria=case.criteria,
        explanation=explanation,
        line_number=case.line_number,
        logs=logs,
    )


def enrich_cases(
    cases: Sequence[EvaluatedCase],
    correlator: LogCorrelator,
    max_workers: int = 4,
) -> list[DetailedCase]:
    """
    Correlate and enrich all cases

    Correlations are independent and run on a thread pool.

    Args:
        cases: Valid cases
        correlator: Shared LogCorrelator
        max_workers: Thread pool size

    Returns:
        DetailedCases, most recent first
    """
    if not cases:
        return []

    logs_by_index: dict[int, StructuredLogs] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {
            executor.submit(correlator.correlate, case.test_name, case.timestamp): i
            for i, case in enumerate(cases)
        }
        for future in as_completed(futures):
            logs_by_index[futures[future]] = future.result()

    detailed = [build_detailed_case(case, logs_by_index[i]) for i, case in enumerate(cases)]
    matched = sum(1 for d in detailed if not d.logs.is_empty)
    logger.info("Correlated logs for %d of %d cases", matched, len(detailed))
    return sorted(detailed, key=lambda d: timestamp_sort_key(d.timestamp), reverse=True)
