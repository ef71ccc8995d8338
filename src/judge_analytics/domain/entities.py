"""
Domain Entities

Defines the case records produced by ingestion, enriched by log correlation,
and the terminal analytics snapshot handed to renderers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import TYPE_CHECKING, Any, Mapping

from judge_analytics.domain.constants import (
    CONVERSATION_ASSISTANT_MARKER,
    CONVERSATION_USER_MARKER,
)
from judge_analytics.domain.value_objects import (
    CriteriaDistributionEntry,
    CriteriaScores,
    CriteriaSummary,
    CriteriaTrend,
    ErrorSummary,
    RatingSummary,
    RatingTrend,
    StructuredLogs,
    TokenUsage,
)

if TYPE_CHECKING:
    from judge_analytics.capabilities.analysis_result import AnalysisResult


@dataclass(frozen=True)
class EvaluatedCase:
    """One valid row of judge results"""
    timestamp: str
    test_name: str
    rating: float
    status: str
    prompt: str
    output: str
    criteria: CriteriaScores | None = None
    explanation: str = ""
    line_number: int = 0  # CSV row ordinal, header is row 1

    @property
    def is_conversation(self) -> bool:
        """True when the prompt is a multi-turn transcript"""
        return CONVERSATION_USER_MARKER in self.prompt and CONVERSATION_ASSISTANT_MARKER in self.prompt


@dataclass(frozen=True)
class ErrorCase:
    """A malformed or zero-rated row

    kind is "data_quality" for rows rejected by validation and
    "execution_failure" for rows whose rating parsed as exactly 0.

    line_number counts CSV records, not physical lines: a quoted cell that
    spans several lines still occupies one row.
    """
    timestamp: str
    test_name: str
    rating: float | None
    status: str
    prompt: str
    output: str
    line_number: int  # CSV row ordinal, header is row 1; 0 when unknown
    kind: str
    reason: str
    criteria: CriteriaScores | None = None
    explanation: str = ""


@dataclass(frozen=True)
class ConversationEntry:
    """One user/assistant turn recovered from model interaction logs"""
    user_message: str
    assistant_response: str
    timestamp: str
    tokens: TokenUsage


@dataclass(frozen=True)
class DetailedCase(EvaluatedCase):
    """An EvaluatedCase enriched with correlated logs"""
    logs: StructuredLogs = field(default_factory=StructuredLogs)
    conversation_entries: tuple[ConversationEntry, ...] | None = None


@dataclass(frozen=True)
class RatingGroup:
    """Cases sharing one exact decimal rating"""
    rating: str
    count: int
    tests: tuple[DetailedCase, ...]


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Immutable result of one analytics run"""
    rating_summary: RatingSummary
    criteria_summary: CriteriaSummary | None
    criteria_distribution: tuple[CriteriaDistributionEntry, ...] | None
    criteria_trend: CriteriaTrend | None
    rating_trend: RatingTrend
    status_counts: Mapping[str, int]  # read-only
    error_summary: ErrorSummary | None
    test_details: tuple[DetailedCase, ...]
    rating_groups: tuple[RatingGroup, ...]
    ai_analytics: AnalysisResult | None = None
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to plain JSON-serialisable data"""
        data = {
            f.name: _plain(getattr(self, f.name))
            for f in fields(self)
            if f.name != "ai_analytics"
        }
        data["ai_analytics"] = self.ai_analytics.to_dict() if self.ai_analytics else None
        return data


def _plain(value: Any) -> Any:
    # Walks fields instead of asdict(), which cannot copy read-only mappings
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value
