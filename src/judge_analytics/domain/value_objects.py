"""
Domain Value Objects

Defines immutable data structures for criteria scores, token usage,
structured log entries, and derived statistics.
"""

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class CriteriaScores:
    """The five named judge sub-scores"""
    helpfulness: float
    relevance: float
    accuracy: float
    depth: float
    level_of_detail: float

    def as_dict(self) -> dict[str, float]:
        return {
            "helpfulness": self.helpfulness,
            "relevance": self.relevance,
            "accuracy": self.accuracy,
            "depth": self.depth,
            "level_of_detail": self.level_of_detail,
        }


@dataclass(frozen=True)
class TokenUsage:
    """Token breakdown of a single model call"""
    prompt: int = 0
    completion: int = 0
    total: int = 0


@dataclass(frozen=True)
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0


# ---------------------------------------------------------------------------
# Structured logs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NetworkLogEntry:
    """One HTTP request captured by the test runner"""
    timestamp: str
    method: str
    url: str
    status: int
    model: str | None = None
    payload: str | None = None
    response: str | None = None
    tokens: TokenUsage | None = None


@dataclass(frozen=True)
class ModelInteractionEntry:
    """One model call captured by the test runner"""
    timestamp: str
    model: str
    prompt: str
    response: str
    tokens: TokenUsage
    finish_reason: str


@dataclass(frozen=True)
class JudgeEvaluationEntry:
    """One judge verdict captured by the test runner"""
    timestamp: str
    rating: float
    status: str
    question: str
    answer: str
    explanation: str
    criteria: CriteriaScores | None = None


@dataclass(frozen=True)
class StructuredLogs:
    """The three typed log sequences recovered for one case"""
    network: tuple[NetworkLogEntry, ...] = ()
    model_interaction: tuple[ModelInteractionEntry, ...] = ()
    judge_evaluation: tuple[JudgeEvaluationEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.network or self.model_interaction or self.judge_evaluation)


# ---------------------------------------------------------------------------
# Derived statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MostFrequentRating:
    """Mode of the decimal rating distribution"""
    value: float
    count: int
    percentage: float


@dataclass(frozen=True)
class RatingSummary:
    """Rating statistics over the valid cases"""
    total_tests: int             # valid + error
    valid_tests: int
    pass_count: int
    avg_rating: float
    success_rate: float          # percentage of total_tests
    min_rating: float
    max_rating: float
    rating_range: float
    standard_deviation: float    # population
    integer_distribution: tuple[int, ...]   # 11 buckets, index = floor(rating)
    rating_distribution: tuple[int, ...]    # 10 buckets, index = floor(rating) - 1 clamped to [0, 9]
    decimal_distribution: Mapping[str, int]  # read-only
    most_frequent_rating: MostFrequentRating
    is_narrow_range: bool


@dataclass(frozen=True)
class CriteriaSummary:
    """Per-criterion mean across cases reporting all five criteria"""
    averages: CriteriaScores
    case_count: int
    perfect_criteria: tuple[str, ...] = ()


@dataclass(frozen=True)
class CriteriaDistributionEntry:
    """Min / max / mean of one criterion"""
    name: str
    label: str
    min: float
    max: float
    mean: float


@dataclass(frozen=True)
class CriteriaTrend:
    """Per-criterion series in chronological case order"""
    test_labels: tuple[str, ...]
    test_names: tuple[str, ...]
    series: Mapping[str, tuple[float, ...]]  # read-only


@dataclass(frozen=True)
class RatingTrend:
    """Ratings in chronological case order"""
    test_labels: tuple[str, ...]
    test_names: tuple[str, ...]
    ratings: tuple[float, ...]


@dataclass(frozen=True)
class ErrorDetail:
    """Display record of one error case"""
    timestamp: str
    test_name: str
    rating: float | None
    status: str
    prompt: str
    full_message: str
    short_message: str
    line_number: int  # CSV row ordinal, see ErrorCase
    category: str


@dataclass(frozen=True)
class ErrorSummary:
    """Error-rate reporting over the error cases"""
    total_errors: int
    error_rate: float
    categories: tuple[str, ...]
    category_counts: tuple[int, ...]
    category_examples: tuple[str, ...]
    details: tuple[ErrorDetail, ...] = ()
    invalid_entries_found: int = 0
    invalid_entries: tuple[str, ...] = field(default_factory=tuple)
