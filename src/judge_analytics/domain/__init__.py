"""
Domain Layer

Defines constants, entities, value objects, and errors that form the core of the analytics model.
Has no dependencies on external libraries.
"""

from judge_analytics.domain.constants import (
    CRITERIA_LABELS,
    CRITERIA_NAMES,
    VALID_STATUSES,
)
from judge_analytics.domain.entities import (
    AnalyticsSnapshot,
    ConversationEntry,
    DetailedCase,
    ErrorCase,
    EvaluatedCase,
    RatingGroup,
)
from judge_analytics.domain.errors import (
    AnalyticsError,
    CapabilityCallFailure,
    CapabilityContractViolation,
    CapabilityError,
    CorrelationMiss,
    DataQualityError,
    EmptyDatasetError,
    ParseSkip,
)
from judge_analytics.domain.value_objects import (
    CriteriaDistributionEntry,
    CriteriaScores,
    CriteriaSummary,
    CriteriaTrend,
    ErrorDetail,
    ErrorSummary,
    JudgeEvaluationEntry,
    ModelInteractionEntry,
    ModelResponse,
    MostFrequentRating,
    NetworkLogEntry,
    RatingSummary,
    RatingTrend,
    StructuredLogs,
    TokenUsage,
)

__all__ = [
    # constants
    "CRITERIA_LABELS",
    "CRITERIA_NAMES",
    "VALID_STATUSES",
    # entities
    "AnalyticsSnapshot",
    "ConversationEntry",
    "DetailedCase",
    "ErrorCase",
    "EvaluatedCase",
    "RatingGroup",
    # errors
    "AnalyticsError",
    "CapabilityCallFailure",
    "CapabilityContractViolation",
    "CapabilityError",
    "CorrelationMiss",
    "DataQualityError",
    "EmptyDatasetError",
    "ParseSkip",
    # value objects
    "CriteriaDistributionEntry",
    "CriteriaScores",
    "CriteriaSummary",
    "CriteriaTrend",
    "ErrorDetail",
    "ErrorSummary",
    "JudgeEvaluationEntry",
    "ModelInteractionEntry",
    "ModelResponse",
    "MostFrequentRating",
    "NetworkLogEntry",
    "RatingSummary",
    "RatingTrend",
    "StructuredLogs",
    "TokenUsage",
]
