"""
Snapshot Assembly

Merges statistics, enriched cases, and the AI analysis into one AnalyticsSnapshot.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Sequence

from judge_analytics.capabilities.analysis_result import AnalysisResult
from judge_analytics.domain.entities import AnalyticsSnapshot, DetailedCase, RatingGroup
from judge_analytics.domain.value_objects import (
    CriteriaDistributionEntry,
    CriteriaSummary,
    CriteriaTrend,
    ErrorSummary,
    RatingSummary,
    RatingTrend,
)


def group_by_rating(cases: Sequence[DetailedCase]) -> tuple[RatingGroup, ...]:
    """Group cases by exact one-decimal rating, highest rating first (case order kept within a group)"""
    groups: dict[str, list[DetailedCase]] = {}
    for case in cases:
        groups.setdefault(f"{case.rating:.1f}", []).append(case)
    return tuple(
        RatingGroup(rating=key, count=len(members), tests=tuple(members))
        for key, members in sorted(groups.items(), key=lambda kv: float(kv[0]), reverse=True)
    )


def assemble(
    rating_summary: RatingSummary,
    criteria_summary: CriteriaSummary | None,
    criteria_distribution: Sequence[CriteriaDistributionEntry] | None,
    criteria_trend: CriteriaTrend | None,
    rating_trend: RatingTrend,
    status_counts: Mapping[str, int],
    error_summary: ErrorSummary | None,
    test_details: Sequence[DetailedCase],
    ai_analytics: AnalysisResult | None = None,
    warnings: Sequence[str] = (),
) -> AnalyticsSnapshot:
    """
    Build the immutable snapshot of one run

    Args:
        test_details: DetailedCases in display order (most recent first)
        ai_analytics: AI analysis result, or None when that branch failed or is disabled
        warnings: Partial-result warnings (e.g. why ai_analytics is missing)

    Returns:
        AnalyticsSnapshot
    """
    details = tuple(test_details)
    return AnalyticsSnapshot(
        rating_summary=rating_summary,
        criteria_summary=criteria_summary,
        criteria_distribution=tuple(criteria_distribution) if criteria_distribution is not None else None,
        criteria_trend=criteria_trend,
        rating_trend=rating_trend,
        status_counts=MappingProxyType(dict(status_counts)),
        error_summary=error_summary,
        test_details=details,
        rating_groups=group_by_rating(details),
        ai_analytics=ai_analytics,
        warnings=tuple(warnings),
    )
