"""
Rating Statistics

Aggregates valid cases into rating, criteria, trend, and error summaries.
All functions are pure: the same case set always yields the same summaries.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Sequence

import pandas as pd

from judge_analytics.domain.constants import (
    CRITERIA_LABELS,
    CRITERIA_NAMES,
    CRITERIA_TREND_MIN_CASES,
    DATA_QUALITY_CATEGORY,
    ERROR_CATEGORY_PATTERNS,
    NARROW_RANGE_THRESHOLD,
    OTHER_ERROR_CATEGORY,
    PERFECT_SCORE_TOLERANCE,
    VALID_STATUSES,
)
from judge_analytics.domain.entities import ErrorCase, EvaluatedCase
from judge_analytics.domain.errors import EmptyDatasetError
from judge_analytics.domain.timestamps import timestamp_sort_key
from judge_analytics.domain.value_objects import (
    CriteriaDistributionEntry,
    CriteriaScores,
    CriteriaSummary,
    CriteriaTrend,
    ErrorDetail,
    ErrorSummary,
    MostFrequentRating,
    RatingSummary,
    RatingTrend,
)

logger = logging.getLogger(__name__)

_PROMPT_PREVIEW_CHARS = 60
_MESSAGE_PREVIEW_CHARS = 120


def rating_key(rating: float) -> str:
    """Exact decimal key of a rating ("9" for 9.0, "8.5" for 8.5)"""
    return str(int(rating)) if float(rating).is_integer() else str(rating)


def _most_frequent(ratings: Sequence[float]) -> tuple[dict[str, int], MostFrequentRating]:
    """Build the decimal histogram, tracking the running maximum-count key.

    A key replaces the current leader only when its count strictly exceeds it.
    """
    distribution: dict[str, int] = {}
    best_value, best_count = 0.0, 0
    for rating in ratings:
        key = rating_key(rating)
        distribution[key] = distribution.get(key, 0) + 1
        if distribution[key] > best_count:
            best_value, best_count = rating, distribution[key]
    percentage = best_count / len(ratings) * 100 if ratings else 0.0
    return distribution, MostFrequentRating(value=best_value, count=best_count, percentage=percentage)


def summarize_ratings(valid: Sequence[EvaluatedCase], error_count: int = 0) -> RatingSummary:
    """
    Compute rating statistics over the valid cases

    Args:
        valid: Valid cases (ratings in (0, 10])
        error_count: Number of error cases, included in total_tests

    Returns:
        RatingSummary

    Raises:
        EmptyDatasetError: If there are no valid cases
    """
    if not valid:
        raise EmptyDatasetError("No valid test data found; cannot compute statistics")

    ratings = pd.Series([c.rating for c in valid], dtype=float)
    valid_count = len(ratings)
    total_tests = valid_count + error_count
    pass_count = sum(1 for c in valid if c.status == "PASS")

    min_rating = float(ratings.min())
    max_rating = float(ratings.max())
    rating_range = max_rating - min_rating

    floors = (ratings // 1).astype(int)
    integer_distribution = floors.value_counts().reindex(range(11), fill_value=0)
    rating_distribution = (floors - 1).clip(0, 9).value_counts().reindex(range(10), fill_value=0)

    decimal_distribution, most_frequent = _most_frequent([c.rating for c in valid])

    return RatingSummary(
        total_tests=total_tests,
        valid_tests=valid_count,
        pass_count=pass_count,
        avg_rating=float(ratings.mean()),
        success_rate=pass_count / total_tests * 100,
        min_rating=min_rating,
        max_rating=max_rating,
        rating_range=rating_range,
        standard_deviation=float(ratings.std(ddof=0)),
        integer_distribution=tuple(int(n) for n in integer_distribution),
        rating_distribution=tuple(int(n) for n in rating_distribution),
        decimal_distribution=MappingProxyType(decimal_distribution),
        most_frequent_rating=most_frequent,
        is_narrow_range=rating_range < NARROW_RANGE_THRESHOLD,
    )


def _criteria_frame(valid: Sequence[EvaluatedCase]) -> pd.DataFrame:
    """DataFrame of criteria scores (one row per case reporting all five)"""
    rows = [c.criteria.as_dict() for c in valid if c.criteria is not None]
    return pd.DataFrame(rows, columns=CRITERIA_NAMES)


def summarize_criteria(valid: Sequence[EvaluatedCase]) -> CriteriaSummary | None:
    """
    Per-criterion means over the cases reporting criteria

    Returns:
        CriteriaSummary, or None when no case reports criteria
    """
    df = _criteria_frame(valid)
    if df.empty:
        return None
    means = df.mean()
    averages = CriteriaScores(**{name: float(means[name]) for name in CRITERIA_NAMES})
    perfect = tuple(
        name for name in CRITERIA_NAMES
        if abs(means[name] - 10.0) < PERFECT_SCORE_TOLERANCE
    )
    return CriteriaSummary(averages=averages, case_count=len(df), perfect_criteria=perfect)


def criteria_distribution(valid: Sequence[EvaluatedCase]) -> tuple[CriteriaDistributionEntry, ...] | None:
    """Min / max / mean per criterion, or None when no case reports criteria"""
    df = _criteria_frame(valid)
    if df.empty:
        return None
    stats = df.agg(["min", "max", "mean"])
    return tuple(
        CriteriaDistributionEntry(
            name=name,
            label=CRITERIA_LABELS[name],
            min=float(stats.at["min", name]),
            max=float(stats.at["max", name]),
            mean=float(stats.at["mean", name]),
        )
        for name in CRITERIA_NAMES
    )


def _chronological(cases: Sequence[EvaluatedCase]) -> list[EvaluatedCase]:
    # sorted() is stable: equal timestamps keep file order
    return sorted(cases, key=lambda c: timestamp_sort_key(c.timestamp))


def criteria_trend(
    valid: Sequence[EvaluatedCase],
    min_cases: int = CRITERIA_TREND_MIN_CASES,
) -> CriteriaTrend | None:
    """
    Per-criterion series in chronological order

    Returns None when fewer than min_cases cases report criteria.
    """
    with_criteria = _chronological([c for c in valid if c.criteria is not None])
    if len(with_criteria) < min_cases:
        return None
    series = {
        name: tuple(getattr(c.criteria, name) for c in with_criteria)
        for name in CRITERIA_NAMES
    }
    return CriteriaTrend(
        test_labels=tuple(f"Test {i}" for i in range(1, len(with_criteria) + 1)),
        test_names=tuple(c.test_name for c in with_criteria),
        series=MappingProxyType(series),
    )


def rating_trend(valid: Sequence[EvaluatedCase]) -> RatingTrend:
    """Ratings of all valid cases in chronological order"""
    ordered = _chronological(valid)
    return RatingTrend(
        test_labels=tuple(f"Test {i}" for i in range(1, len(ordered) + 1)),
        test_names=tuple(c.test_name for c in ordered),
        ratings=tuple(c.rating for c in ordered),
    )


def status_counts(valid: Sequence[EvaluatedCase]) -> dict[str, int]:
    """Number of valid cases per status"""
    counts = {status: 0 for status in VALID_STATUSES}
    for case in valid:
        counts[case.status] = counts.get(case.status, 0) + 1
    return counts


def error_message(case: ErrorCase) -> str:
    """Diagnostic message of an error case"""
    if case.kind == "data_quality":
        return f"Invalid row: {case.reason}"
    return case.output or case.reason


def categorize_error(case: ErrorCase) -> str:
    """
    Classify an error case by its diagnostic message

    Data quality rejects are always "Data Quality"; execution failures are
    matched against ERROR_CATEGORY_PATTERNS in order, falling back to "Other".
    """
    if case.kind == "data_quality":
        return DATA_QUALITY_CATEGORY
    message = error_message(case)
    for pattern, category in ERROR_CATEGORY_PATTERNS:
        if pattern in message:
            return category
    return OTHER_ERROR_CATEGORY


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def summarize_errors(
    errors: Sequence[ErrorCase],
    total_rows: int,
    detail_limit: int = 15,
    invalid_example_limit: int = 5,
) -> ErrorSummary | None:
    """
    Build the error-rate report

    Every error is counted; only the most recent detail_limit detail records and
    the first invalid_example_limit invalid identifiers are kept.

    Args:
        errors: Error cases in file order
        total_rows: All data rows (valid + error)
        detail_limit: Maximum number of detail records
        invalid_example_limit: Maximum number of invalid entry identifiers

    Returns:
        ErrorSummary, or None when there are no error cases
    """
    if not errors:
        return None

    categories: dict[str, list] = {}
    details = []
    for case in errors:
        category = categorize_error(case)
        message = error_message(case)
        entry = categories.setdefault(category, [0, message])
        entry[0] += 1
        details.append(ErrorDetail(
            timestamp=case.timestamp,
            test_name=case.test_name,
            rating=case.rating,
            status=case.status,
            prompt=_truncate(case.prompt, _PROMPT_PREVIEW_CHARS),
            full_message=message,
            short_message=_truncate(message, _MESSAGE_PREVIEW_CHARS),
            line_number=case.line_number,
            category=category,
        ))

    invalid = [case.test_name for case in errors if case.kind == "data_quality"]
    kept_details = details[-detail_limit:] if detail_limit > 0 else []
    logger.debug("Error categories: %s", {k: v[0] for k, v in categories.items()})

    return ErrorSummary(
        total_errors=len(errors),
        error_rate=len(errors) / total_rows * 100 if total_rows else 0.0,
        categories=tuple(categories),
        category_counts=tuple(v[0] for v in categories.values()),
        category_examples=tuple(v[1] for v in categories.values()),
        details=tuple(kept_details),
        invalid_entries_found=len(invalid),
        invalid_entries=tuple(invalid[:invalid_example_limit]),
    )
