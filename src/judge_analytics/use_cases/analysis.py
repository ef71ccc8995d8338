"""
Analysis Run

Orchestrates one analytics run:

    ingest -> aggregate -> { correlate cases | detect/validate anomalies + summary } -> assemble

The AI branch depends only on the aggregates and runs concurrently with log
correlation. Its failure never prevents the statistics from being produced.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from judge_analytics.analytics_config import AnalyticsConfig, load_config
from judge_analytics.capabilities.ai_report import AIAnalyticsReport, ClientFactory
from judge_analytics.capabilities.analysis_result import AnalysisResult
from judge_analytics.capabilities.prompts import AnalysisContext
from judge_analytics.csv_loader import ingest_csv
from judge_analytics.domain.entities import AnalyticsSnapshot
from judge_analytics.domain.errors import CapabilityError
from judge_analytics.infrastructure.model_clients import create_client
from judge_analytics.logs.correlator import LogCorrelator
from judge_analytics.rating_stats import (
    criteria_distribution,
    criteria_trend,
    rating_trend,
    status_counts,
    summarize_criteria,
    summarize_errors,
    summarize_ratings,
)
from judge_analytics.use_cases.assembly import assemble
from judge_analytics.use_cases.enrichment import enrich_cases

logger = logging.getLogger(__name__)


def run_ai_analytics(
    context: AnalysisContext,
    csv_path: str | Path,
    config: AnalyticsConfig,
    client_factory: ClientFactory = create_client,
) -> tuple[AnalysisResult | None, str | None]:
    """
    Run the anomaly pipeline and summary, converting failures into a warning

    Returns:
        (AnalysisResult, None) on success, (None, warning) on failure
    """
    try:
        report = AIAnalyticsReport(config, client_factory=client_factory)
        return report.analyze(context, csv_path), None
    except (CapabilityError, ValueError) as e:
        logger.warning("AI analytics failed: %s", e)
        return None, f"AI analytics unavailable: {type(e).__name__}: {e}"


def run_analysis(
    csv_path: str | Path,
    config: AnalyticsConfig | None = None,
    client_factory: ClientFactory = create_client,
    correlator: LogCorrelator | None = None,
) -> AnalyticsSnapshot:
    """
    Produce the analytics snapshot of one judge run

    Args:
        csv_path: Path to the judge results CSV
        config: AnalyticsConfig (loads from env if not provided)
        client_factory: Model client factory for the AI capabilities
        correlator: LogCorrelator (built from config.correlation if not provided)

    Returns:
        AnalyticsSnapshot

    Raises:
        FileNotFoundError: If the CSV does not exist
        EmptyDatasetError: If the CSV has no valid cases
    """
    if config is None:
        config = load_config()
    if correlator is None:
        correlator = LogCorrelator(config.correlation)

    ingest = ingest_csv(csv_path, config.ingest)
    rating_summary = summarize_ratings(ingest.valid, error_count=len(ingest.errors))
    criteria_summary = summarize_criteria(ingest.valid)
    error_summary = summarize_errors(
        ingest.errors,
        total_rows=ingest.total_rows,
        detail_limit=config.ingest.error_detail_limit,
        invalid_example_limit=config.ingest.invalid_example_limit,
    )
    invalid = [e.test_name for e in ingest.data_quality_errors]
    context = AnalysisContext(
        rating_summary=rating_summary,
        criteria_summary=criteria_summary,
        cases=ingest.valid,
        invalid_entries_found=len(invalid),
        invalid_entries=tuple(invalid[:config.ingest.invalid_example_limit]),
    )

    warnings: list[str] = []
    ai_analytics: AnalysisResult | None = None
    with ThreadPoolExecutor(max_workers=1) as executor:
        ai_future: Future | None = None
        if config.capabilities.enabled:
            ai_future = executor.submit(run_ai_analytics, context, csv_path, config, client_factory)
        else:
            logger.info("AI analytics disabled")
            warnings.append("AI analytics disabled (AI_ANALYTICS_ENABLED=false)")

        test_details = enrich_cases(ingest.valid, correlator, config.correlation.max_workers)

        if ai_future is not None:
            ai_analytics, warning = ai_future.result()
            if warning:
                warnings.append(warning)

    snapshot = assemble(
        rating_summary=rating_summary,
        criteria_summary=criteria_summary,
        criteria_distribution=criteria_distribution(ingest.valid),
        criteria_trend=criteria_trend(ingest.valid),
        rating_trend=rating_trend(ingest.valid),
        status_counts=status_counts(ingest.valid),
        error_summary=error_summary,
        test_details=test_details,
        ai_analytics=ai_analytics,
        warnings=warnings,
    )
    logger.info(
        "Analysis complete: %d valid, %d errors, AI analytics %s",
        rating_summary.valid_tests, len(ingest.errors), "included" if ai_analytics else "missing",
    )
    return snapshot
