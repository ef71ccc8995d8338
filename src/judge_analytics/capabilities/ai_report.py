"""
AI analytics report

Wires the detector, validator, and summary capabilities to model clients and
runs them in order: detection, validation, then summary.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from judge_analytics.analytics_config import AnalyticsConfig
from judge_analytics.capabilities.analysis_result import AnalysisMetadata, AnalysisResult
from judge_analytics.capabilities.anomaly_pipeline import AnomalyPipeline
from judge_analytics.capabilities.prompts import (
    DETECTOR_INSTRUCTIONS,
    SUMMARY_INSTRUCTIONS,
    VALIDATOR_INSTRUCTIONS,
    AnalysisContext,
)
from judge_analytics.capabilities.schemas import AnomalyDetection, DetectorOutput, SummaryReport
from judge_analytics.capabilities.structured import StructuredCapability
from judge_analytics.capabilities.summary_reporter import SummaryReporter
from judge_analytics.infrastructure.model_clients import ModelClient, create_client

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., ModelClient]


class AIAnalyticsReport:
    """Anomaly pipeline plus summary, configured from CapabilityConfig"""

    def __init__(self, config: AnalyticsConfig, client_factory: ClientFactory = create_client) -> None:
        """
        Args:
            config: Analytics configuration
            client_factory: Callable (model_name, config, max_tokens=, temperature=) -> ModelClient

        Raises:
            ValueError: If the provider's credentials are not configured
        """
        cap = config.capabilities
        detector_client = client_factory(
            cap.model, config, max_tokens=cap.detector_max_tokens, temperature=cap.detector_temperature,
        )
        validator_client = client_factory(
            cap.model, config, max_tokens=cap.validator_max_tokens, temperature=cap.detector_temperature,
        )
        summary_client = client_factory(
            cap.model, config, max_tokens=cap.summary_max_tokens, temperature=cap.summary_temperature,
        )
        self.pipeline = AnomalyPipeline(
            detector=StructuredCapability("detector", detector_client, DETECTOR_INSTRUCTIONS, DetectorOutput),
            validator=StructuredCapability("validator", validator_client, VALIDATOR_INSTRUCTIONS, AnomalyDetection),
        )
        self.reporter = SummaryReporter(
            StructuredCapability("summary", summary_client, SUMMARY_INSTRUCTIONS, SummaryReport),
        )

    def analyze(self, context: AnalysisContext, csv_path: str | Path) -> AnalysisResult:
        """
        Run anomaly detection/validation, then the summary

        Raises:
            CapabilityError: If any capability call fails or breaks its contract
        """
        start_time = time.time()
        logger.info("Analyzing anomalies...")
        anomalies = self.pipeline.run(context)
        logger.info("Generating summary...")
        summary = self.reporter.summarize(context, anomalies)
        processing_ms = int((time.time() - start_time) * 1000)
        return AnalysisResult(
            anomalies=anomalies,
            summary=summary,
            metadata=AnalysisMetadata(
                analysis_date=datetime.now(timezone.utc).isoformat(),
                csv_path=str(csv_path),
                processing_time_ms=processing_ms,
            ),
        )
