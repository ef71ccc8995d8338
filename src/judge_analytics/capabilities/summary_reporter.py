"""
Summary reporter

Single request/response capability that writes the executive summary of a run
from its statistics and the final (validated) anomaly set.
"""

from __future__ import annotations

import logging

from judge_analytics.capabilities.prompts import AnalysisContext, build_summary_prompt
from judge_analytics.capabilities.schemas import AnomalyDetection, SummaryReport
from judge_analytics.capabilities.structured import StructuredCapability

logger = logging.getLogger(__name__)


class SummaryReporter:
    """Generates the executive summary"""

    def __init__(self, capability: StructuredCapability[SummaryReport]) -> None:
        self._capability = capability

    def summarize(self, context: AnalysisContext, anomalies: AnomalyDetection) -> SummaryReport:
        """
        Generate the executive summary

        Args:
            context: Statistics of the run
            anomalies: Final anomaly set (validated anomalies only)

        Returns:
            SummaryReport

        Raises:
            CapabilityCallFailure: If the call fails
            CapabilityContractViolation: If the output fails schema validation
        """
        report = self._capability.invoke(build_summary_prompt(context, anomalies))
        logger.info("Summary generated: %s (confidence %d/10)", report.overall_assessment, report.confidence)
        return report
