"""
Capabilities

Structured-output LLM capabilities: anomaly detection with validator hand-off,
and the executive summary.
"""

from judge_analytics.capabilities.ai_report import AIAnalyticsReport
from judge_analytics.capabilities.analysis_result import AnalysisMetadata, AnalysisResult
from judge_analytics.capabilities.anomaly_pipeline import AnomalyPipeline, HandoffMessage, PipelineState
from judge_analytics.capabilities.prompts import AnalysisContext
from judge_analytics.capabilities.schemas import (
    AnomalyCandidate,
    AnomalyDetection,
    DetectorOutput,
    HandoffRequest,
    SummaryReport,
    ValidationDecision,
    ValidationDetails,
)
from judge_analytics.capabilities.structured import StructuredCapability

__all__ = [
    "AIAnalyticsReport",
    "AnalysisContext",
    "AnalysisMetadata",
    "AnalysisResult",
    "AnomalyCandidate",
    "AnomalyDetection",
    "AnomalyPipeline",
    "DetectorOutput",
    "HandoffMessage",
    "HandoffRequest",
    "PipelineState",
    "StructuredCapability",
    "SummaryReport",
    "ValidationDecision",
    "ValidationDetails",
]
