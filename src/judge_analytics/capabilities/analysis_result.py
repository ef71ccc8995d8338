"""
AI analysis result

The anomaly/summary branch's contribution to the analytics snapshot.
"""

from dataclasses import asdict, dataclass

from judge_analytics.capabilities.schemas import AnomalyDetection, SummaryReport


@dataclass(frozen=True)
class AnalysisMetadata:
    """When and on what the analysis ran"""
    analysis_date: str
    csv_path: str
    processing_time_ms: int


@dataclass(frozen=True)
class AnalysisResult:
    """Validated anomalies, executive summary, and run metadata"""
    anomalies: AnomalyDetection
    summary: SummaryReport
    metadata: AnalysisMetadata

    def to_dict(self) -> dict:
        """Convert to plain JSON-serialisable data"""
        return {
            "anomalies": self.anomalies.model_dump(),
            "summary": self.summary.model_dump(),
            "metadata": asdict(self.metadata),
        }
