"""
judge-analytics-core

Statistics, log correlation, and validated anomaly detection for LLM-as-judge test runs.
"""

from judge_analytics.use_cases.analysis import run_analysis

__all__ = ["run_analysis"]
