"""
Use Cases Layer

Enrichment, assembly, and the end-to-end analysis run.
"""

from judge_analytics.use_cases.analysis import run_ai_analytics, run_analysis
from judge_analytics.use_cases.assembly import assemble, group_by_rating
from judge_analytics.use_cases.enrichment import (
    build_detailed_case,
    enrich_cases,
    resolve_explanation,
)

__all__ = [
    # analysis
    "run_ai_analytics",
    "run_analysis",
    # assembly
    "assemble",
    "group_by_rating",
    # enrichment
    "build_detailed_case",
    "enrich_cases",
    "resolve_explanation",
]
