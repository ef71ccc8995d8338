"""
Log correlation

Locates a test case's attachments in the results bundle and parses them into typed entries.
"""

from judge_analytics.logs.block_parser import (
    parse_judge_log,
    parse_model_log,
    parse_network_log,
)
from judge_analytics.logs.bundle import ResultsBundle, match_test_name
from judge_analytics.logs.correlator import LogCorrelator

__all__ = [
    "LogCorrelator",
    "ResultsBundle",
    "match_test_name",
    "parse_judge_log",
    "parse_model_log",
    "parse_network_log",
]
