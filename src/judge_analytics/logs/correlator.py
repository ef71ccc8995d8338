"""
Log Correlator

Recovers the structured logs of one test case from the results bundle.
Correlation never raises: misses and parse failures degrade to empty logs.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from judge_analytics.analytics_config import CorrelationConfig
from judge_analytics.domain.errors import CorrelationMiss
from judge_analytics.domain.value_objects import StructuredLogs
from judge_analytics.logs.block_parser import (
    parse_judge_log,
    parse_model_log,
    parse_network_log,
)
from judge_analytics.logs.bundle import ResultsBundle, decode_attachment

logger = logging.getLogger(__name__)


class LogCorrelator:
    """
    Correlates test cases with their attachment logs

    Safe to share between threads. With memoize_bundle enabled the results
    document is read once per correlator (i.e. once per run).
    """

    def __init__(self, config: CorrelationConfig | None = None, base_dir: str | Path | None = None):
        """
        Args:
            config: Correlation configuration (defaults used if omitted)
            base_dir: Directory that results_path is relative to (current directory if omitted)
        """
        self.config = config or CorrelationConfig()
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._bundle: ResultsBundle | None = None
        self._bundle_error: Exception | None = None
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def results_path(self) -> Path:
        path = Path(self.config.results_path)
        return path if path.is_absolute() else self.base_dir / path

    def _load_bundle(self) -> ResultsBundle:
        if not self.config.memoize_bundle:
            return ResultsBundle.from_file(self.results_path)
        with self._lock:
            if not self._loaded:
                try:
                    self._bundle = ResultsBundle.from_file(self.results_path)
                except (CorrelationMiss, ValueError, OSError) as e:
                    self._bundle_error = e
                self._loaded = True
        if self._bundle_error is not None:
            raise self._bundle_error
        return self._bundle

    def _parse_kind(self, attachments: list[dict], name: str, parse, test_name: str) -> tuple:
        attachment = next((a for a in attachments if a.get("name") == name), None)
        if attachment is None:
            logger.debug("Attachment '%s' not found for %s", name, test_name)
            return ()
        try:
            return tuple(parse(decode_attachment(attachment)))
        except Exception as e:
            logger.warning("Failed to parse '%s' for %s: %s", name, test_name, e)
            return ()

    def correlate(self, test_name: str, timestamp: str | None = None) -> StructuredLogs:
        """
        Recover the structured logs of a test case

        Args:
            test_name: Test id from the CSV
            timestamp: Case timestamp, used to pick among retried results

        Returns:
            StructuredLogs (all empty when nothing matches)
        """
        try:
            attachments = self._load_bundle().find_attachments(test_name, timestamp)
        except CorrelationMiss as e:
            logger.warning("Correlation miss: %s", e)
            return StructuredLogs()
        except Exception as e:
            logger.warning("Failed to look up logs for %s: %s", test_name, e)
            return StructuredLogs()

        logs = StructuredLogs(
            network=self._parse_kind(attachments, self.config.network_attachment, parse_network_log, test_name),
            model_interaction=self._parse_kind(attachments, self.config.model_attachment, parse_model_log, test_name),
            judge_evaluation=self._parse_kind(attachments, self.config.judge_attachment, parse_judge_log, test_name),
        )
        logger.debug(
            "Extracted logs for %s - network: %d, model: %d, judge: %d",
            test_name, len(logs.network), len(logs.model_interaction), len(logs.judge_evaluation),
        )
        return logs
