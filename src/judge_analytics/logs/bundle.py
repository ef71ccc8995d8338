"""
Results Bundle

Loads the test runner's results document and locates the attachments of the
spec that produced a given test case.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from pathlib import Path
from typing import Iterator

from judge_analytics.domain.errors import CorrelationMiss
from judge_analytics.domain.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

# Historical test id that predates the "<prefix>-<ordinal>-<topic>" naming
LEGACY_TEST_NAME = "should-generate-a-valid-2-question-geography-sequence"
LEGACY_SPEC_TITLE = "should generate a valid 2-question geography sequence"

_STRUCTURED_NAME = re.compile(r"^(?P<prefix>.+?)-(?P<ordinal>\d+)-(?P<topic>.+)$")


def normalize_title(text: str) -> str:
    """Lower-case and replace hyphens with spaces"""
    return text.lower().replace("-", " ").strip()


def _legacy_match(test_name: str, spec_title: str) -> bool:
    return LEGACY_TEST_NAME in test_name and LEGACY_SPEC_TITLE in spec_title.lower()


def _structured_match(test_name: str, spec_title: str) -> bool:
    match = _STRUCTURED_NAME.match(test_name.lower())
    if not match:
        return False
    prefix = match.group("prefix").replace("-", " ")
    topic = match.group("topic").replace("-", " ")
    title = spec_title.lower()
    return f"{prefix} {match.group('ordinal')}:" in title and topic in title


def _fallback_match(test_name: str, spec_title: str) -> bool:
    return normalize_title(test_name) == normalize_title(spec_title)


# Matching rules, tried in order until one succeeds
MATCH_RULES = (
    ("legacy", _legacy_match),
    ("structured", _structured_match),
    ("normalized", _fallback_match),
)


def match_test_name(test_name: str, spec_title: str) -> str | None:
    """
    Check whether a CSV test name refers to a spec title

    Args:
        test_name: Test id from the CSV (e.g. "geography-question-2-mount-everest")
        spec_title: Spec title from the results document

    Returns:
        Name of the rule that matched, or None
    """
    for rule_name, rule in MATCH_RULES:
        if rule(test_name, spec_title):
            return rule_name
    return None


def decode_attachment(attachment: dict) -> str:
    """Decode a base64 attachment body to text ("" when there is no body)"""
    body = attachment.get("body")
    if not body:
        return ""
    try:
        raw = base64.b64decode(body)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Attachment '{attachment.get('name')}' is not valid base64") from e
    text = raw.decode("utf-8", errors="replace")
    logger.debug("Decoded attachment '%s' (%d chars)", attachment.get("name"), len(text))
    return text


class ResultsBundle:
    """The parsed results document of one test run"""

    def __init__(self, data: dict, source: Path | None = None):
        self.data = data
        self.source = source

    @classmethod
    def from_file(cls, path: str | Path) -> "ResultsBundle":
        """
        Load a results document

        Raises:
            CorrelationMiss: If the file does not exist
            ValueError: If the file is not valid JSON
        """
        path = Path(path)
        if not path.exists():
            raise CorrelationMiss(f"Results file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Results file is not valid JSON: {path}") from e
        logger.debug("Loaded results bundle %s with %d top-level suites", path, len(data.get("suites", [])))
        return cls(data, source=path)

    def iter_specs(self) -> Iterator[dict]:
        """Yield every spec in the suite tree, depth first"""
        stack = list(reversed(self.data.get("suites") or []))
        while stack:
            suite = stack.pop()
            yield from suite.get("specs") or []
            stack.extend(reversed(suite.get("suites") or []))

    def find_attachments(self, test_name: str, timestamp: str | None = None) -> list[dict]:
        """
        Find the attachments recorded for a test case

        When several results of the matching spec(s) carry attachments (retries),
        the one whose startTime is closest to the case timestamp wins; ties and
        missing times keep document order.

        Args:
            test_name: Test id from the CSV
            timestamp: Case timestamp (ISO-8601), used to pick among retries

        Returns:
            List of attachment dicts ({"name", "body", ...})

        Raises:
            CorrelationMiss: If no spec matches or no matching result has attachments
        """
        candidates = []
        for spec in self.iter_specs():
            title = spec.get("title", "")
            rule = match_test_name(test_name, title)
            if rule is None:
                continue
            logger.debug("Spec '%s' matches '%s' (%s rule)", title, test_name, rule)
            for test in spec.get("tests") or []:
                for result in test.get("results") or []:
                    if result.get("attachments"):
                        candidates.append(result)

        if not candidates:
            raise CorrelationMiss(f"No attachments found for test: {test_name}")

        case_time = parse_timestamp(timestamp)
        if case_time is None or len(candidates) == 1:
            return candidates[0]["attachments"]

        def distance(result: dict) -> float:
            started = parse_timestamp(result.get("startTime"))
            if started is None:
                return float("inf")
            return abs((started - case_time).total_seconds())

        return min(candidates, key=distance)["attachments"]
