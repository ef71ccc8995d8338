"""
Log Block Parser

Parses the fixed-format text blocks written by the test runner's attachment logger.

Each block looks like:

    ╔══ LLM INTERACTION [2025-01-01T10:00:00.000Z] ════════
    ║ Model: gpt-4o-mini
    ║ Tokens: 12/34/46 (prompt/completion/total)
    ║ ── PROMPT ──
    ║ ...
    ╚════════════════════════════════════════════════════

Blocks are scanned line by line into header fields and named sub-sections;
typed entries are then extracted field by field. A block missing a required
field is skipped with a warning; the remaining blocks are still returned.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from judge_analytics.domain.constants import (
    BLOCK_FOOTER,
    CONTINUATION_PREFIX,
    CRITERIA_LABELS,
    JUDGE_BANNER,
    MODEL_BANNER,
    NETWORK_BANNER,
)
from judge_analytics.domain.errors import ParseSkip
from judge_analytics.domain.timestamps import timestamp_sort_key
from judge_analytics.domain.value_objects import (
    CriteriaScores,
    JudgeEvaluationEntry,
    ModelInteractionEntry,
    NetworkLogEntry,
    TokenUsage,
)

logger = logging.getLogger(__name__)

_TIMESTAMP = re.compile(r"^\s*\[([^\]]+)\]")
_SUB_BANNER = re.compile(r"^──\s*([A-Z][A-Z ]*?)\s*──\s*$")
_REQUEST_LINE = re.compile(r"\b(GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)\s+(https?://\S+)")
_HTTP_STATUS = re.compile(r"^Status:\s*(\d+)")
_PAYLOAD_MODEL = re.compile(r'"model"\s*:\s*"([^"]+)"')
_MODEL_NAME = re.compile(r"^Model:\s*(.+)$")
_FINISH_REASON = re.compile(r"^Finish reason:\s*(.+)$", re.IGNORECASE)
_TOKEN_TRIPLE = re.compile(r"^Tokens:\s*(\d+)/(\d+)/(\d+)")
_RATING = re.compile(r"^Rating:\s*(\d+(?:\.\d+)?)\s*/\s*10")
_JUDGE_STATUS = re.compile(r"^Status:\s*([^(\n]+)")
_TOKEN_KEYS = {
    "prompt": re.compile(r'"prompt_tokens"\s*:\s*(\d+)'),
    "completion": re.compile(r'"completion_tokens"\s*:\s*(\d+)'),
    "total": re.compile(r'"total_tokens"\s*:\s*(\d+)'),
}

# Token counters farther apart than this are treated as unrelated
TOKEN_PROXIMITY_CHARS = 300

# Placeholder the logger writes for empty free text
_EMPTY_PLACEHOLDER = "(empty)"


@dataclass
class LogBlock:
    """One scanned block: header field lines and named sub-sections"""
    timestamp: str | None
    header: list[str] = field(default_factory=list)
    sections: dict[str, str] = field(default_factory=dict)

    def find(self, pattern: re.Pattern) -> re.Match | None:
        """First header line matching the pattern"""
        for line in self.header:
            match = pattern.search(line)
            if match:
                return match
        return None


def strip_continuation(line: str) -> str:
    """Remove the continuation prefix ("║" plus one space) from a line"""
    if line.startswith(CONTINUATION_PREFIX):
        line = line[len(CONTINUATION_PREFIX):]
        if line.startswith(" "):
            line = line[1:]
    return line


def split_blocks(text: str, banner: str) -> list[str]:
    """
    Split text into the raw bodies of blocks opened by the given banner

    Each body starts right after the banner and ends before the footer line
    (or at the end of the text when the footer is missing).
    """
    bodies = []
    for chunk in text.split(banner)[1:]:
        lines = []
        for line in chunk.splitlines():
            if line.startswith(BLOCK_FOOTER):
                break
            lines.append(line)
        bodies.append("\n".join(lines))
    return bodies


def scan_block(body: str) -> LogBlock:
    """Scan a block body into header lines and sub-sections"""
    lines = body.splitlines()
    first = lines[0] if lines else ""
    ts_match = _TIMESTAMP.search(first)
    block = LogBlock(timestamp=ts_match.group(1).strip() if ts_match else None)

    current: str | None = None
    section_lines: dict[str, list[str]] = {}
    for raw in lines[1:]:
        line = strip_continuation(raw.rstrip())
        sub = _SUB_BANNER.match(line.strip())
        if sub:
            current = sub.group(1).strip()
            section_lines[current] = []
            continue
        if current is None:
            if line.strip():
                block.header.append(line.strip())
        else:
            section_lines[current].append(line)

    for name, content in section_lines.items():
        text = "\n".join(content).strip()
        block.sections[name] = "" if text == _EMPTY_PLACEHOLDER else text
    return block


def _require(value, kind: str, field_name: str):
    if value is None:
        raise ParseSkip(kind, field_name)
    return value


def extract_response_tokens(response: str) -> TokenUsage | None:
    """
    Find total/prompt/completion token counters in a raw response body

    All three counters must be present and close to each other (one usage object).
    """
    matches = {key: pattern.search(response) for key, pattern in _TOKEN_KEYS.items()}
    if not all(matches.values()):
        return None
    starts = [m.start() for m in matches.values()]
    if max(starts) - min(starts) > TOKEN_PROXIMITY_CHARS:
        return None
    return TokenUsage(
        prompt=int(matches["prompt"].group(1)),
        completion=int(matches["completion"].group(1)),
        total=int(matches["total"].group(1)),
    )


def parse_network_block(body: str) -> NetworkLogEntry:
    """
    Parse one HTTP REQUEST block

    Raises:
        ParseSkip: If the timestamp or request line is missing
    """
    block = scan_block(body)
    timestamp = _require(block.timestamp, "network", "timestamp")
    request = _require(block.find(_REQUEST_LINE), "network", "request line")
    status = block.find(_HTTP_STATUS)

    payload = block.sections.get("PAYLOAD")
    response = block.sections.get("RESPONSE")
    model_match = _PAYLOAD_MODEL.search(payload) if payload else None

    return NetworkLogEntry(
        timestamp=timestamp,
        method=request.group(1),
        url=request.group(2),
        status=int(status.group(1)) if status else 0,
        model=model_match.group(1) if model_match else None,
        payload=payload,
        response=response,
        tokens=extract_response_tokens(response) if response else None,
    )


def parse_model_block(body: str) -> ModelInteractionEntry:
    """
    Parse one LLM INTERACTION block

    Raises:
        ParseSkip: If the timestamp, model, prompt, or response is missing
    """
    block = scan_block(body)
    timestamp = _require(block.timestamp, "model", "timestamp")
    model = _require(block.find(_MODEL_NAME), "model", "model")
    prompt = _require(block.sections.get("PROMPT"), "model", "prompt")
    response = _require(block.sections.get("RESPONSE"), "model", "response")

    tokens = block.find(_TOKEN_TRIPLE)
    finish = block.find(_FINISH_REASON)
    return ModelInteractionEntry(
        timestamp=timestamp,
        model=model.group(1).strip(),
        prompt=prompt,
        response=response,
        tokens=TokenUsage(
            prompt=int(tokens.group(1)),
            completion=int(tokens.group(2)),
            total=int(tokens.group(3)),
        ) if tokens else TokenUsage(),
        finish_reason=finish.group(1).strip() if finish else "unknown",
    )


def parse_criteria_section(text: str) -> CriteriaScores | None:
    """Parse "Name: N/10" lines; None unless all five criteria are present"""
    scores = {}
    for name, label in CRITERIA_LABELS.items():
        match = re.search(rf"^{re.escape(label)}:\s*(\d+(?:\.\d+)?)\s*/\s*10", text, re.MULTILINE)
        if not match:
            return None
        scores[name] = float(match.group(1))
    return CriteriaScores(**scores)


def parse_judge_block(body: str) -> JudgeEvaluationEntry:
    """
    Parse one JUDGE EVALUATION block

    Raises:
        ParseSkip: If the timestamp or rating is missing
    """
    block = scan_block(body)
    timestamp = _require(block.timestamp, "judge", "timestamp")
    rating = _require(block.find(_RATING), "judge", "rating")
    status = block.find(_JUDGE_STATUS)
    criteria_text = block.sections.get("CRITERIA SCORES")

    return JudgeEvaluationEntry(
        timestamp=timestamp,
        rating=float(rating.group(1)),
        status=status.group(1).strip() if status else "UNKNOWN",
        question=block.sections.get("QUESTION", ""),
        answer=block.sections.get("ANSWER", ""),
        explanation=block.sections.get("EXPLANATION", ""),
        criteria=parse_criteria_section(criteria_text) if criteria_text else None,
    )


def _parse_all(text: str, banner: str, parse_block) -> list:
    entries = []
    for body in split_blocks(text, banner):
        try:
            entries.append(parse_block(body))
        except ParseSkip as e:
            logger.warning("Skipping log block: %s", e)
    return entries


def parse_network_log(text: str) -> list[NetworkLogEntry]:
    """Parse all HTTP REQUEST blocks in source order"""
    entries = _parse_all(text, NETWORK_BANNER, parse_network_block)
    logger.debug("Parsed %d network blocks", len(entries))
    return entries


def parse_model_log(text: str) -> list[ModelInteractionEntry]:
    """Parse all LLM INTERACTION blocks, sorted by timestamp ascending"""
    entries = _parse_all(text, MODEL_BANNER, parse_model_block)
    entries.sort(key=lambda e: timestamp_sort_key(e.timestamp))
    logger.debug("Parsed %d model interaction blocks", len(entries))
    return entries


def parse_judge_log(text: str) -> list[JudgeEvaluationEntry]:
    """Parse all JUDGE EVALUATION blocks in source order"""
    entries = _parse_all(text, JUDGE_BANNER, parse_judge_block)
    logger.debug("Parsed %d judge evaluation blocks", len(entries))
    return entries
