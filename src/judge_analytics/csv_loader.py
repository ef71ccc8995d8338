"""
CSV Loader

Streams a judge results CSV into typed cases, separating valid rows from
malformed (data quality) and zero-rated (execution failure) rows.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from judge_analytics.analytics_config import IngestConfig
from judge_analytics.domain.constants import (
    CRITERIA_COLUMNS,
    CRITERIA_MAX,
    CRITERIA_MIN,
    CSV_COLUMNS,
    RATING_MAX,
    RATING_MIN,
    UNKNOWN_TEST_NAME,
    VALID_STATUSES,
)
from judge_analytics.domain.entities import ErrorCase, EvaluatedCase
from judge_analytics.domain.errors import DataQualityError
from judge_analytics.domain.value_objects import CriteriaScores

logger = logging.getLogger(__name__)

# Columns without which no row can be validated
REQUIRED_COLUMNS = ("test_name", "rating", "status")


@dataclass(frozen=True)
class IngestResult:
    """Valid and error cases of one CSV, in file order"""
    valid: tuple[EvaluatedCase, ...]
    errors: tuple[ErrorCase, ...]
    total_rows: int  # data rows, excluding any header rows

    @property
    def data_quality_errors(self) -> tuple[ErrorCase, ...]:
        return tuple(e for e in self.errors if e.kind == "data_quality")

    @property
    def execution_failures(self) -> tuple[ErrorCase, ...]:
        return tuple(e for e in self.errors if e.kind == "execution_failure")


def _cell(row: pd.Series, column: str) -> str:
    """Get a cell as a stripped string ("" for missing cells)"""
    value = row.get(column)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def parse_rating(raw: str, line_number: int | None = None) -> float:
    """
    Parse and range-check a rating cell

    Args:
        raw: Cell text
        line_number: Source row ordinal, for error reporting

    Returns:
        Rating as a float in [0, 10]

    Raises:
        DataQualityError: If the rating is empty, non-numeric, or out of range
    """
    if not raw:
        raise DataQualityError("missing rating", line_number)
    try:
        rating = float(raw)
    except ValueError:
        raise DataQualityError(f"rating '{raw}' is not a number", line_number)
    if not math.isfinite(rating):
        raise DataQualityError(f"rating '{raw}' is not a number", line_number)
    if rating < RATING_MIN or rating > RATING_MAX:
        raise DataQualityError(f"rating {rating:g} is outside [0, 10]", line_number)
    return rating


def validate_row(row: pd.Series, line_number: int) -> tuple[str, float, str]:
    """
    Validate the identifying fields of a row

    Returns:
        (test_name, rating, status)

    Raises:
        DataQualityError: If the test name is missing, the rating is invalid,
            or the status is not PASS/FAIL
    """
    test_name = _cell(row, "test_name")
    if not test_name:
        raise DataQualityError("missing test name", line_number)
    rating = parse_rating(_cell(row, "rating"), line_number)
    status = _cell(row, "status")
    if status not in VALID_STATUSES:
        raise DataQualityError(f"status '{status}' is not one of {list(VALID_STATUSES)}", line_number)
    return test_name, rating, status


def parse_criteria(row: pd.Series, line_number: int) -> CriteriaScores | None:
    """
    Parse the five criteria columns of a row

    A row reports criteria only when all five cells are present, numeric, and
    within [1, 10]. Anything else yields None (never zero-filled).
    """
    raw = {name: _cell(row, column) for name, column in CRITERIA_COLUMNS.items()}
    present = [name for name, value in raw.items() if value]
    if not present:
        return None
    if len(present) < len(raw):
        missing = [name for name in raw if name not in present]
        logger.warning("Row %d: partial criteria, missing %s; criteria ignored", line_number, missing)
        return None

    scores: dict[str, float] = {}
    for name, value in raw.items():
        try:
            score = float(value)
        except ValueError:
            logger.warning("Row %d: criterion %s='%s' is not a number; criteria ignored", line_number, name, value)
            return None
        if not math.isfinite(score) or score < CRITERIA_MIN or score > CRITERIA_MAX:
            logger.warning("Row %d: criterion %s=%s is outside [1, 10]; criteria ignored", line_number, name, value)
            return None
        scores[name] = score
    return CriteriaScores(**scores)


def _row_to_case(row: pd.Series, line_number: int) -> EvaluatedCase | ErrorCase:
    """Convert one data row into a valid case or an error case"""
    timestamp = _cell(row, "timestamp")
    prompt = _cell(row, "prompt")
    output = _cell(row, "output")
    try:
        test_name, rating, status = validate_row(row, line_number)
    except DataQualityError as e:
        logger.debug("Rejected row: %s", e)
        return ErrorCase(
            timestamp=timestamp,
            test_name=_cell(row, "test_name") or UNKNOWN_TEST_NAME,
            rating=None,
            status=_cell(row, "status"),
            prompt=prompt,
            output=output,
            line_number=line_number,
            kind="data_quality",
            reason=e.reason,
        )

    criteria = parse_criteria(row, line_number)
    explanation = _cell(row, "explanation")
    if rating == 0:
        return ErrorCase(
            timestamp=timestamp,
            test_name=test_name,
            rating=rating,
            status=status,
            prompt=prompt,
            output=output,
            line_number=line_number,
            kind="execution_failure",
            reason=output or "rating 0",
            criteria=criteria,
            explanation=explanation,
        )
    return EvaluatedCase(
        timestamp=timestamp,
        test_name=test_name,
        rating=rating,
        status=status,
        prompt=prompt,
        output=output,
        criteria=criteria,
        explanation=explanation,
        line_number=line_number,
    )


def _overflow_case(fields: list[str], columns: list[str]) -> ErrorCase:
    """Convert a row with more fields than the header into a data quality case"""
    row = pd.Series(fields[:len(columns)], index=columns, dtype=object)
    reason = f"row has {len(fields)} fields, expected {len(columns)}"
    logger.debug("Rejected row: %s", reason)
    return ErrorCase(
        timestamp=_cell(row, "timestamp"),
        test_name=_cell(row, "test_name") or UNKNOWN_TEST_NAME,
        rating=None,
        status=_cell(row, "status"),
        prompt=_cell(row, "prompt"),
        output=_cell(row, "output"),
        line_number=0,
        kind="data_quality",
        reason=reason,
    )


def ingest_csv(file_path: str | Path, config: IngestConfig | None = None) -> IngestResult:
    """
    Load a judge results CSV

    Rows are streamed in chunks. A repeated header row is skipped and not counted.
    A row with more fields than the header becomes a data quality error case
    (row ordinal 0, since the reader does not report its position) and is
    appended after the other rows of its chunk. Row ordinals count CSV records,
    so a quoted cell spanning several physical lines still occupies one row.
    Re-running on the same file yields the same result.

    Args:
        file_path: Path to the CSV file
        config: Ingestion configuration (defaults used if omitted)

    Returns:
        IngestResult with valid and error cases in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the header lacks the test_name, rating, or status column,
            or the first data row has more fields than the header
    """
    config = config or IngestConfig()
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    valid: list[EvaluatedCase] = []
    errors: list[ErrorCase] = []
    total_rows = 0
    overflow: list[list[str]] = []
    columns = list(CSV_COLUMNS)

    def drain_overflow() -> None:
        nonlocal total_rows
        for fields in overflow:
            total_rows += 1
            errors.append(_overflow_case(fields, columns))
        overflow.clear()

    def record_bad_line(fields: list[str]) -> None:
        # None tells pandas to drop the line from the chunk
        overflow.append(fields)
        return None

    try:
        reader = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            chunksize=config.chunk_size,
            encoding="utf-8",
            engine="python",
            on_bad_lines=record_bad_line,
        )
    except pd.errors.EmptyDataError:
        logger.warning("CSV file is empty: %s", path)
        return IngestResult(valid=(), errors=(), total_rows=0)

    with reader:
        for chunk in reader:
            missing = [c for c in REQUIRED_COLUMNS if c not in chunk.columns]
            if missing:
                raise ValueError(f"CSV {path} is missing required columns: {missing}. Expected header: {CSV_COLUMNS}")
            # An overlong first row makes pandas treat its extra leading fields as an index
            if not isinstance(chunk.index, pd.RangeIndex):
                raise ValueError(f"CSV {path}: first data row has more fields than the header")
            columns = [str(c) for c in chunk.columns]
            for index, row in chunk.iterrows():
                # Header is row 1; index is the 0-based data row
                line_number = int(index) + 2
                if _cell(row, "test_name") == "test_name":
                    logger.debug("Skipping repeated header at row %d", line_number)
                    continue
                total_rows += 1
                case = _row_to_case(row, line_number)
                if isinstance(case, ErrorCase):
                    errors.append(case)
                else:
                    valid.append(case)
            drain_overflow()
    drain_overflow()

    logger.info(
        "Loaded %d rows from %s: %d valid, %d errors",
        total_rows, path, len(valid), len(errors),
    )
    return IngestResult(valid=tuple(valid), errors=tuple(errors), total_rows=total_rows)
