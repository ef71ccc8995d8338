"""
Domain Constants

Centrally manages constants shared across ingestion, aggregation, and log correlation.
"""

# Rating scale (fixed 0-10)
RATING_MIN = 0.0
RATING_MAX = 10.0

# Valid judge statuses
VALID_STATUSES = ("PASS", "FAIL")

# Expected CSV header
CSV_COLUMNS = [
    "timestamp",
    "test_name",
    "rating",
    "status",
    "prompt",
    "output",
    "helpfulness",
    "relevance",
    "accuracy",
    "depth",
    "level_of_detail",
]

# Criterion name -> CSV column
CRITERIA_COLUMNS = {
    "helpfulness": "helpfulness",
    "relevance": "relevance",
    "accuracy": "accuracy",
    "depth": "depth",
    "level_of_detail": "level_of_detail",
}

CRITERIA_NAMES = list(CRITERIA_COLUMNS)

# Criterion name -> display label (also the label used inside judge log blocks)
CRITERIA_LABELS = {
    "helpfulness": "Helpfulness",
    "relevance": "Relevance",
    "accuracy": "Accuracy",
    "depth": "Depth",
    "level_of_detail": "Level of Detail",
}

# Criteria scores reported by the judge are on a 1-10 scale
CRITERIA_MIN = 1.0
CRITERIA_MAX = 10.0

# Tolerance for detecting a perfect (10.0) criterion mean
PERFECT_SCORE_TOLERANCE = 0.001

# Range below which a run is considered suspiciously uniform
NARROW_RANGE_THRESHOLD = 1.0

# Minimum number of criteria-bearing cases for a criteria trend
CRITERIA_TREND_MIN_CASES = 5

# Fallback identifier for rows without a test name
UNKNOWN_TEST_NAME = "unknown-test"

# Error categories (message substring -> category), checked in order
ERROR_CATEGORY_PATTERNS = [
    ("Zod field", "Schema"),
    ("Rate limit", "API Limit"),
    ("timeout", "Timeout"),
    ("Invalid output", "Invalid Output"),
    ("parse", "Parse Error"),
]
DATA_QUALITY_CATEGORY = "Data Quality"
OTHER_ERROR_CATEGORY = "Other"

# Log block framing written by the test runner's attachment logger
NETWORK_BANNER = "╔══ HTTP REQUEST"
MODEL_BANNER = "╔══ LLM INTERACTION"
JUDGE_BANNER = "╔══ JUDGE EVALUATION"
BLOCK_FOOTER = "╚"
CONTINUATION_PREFIX = "║"

# Conversation markers inside a multi-turn prompt
CONVERSATION_USER_MARKER = "[user]:"
CONVERSATION_ASSISTANT_MARKER = "[assistant]:"
