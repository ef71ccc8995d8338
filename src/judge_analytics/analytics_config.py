"""
Analytics Configuration

Manages loading from environment variables (and an optional .env file) and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from dotenv import load_dotenv


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class IngestConfig:
    """CSV ingestion configuration"""
    error_detail_limit: int = 15     # Most recent error cases surfaced in reports
    invalid_example_limit: int = 5   # Invalid entry identifiers surfaced to the detector
    chunk_size: int = 500


@dataclass
class CorrelationConfig:
    """Log correlation configuration"""
    results_path: str = "test-results/results.json"
    network_attachment: str = "HTTP Logs"
    model_attachment: str = "LLM Logs"
    judge_attachment: str = "Judge Logs"
    max_workers: int = 4
    memoize_bundle: bool = True


@dataclass
class CapabilityConfig:
    """Detector / validator / summary capability configuration"""
    enabled: bool = True
    model: str = "gpt-4o-mini"
    timeout_seconds: int = 60
    detector_max_tokens: int = 1500
    validator_max_tokens: int = 1200
    summary_max_tokens: int = 2000
    detector_temperature: float = 0.0
    summary_temperature: float = 0.1


@dataclass
class OpenAICompatConfig:
    """OpenAI-compatible local server (LMStudio etc.) configuration"""
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"


@dataclass
class AnalyticsConfig:
    """Overall analytics configuration"""
    ingest: IngestConfig = field(default_factory=IngestConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    capabilities: CapabilityConfig = field(default_factory=CapabilityConfig)
    openai_compat: OpenAICompatConfig = field(default_factory=OpenAICompatConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"analytics_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "AnalyticsConfig":
        """Create from dictionary (handles presence/absence of analytics_config key)"""
        config_data = data.get("analytics_config", data)
        return cls(
            ingest=IngestConfig(**config_data.get("ingest", {})),
            correlation=CorrelationConfig(**config_data.get("correlation", {})),
            capabilities=CapabilityConfig(**config_data.get("capabilities", {})),
            openai_compat=OpenAICompatConfig(**config_data.get("openai_compat", {})),
        )


def load_config(env_file: str | None = None) -> AnalyticsConfig:
    """
    Load configuration from environment variables

    Values from a .env file are loaded first (without overriding the process environment).
    Uses default values when environment variables are not set.

    Args:
        env_file: Path to a .env file (searched for automatically if not specified)

    Returns:
        AnalyticsConfig
    """
    load_dotenv(env_file)

    ingest = IngestConfig(
        error_detail_limit=_env_int("ANALYTICS_ERROR_DETAIL_LIMIT", 15),
        invalid_example_limit=_env_int("ANALYTICS_INVALID_EXAMPLE_LIMIT", 5),
        chunk_size=_env_int("ANALYTICS_CSV_CHUNK_SIZE", 500),
    )
    correlation = CorrelationConfig(
        results_path=_env_str("CORRELATION_RESULTS_PATH", "test-results/results.json"),
        network_attachment=_env_str("CORRELATION_NETWORK_ATTACHMENT", "HTTP Logs"),
        model_attachment=_env_str("CORRELATION_MODEL_ATTACHMENT", "LLM Logs"),
        judge_attachment=_env_str("CORRELATION_JUDGE_ATTACHMENT", "Judge Logs"),
        max_workers=_env_int("CORRELATION_MAX_WORKERS", 4),
        memoize_bundle=_env_bool("CORRELATION_MEMOIZE_BUNDLE", True),
    )
    capabilities = CapabilityConfig(
        enabled=_env_bool("AI_ANALYTICS_ENABLED", True),
        model=_env_str("AI_ANALYTICS_MODEL", "gpt-4o-mini"),
        timeout_seconds=_env_int("AI_ANALYTICS_TIMEOUT_SECONDS", 60),
        detector_max_tokens=_env_int("AI_ANALYTICS_DETECTOR_MAX_TOKENS", 1500),
        validator_max_tokens=_env_int("AI_ANALYTICS_VALIDATOR_MAX_TOKENS", 1200),
        summary_max_tokens=_env_int("AI_ANALYTICS_SUMMARY_MAX_TOKENS", 2000),
        detector_temperature=_env_float("AI_ANALYTICS_DETECTOR_TEMPERATURE", 0.0),
        summary_temperature=_env_float("AI_ANALYTICS_SUMMARY_TEMPERATURE", 0.1),
    )
    openai_compat = OpenAICompatConfig(
        base_url=_env_str("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
        api_key=_env_str("LMSTUDIO_API_KEY", "lm-studio"),
    )
    return AnalyticsConfig(
        ingest=ingest,
        correlation=correlation,
        capabilities=capabilities,
        openai_compat=openai_compat,
    )
