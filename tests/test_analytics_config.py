"""
analytics_config.pyのテスト
"""

from unittest.mock import patch

import pytest

from judge_analytics.analytics_config import (
    AnalyticsConfig,
    CapabilityConfig,
    CorrelationConfig,
    IngestConfig,
    OpenAICompatConfig,
    load_config,
)

_ENV_KEYS = [
    "ANALYTICS_ERROR_DETAIL_LIMIT",
    "ANALYTICS_INVALID_EXAMPLE_LIMIT",
    "ANALYTICS_CSV_CHUNK_SIZE",
    "CORRELATION_RESULTS_PATH",
    "CORRELATION_MAX_WORKERS",
    "CORRELATION_MEMOIZE_BUNDLE",
    "AI_ANALYTICS_ENABLED",
    "AI_ANALYTICS_MODEL",
    "AI_ANALYTICS_SUMMARY_TEMPERATURE",
    "LMSTUDIO_BASE_URL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """環境変数と.envの影響を排除する"""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSectionDefaults:
    """各設定セクションのデフォルト値のテスト"""

    def test_ingest_defaults(self):
        config = IngestConfig()
        assert config.error_detail_limit == 15
        assert config.invalid_example_limit == 5
        assert config.chunk_size == 500

    def test_correlation_defaults(self):
        config = CorrelationConfig()
        assert config.results_path == "test-results/results.json"
        assert config.network_attachment == "HTTP Logs"
        assert config.model_attachment == "LLM Logs"
        assert config.judge_attachment == "Judge Logs"
        assert config.memoize_bundle is True

    def test_capability_defaults(self):
        config = CapabilityConfig()
        assert config.enabled is True
        assert config.model == "gpt-4o-mini"
        assert config.detector_max_tokens == 1500
        assert config.validator_max_tokens == 1200
        assert config.summary_max_tokens == 2000
        assert config.detector_temperature == 0.0
        assert config.summary_temperature == 0.1

    def test_openai_compat_defaults(self):
        config = OpenAICompatConfig()
        assert config.base_url == "http://localhost:1234/v1"


class TestAnalyticsConfig:
    """AnalyticsConfigのテスト"""

    def test_defaults(self):
        config = AnalyticsConfig()
        assert isinstance(config.ingest, IngestConfig)
        assert isinstance(config.correlation, CorrelationConfig)
        assert isinstance(config.capabilities, CapabilityConfig)

    def test_to_dict_from_dict_round_trip(self):
        config = AnalyticsConfig(
            ingest=IngestConfig(error_detail_limit=3),
            capabilities=CapabilityConfig(model="claude-haiku-4-5", enabled=False),
        )
        data = config.to_dict()
        assert "analytics_config" in data
        restored = AnalyticsConfig.from_dict(data)
        assert restored == config

    def test_from_dict_without_wrapper_key(self):
        restored = AnalyticsConfig.from_dict({"correlation": {"max_workers": 8}})
        assert restored.correlation.max_workers == 8
        assert restored.ingest == IngestConfig()


class TestLoadConfig:
    """load_config()のテスト"""

    def test_defaults_without_env(self, clean_env):
        config = load_config()
        assert config == AnalyticsConfig()

    def test_env_overrides(self, clean_env):
        clean_env.setenv("ANALYTICS_ERROR_DETAIL_LIMIT", "20")
        clean_env.setenv("CORRELATION_RESULTS_PATH", "out/results.json")
        clean_env.setenv("CORRELATION_MEMOIZE_BUNDLE", "false")
        clean_env.setenv("AI_ANALYTICS_ENABLED", "0")
        clean_env.setenv("AI_ANALYTICS_SUMMARY_TEMPERATURE", "0.3")

        config = load_config()

        assert config.ingest.error_detail_limit == 20
        assert config.correlation.results_path == "out/results.json"
        assert config.correlation.memoize_bundle is False
        assert config.capabilities.enabled is False
        assert config.capabilities.summary_temperature == pytest.approx(0.3)

    def test_invalid_int_raises(self, clean_env):
        """整数に変換できない値はValueError（変数名を含む）"""
        clean_env.setenv("ANALYTICS_CSV_CHUNK_SIZE", "many")
        with pytest.raises(ValueError, match="ANALYTICS_CSV_CHUNK_SIZE"):
            load_config()

    def test_invalid_float_raises(self, clean_env):
        clean_env.setenv("AI_ANALYTICS_SUMMARY_TEMPERATURE", "warm")
        with pytest.raises(ValueError, match="AI_ANALYTICS_SUMMARY_TEMPERATURE"):
            load_config()

    def test_env_file_is_loaded(self, clean_env, tmp_path):
        """.envファイルの値が読み込まれる"""
        env_file = tmp_path / "custom.env"
        env_file.write_text("AI_ANALYTICS_MODEL=claude-sonnet-4-5\n", encoding="utf-8")
        with patch.dict("os.environ"):
            config = load_config(str(env_file))
        assert config.capabilities.model == "claude-sonnet-4-5"
