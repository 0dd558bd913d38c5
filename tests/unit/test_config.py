"""
Unit tests for environment-driven configuration.
"""

import logging

import pytest

from otel_trace_explorer.config import ExplorerConfig

ENV_VARS = (
    "TRACE_EXPLORER_DEBOUNCE_MS",
    "TRACE_EXPLORER_CONFIDENCE",
    "TRACE_EXPLORER_MIN_SAMPLES",
    "TRACE_EXPLORER_MULTIPLIER",
    "TRACE_EXPLORER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def no_dotenv(tmp_path):
    return str(tmp_path / "missing.env")


class TestExplorerConfig:

    def test_defaults(self, no_dotenv):
        config = ExplorerConfig.from_env(no_dotenv)

        assert config.debounce_seconds == 0.5
        assert config.confidence_level == 0.95
        assert config.min_samples_required == 10
        assert config.duration_threshold_multiplier == 2.0
        assert config.log_level == "INFO"

    def test_reads_environment(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("TRACE_EXPLORER_DEBOUNCE_MS", "250")
        monkeypatch.setenv("TRACE_EXPLORER_CONFIDENCE", "0.99")
        monkeypatch.setenv("TRACE_EXPLORER_MIN_SAMPLES", "20")
        monkeypatch.setenv("TRACE_EXPLORER_MULTIPLIER", "3")
        monkeypatch.setenv("TRACE_EXPLORER_LOG_LEVEL", "debug")

        config = ExplorerConfig.from_env(no_dotenv)

        assert config.debounce_seconds == 0.25
        assert config.confidence_level == 0.99
        assert config.min_samples_required == 20
        assert config.duration_threshold_multiplier == 3.0
        assert config.log_level == "DEBUG"

    def test_invalid_value_falls_back_to_default(self, monkeypatch, no_dotenv, caplog):
        monkeypatch.setenv("TRACE_EXPLORER_MIN_SAMPLES", "many")

        with caplog.at_level(logging.WARNING):
            config = ExplorerConfig.from_env(no_dotenv)

        assert config.min_samples_required == 10
        assert "TRACE_EXPLORER_MIN_SAMPLES" in caplog.text

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("TRACE_EXPLORER_CONFIDENCE=0.9\n", encoding="utf-8")
        # Registered so monkeypatch removes the value load_dotenv writes
        monkeypatch.setenv("TRACE_EXPLORER_CONFIDENCE", "unused")
        monkeypatch.delenv("TRACE_EXPLORER_CONFIDENCE")

        config = ExplorerConfig.from_env(str(dotenv))

        assert config.confidence_level == 0.9

    def test_anomaly_config(self):
        config = ExplorerConfig(confidence_level=0.99, min_samples_required=5,
                                duration_threshold_multiplier=1.5)

        anomaly_config = config.anomaly_config()

        assert anomaly_config.confidence_level == 0.99
        assert anomaly_config.min_samples_required == 5
        assert anomaly_config.duration_threshold_multiplier == 1.5
