"""
Tests for buildtrace configuration.
"""

import pytest
from pydantic import ValidationError

from buildtrace.config import BuildTraceConfig, get_config, get_reporter_url, reset_config
from buildtrace.constants import DEFAULT_REPORTER_URL


class TestDefaults:

    def test_default_reporter_url(self):
        assert BuildTraceConfig(_env_file=None).reporter_url == DEFAULT_REPORTER_URL

    def test_defaults(self):
        config = BuildTraceConfig(_env_file=None)

        assert config.otlp_insecure is True
        assert config.log_spans is False
        assert config.log_level == "info"
        assert config.log_format == "json"


class TestEnvironment:

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BUILDTRACE_REPORTER_URL", "collector:4317")
        monkeypatch.setenv("BUILDTRACE_LOG_SPANS", "true")

        config = BuildTraceConfig(_env_file=None)

        assert config.reporter_url == "collector:4317"
        assert config.log_spans is True

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("BUILDTRACE_LOG_LEVEL", "verbose")

        with pytest.raises(ValidationError):
            BuildTraceConfig(_env_file=None)


class TestReporterUrlValidation:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("http://collector:4317", "collector:4317"),
            ("https://collector:4317", "collector:4317"),
            ("collector:4317", "collector:4317"),
            ("", DEFAULT_REPORTER_URL),
        ],
    )
    def test_protocol_prefix_stripped(self, value, expected):
        assert BuildTraceConfig(_env_file=None, reporter_url=value).reporter_url == expected


class TestSingleton:

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_overrides_replace_instance(self):
        first = get_config()
        second = get_config(reporter_url="other:1")

        assert second is not first
        assert get_reporter_url() == "other:1"

    def test_reset(self):
        first = get_config()
        reset_config()

        assert get_config() is not first
