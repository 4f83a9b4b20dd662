"""test_config.py - Unit tests for LogLevel and the process-wide level.

Covers:
    - LogLevel ordering and parsing
    - TRACEGATE_LOG_LEVEL resolution
    - set_log_level / get_log_level round trip
    - tracing_enabled is true for DEBUG only
"""

import logging

import pytest

from tracegate.config import (
    ENV_VAR,
    LogLevel,
    get_log_level,
    initial_log_level,
    resolve_env_log_level,
    set_log_level,
    tracing_enabled,
)


class TestLogLevel:
    def test_log_levels_are_ordered(self):
        assert LogLevel.OFF < LogLevel.ERROR < LogLevel.WARNING < LogLevel.INFO < LogLevel.DEBUG

    @pytest.mark.parametrize("name", ["debug", "DEBUG", " Debug "])
    def test_parse_is_case_insensitive(self, name):
        assert LogLevel.parse(name) is LogLevel.DEBUG

    def test_parse_passes_members_through(self):
        assert LogLevel.parse(LogLevel.INFO) is LogLevel.INFO

    def test_parse_rejects_unknown_name(self):
        with pytest.raises(ValueError, match="verbose"):
            LogLevel.parse("verbose")

    def test_to_logging_level(self):
        assert LogLevel.DEBUG.to_logging_level() == logging.DEBUG
        assert LogLevel.INFO.to_logging_level() == logging.INFO
        assert LogLevel.WARNING.to_logging_level() == logging.WARNING
        assert LogLevel.ERROR.to_logging_level() == logging.ERROR


class TestEnvResolution:
    def test_env_level_is_read(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "debug")
        assert resolve_env_log_level() is LogLevel.DEBUG

    def test_env_level_unset(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        assert resolve_env_log_level() is None

    def test_env_level_unknown_is_ignored(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "chatty")
        assert resolve_env_log_level() is None

    def test_env_level_off_is_kept(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "off")
        assert resolve_env_log_level() is LogLevel.OFF
        assert initial_log_level() is LogLevel.OFF

    def test_initial_level_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        assert initial_log_level() is LogLevel.INFO

    def test_initial_level_follows_env(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "debug")
        assert initial_log_level() is LogLevel.DEBUG


class TestProcessLevel:
    def setup_method(self):
        self.previous = get_log_level()

    def teardown_method(self):
        set_log_level(self.previous)

    def test_set_log_level_returns_previous(self):
        set_log_level(LogLevel.INFO)
        assert set_log_level("debug") is LogLevel.INFO
        assert get_log_level() is LogLevel.DEBUG

    def test_tracing_enabled_only_for_debug(self):
        for level in LogLevel:
            set_log_level(level)
            assert tracing_enabled() is (level is LogLevel.DEBUG)

    def test_set_log_level_rejects_unknown(self):
        with pytest.raises(ValueError):
            set_log_level("loud")
