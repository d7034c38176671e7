"""Tests for poller configuration, settings and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from execmon.core.config import PollerConfig, PollerHooks
from execmon.core.logging_config import coerce_level, configure_logging, job_id_var
from execmon.core.settings import ExecmonSettings


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestPollerConfig:

    def test_defaults(self):
        config = PollerConfig()
        assert config.interval == 3.0
        assert config.auto_stop_on_terminal is True

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            PollerConfig(interval=0)

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            PollerConfig(interval=1, autoStop=False)

    def test_from_app_settings_converts_milliseconds(self):
        settings = ExecmonSettings(EXECMON_POLL_INTERVAL_MS=1500, EXECMON_AUTO_STOP=False)
        config = PollerConfig.from_app_settings(settings)
        assert config.interval == 1.5
        assert config.auto_stop_on_terminal is False


class TestPollerHooks:

    def test_defaults_are_noops(self):
        hooks = PollerHooks()
        assert hooks.on_update(object()) is None
        assert hooks.on_terminal(object()) is None
        assert hooks.on_transport_error("job", RuntimeError()) is None

    def test_hooks_must_be_callable(self):
        with pytest.raises(ValidationError):
            PollerHooks(on_update="not callable")


class TestSettings:

    def test_status_path_requires_placeholder(self):
        with pytest.raises(ValidationError):
            ExecmonSettings(EXECMON_STATUS_PATH_TEMPLATE="/executions/latest")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("EXECMON_POLL_INTERVAL_MS", "250")
        monkeypatch.setenv("EXECMON_API_BASE_URL", "http://testpilot.local/api")
        settings = ExecmonSettings()
        assert settings.EXECMON_POLL_INTERVAL_MS == 250
        assert str(settings.EXECMON_API_BASE_URL).startswith("http://testpilot.local/api")


class TestLogging:

    def test_coerce_level(self):
        assert coerce_level(None) == logging.INFO
        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(" warning ") == logging.WARNING
        assert coerce_level("bogus") == logging.INFO
        assert coerce_level(logging.ERROR) == logging.ERROR

    def test_records_carry_job_id(self, capsys, restore_root_logging):
        configure_logging("INFO")
        token = job_id_var.set("job-7")
        try:
            logging.getLogger("execmon.test").info("tick")
        finally:
            job_id_var.reset(token)
        logging.getLogger("execmon.test").warning("no job")

        captured = capsys.readouterr()
        assert "job=job-7: tick" in captured.out
        assert "job=-: no job" in captured.err
        assert "no job" not in captured.out


class TestBootstrap:

    def test_bootstrap_configures_logging_and_prints_settings(self, capsys, restore_root_logging):
        from execmon.factory import bootstrap

        settings = ExecmonSettings(EXECMON_LOG_LEVEL="DEBUG")
        assert bootstrap(settings, show_settings=True) is settings

        assert logging.getLogger().level == logging.DEBUG
        assert "EXECMON_POLL_INTERVAL_MS" in capsys.readouterr().out
