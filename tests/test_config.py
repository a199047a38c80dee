import io
import sys

import pytest
from pydantic import ValidationError

from payroll_activities.core.config import Settings
from payroll_activities.core.logging import configure_logging, get_logger
from payroll_activities.core.monitoring import configure_error_monitoring


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("PAYROLL_LOG_LEVEL", "debug")
    monkeypatch.setenv("PAYROLL_REFERENCE_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("PAYROLL_LEAVE_DEFAULT_HOURS", "7.5")

    settings = Settings()

    assert settings.log_level == "DEBUG"
    assert settings.reference_cache_ttl_seconds == 60
    assert settings.leave_default_hours == 7.5


def test_negative_cache_ttl_is_rejected(monkeypatch):
    monkeypatch.setenv("PAYROLL_REFERENCE_CACHE_TTL_SECONDS", "-1")

    with pytest.raises(ValidationError):
        Settings()


def test_error_monitoring_stays_off_without_dsn():
    assert configure_error_monitoring(Settings(sentry_dsn=None)) is False


def test_logging_writes_to_the_current_stderr(monkeypatch):
    first = io.StringIO()
    monkeypatch.setattr(sys, "stderr", first)
    configure_logging("INFO")
    get_logger("payroll_activities.test").info("first_event")
    assert "first_event" in first.getvalue()
    first.close()

    second = io.StringIO()
    monkeypatch.setattr(sys, "stderr", second)
    get_logger("payroll_activities.test").info("second_event")

    assert "second_event" in second.getvalue()
