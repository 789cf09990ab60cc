from __future__ import annotations

import pytest

from permitflow.infra.settings import WorkflowSettings


def test_defaults_when_environment_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "INSPECTION_DEADLINE_DAYS",
        "FOLLOWUP_DEADLINE_DAYS",
        "LICENSE_RENEWAL_REMINDER_DAYS",
        "NOC_VALIDITY_MONTHS",
        "LICENSE_VALIDITY_YEARS",
        "SCHEDULER_ENABLED",
        "OVERDUE_CHECK_INTERVAL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = WorkflowSettings.from_env()

    assert settings.inspection_deadline_days == 7
    assert settings.followup_deadline_days == 5
    assert settings.license_renewal_reminder_days == 30
    assert settings.noc_validity_months == 12
    assert settings.license_validity_years == 1
    assert settings.scheduler_enabled is False
    assert settings.overdue_check_interval_seconds == 3600


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FOLLOWUP_DEADLINE_DAYS", "10")
    monkeypatch.setenv("NOC_VALIDITY_MONTHS", "24")
    monkeypatch.setenv("SCHEDULER_ENABLED", "true")

    settings = WorkflowSettings.from_env()

    assert settings.followup_deadline_days == 10
    assert settings.noc_validity_months == 24
    assert settings.scheduler_enabled is True


def test_invalid_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSPECTION_DEADLINE_DAYS", "seven")
    monkeypatch.setenv("LICENSE_RENEWAL_REMINDER_DAYS", "")

    settings = WorkflowSettings.from_env()

    assert settings.inspection_deadline_days == 7
    assert settings.license_renewal_reminder_days == 30
