from __future__ import annotations

from datetime import UTC, datetime, timedelta

from permitflow.domain.assignment import pick_least_loaded
from permitflow.domain.models import ComplianceStatus, License, LicenseStatus
from permitflow.domain.rules import needs_renewal_reminder, overall_compliance, renew


def _item(status: ComplianceStatus) -> dict[str, str]:
    return {"item": "extinguisher", "category": "fire_extinguishers", "status": status.value}


def _license(valid_until: datetime, **overrides: object) -> License:
    values: dict[str, object] = {
        "license_number": "LIC2025000001",
        "application_id": "app-1",
        "licensee_id": "user-1",
        "issued_by": "admin-1",
        "valid_from": valid_until - timedelta(days=365),
        "valid_until": valid_until,
        "status": LicenseStatus.ACTIVE,
    }
    values.update(overrides)
    return License(**values)


def test_overall_compliance_counts_compliant_items() -> None:
    items = [
        _item(ComplianceStatus.COMPLIANT),
        _item(ComplianceStatus.COMPLIANT),
        _item(ComplianceStatus.COMPLIANT),
        _item(ComplianceStatus.NON_COMPLIANT),
    ]
    assert overall_compliance(items) == 75


def test_overall_compliance_rounds_half_up() -> None:
    items = [_item(ComplianceStatus.COMPLIANT)] * 5 + [_item(ComplianceStatus.NOT_APPLICABLE)] * 3
    assert overall_compliance(items) == 63
    assert overall_compliance([_item(ComplianceStatus.COMPLIANT)] * 2 + [_item(ComplianceStatus.NON_COMPLIANT)]) == 67


def test_overall_compliance_is_undefined_for_empty_checklist() -> None:
    assert overall_compliance([]) is None


def test_renew_extends_from_current_expiry() -> None:
    now = datetime(2024, 12, 1, tzinfo=UTC)
    license = _license(datetime(2025, 1, 1, tzinfo=UTC), reminder_sent=True)

    entry = renew(license, years=2, now=now, actor_id="admin-1")

    assert license.valid_until == datetime(2027, 1, 1, tzinfo=UTC)
    assert license.status == LicenseStatus.ACTIVE
    assert license.reminder_sent is False
    assert len(license.renewal_history) == 1
    assert entry["previous_expiry"] == "2025-01-01T00:00:00+00:00"
    assert entry["new_expiry"] == "2027-01-01T00:00:00+00:00"
    assert entry["actor_id"] == "admin-1"


def test_renew_reactivates_expired_license() -> None:
    now = datetime(2025, 3, 1, tzinfo=UTC)
    license = _license(datetime(2025, 1, 1, tzinfo=UTC), status=LicenseStatus.EXPIRED)

    renew(license, years=1, now=now, actor_id=None)

    assert license.status == LicenseStatus.ACTIVE
    assert license.valid_until == datetime(2026, 1, 1, tzinfo=UTC)


def test_needs_renewal_reminder_window() -> None:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    assert needs_renewal_reminder(_license(now + timedelta(days=20)), now, 30) is True
    assert needs_renewal_reminder(_license(now + timedelta(days=30)), now, 30) is True
    assert needs_renewal_reminder(_license(now + timedelta(days=40)), now, 30) is False
    assert needs_renewal_reminder(_license(now - timedelta(days=1)), now, 30) is False
    assert needs_renewal_reminder(_license(now + timedelta(days=20), reminder_sent=True), now, 30) is False
    assert (
        needs_renewal_reminder(_license(now + timedelta(days=20), status=LicenseStatus.SUSPENDED), now, 30)
        is False
    )


def test_pick_least_loaded_prefers_lowest_load() -> None:
    assert pick_least_loaded([("a", 2), ("b", 0), ("c", 1)]) == "b"


def test_pick_least_loaded_keeps_first_on_tie() -> None:
    assert pick_least_loaded([("a", 1), ("b", 1)]) == "a"
    assert pick_least_loaded([]) is None
