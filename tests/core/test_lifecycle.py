"""Unit tests for the report lifecycle planner.

Pure function tests - no mocks needed.
"""

from datetime import datetime, timezone

import pytest

from incidenthub.core.errors import InvalidAction, InvalidTransition
from incidenthub.core.geo import GeoPoint
from incidenthub.core.lifecycle import (
    ReportAction,
    alert_title,
    parse_action,
    plan_transition,
)
from incidenthub.core.models import (
    AlertStatus,
    IncidentType,
    Report,
    ReportPriority,
    ReportStatus,
    Severity,
)


NOW = datetime(2024, 7, 30, 6, 0, tzinfo=timezone.utc)


def make_report(status=ReportStatus.PENDING, details="Water rising near the school gate"):
    return Report(
        id="r1",
        incident_type=IncidentType.FLOOD,
        details=details,
        location=GeoPoint(longitude=76.628, latitude=10.068),
        status=status,
        priority=ReportPriority.HIGH,
        created_at=datetime(2024, 7, 30, tzinfo=timezone.utc),
    )


class TestParseAction:
    """Tests for parse_action()."""

    @pytest.mark.parametrize("raw,expected", [
        ("accept", ReportAction.ACCEPT),
        ("reject", ReportAction.REJECT),
        ("resolve", ReportAction.RESOLVE),
        ("confirm", ReportAction.CONFIRM),
        (" Accept ", ReportAction.ACCEPT),
        (ReportAction.CONFIRM, ReportAction.CONFIRM),
    ])
    def test_known_actions(self, raw, expected):
        assert parse_action(raw) == expected

    @pytest.mark.parametrize("raw", ["approve", "", None, 1])
    def test_unknown_action_raises(self, raw):
        with pytest.raises(InvalidAction):
            parse_action(raw)


class TestPlanTransition:
    """Tests for plan_transition()."""

    def test_accept_creates_no_alert(self):
        plan = plan_transition(make_report(), ReportAction.ACCEPT, NOW)

        assert plan.expected_status == ReportStatus.PENDING
        assert plan.next_status == ReportStatus.ACCEPTED
        assert plan.alert is None

    def test_reject_keeps_report(self):
        plan = plan_transition(make_report(), ReportAction.REJECT, NOW)

        assert plan.next_status == ReportStatus.REJECTED
        assert not plan.deletes_report
        assert plan.alert is None

    def test_confirm_deletes_and_creates_active_alert(self):
        plan = plan_transition(make_report(), ReportAction.CONFIRM, NOW)

        assert plan.deletes_report
        assert plan.alert.status == AlertStatus.ACTIVE
        assert plan.alert.severity == Severity.MODERATE
        assert plan.alert.title == "Water rising near the school gate"
        assert plan.alert.report_id == "r1"
        assert plan.alert.source == "Citizen Report"

    def test_resolve_from_accepted_creates_resolved_alert(self):
        report = make_report(ReportStatus.ACCEPTED)

        plan = plan_transition(report, ReportAction.RESOLVE, NOW)

        assert plan.expected_status == ReportStatus.ACCEPTED
        assert plan.next_status == ReportStatus.RESOLVED
        assert plan.alert.status == AlertStatus.RESOLVED
        assert plan.alert.severity == Severity.MODERATE
        assert plan.alert.resolved_at == NOW
        assert plan.alert.type == "flood"
        assert plan.alert.details == report.details
        assert plan.alert.location == report.location

    def test_resolve_from_pending_is_allowed(self):
        plan = plan_transition(make_report(), ReportAction.RESOLVE, NOW)
        assert plan.expected_status == ReportStatus.PENDING

    @pytest.mark.parametrize("status,action", [
        (ReportStatus.ACCEPTED, ReportAction.ACCEPT),
        (ReportStatus.ACCEPTED, ReportAction.CONFIRM),
        (ReportStatus.REJECTED, ReportAction.RESOLVE),
        (ReportStatus.RESOLVED, ReportAction.RESOLVE),
        (ReportStatus.RESOLVED, ReportAction.REJECT),
    ])
    def test_disallowed_transitions(self, status, action):
        with pytest.raises(InvalidTransition):
            plan_transition(make_report(status), action, NOW)


class TestAlertTitle:
    """Tests for alert_title()."""

    def test_truncates_to_80_chars(self):
        report = make_report(details="x" * 200)
        assert alert_title(report, "Resolved") == "x" * 80

    def test_falls_back_when_details_blank(self):
        report = make_report(details="   ")
        assert alert_title(report, "Resolved") == "Resolved: flood"
