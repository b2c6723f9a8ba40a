"""Tests for the in-memory stores."""

import pytest

from incidenthub.core.aggregate import SortOrder
from incidenthub.core.geo import GeoPoint
from incidenthub.core.models import (
    AlertDraft,
    AlertStatus,
    IncidentType,
    ReportPriority,
    ReportStatus,
)
from incidenthub.core.validation import ReliefCenterInput, ReportSubmission
from incidenthub.shell.memory_stores import (
    MemoryAlertStore,
    MemoryReliefCenterStore,
    MemoryReportStore,
)


CENTER = GeoPoint(longitude=76.628, latitude=10.068)
NEARBY = GeoPoint(longitude=77.087, latitude=10.089)
DELHI = GeoPoint(longitude=77.209, latitude=28.614)


def draft(title, location=NEARBY, status=AlertStatus.ACTIVE):
    return AlertDraft(type="flood", title=title, details="details", location=location, status=status)


def submission(location=NEARBY):
    return ReportSubmission(
        incident_type=IncidentType.FIRE,
        details="Smoke rising behind the school",
        location=location,
    )


class TestMemoryAlertStore:
    """Tests for MemoryAlertStore."""

    def test_create_and_get(self):
        store = MemoryAlertStore()

        alert = store.create(draft("River rising"))

        assert store.get(alert.id) == alert
        assert alert.created_at.tzinfo is not None

    def test_get_missing(self):
        assert MemoryAlertStore().get("nope") is None

    def test_query_within_filters_by_radius_and_status(self):
        store = MemoryAlertStore()
        near = store.create(draft("near"))
        store.create(draft("far", DELHI))
        store.create(draft("resolved", status=AlertStatus.RESOLVED))

        found = store.query_within(AlertStatus.ACTIVE, CENTER, 150, 25)

        assert [a.id for a in found] == [near.id]

    def test_query_without_center_returns_all_with_status(self):
        store = MemoryAlertStore()
        store.create(draft("near"))
        store.create(draft("far", DELHI))

        assert len(store.query_within(AlertStatus.ACTIVE, None, 150, 25)) == 2

    def test_list_by_status_newest_first_with_limit(self):
        store = MemoryAlertStore()
        for i in range(3):
            store.create(draft(f"a{i}"))

        titles = [a.title for a in store.list_by_status(AlertStatus.ACTIVE, 2)]

        assert len(titles) == 2

    def test_resolve(self):
        store = MemoryAlertStore()
        alert = store.create(draft("River rising"))

        resolved = store.resolve(alert.id)

        assert resolved.status == AlertStatus.RESOLVED
        assert resolved.resolved_at is not None
        assert store.get(alert.id).status == AlertStatus.RESOLVED

    def test_resolve_missing(self):
        assert MemoryAlertStore().resolve("nope") is None

    def test_resolve_twice_keeps_first_resolved_at(self):
        store = MemoryAlertStore()
        alert = store.create(draft("River rising"))

        first = store.resolve(alert.id)
        second = store.resolve(alert.id)

        assert second.resolved_at == first.resolved_at
        assert store.get(alert.id).resolved_at == first.resolved_at

    def test_distance_order_keeps_nearest_past_limit(self):
        store = MemoryAlertStore()
        close_by = GeoPoint(longitude=76.630, latitude=10.070)
        near = [store.create(draft(f"near{i}", close_by)) for i in range(5)]
        for i in range(25):
            store.create(draft(f"far{i}"))

        found = store.query_within(AlertStatus.ACTIVE, CENTER, 150, 25, SortOrder.DISTANCE)

        assert len(found) == 25
        assert {a.id for a in near} <= {a.id for a in found}


class TestMemoryReportStore:
    """Tests for MemoryReportStore."""

    def test_create_is_pending(self):
        store = MemoryReportStore()

        report = store.create(submission(), ReportPriority.HIGH)

        assert report.status == ReportStatus.PENDING
        assert report.priority == ReportPriority.HIGH
        assert store.get(report.id) == report

    def test_compare_and_set_applies_once(self):
        store = MemoryReportStore()
        report = store.create(submission(), ReportPriority.MEDIUM)

        first = store.compare_and_set_status(report.id, ReportStatus.PENDING, ReportStatus.ACCEPTED)
        second = store.compare_and_set_status(report.id, ReportStatus.PENDING, ReportStatus.ACCEPTED)

        assert first is True
        assert second is False
        assert store.get(report.id).status == ReportStatus.ACCEPTED

    def test_compare_and_set_missing(self):
        store = MemoryReportStore()
        assert not store.compare_and_set_status("nope", ReportStatus.PENDING, ReportStatus.ACCEPTED)

    def test_delete_if_status(self):
        store = MemoryReportStore()
        report = store.create(submission(), ReportPriority.MEDIUM)

        assert not store.delete_if_status(report.id, ReportStatus.ACCEPTED)
        assert store.delete_if_status(report.id, ReportStatus.PENDING)
        assert store.get(report.id) is None
        assert not store.delete_if_status(report.id, ReportStatus.PENDING)

    def test_query_within_accepted_only(self):
        store = MemoryReportStore()
        pending = store.create(submission(), ReportPriority.MEDIUM)
        accepted = store.create(submission(), ReportPriority.MEDIUM)
        store.compare_and_set_status(accepted.id, ReportStatus.PENDING, ReportStatus.ACCEPTED)

        found = store.query_within(ReportStatus.ACCEPTED, CENTER, 150, 25)

        assert [r.id for r in found] == [accepted.id]
        assert pending.id not in {r.id for r in found}

    def test_restore_puts_report_back_unchanged(self):
        store = MemoryReportStore()
        report = store.create(submission(), ReportPriority.MEDIUM)
        store.delete_if_status(report.id, ReportStatus.PENDING)

        store.restore(report)

        assert store.get(report.id) == report


class TestMemoryReliefCenterStore:
    """Tests for MemoryReliefCenterStore."""

    def test_nearest(self):
        store = MemoryReliefCenterStore()
        store.create(ReliefCenterInput("Delhi Camp", "", DELHI))
        near = store.create(ReliefCenterInput("Town Hall", "", NEARBY))

        center, distance = store.nearest(CENTER)

        assert center.id == near.id
        assert distance == pytest.approx(50, abs=5)

    def test_nearest_empty(self):
        assert MemoryReliefCenterStore().nearest(CENTER) is None

    def test_delete(self):
        store = MemoryReliefCenterStore()
        center = store.create(ReliefCenterInput("Town Hall", "", NEARBY))

        assert store.delete(center.id)
        assert not store.delete(center.id)
        assert store.list_all(10) == []
