"""Tests for the Firestore stores.

The Firestore client is replaced with mocks; no emulator needed.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from incidenthub.core.aggregate import SortOrder
from incidenthub.core.config import FirestoreConfig
from incidenthub.core.errors import BackendUnavailable
from incidenthub.core.geo import GeoPoint
from incidenthub.core.models import (
    AlertDraft,
    AlertStatus,
    IncidentType,
    ReportPriority,
    ReportStatus,
    Severity,
)
from incidenthub.core.validation import ReportSubmission
from incidenthub.shell.firestore_stores import (
    FirestoreAlertStore,
    FirestoreConnection,
    FirestoreReliefCenterStore,
    FirestoreReportStore,
    alert_from_document,
    from_firestore_point,
    _resolve_once,
    report_from_document,
)


CENTER = GeoPoint(longitude=76.628, latitude=10.068)
CREATED = datetime(2024, 7, 30, tzinfo=timezone.utc)


def make_doc(doc_id, data):
    doc = Mock()
    doc.id = doc_id
    doc.exists = True
    doc.to_dict.return_value = data
    return doc


def alert_data(lat, lng, **overrides):
    data = {
        "type": "flood",
        "title": "River rising",
        "details": "Move to higher ground",
        "location": firestore.GeoPoint(lat, lng),
        "severity": "high",
        "status": "active",
        "source": None,
        "created_at": CREATED,
    }
    data.update(overrides)
    return data


@pytest.fixture
def connection():
    conn = Mock()
    conn.config = FirestoreConfig()
    conn.client = MagicMock()
    return conn


def _query(connection):
    """The chained query object every where/order_by/limit/start_after returns."""
    query = MagicMock()
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.start_after.return_value = query
    connection.client.collection.return_value.where.return_value = query
    connection.client.collection.return_value.limit.return_value = query
    return query


class TestFirestoreConnection:
    """Tests for lazy client creation."""

    def test_client_created_once_with_database(self):
        with patch("incidenthub.shell.firestore_stores.firestore.Client") as client_cls:
            conn = FirestoreConnection(FirestoreConfig(project="p", database="incident-hub"))

            first = conn.client
            second = conn.client

        client_cls.assert_called_once_with(project="p", database="incident-hub")
        assert first is second

    def test_close_before_use_does_nothing(self):
        FirestoreConnection().close()


class TestDocumentConversion:
    """Tests for document-to-model helpers."""

    def test_from_firestore_point(self):
        assert from_firestore_point(firestore.GeoPoint(10.0, 76.0)) == GeoPoint(76.0, 10.0)

    def test_from_geojson_dict(self):
        value = {"type": "Point", "coordinates": [76.0, 10.0]}
        assert from_firestore_point(value) == GeoPoint(76.0, 10.0)

    def test_from_invalid_point(self):
        assert from_firestore_point(None) is None
        assert from_firestore_point({"coordinates": [500, 10]}) is None

    def test_alert_from_document_coerces_severity(self):
        alert = alert_from_document("a1", alert_data(10.0, 76.0, severity="extreme"))
        assert alert.severity == Severity.HIGH

    def test_alert_with_bad_location_is_skipped(self):
        assert alert_from_document("a1", alert_data(10.0, 76.0, location=None)) is None

    def test_report_with_unknown_status_is_skipped(self):
        data = {
            "type": "flood",
            "details": "Water rising fast",
            "location": firestore.GeoPoint(10.0, 76.0),
            "status": "archived",
            "created_at": CREATED,
        }
        assert report_from_document("r1", data) is None

    def test_report_defaults(self):
        data = {
            "type": "mystery",
            "details": "Water rising fast",
            "location": firestore.GeoPoint(10.0, 76.0),
            "status": "pending",
        }

        report = report_from_document("r1", data)

        assert report.incident_type == IncidentType.OTHER
        assert report.priority == ReportPriority.MEDIUM


class TestFirestoreAlertStore:
    """Tests for FirestoreAlertStore."""

    def test_create_writes_geopoint(self, connection):
        doc_ref = connection.client.collection.return_value.document.return_value
        doc_ref.id = "new-id"
        store = FirestoreAlertStore(connection, "alerts")

        alert = store.create(AlertDraft(
            type="flood", title="River rising", details="Move", location=CENTER,
        ))

        assert alert.id == "new-id"
        written = doc_ref.set.call_args[0][0]
        assert written["location"] == firestore.GeoPoint(10.068, 76.628)
        assert written["severity"] == "moderate"
        assert written["status"] == "active"

    def test_query_within_applies_exact_radius(self, connection):
        query = _query(connection)
        query.stream.return_value = [
            make_doc("near", alert_data(10.089, 77.087)),
            # Same latitude band, far away in longitude
            make_doc("far", alert_data(10.1, 90.0)),
        ]
        store = FirestoreAlertStore(connection, "alerts")

        found = store.query_within(AlertStatus.ACTIVE, CENTER, 150, 25)

        assert [a.id for a in found] == ["near"]

    def test_query_without_center_lists_by_status(self, connection):
        query = _query(connection)
        query.stream.return_value = [make_doc("a1", alert_data(28.6, 77.2))]
        store = FirestoreAlertStore(connection, "alerts")

        found = store.query_within(AlertStatus.ACTIVE, None, 150, 25)

        assert [a.id for a in found] == ["a1"]
        query.order_by.assert_called_once()

    def test_google_api_error_becomes_backend_unavailable(self, connection):
        query = _query(connection)
        query.stream.side_effect = gcp_exceptions.ServiceUnavailable("down")
        store = FirestoreAlertStore(connection, "alerts")

        with pytest.raises(BackendUnavailable):
            store.query_within(AlertStatus.ACTIVE, CENTER, 150, 25)

    def test_query_within_reads_every_page(self, connection):
        query = _query(connection)
        query.stream.side_effect = [
            [make_doc("a1", alert_data(10.07, 76.63)), make_doc("a2", alert_data(10.08, 76.63))],
            [make_doc("a3", alert_data(10.09, 76.63))],
        ]
        store = FirestoreAlertStore(connection, "alerts", scan_limit=2)

        found = store.query_within(AlertStatus.ACTIVE, CENTER, 150, 25, SortOrder.DISTANCE)

        assert [a.id for a in found] == ["a1", "a2", "a3"]
        assert query.stream.call_count == 2
        query.start_after.assert_called_once()
        query.order_by.assert_called_with("location")

    def test_resolve_missing(self, connection):
        store = FirestoreAlertStore(connection, "alerts")

        with patch("incidenthub.shell.firestore_stores._resolve_once", return_value=None):
            assert store.resolve("nope") is None

    def test_resolve_uses_transaction(self, connection):
        store = FirestoreAlertStore(connection, "alerts")
        stored = alert_data(10.0, 76.0, status="resolved", resolved_at=CREATED)

        with patch(
            "incidenthub.shell.firestore_stores._resolve_once",
            return_value=stored,
        ) as apply:
            alert = store.resolve("a1")

        assert alert.status == AlertStatus.RESOLVED
        assert alert.resolved_at == CREATED
        assert apply.call_args[0][0] is connection.client.transaction.return_value


class TestResolveOnce:
    """Tests for the transactional resolve body."""

    def test_active_alert_is_resolved(self):
        transaction = Mock()
        doc_ref = Mock()
        doc_ref.get.return_value = make_doc("a1", alert_data(10.0, 76.0))
        now = datetime(2024, 8, 1, tzinfo=timezone.utc)

        data = _resolve_once.to_wrap(transaction, doc_ref, now)

        assert data["status"] == "resolved"
        assert data["resolved_at"] == now
        update = transaction.update.call_args[0][1]
        assert update == {"status": "resolved", "resolved_at": now}

    def test_already_resolved_keeps_resolved_at(self):
        transaction = Mock()
        doc_ref = Mock()
        doc_ref.get.return_value = make_doc(
            "a1", alert_data(10.0, 76.0, status="resolved", resolved_at=CREATED),
        )

        data = _resolve_once.to_wrap(transaction, doc_ref, datetime(2024, 8, 1, tzinfo=timezone.utc))

        assert data["resolved_at"] == CREATED
        transaction.update.assert_not_called()

    def test_missing_alert(self):
        doc_ref = Mock()
        doc_ref.get.return_value = Mock(exists=False)

        assert _resolve_once.to_wrap(Mock(), doc_ref, CREATED) is None


class TestFirestoreReportStore:
    """Tests for FirestoreReportStore."""

    def test_create_is_pending(self, connection):
        doc_ref = connection.client.collection.return_value.document.return_value
        doc_ref.id = "r1"
        store = FirestoreReportStore(connection, "reports")

        report = store.create(
            ReportSubmission(IncidentType.FIRE, "Smoke behind the school", CENTER),
            ReportPriority.HIGH,
        )

        assert report.status == ReportStatus.PENDING
        assert doc_ref.set.call_args[0][0]["priority"] == "high"

    def test_compare_and_set_uses_transaction(self, connection):
        store = FirestoreReportStore(connection, "reports")

        with patch(
            "incidenthub.shell.firestore_stores._compare_and_update",
            return_value=True,
        ) as apply:
            applied = store.compare_and_set_status("r1", ReportStatus.ACCEPTED, ReportStatus.RESOLVED)

        assert applied is True
        transaction, _, expected, updates = apply.call_args[0]
        assert transaction is connection.client.transaction.return_value
        assert expected == "accepted"
        assert updates["status"] == "resolved"

    def test_delete_if_status_uses_transaction(self, connection):
        store = FirestoreReportStore(connection, "reports")

        with patch(
            "incidenthub.shell.firestore_stores._compare_and_delete",
            return_value=False,
        ) as apply:
            assert store.delete_if_status("r1", ReportStatus.PENDING) is False

        assert apply.call_args[0][2] == "pending"

    def test_restore_writes_original_document(self, connection):
        doc_ref = connection.client.collection.return_value.document.return_value
        store = FirestoreReportStore(connection, "reports")
        report = report_from_document("r1", {
            "type": "fire",
            "details": "Smoke behind the school",
            "location": firestore.GeoPoint(10.068, 76.628),
            "status": "pending",
            "priority": "high",
            "created_at": CREATED,
        })

        store.restore(report)

        connection.client.collection.return_value.document.assert_called_with("r1")
        written = doc_ref.set.call_args[0][0]
        assert written["status"] == "pending"
        assert written["created_at"] == CREATED
        assert written["location"] == firestore.GeoPoint(10.068, 76.628)


class TestFirestoreReliefCenterStore:
    """Tests for FirestoreReliefCenterStore."""

    def test_nearest(self, connection):
        query = _query(connection)
        query.stream.return_value = [
            make_doc("delhi", {"name": "Delhi", "location": firestore.GeoPoint(28.6, 77.2)}),
            make_doc("local", {"name": "Town Hall", "location": firestore.GeoPoint(10.08, 76.64)}),
        ]
        store = FirestoreReliefCenterStore(connection, "relief_centers")

        center, distance = store.nearest(CENTER)

        assert center.id == "local"
        assert distance < 5

    def test_nearest_widens_band_until_match(self, connection):
        query = _query(connection)
        query.stream.side_effect = [
            [],
            [make_doc("north", {"name": "North Camp", "location": firestore.GeoPoint(11.0, 76.628)})],
        ]
        store = FirestoreReliefCenterStore(connection, "relief_centers")

        center, distance = store.nearest(CENTER)

        assert center.id == "north"
        assert 100 < distance < 110
        assert query.stream.call_count == 2

    def test_nearest_ignores_band_hit_beyond_band_radius(self, connection):
        query = _query(connection)
        east = make_doc("east", {"name": "East Camp", "location": firestore.GeoPoint(10.1, 78.0)})
        north = make_doc("north", {"name": "North Camp", "location": firestore.GeoPoint(11.0, 76.628)})
        query.stream.side_effect = [[east], [east, north]]
        store = FirestoreReliefCenterStore(connection, "relief_centers")

        center, _ = store.nearest(CENTER)

        assert center.id == "north"

    def test_nearest_empty_collection(self, connection):
        query = _query(connection)
        query.stream.return_value = []
        store = FirestoreReliefCenterStore(connection, "relief_centers")

        assert store.nearest(CENTER) is None

    def test_delete_missing(self, connection):
        connection.client.collection.return_value.document.return_value.get.return_value = Mock(exists=False)
        store = FirestoreReliefCenterStore(connection, "relief_centers")

        assert store.delete("nope") is False
