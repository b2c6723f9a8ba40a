"""Firestore Stores - Imperative Shell.

This module persists alerts, reports and relief centers in Google Cloud
Firestore. All I/O is contained here; query semantics are in the core
module.

Locations are stored as Firestore GeoPoint values. Firestore orders
GeoPoints by latitude first, so a range filter on the location field is a
latitude band; the exact radius check is a haversine pass over the band.

Document structure (alerts):
{
    "type": "flood",
    "title": "...",
    "details": "...",
    "location": GeoPoint(latitude, longitude),
    "severity": "high" | "moderate" | "low",
    "status": "active" | "resolved",
    "source": "NASA Import" | null,
    "report_id": "..." | null,
    "created_at": <timestamp>,
    "resolved_at": <timestamp> | null
}
"""

import logging
import math
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from incidenthub.core.aggregate import SortOrder, select_within
from incidenthub.core.config import FirestoreConfig
from incidenthub.core.errors import BackendUnavailable
from incidenthub.core.geo import (
    EARTH_RADIUS_KM,
    GeoPoint,
    is_fallback_center,
    is_valid_coordinate,
    latitude_band,
    nearest,
)
from incidenthub.core.models import (
    Alert,
    AlertDraft,
    AlertStatus,
    IncidentType,
    ReliefCenter,
    Report,
    ReportPriority,
    ReportStatus,
)
from incidenthub.core.severity import coerce_severity
from incidenthub.core.validation import ReliefCenterInput, ReportSubmission


logger = logging.getLogger(__name__)


# Documents read per page by radius and nearest scans
DEFAULT_SCAN_LIMIT = 500

# Nearest-center search starts with this band radius and widens fourfold
NEAREST_START_RADIUS_KM = 50.0
MAX_SEARCH_RADIUS_KM = math.pi * EARTH_RADIUS_KM

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class FirestoreConnection:
    """Lazily created Firestore client shared by the stores.

    This is part of the imperative shell - it handles database I/O.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize the connection.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project:
                kwargs['project'] = self.config.project
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def close(self) -> None:
        """Close the client if it was created."""
        if self._client is not None:
            self._client.close()
            self._client = None


@contextmanager
def backend_errors(operation: str) -> Iterator[None]:
    """Convert Google API failures into BackendUnavailable."""
    try:
        yield
    except gcp_exceptions.GoogleAPIError as e:
        logger.error("Firestore %s failed: %s", operation, str(e))
        raise BackendUnavailable(f"Store unavailable during {operation}") from e


def to_firestore_point(point: GeoPoint) -> firestore.GeoPoint:
    return firestore.GeoPoint(point.latitude, point.longitude)


def from_firestore_point(value: Any) -> GeoPoint | None:
    """Read a stored location.

    Accepts Firestore GeoPoints and legacy GeoJSON Point dicts. Returns None
    for anything unusable.
    """
    if isinstance(value, dict):
        coords = value.get("coordinates")
        if not isinstance(coords, list) or len(coords) < 2:
            return None
        longitude, latitude = coords[0], coords[1]
    else:
        latitude = getattr(value, "latitude", None)
        longitude = getattr(value, "longitude", None)

    if not is_valid_coordinate(latitude, longitude):
        return None
    return GeoPoint(longitude=float(longitude), latitude=float(latitude))


def _enum_value(enum_cls: Any, raw: Any, default: Any) -> Any:
    for member in enum_cls:
        if member.value == raw:
            return member
    return default


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return _EPOCH


def alert_from_document(doc_id: str, data: dict[str, Any]) -> Alert | None:
    """Build an Alert from a stored document, None if its location is unusable."""
    location = from_firestore_point(data.get("location"))
    if location is None:
        logger.warning("Skipping alert %s with invalid location", doc_id)
        return None

    resolved_at = data.get("resolved_at")
    return Alert(
        id=doc_id,
        type=str(data.get("type") or "other"),
        title=str(data.get("title") or ""),
        details=str(data.get("details") or ""),
        location=location,
        severity=coerce_severity(data.get("severity")),
        status=_enum_value(AlertStatus, data.get("status"), AlertStatus.ACTIVE),
        created_at=_timestamp(data.get("created_at")),
        source=data.get("source") or None,
        report_id=data.get("report_id") or None,
        resolved_at=_timestamp(resolved_at) if resolved_at else None,
    )


def report_from_document(doc_id: str, data: dict[str, Any]) -> Report | None:
    """Build a Report from a stored document, None if it is unusable."""
    location = from_firestore_point(data.get("location"))
    if location is None:
        logger.warning("Skipping report %s with invalid location", doc_id)
        return None

    status = _enum_value(ReportStatus, data.get("status"), None)
    if status is None:
        logger.warning("Skipping report %s with unknown status %r", doc_id, data.get("status"))
        return None

    return Report(
        id=doc_id,
        incident_type=_enum_value(IncidentType, data.get("type"), IncidentType.OTHER),
        details=str(data.get("details") or ""),
        location=location,
        status=status,
        priority=_enum_value(ReportPriority, data.get("priority"), ReportPriority.MEDIUM),
        created_at=_timestamp(data.get("created_at")),
        submitted_by=data.get("submitted_by") or None,
    )


def relief_center_from_document(doc_id: str, data: dict[str, Any]) -> ReliefCenter | None:
    location = from_firestore_point(data.get("location"))
    if location is None:
        logger.warning("Skipping relief center %s with invalid location", doc_id)
        return None

    return ReliefCenter(
        id=doc_id,
        name=str(data.get("name") or ""),
        details=str(data.get("details") or ""),
        location=location,
        created_at=_timestamp(data.get("created_at")),
    )


@firestore.transactional
def _compare_and_update(
    transaction: firestore.Transaction,
    doc_ref: Any,
    expected: str,
    updates: dict[str, Any],
) -> bool:
    snapshot = doc_ref.get(transaction=transaction)
    if not snapshot.exists or snapshot.to_dict().get("status") != expected:
        return False
    transaction.update(doc_ref, updates)
    return True


@firestore.transactional
def _compare_and_delete(
    transaction: firestore.Transaction,
    doc_ref: Any,
    expected: str,
) -> bool:
    snapshot = doc_ref.get(transaction=transaction)
    if not snapshot.exists or snapshot.to_dict().get("status") != expected:
        return False
    transaction.delete(doc_ref)
    return True


@firestore.transactional
def _resolve_once(
    transaction: firestore.Transaction,
    doc_ref: Any,
    resolved_at: datetime,
) -> dict[str, Any] | None:
    """Resolve an alert unless it already is; returns the stored data."""
    snapshot = doc_ref.get(transaction=transaction)
    if not snapshot.exists:
        return None
    data = snapshot.to_dict()
    if data.get("status") == AlertStatus.RESOLVED.value:
        return data
    updates = {"status": AlertStatus.RESOLVED.value, "resolved_at": resolved_at}
    transaction.update(doc_ref, updates)
    return {**data, **updates}


class _FirestoreStore:
    """Shared plumbing for the collection-backed stores."""

    def __init__(
        self,
        connection: FirestoreConnection,
        collection: str,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        self.connection = connection
        self.collection_name = collection
        self.scan_limit = scan_limit
        self.timeout = connection.config.timeout_seconds

    def _collection(self) -> Any:
        return self.connection.client.collection(self.collection_name)

    def _stream_status(self, status: str, limit: int) -> list[Any]:
        """Documents with a status, newest first."""
        query = (
            self._collection()
            .where(filter=firestore.FieldFilter("status", "==", status))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return list(query.stream(timeout=self.timeout))

    def _paged(self, query: Any) -> list[Any]:
        """Every document matching query, read scan_limit documents per page."""
        docs: list[Any] = []
        page_query = query.limit(self.scan_limit)
        while True:
            page = list(page_query.stream(timeout=self.timeout))
            docs.extend(page)
            if len(page) < self.scan_limit:
                break
            page_query = query.start_after(page[-1]).limit(self.scan_limit)

        if len(docs) > self.scan_limit:
            logger.info("Scanned %d documents from %s", len(docs), self.collection_name)
        return docs

    def _stream_band(
        self,
        center: GeoPoint,
        radius_km: float,
        status: str | None = None,
    ) -> list[Any]:
        """All documents inside the latitude band around center."""
        min_lat, max_lat = latitude_band(center, radius_km)
        query = self._collection()
        if status is not None:
            query = query.where(filter=firestore.FieldFilter("status", "==", status))
        query = (
            query
            .where(filter=firestore.FieldFilter("location", ">=", firestore.GeoPoint(min_lat, -180.0)))
            .where(filter=firestore.FieldFilter("location", "<=", firestore.GeoPoint(max_lat, 180.0)))
            .order_by("location")
        )
        return self._paged(query)


class FirestoreAlertStore(_FirestoreStore):
    """Alert store backed by a Firestore collection."""

    def create(self, draft: AlertDraft) -> Alert:
        now = datetime.now(timezone.utc)
        data = {
            "type": draft.type,
            "title": draft.title,
            "details": draft.details,
            "location": to_firestore_point(draft.location),
            "severity": draft.severity.value,
            "status": draft.status.value,
            "source": draft.source,
            "report_id": draft.report_id,
            "created_at": now,
            "resolved_at": draft.resolved_at,
        }

        with backend_errors("alert create"):
            doc_ref = self._collection().document()
            doc_ref.set(data, timeout=self.timeout)

        logger.info("Created alert %s (%s)", doc_ref.id, draft.title)

        return Alert(
            id=doc_ref.id,
            type=draft.type,
            title=draft.title,
            details=draft.details,
            location=draft.location,
            severity=draft.severity,
            status=draft.status,
            created_at=now,
            source=draft.source,
            report_id=draft.report_id,
            resolved_at=draft.resolved_at,
        )

    def get(self, alert_id: str) -> Alert | None:
        with backend_errors("alert get"):
            snapshot = self._collection().document(alert_id).get(timeout=self.timeout)
        if not snapshot.exists:
            return None
        return alert_from_document(snapshot.id, snapshot.to_dict())

    def list_by_status(self, status: AlertStatus, limit: int) -> list[Alert]:
        with backend_errors("alert list"):
            docs = self._stream_status(status.value, limit)
        alerts = [alert_from_document(d.id, d.to_dict()) for d in docs]
        return [a for a in alerts if a is not None]

    def query_within(
        self,
        status: AlertStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Alert]:
        if is_fallback_center(center):
            return self.list_by_status(status, limit)

        with backend_errors("alert radius query"):
            docs = self._stream_band(center, radius_km, status.value)
        alerts = [alert_from_document(d.id, d.to_dict()) for d in docs]
        return select_within([a for a in alerts if a is not None], center, radius_km, limit, order)

    def resolve(self, alert_id: str) -> Alert | None:
        """Mark an alert resolved.

        An alert that is already resolved keeps its original resolved_at.
        """
        doc_ref = self._collection().document(alert_id)

        with backend_errors("alert resolve"):
            transaction = self.connection.client.transaction()
            data = _resolve_once(transaction, doc_ref, datetime.now(timezone.utc))

        if data is None:
            return None

        logger.info("Resolved alert %s", alert_id)
        return alert_from_document(alert_id, data)


class FirestoreReportStore(_FirestoreStore):
    """Report store backed by a Firestore collection.

    Status changes go through Firestore transactions, so a conditional
    update only applies while the stored status still matches.
    """

    def create(self, submission: ReportSubmission, priority: ReportPriority) -> Report:
        now = datetime.now(timezone.utc)
        data = {
            "type": submission.incident_type.value,
            "details": submission.details,
            "location": to_firestore_point(submission.location),
            "status": ReportStatus.PENDING.value,
            "priority": priority.value,
            "submitted_by": submission.submitted_by,
            "created_at": now,
        }

        with backend_errors("report create"):
            doc_ref = self._collection().document()
            doc_ref.set(data, timeout=self.timeout)

        logger.info("Created report %s (%s)", doc_ref.id, submission.incident_type.value)

        return Report(
            id=doc_ref.id,
            incident_type=submission.incident_type,
            details=submission.details,
            location=submission.location,
            status=ReportStatus.PENDING,
            priority=priority,
            created_at=now,
            submitted_by=submission.submitted_by,
        )

    def get(self, report_id: str) -> Report | None:
        with backend_errors("report get"):
            snapshot = self._collection().document(report_id).get(timeout=self.timeout)
        if not snapshot.exists:
            return None
        return report_from_document(snapshot.id, snapshot.to_dict())

    def list_by_status(self, status: ReportStatus, limit: int) -> list[Report]:
        with backend_errors("report list"):
            docs = self._stream_status(status.value, limit)
        reports = [report_from_document(d.id, d.to_dict()) for d in docs]
        return [r for r in reports if r is not None]

    def query_within(
        self,
        status: ReportStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Report]:
        if is_fallback_center(center):
            return self.list_by_status(status, limit)

        with backend_errors("report radius query"):
            docs = self._stream_band(center, radius_km, status.value)
        reports = [report_from_document(d.id, d.to_dict()) for d in docs]
        return select_within([r for r in reports if r is not None], center, radius_km, limit, order)

    def compare_and_set_status(
        self,
        report_id: str,
        expected: ReportStatus,
        new_status: ReportStatus,
    ) -> bool:
        doc_ref = self._collection().document(report_id)
        updates = {
            "status": new_status.value,
            "updated_at": datetime.now(timezone.utc),
        }

        with backend_errors("report status update"):
            transaction = self.connection.client.transaction()
            return _compare_and_update(transaction, doc_ref, expected.value, updates)

    def delete_if_status(self, report_id: str, expected: ReportStatus) -> bool:
        doc_ref = self._collection().document(report_id)

        with backend_errors("report delete"):
            transaction = self.connection.client.transaction()
            return _compare_and_delete(transaction, doc_ref, expected.value)

    def restore(self, report: Report) -> None:
        data = {
            "type": report.incident_type.value,
            "details": report.details,
            "location": to_firestore_point(report.location),
            "status": report.status.value,
            "priority": report.priority.value,
            "submitted_by": report.submitted_by,
            "created_at": report.created_at,
        }

        with backend_errors("report restore"):
            self._collection().document(report.id).set(data, timeout=self.timeout)

        logger.info("Restored report %s (%s)", report.id, report.status.value)


class FirestoreReliefCenterStore(_FirestoreStore):
    """Relief center store backed by a Firestore collection."""

    def create(self, center: ReliefCenterInput) -> ReliefCenter:
        now = datetime.now(timezone.utc)
        data = {
            "name": center.name,
            "details": center.details,
            "location": to_firestore_point(center.location),
            "created_at": now,
        }

        with backend_errors("relief center create"):
            doc_ref = self._collection().document()
            doc_ref.set(data, timeout=self.timeout)

        logger.info("Created relief center %s (%s)", doc_ref.id, center.name)

        return ReliefCenter(
            id=doc_ref.id,
            name=center.name,
            details=center.details,
            location=center.location,
            created_at=now,
        )

    def list_all(self, limit: int) -> list[ReliefCenter]:
        with backend_errors("relief center list"):
            docs = list(self._collection().limit(limit).stream(timeout=self.timeout))
        centers = [relief_center_from_document(d.id, d.to_dict()) for d in docs]
        return [c for c in centers if c is not None]

    def delete(self, center_id: str) -> bool:
        doc_ref = self._collection().document(center_id)
        with backend_errors("relief center delete"):
            if not doc_ref.get(timeout=self.timeout).exists:
                return False
            doc_ref.delete(timeout=self.timeout)

        logger.info("Deleted relief center %s", center_id)
        return True

    def nearest(self, point: GeoPoint) -> tuple[ReliefCenter, float] | None:
        """Closest center to point.

        Scans latitude bands of growing radius. A hit no farther away than
        the band radius is the true nearest, since every closer center lies
        inside the same band.
        """
        radius_km = NEAREST_START_RADIUS_KM
        while True:
            with backend_errors("relief center nearest"):
                docs = self._stream_band(point, radius_km)
            centers = [relief_center_from_document(d.id, d.to_dict()) for d in docs]
            found = nearest(point, [(c.location, c) for c in centers if c is not None])

            if found is not None and found[1] <= radius_km:
                return found
            if radius_km >= MAX_SEARCH_RADIUS_KM:
                return found
            radius_km = min(radius_km * 4, MAX_SEARCH_RADIUS_KM)
