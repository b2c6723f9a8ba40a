"""In-memory Stores - Imperative Shell.

Process-local implementations of the store contracts, used for local
development, the seed script and tests. Each store guards its own data
with a lock so conditional updates are atomic; there is no lock shared
between stores.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from incidenthub.core.aggregate import SortOrder, select_within
from incidenthub.core.geo import GeoPoint, nearest
from incidenthub.core.models import (
    Alert,
    AlertDraft,
    AlertStatus,
    ReliefCenter,
    Report,
    ReportPriority,
    ReportStatus,
)
from incidenthub.core.validation import ReliefCenterInput, ReportSubmission


logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _newest_first(items: list) -> list:
    return sorted(items, key=lambda item: item.created_at, reverse=True)


class MemoryAlertStore:
    """Alert store held in a dict."""

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}
        self._lock = threading.Lock()

    def create(self, draft: AlertDraft) -> Alert:
        alert = Alert(
            id=_new_id(),
            type=draft.type,
            title=draft.title,
            details=draft.details,
            location=draft.location,
            severity=draft.severity,
            status=draft.status,
            created_at=datetime.now(timezone.utc),
            source=draft.source,
            report_id=draft.report_id,
            resolved_at=draft.resolved_at,
        )
        with self._lock:
            self._alerts[alert.id] = alert

        logger.info("Created alert %s (%s)", alert.id, alert.title)
        return alert

    def get(self, alert_id: str) -> Alert | None:
        with self._lock:
            return self._alerts.get(alert_id)

    def all(self) -> list[Alert]:
        """Every stored alert regardless of status."""
        with self._lock:
            return list(self._alerts.values())

    def list_by_status(self, status: AlertStatus, limit: int) -> list[Alert]:
        matching = [a for a in self.all() if a.status == status]
        return _newest_first(matching)[:limit]

    def query_within(
        self,
        status: AlertStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Alert]:
        matching = [a for a in self.all() if a.status == status]
        return select_within(matching, center, radius_km, limit, order)

    def resolve(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return None
            if alert.status == AlertStatus.RESOLVED:
                return alert
            alert = replace(
                alert,
                status=AlertStatus.RESOLVED,
                resolved_at=datetime.now(timezone.utc),
            )
            self._alerts[alert_id] = alert

        logger.info("Resolved alert %s", alert_id)
        return alert


class MemoryReportStore:
    """Report store held in a dict."""

    def __init__(self) -> None:
        self._reports: dict[str, Report] = {}
        self._lock = threading.Lock()

    def create(self, submission: ReportSubmission, priority: ReportPriority) -> Report:
        report = Report(
            id=_new_id(),
            incident_type=submission.incident_type,
            details=submission.details,
            location=submission.location,
            status=ReportStatus.PENDING,
            priority=priority,
            created_at=datetime.now(timezone.utc),
            submitted_by=submission.submitted_by,
        )
        with self._lock:
            self._reports[report.id] = report

        logger.info("Created report %s (%s)", report.id, report.incident_type.value)
        return report

    def restore(self, report: Report) -> None:
        with self._lock:
            self._reports[report.id] = report
        logger.info("Restored report %s (%s)", report.id, report.status.value)

    def get(self, report_id: str) -> Report | None:
        with self._lock:
            return self._reports.get(report_id)

    def all(self) -> list[Report]:
        with self._lock:
            return list(self._reports.values())

    def list_by_status(self, status: ReportStatus, limit: int) -> list[Report]:
        matching = [r for r in self.all() if r.status == status]
        return _newest_first(matching)[:limit]

    def query_within(
        self,
        status: ReportStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Report]:
        matching = [r for r in self.all() if r.status == status]
        return select_within(matching, center, radius_km, limit, order)

    def compare_and_set_status(
        self,
        report_id: str,
        expected: ReportStatus,
        new_status: ReportStatus,
    ) -> bool:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None or report.status != expected:
                return False
            self._reports[report_id] = replace(report, status=new_status)
            return True

    def delete_if_status(self, report_id: str, expected: ReportStatus) -> bool:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None or report.status != expected:
                return False
            del self._reports[report_id]
            return True


class MemoryReliefCenterStore:
    """Relief center store held in a dict."""

    def __init__(self) -> None:
        self._centers: dict[str, ReliefCenter] = {}
        self._lock = threading.Lock()

    def create(self, center: ReliefCenterInput) -> ReliefCenter:
        created = ReliefCenter(
            id=_new_id(),
            name=center.name,
            details=center.details,
            location=center.location,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._centers[created.id] = created

        logger.info("Created relief center %s (%s)", created.id, created.name)
        return created

    def list_all(self, limit: int) -> list[ReliefCenter]:
        with self._lock:
            centers = list(self._centers.values())
        return sorted(centers, key=lambda c: c.created_at)[:limit]

    def delete(self, center_id: str) -> bool:
        with self._lock:
            if center_id not in self._centers:
                return False
            del self._centers[center_id]

        logger.info("Deleted relief center %s", center_id)
        return True

    def nearest(self, point: GeoPoint) -> tuple[ReliefCenter, float] | None:
        with self._lock:
            centers = list(self._centers.values())
        return nearest(point, [(c.location, c) for c in centers])
