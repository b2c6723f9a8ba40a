"""Store query contracts.

The minimal query interface the aggregator, lifecycle engine and locator
rely on. The Firestore and in-memory backends in the shell layer both
implement these protocols. Every method may raise BackendUnavailable.
"""

from typing import Protocol

from incidenthub.core.aggregate import SortOrder
from incidenthub.core.geo import GeoPoint
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


class AlertStore(Protocol):
    def create(self, draft: AlertDraft) -> Alert:
        """Persist a new alert and return it with its id."""
        ...

    def get(self, alert_id: str) -> Alert | None:
        ...

    def list_by_status(self, status: AlertStatus, limit: int) -> list[Alert]:
        """Alerts with the given status, newest first."""
        ...

    def query_within(
        self,
        status: AlertStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Alert]:
        """Alerts with the given status within radius_km of center.

        With no center every alert with the status qualifies. Results are
        newest first, or closest first for SortOrder.DISTANCE, and the cut
        to limit keeps the first ones in that order.
        """
        ...

    def resolve(self, alert_id: str) -> Alert | None:
        """Mark an alert resolved; None if it does not exist.

        Resolving an already resolved alert leaves its resolved_at unchanged.
        """
        ...


class ReportStore(Protocol):
    def create(self, submission: ReportSubmission, priority: ReportPriority) -> Report:
        """Persist a new pending report."""
        ...

    def get(self, report_id: str) -> Report | None:
        ...

    def list_by_status(self, status: ReportStatus, limit: int) -> list[Report]:
        """Reports with the given status, newest first."""
        ...

    def query_within(
        self,
        status: ReportStatus,
        center: GeoPoint | None,
        radius_km: float,
        limit: int,
        order: SortOrder = SortOrder.RECENT,
    ) -> list[Report]:
        """Reports with the given status within radius_km of center, ordered like alerts."""
        ...

    def compare_and_set_status(
        self,
        report_id: str,
        expected: ReportStatus,
        new_status: ReportStatus,
    ) -> bool:
        """Atomically set the status if it still equals expected.

        Returns:
            True if this call applied the change
        """
        ...

    def delete_if_status(self, report_id: str, expected: ReportStatus) -> bool:
        """Atomically delete the report if its status still equals expected.

        Returns:
            True if this call deleted the report
        """
        ...

    def restore(self, report: Report) -> None:
        """Write a report back exactly as given, keeping its id."""
        ...


class ReliefCenterStore(Protocol):
    def create(self, center: ReliefCenterInput) -> ReliefCenter:
        ...

    def list_all(self, limit: int) -> list[ReliefCenter]:
        ...

    def delete(self, center_id: str) -> bool:
        """Delete a center; False if it did not exist."""
        ...

    def nearest(self, point: GeoPoint) -> tuple[ReliefCenter, float] | None:
        """Closest center and its distance in km, None when there are none."""
        ...
