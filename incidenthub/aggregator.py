"""Geospatial Aggregator - Wires Functional Core and Imperative Shell.

Fans a nearby query out to the alert store, the report store and the
external feed concurrently, then hands the three result sets to the pure
merge in incidenthub.core.aggregate.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

from incidenthub.core.aggregate import AggregationLimits, SortOrder, merge_records
from incidenthub.core.errors import FeedDegraded
from incidenthub.core.feed import ExternalEvent
from incidenthub.core.geo import GeoPoint, is_fallback_center
from incidenthub.core.models import AggregatedRecord, AlertStatus, ReportStatus
from incidenthub.core.stores import AlertStore, ReportStore
from incidenthub.shell.eonet_client import EONETClient


logger = logging.getLogger(__name__)


DEFAULT_FEED_TIMEOUT = 10.0


@dataclass(frozen=True)
class ViewPreset:
    """Defaults for one consumer role.

    Attributes:
        name: Role name as used by the HTTP surface
        radius_km: Default query radius
        order: Default result ordering
    """
    name: str
    radius_km: float
    order: SortOrder


@dataclass
class AggregationResult:
    """Result of one nearby query.

    Attributes:
        records: Merged, ordered and truncated records
        center: Query center (None in fallback mode)
        radius_km: Radius applied (ignored in fallback mode)
        feed_degraded: True if the external feed was left out
        counts: Records contributed by each source before truncation
    """
    records: list[AggregatedRecord]
    center: GeoPoint | None
    radius_km: float
    feed_degraded: bool = False
    counts: dict[str, int] | None = None

    @property
    def summary(self) -> str:
        """Human-readable summary of the query result."""
        counts = self.counts or {}
        return (
            f"{len(self.records)} records "
            f"({counts.get('alerts', 0)} alerts, "
            f"{counts.get('reports', 0)} reports, "
            f"{counts.get('events', 0)} feed events)"
            + (", feed degraded" if self.feed_degraded else "")
        )


class GeospatialAggregator:
    """Merges alerts, verified reports and feed events around a point.

    Each query gets its own small thread pool, so one caller's slow feed
    never queues behind another caller's work.
    """

    def __init__(
        self,
        alert_store: AlertStore,
        report_store: ReportStore,
        feed_client: EONETClient,
        limits: AggregationLimits | None = None,
        feed_timeout: float = DEFAULT_FEED_TIMEOUT,
        max_workers: int = 3,
    ) -> None:
        """Initialize aggregator.

        Args:
            alert_store: Source of active alerts
            report_store: Source of accepted reports
            feed_client: External event feed
            limits: Per-source and total caps
            feed_timeout: Seconds to wait for the feed before degrading
            max_workers: Threads used for each fan-out
        """
        self.alert_store = alert_store
        self.report_store = report_store
        self.feed_client = feed_client
        self.limits = limits or AggregationLimits()
        self.feed_timeout = feed_timeout
        self.max_workers = max_workers

    def _collect_events(self, future: Future) -> tuple[list[ExternalEvent], bool]:
        """Wait for the feed within its timeout.

        Returns:
            (events, degraded); a failing feed yields no events
        """
        try:
            return future.result(timeout=self.feed_timeout), False
        except FutureTimeoutError:
            logger.warning("External feed timed out after %.1fs, continuing without it", self.feed_timeout)
        except FeedDegraded as e:
            logger.warning("External feed degraded, continuing without it: %s", e.message)
        except Exception:
            logger.exception("External feed failed unexpectedly, continuing without it")
        return [], True

    def query_nearby(
        self,
        center: GeoPoint | None,
        radius_km: float,
        order: SortOrder = SortOrder.RECENT,
    ) -> AggregationResult:
        """Query all three sources around center and merge the results.

        With no center, or the (0, 0) center, radius filtering is skipped
        and every active record qualifies.

        Args:
            center: Query center
            radius_km: Query radius in kilometers
            order: Result ordering

        Returns:
            AggregationResult with the merged records

        Raises:
            BackendUnavailable: If the alert or report store fails
        """
        if is_fallback_center(center):
            logger.info("No query center supplied, returning all active records")
            center = None

        # A hung feed thread is left behind; the call returns at the feed timeout
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="aggregator",
        )
        try:
            events_future = executor.submit(self.feed_client.fetch_events)
            alerts_future = executor.submit(
                self.alert_store.query_within,
                AlertStatus.ACTIVE, center, radius_km, self.limits.per_source, order,
            )
            reports_future = executor.submit(
                self.report_store.query_within,
                ReportStatus.ACCEPTED, center, radius_km, self.limits.per_source, order,
            )

            events, feed_degraded = self._collect_events(events_future)
            alerts = alerts_future.result()
            reports = reports_future.result()
        finally:
            executor.shutdown(wait=False)

        records = merge_records(
            alerts,
            reports,
            events,
            center,
            radius_km,
            order=order,
            limits=self.limits,
        )

        result = AggregationResult(
            records=records,
            center=center,
            radius_km=radius_km,
            feed_degraded=feed_degraded,
            counts={
                "alerts": len(alerts),
                "reports": len(reports),
                "events": len(events),
            },
        )

        logger.info("Nearby query: %s", result.summary)

        return result
