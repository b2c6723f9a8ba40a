"""Service graph construction.

Builds stores, clients and the engines on top of them from a Config. The
HTTP app obtains its graph through a ResourceRegistry and closes it on
shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from incidenthub.aggregator import GeospatialAggregator, ViewPreset
from incidenthub.core.aggregate import AggregationLimits, SortOrder
from incidenthub.core.config import Config
from incidenthub.core.stores import AlertStore, ReliefCenterStore, ReportStore
from incidenthub.lifecycle_engine import ReportLifecycleEngine
from incidenthub.relief_locator import ReliefCenterLocator
from incidenthub.shell.eonet_client import EONETClient
from incidenthub.shell.firestore_stores import (
    FirestoreAlertStore,
    FirestoreConnection,
    FirestoreReliefCenterStore,
    FirestoreReportStore,
)
from incidenthub.shell.memory_stores import (
    MemoryAlertStore,
    MemoryReliefCenterStore,
    MemoryReportStore,
)
from incidenthub.shell.priority_client import PriorityClient


logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs.

    Attributes:
        config: Application configuration
        alert_store: Alert persistence
        report_store: Report persistence
        relief_center_store: Relief center persistence
        feed_client: External event feed
        priority_client: Report priority classifier
        aggregator: Geospatial aggregator
        lifecycle: Report lifecycle engine
        locator: Relief center locator
        connection: Firestore connection, None for the memory backend
    """
    config: Config
    alert_store: AlertStore
    report_store: ReportStore
    relief_center_store: ReliefCenterStore
    feed_client: EONETClient
    priority_client: PriorityClient
    aggregator: GeospatialAggregator
    lifecycle: ReportLifecycleEngine
    locator: ReliefCenterLocator
    connection: Any = None

    def view(self, name: str) -> ViewPreset:
        """Default radius and ordering for a consumer role."""
        aggregation = self.config.aggregation
        if name == "responder":
            return ViewPreset("responder", aggregation.responder_radius_km, SortOrder.DISTANCE)
        return ViewPreset("observer", aggregation.observer_radius_km, SortOrder.RECENT)

    def close(self) -> None:
        """Release sessions and database clients."""
        self.feed_client.close()
        if self.connection is not None:
            self.connection.close()
        logger.info("Services closed")


def build_stores(config: Config) -> tuple[AlertStore, ReportStore, ReliefCenterStore, Any]:
    """Create the three stores for the configured backend.

    Returns:
        (alert_store, report_store, relief_center_store, connection)
    """
    if config.store_backend == "memory":
        logger.info("Using in-memory stores")
        return MemoryAlertStore(), MemoryReportStore(), MemoryReliefCenterStore(), None

    if config.store_backend != "firestore":
        raise ValueError(f"Unknown store backend: {config.store_backend}")

    logger.info("Using Firestore stores (database=%s)", config.firestore.database or "(default)")
    connection = FirestoreConnection(config.firestore)
    scan_limit = config.aggregation.store_scan_limit
    return (
        FirestoreAlertStore(connection, config.firestore.alerts_collection, scan_limit),
        FirestoreReportStore(connection, config.firestore.reports_collection, scan_limit),
        FirestoreReliefCenterStore(
            connection, config.firestore.relief_centers_collection, scan_limit,
        ),
        connection,
    )


def build_services(
    config: Config,
    feed_client: EONETClient | None = None,
    priority_client: PriorityClient | None = None,
) -> Services:
    """Build the full service graph.

    Args:
        config: Application configuration
        feed_client: Feed client (created if not provided)
        priority_client: Classifier client (created if not provided)

    Returns:
        Wired Services
    """
    alert_store, report_store, relief_center_store, connection = build_stores(config)

    feed_client = feed_client or EONETClient(
        base_url=config.feed.url,
        timeout=config.feed.timeout_seconds,
        limit=config.feed.event_limit,
        session=requests.Session(),
    )
    priority_client = priority_client or PriorityClient(
        url=config.classifier.url,
        api_token=config.classifier.api_token,
        timeout=config.classifier.timeout_seconds,
    )

    aggregator = GeospatialAggregator(
        alert_store,
        report_store,
        feed_client,
        limits=AggregationLimits(
            per_source=config.aggregation.per_source_limit,
            total=config.aggregation.total_limit,
        ),
        feed_timeout=config.feed.timeout_seconds,
        max_workers=config.aggregation.max_workers,
    )

    return Services(
        config=config,
        alert_store=alert_store,
        report_store=report_store,
        relief_center_store=relief_center_store,
        feed_client=feed_client,
        priority_client=priority_client,
        aggregator=aggregator,
        lifecycle=ReportLifecycleEngine(
            report_store,
            alert_store,
            classify=priority_client.classify,
        ),
        locator=ReliefCenterLocator(relief_center_store),
        connection=connection,
    )
