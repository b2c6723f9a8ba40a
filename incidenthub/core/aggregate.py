"""Record aggregation - Pure functions.

Normalizes alerts, verified reports and external feed events into the common
AggregatedRecord shape, then filters by radius, orders and truncates the
merged set. Severity vocabularies are mapped into the canonical domain here;
nothing upstream of this module is allowed to leak into the result.
"""

import enum
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from incidenthub.core.feed import ExternalEvent
from incidenthub.core.geo import (
    GeoPoint,
    haversine_km,
    is_fallback_center,
    is_within_radius,
)
from incidenthub.core.models import (
    PROVENANCE_MANUAL,
    PROVENANCE_NASA_EONET,
    PROVENANCE_VERIFIED_REPORT,
    AggregatedRecord,
    Alert,
    RecordOrigin,
    Report,
)
from incidenthub.core.severity import coerce_severity, priority_to_severity


DEFAULT_PER_SOURCE_LIMIT = 25
DEFAULT_TOTAL_LIMIT = 50

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SortOrder(str, enum.Enum):
    """Ordering of a merged result set."""

    RECENT = "recent"
    DISTANCE = "distance"


@dataclass(frozen=True)
class AggregationLimits:
    """Caps applied while merging.

    Attributes:
        per_source: Maximum records kept from each store-backed source
        total: Maximum records in the merged result
    """
    per_source: int = DEFAULT_PER_SOURCE_LIMIT
    total: int = DEFAULT_TOTAL_LIMIT


def verified_report_title(report: Report) -> str:
    """Synthesized headline for an accepted report, e.g. "Flood Report - VERIFIED"."""
    return f"{report.incident_type.value.capitalize()} Report - VERIFIED"


def alert_to_record(alert: Alert) -> AggregatedRecord:
    """Normalize an alert.

    Alerts without an explicit source are tagged as manually entered.
    """
    return AggregatedRecord(
        id=alert.id,
        origin=RecordOrigin.ALERT,
        type=alert.type,
        title=alert.title,
        details=alert.details,
        location=alert.location,
        severity=coerce_severity(alert.severity),
        status=alert.status.value,
        provenance=alert.source or PROVENANCE_MANUAL,
        created_at=alert.created_at,
    )


def report_to_record(report: Report) -> AggregatedRecord:
    """Normalize an accepted report; severity comes from its priority."""
    return AggregatedRecord(
        id=report.id,
        origin=RecordOrigin.REPORT,
        type=report.incident_type.value,
        title=verified_report_title(report),
        details=report.details,
        location=report.location,
        severity=priority_to_severity(report.priority),
        status=report.status.value,
        provenance=PROVENANCE_VERIFIED_REPORT,
        created_at=report.created_at,
    )


def event_to_record(event: ExternalEvent) -> AggregatedRecord:
    """Normalize an external feed event."""
    return AggregatedRecord(
        id=event.id,
        origin=RecordOrigin.EXTERNAL,
        type=event.category_label,
        title=event.title,
        details=event.description or f"{event.category_label} reported by NASA EONET",
        location=event.location,
        severity=coerce_severity(event.severity),
        status="open",
        provenance=PROVENANCE_NASA_EONET,
        created_at=event.observed_at,
    )


def filter_by_radius(
    records: list[AggregatedRecord],
    center: GeoPoint | None,
    radius_km: float,
) -> list[AggregatedRecord]:
    """Annotate distances and drop records outside the radius.

    Pure function. With no center (or the (0, 0) fallback center) every
    record is kept and distance stays None.

    Args:
        records: Normalized records
        center: Query center
        radius_km: Query radius in kilometers

    Returns:
        Records within radius_km of center, with distance_km set
    """
    if is_fallback_center(center):
        return list(records)

    kept = []
    for record in records:
        distance = haversine_km(center, record.location)
        if distance <= radius_km:
            kept.append(replace(record, distance_km=distance))
    return kept


def select_within(
    items: list[Any],
    center: GeoPoint | None,
    radius_km: float,
    limit: int,
    order: SortOrder = SortOrder.RECENT,
) -> list[Any]:
    """Pick the stored items one source contributes to a nearby query.

    Pure function. Items need `location` and `created_at`. The cut to limit
    happens after ordering, so DISTANCE keeps the closest items and RECENT
    the newest. With no center every item qualifies, newest first.
    """
    if is_fallback_center(center):
        kept = list(items)
        order = SortOrder.RECENT
    else:
        kept = [i for i in items if is_within_radius(i.location, center, radius_km)]

    if order is SortOrder.DISTANCE:
        kept.sort(key=lambda i: haversine_km(center, i.location))
    else:
        kept.sort(key=lambda i: i.created_at, reverse=True)
    return kept[:limit]


def sort_records(records: list[AggregatedRecord], order: SortOrder) -> list[AggregatedRecord]:
    """Sort records, stable for equal keys.

    RECENT puts the newest first; DISTANCE puts the closest first. Records
    missing the sort key go last in either order.
    """
    if order is SortOrder.DISTANCE:
        return sorted(
            records,
            key=lambda r: (r.distance_km is None, r.distance_km or 0.0),
        )

    return sorted(
        records,
        key=lambda r: (r.created_at is not None, r.created_at or _EPOCH),
        reverse=True,
    )


def merge_records(
    alerts: list[Alert],
    reports: list[Report],
    events: list[ExternalEvent],
    center: GeoPoint | None,
    radius_km: float,
    order: SortOrder = SortOrder.RECENT,
    limits: AggregationLimits = AggregationLimits(),
) -> list[AggregatedRecord]:
    """Merge the three sources into one ordered, truncated result.

    Pure function. Each store-backed source is filtered, ordered and cut to
    the per-source limit before the merge; the merged set is ordered again
    and cut to the total limit. Records are never deduplicated across
    sources.

    Args:
        alerts: Active alerts from the alert store
        reports: Accepted reports from the report store
        events: Parsed external events
        center: Query center, None for the no-location fallback
        radius_km: Query radius in kilometers
        order: Result ordering
        limits: Per-source and total caps

    Returns:
        Ordered aggregated records
    """
    alert_records = filter_by_radius([alert_to_record(a) for a in alerts], center, radius_km)
    report_records = filter_by_radius([report_to_record(r) for r in reports], center, radius_km)
    event_records = filter_by_radius([event_to_record(e) for e in events], center, radius_km)

    alert_records = sort_records(alert_records, order)[:limits.per_source]
    report_records = sort_records(report_records, order)[:limits.per_source]

    merged = sort_records(alert_records + report_records + event_records, order)
    return merged[:limits.total]
