"""Domain models - Pure data structures.

Reports, alerts, relief centers and the aggregated record shape that the
nearby query returns. Persistence lives in the shell; these types carry no
I/O.
"""

import enum
from dataclasses import dataclass
from datetime import datetime

from incidenthub.core.geo import GeoPoint


class IncidentType(str, enum.Enum):
    """Incident categories a citizen can report."""

    FLOOD = "flood"
    FIRE = "fire"
    LANDSLIDE = "landslide"
    ACCIDENT = "accident"
    MEDICAL = "medical"
    EARTHQUAKE = "earthquake"
    STORM = "storm"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    """Lifecycle status of a citizen report."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"


class ReportPriority(str, enum.Enum):
    """Derived, informational priority of a report."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertStatus(str, enum.Enum):
    """Status of an alert."""

    ACTIVE = "active"
    RESOLVED = "resolved"


class Severity(str, enum.Enum):
    """Canonical severity domain shared by every aggregated record."""

    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class RecordOrigin(str, enum.Enum):
    """Which source produced an aggregated record."""

    ALERT = "alert"
    REPORT = "report"
    EXTERNAL = "external"


# Provenance tags
PROVENANCE_MANUAL = "Manual Alert"
PROVENANCE_VERIFIED_REPORT = "Citizen Report (Verified)"
PROVENANCE_CITIZEN_REPORT = "Citizen Report"
PROVENANCE_NASA_IMPORT = "NASA Import"
PROVENANCE_NASA_EONET = "NASA EONET"


@dataclass(frozen=True)
class Report:
    """A citizen-submitted incident report.

    Attributes:
        id: Store-assigned identifier
        incident_type: Reported incident category
        details: Free-text description
        location: Where the incident is
        status: Lifecycle status
        priority: Derived priority (informational)
        created_at: Submission time (UTC)
        submitted_by: Submitter reference, None for anonymous reports
    """
    id: str
    incident_type: IncidentType
    details: str
    location: GeoPoint
    status: ReportStatus
    priority: ReportPriority
    created_at: datetime
    submitted_by: str | None = None


@dataclass(frozen=True)
class AlertDraft:
    """An alert that has not been persisted yet.

    Attributes:
        type: Hazard type label (free text; lifecycle alerts use IncidentType values)
        title: Short headline
        details: Longer description
        location: Where the hazard is
        severity: Canonical severity
        status: Initial status
        source: Provenance tag, None for manually entered alerts
        report_id: Report this alert was derived from, if any
        resolved_at: Resolution time when created already resolved
    """
    type: str
    title: str
    details: str
    location: GeoPoint
    severity: Severity = Severity.MODERATE
    status: AlertStatus = AlertStatus.ACTIVE
    source: str | None = None
    report_id: str | None = None
    resolved_at: datetime | None = None


@dataclass(frozen=True)
class Alert:
    """A persisted hazard notice.

    Attributes:
        id: Store-assigned identifier
        type: Hazard type label
        title: Short headline
        details: Longer description
        location: Where the hazard is
        severity: Canonical severity
        status: active or resolved
        created_at: Creation time (UTC)
        source: Provenance tag, None for manually entered alerts
        report_id: Report this alert was derived from, if any
        resolved_at: Set once the alert is resolved
    """
    id: str
    type: str
    title: str
    details: str
    location: GeoPoint
    severity: Severity
    status: AlertStatus
    created_at: datetime
    source: str | None = None
    report_id: str | None = None
    resolved_at: datetime | None = None


@dataclass(frozen=True)
class ReliefCenter:
    """A fixed relief facility.

    Attributes:
        id: Store-assigned identifier
        name: Facility name
        details: Optional description
        location: Facility location
        created_at: Creation time (UTC)
    """
    id: str
    name: str
    details: str
    location: GeoPoint
    created_at: datetime


@dataclass(frozen=True)
class AggregatedRecord:
    """Common shape for alerts, verified reports and external events.

    Attributes:
        id: Identifier within the originating source
        origin: Which source produced the record
        type: Hazard type label
        title: Headline
        details: Description
        location: Record location
        severity: Canonical severity
        status: Source status label
        provenance: Provenance tag shown to users
        created_at: Creation time, or the latest geometry time for feed events
        distance_km: Distance from the query center (None without a center)
    """
    id: str
    origin: RecordOrigin
    type: str
    title: str
    details: str
    location: GeoPoint
    severity: Severity
    status: str
    provenance: str
    created_at: datetime | None
    distance_km: float | None = None
