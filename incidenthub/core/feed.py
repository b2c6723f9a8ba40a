"""External event feed parsing - Pure functions.

This module turns the untyped JSON of the third-party hazard event feed
(NASA EONET) into typed events. Every field is treated as optional: each raw
event becomes either a ParsedEvent or a SkippedEvent carrying the reason, so
the skip logic is exhaustive and testable. All functions are pure.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from incidenthub.core.errors import FeedDegraded
from incidenthub.core.geo import GeoPoint, is_valid_coordinate
from incidenthub.core.models import (
    PROVENANCE_NASA_IMPORT,
    AlertDraft,
    AlertStatus,
    Severity,
)
from incidenthub.core.severity import category_severity


@dataclass(frozen=True)
class ExternalEvent:
    """One hazard event from the external feed, as of query time.

    Attributes:
        id: Feed event identifier
        title: Event headline
        description: Optional longer text
        category_id: First category id, if any
        category_title: First category label, if any
        severity: Best-effort severity derived from the category
        location: Location from the most recent geometry entry
        observed_at: Timestamp of that geometry entry, if parseable
        link: Feed URL for the event, if present
    """
    id: str
    title: str
    description: str
    category_id: int | str | None
    category_title: str | None
    severity: Severity
    location: GeoPoint
    observed_at: datetime | None
    link: str | None = None

    @property
    def category_label(self) -> str:
        """Category label with a fallback for uncategorised events."""
        return self.category_title or "Unknown"


@dataclass(frozen=True)
class ParsedEvent:
    """A raw feed event that yielded a usable ExternalEvent."""
    event: ExternalEvent


@dataclass(frozen=True)
class SkippedEvent:
    """A raw feed event that was dropped.

    Attributes:
        event_id: Feed identifier if one could be read
        reason: Why the event was skipped
    """
    event_id: str | None
    reason: str


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when absent or invalid.

    Naive timestamps are assumed to be UTC.
    """
    if not isinstance(value, str) or not value:
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first_category(raw: dict[str, Any]) -> tuple[int | str | None, str | None]:
    """Read id and title of the first category entry."""
    categories = raw.get("categories")
    if not isinstance(categories, list) or not categories:
        return None, None

    first = categories[0]
    if not isinstance(first, dict):
        return None, None

    category_id = first.get("id")
    if not isinstance(category_id, (int, str)) or isinstance(category_id, bool):
        category_id = None

    title = first.get("title")
    if not isinstance(title, str) or not title.strip():
        title = None

    return category_id, title


def parse_event(raw: Any) -> ParsedEvent | SkippedEvent:
    """Parse a single raw feed event.

    Pure function. Only the most recent geometry entry is used; the event is
    skipped if that entry has missing, non-numeric or out-of-range
    coordinates.

    Args:
        raw: One element of the feed's "events" array

    Returns:
        ParsedEvent on success, SkippedEvent with the reason otherwise
    """
    if not isinstance(raw, dict):
        return SkippedEvent(event_id=None, reason="event is not an object")

    event_id = raw.get("id")
    if not isinstance(event_id, (str, int)) or isinstance(event_id, bool) or event_id == "":
        return SkippedEvent(event_id=None, reason="missing id")
    event_id = str(event_id)

    geometries = raw.get("geometries")
    if not isinstance(geometries, list) or not geometries:
        return SkippedEvent(event_id=event_id, reason="no geometries")

    latest = geometries[-1]
    if not isinstance(latest, dict):
        return SkippedEvent(event_id=event_id, reason="latest geometry is not an object")

    coords = latest.get("coordinates")
    if not isinstance(coords, list) or len(coords) < 2:
        return SkippedEvent(event_id=event_id, reason="missing coordinates")

    longitude, latitude = coords[0], coords[1]
    if not is_valid_coordinate(latitude, longitude):
        return SkippedEvent(event_id=event_id, reason="invalid coordinates")

    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        title = "Untitled event"

    description = raw.get("description")
    if not isinstance(description, str):
        description = ""

    link = raw.get("link")
    if not isinstance(link, str):
        link = None

    category_id, category_title = _first_category(raw)

    return ParsedEvent(ExternalEvent(
        id=event_id,
        title=title,
        description=description,
        category_id=category_id,
        category_title=category_title,
        severity=category_severity(category_id, category_title),
        location=GeoPoint(longitude=float(longitude), latitude=float(latitude)),
        observed_at=parse_timestamp(latest.get("date")),
        link=link,
    ))


def parse_events(payload: Any) -> tuple[list[ExternalEvent], list[SkippedEvent]]:
    """Parse a full feed response.

    Pure function.

    Args:
        payload: Decoded JSON body of the feed response

    Returns:
        (events, skipped) in feed order

    Raises:
        FeedDegraded: If the payload itself is not a feed document
    """
    if not isinstance(payload, dict):
        raise FeedDegraded("Feed response is not a JSON object")

    raw_events = payload.get("events")
    if raw_events is None:
        raise FeedDegraded("Feed response has no 'events' field")
    if not isinstance(raw_events, list):
        raise FeedDegraded("Feed 'events' field is not a list")

    events: list[ExternalEvent] = []
    skipped: list[SkippedEvent] = []

    for raw in raw_events:
        result = parse_event(raw)
        if isinstance(result, ParsedEvent):
            events.append(result.event)
        else:
            skipped.append(result)

    return events, skipped


def sort_by_recency(events: list[ExternalEvent]) -> list[ExternalEvent]:
    """Sort events newest first; events without a timestamp go last."""
    return sorted(
        events,
        key=lambda e: (e.observed_at is not None, e.observed_at or datetime.min.replace(tzinfo=timezone.utc)),
        reverse=True,
    )


def local_alert_type(category_title: str | None) -> str:
    """Map a feed category label onto a local alert type."""
    category = (category_title or "").lower()

    if "wildfire" in category or "fire" in category:
        return "fire"
    if "flood" in category:
        return "flood"
    if "earthquake" in category:
        return "earthquake"
    if "storm" in category or "cyclone" in category or "hurricane" in category:
        return "storm"
    if "volcano" in category:
        return "volcano"
    if "drought" in category:
        return "drought"
    if "landslide" in category:
        return "landslide"
    return "disaster"


def event_to_alert_draft(event: ExternalEvent) -> AlertDraft:
    """Build the alert an operator import creates for a feed event.

    Pure function.
    """
    summary = event.description or event.title
    details = f"Imported from NASA EONET: {summary}."
    if event.observed_at is not None:
        details += f" Last updated: {event.observed_at.isoformat()}"

    return AlertDraft(
        type=local_alert_type(event.category_title),
        title=f"{event.category_label}: {event.title}",
        details=details,
        location=event.location,
        severity=event.severity,
        status=AlertStatus.ACTIVE,
        source=PROVENANCE_NASA_IMPORT,
    )
