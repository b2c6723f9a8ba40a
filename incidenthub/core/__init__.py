"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Geo/distance calculations
- Feed event parsing
- Severity normalization
- Report lifecycle planning
- Record aggregation
- Input validation

All functions here are deterministic and have no I/O.
"""

from incidenthub.core.aggregate import SortOrder, merge_records
from incidenthub.core.feed import ExternalEvent, ParsedEvent, SkippedEvent, parse_events
from incidenthub.core.geo import GeoPoint, haversine_km, is_within_radius
from incidenthub.core.lifecycle import ReportAction, plan_transition
from incidenthub.core.severity import coerce_severity, priority_to_severity

__all__ = [
    # Geo
    "GeoPoint",
    "haversine_km",
    "is_within_radius",
    # Feed
    "ExternalEvent",
    "ParsedEvent",
    "SkippedEvent",
    "parse_events",
    # Severity
    "coerce_severity",
    "priority_to_severity",
    # Lifecycle
    "ReportAction",
    "plan_transition",
    # Aggregation
    "SortOrder",
    "merge_records",
]
