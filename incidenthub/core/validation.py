"""Input validation - Pure functions.

Every mutation is validated here, at the boundary, before anything is
persisted. Each validator returns the parsed values or raises a
ValidationError listing every offending field at once.
"""

from dataclasses import dataclass
from typing import Any

from incidenthub.core.errors import FieldError, ValidationError
from incidenthub.core.geo import GeoPoint, is_valid_coordinate
from incidenthub.core.models import IncidentType, Severity
from incidenthub.core.severity import coerce_severity


MIN_DETAILS_LENGTH = 10
MAX_TITLE_LENGTH = 200


@dataclass(frozen=True)
class ReportSubmission:
    """A validated citizen report, ready to persist."""
    incident_type: IncidentType
    details: str
    location: GeoPoint
    submitted_by: str | None = None


@dataclass(frozen=True)
class AlertInput:
    """A validated operator alert, ready to persist."""
    type: str
    title: str
    details: str
    location: GeoPoint
    severity: Severity
    source: str | None = None


@dataclass(frozen=True)
class ReliefCenterInput:
    """A validated relief center, ready to persist."""
    name: str
    details: str
    location: GeoPoint


def check_point(latitude: Any, longitude: Any, field_name: str = "location") -> list[FieldError]:
    """Check a latitude/longitude pair.

    Pure function.

    Returns:
        List of field errors (empty if valid)
    """
    for value, label in ((latitude, "latitude"), (longitude, "longitude")):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return [FieldError(field_name, f"{label} must be a number")]

    if not is_valid_coordinate(latitude, longitude):
        return [FieldError(
            field_name,
            f"coordinates out of range: latitude={latitude}, longitude={longitude}",
        )]

    return []


def validate_point(latitude: Any, longitude: Any, field_name: str = "location") -> GeoPoint:
    """Build a GeoPoint from untrusted input.

    Raises:
        ValidationError: If either coordinate is non-numeric or out of range
    """
    errors = check_point(latitude, longitude, field_name)
    if errors:
        raise ValidationError(errors)
    return GeoPoint(longitude=float(longitude), latitude=float(latitude))


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_report_submission(
    incident_type: Any,
    details: Any,
    latitude: Any,
    longitude: Any,
    submitted_by: str | None = None,
) -> ReportSubmission:
    """Validate a citizen report.

    Pure function. Details must have at least 10 characters after trimming
    and the incident type must be one of the fixed categories.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: list[FieldError] = []

    parsed_type = None
    if isinstance(incident_type, str):
        value = incident_type.strip().lower()
        for candidate in IncidentType:
            if candidate.value == value:
                parsed_type = candidate
                break
    if parsed_type is None:
        allowed = ", ".join(t.value for t in IncidentType)
        errors.append(FieldError("type", f"must be one of: {allowed}"))

    text = _text(details)
    if len(text) < MIN_DETAILS_LENGTH:
        errors.append(FieldError(
            "details", f"must be at least {MIN_DETAILS_LENGTH} characters",
        ))

    errors.extend(check_point(latitude, longitude))

    if errors:
        raise ValidationError(errors)

    return ReportSubmission(
        incident_type=parsed_type,
        details=text,
        location=GeoPoint(longitude=float(longitude), latitude=float(latitude)),
        submitted_by=submitted_by,
    )


def validate_alert_input(
    alert_type: Any,
    title: Any,
    details: Any,
    latitude: Any,
    longitude: Any,
    severity: Any = None,
    source: Any = None,
) -> AlertInput:
    """Validate an operator-authored alert.

    Pure function. Severity defaults to moderate and unknown severities are
    coerced into the canonical domain.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: list[FieldError] = []

    type_text = _text(alert_type)
    if not type_text:
        errors.append(FieldError("type", "is required"))

    title_text = _text(title)
    if not title_text:
        errors.append(FieldError("title", "is required"))
    elif len(title_text) > MAX_TITLE_LENGTH:
        errors.append(FieldError("title", f"must be at most {MAX_TITLE_LENGTH} characters"))

    details_text = _text(details)
    if not details_text:
        errors.append(FieldError("details", "is required"))

    errors.extend(check_point(latitude, longitude))

    if source is not None and not isinstance(source, str):
        errors.append(FieldError("source", "must be a string"))

    if errors:
        raise ValidationError(errors)

    return AlertInput(
        type=type_text,
        title=title_text,
        details=details_text,
        location=GeoPoint(longitude=float(longitude), latitude=float(latitude)),
        severity=coerce_severity(severity),
        source=_text(source) or None,
    )


def validate_relief_center_input(
    name: Any,
    details: Any,
    latitude: Any,
    longitude: Any,
) -> ReliefCenterInput:
    """Validate a relief center.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: list[FieldError] = []

    name_text = _text(name)
    if not name_text:
        errors.append(FieldError("name", "is required"))

    errors.extend(check_point(latitude, longitude))

    if errors:
        raise ValidationError(errors)

    return ReliefCenterInput(
        name=name_text,
        details=_text(details),
        location=GeoPoint(longitude=float(longitude), latitude=float(latitude)),
    )


def validate_radius(radius_km: Any) -> float:
    """Validate a query radius in kilometers.

    Raises:
        ValidationError: If the radius is not a positive number
    """
    if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)) or radius_km <= 0:
        raise ValidationError([FieldError("radius_km", "must be a positive number")])
    return float(radius_km)
