"""Error taxonomy.

Every error the service raises on purpose derives from IncidentHubError and
knows the HTTP status it maps to. The shell converts library exceptions into
these at its boundary.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single input validation failure.

    Attributes:
        field: Name of the offending input field
        message: Human-readable reason
    """
    field: str
    message: str


class IncidentHubError(Exception):
    """Base class for expected service errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(IncidentHubError):
    """Malformed or missing required input."""

    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[FieldError]) -> None:
        summary = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(summary or "Invalid input")
        self.errors = list(errors)


class NotFound(IncidentHubError):
    """A referenced report, alert or relief center does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} '{resource_id}' not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class InvalidAction(IncidentHubError):
    """Unrecognised lifecycle action."""

    status_code = 400
    code = "INVALID_ACTION"

    def __init__(self, action: object) -> None:
        super().__init__(f"Unknown action: {action!r}")
        self.action = action


class InvalidTransition(IncidentHubError):
    """Action is not allowed from the report's current status."""

    status_code = 409
    code = "INVALID_TRANSITION"


class TransitionConflict(IncidentHubError):
    """A concurrent transition changed the report first."""

    status_code = 409
    code = "TRANSITION_CONFLICT"


class BackendUnavailable(IncidentHubError):
    """An owned store could not be reached."""

    status_code = 503
    code = "BACKEND_UNAVAILABLE"


class FeedDegraded(IncidentHubError):
    """The external event feed failed or returned unusable data.

    Never fatal for aggregation; only the explicit import action surfaces it.
    """

    status_code = 502
    code = "FEED_DEGRADED"
