"""Report lifecycle state machine - Pure functions.

Decides what a lifecycle action does to a report without touching any store.
The engine in the shell layer applies the resulting plan with an atomic
conditional update, and only creates the side-effect alert when that update
succeeded.

    pending  --accept-->  accepted
    pending  --reject-->  rejected
    pending  --confirm--> (deleted)  + active alert
    accepted --resolve--> resolved   + resolved alert
    pending  --resolve--> resolved   + resolved alert   (legacy)
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from incidenthub.core.errors import InvalidAction, InvalidTransition
from incidenthub.core.models import (
    PROVENANCE_CITIZEN_REPORT,
    AlertDraft,
    AlertStatus,
    Report,
    ReportStatus,
    Severity,
)


# Alert titles are derived from the first characters of the report details
TITLE_MAX_CHARS = 80


class ReportAction(str, enum.Enum):
    """Operator actions on a report."""

    ACCEPT = "accept"
    REJECT = "reject"
    RESOLVE = "resolve"
    CONFIRM = "confirm"


# Statuses each action may be applied from
ALLOWED_FROM: dict[ReportAction, frozenset[ReportStatus]] = {
    ReportAction.ACCEPT: frozenset({ReportStatus.PENDING}),
    ReportAction.REJECT: frozenset({ReportStatus.PENDING}),
    ReportAction.CONFIRM: frozenset({ReportStatus.PENDING}),
    ReportAction.RESOLVE: frozenset({ReportStatus.PENDING, ReportStatus.ACCEPTED}),
}


@dataclass(frozen=True)
class TransitionPlan:
    """What a transition must do, decided before any write.

    Attributes:
        action: The action being applied
        expected_status: Status the report must still have for the write to apply
        next_status: New status, or None when the report is deleted
        alert: Alert to create once the conditional write succeeded, if any
    """
    action: ReportAction
    expected_status: ReportStatus
    next_status: ReportStatus | None
    alert: AlertDraft | None = None

    @property
    def deletes_report(self) -> bool:
        return self.next_status is None


def parse_action(raw: Any) -> ReportAction:
    """Parse an action name.

    Raises:
        InvalidAction: If the action is not one of accept, reject, resolve, confirm
    """
    if isinstance(raw, ReportAction):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        for action in ReportAction:
            if action.value == value:
                return action
    raise InvalidAction(raw)


def alert_title(report: Report, fallback_prefix: str) -> str:
    """Derive an alert title from the first characters of the report details.

    Pure function.
    """
    title = report.details.strip()[:TITLE_MAX_CHARS].strip()
    if title:
        return title
    return f"{fallback_prefix}: {report.incident_type.value}"


def plan_transition(report: Report, action: ReportAction, now: datetime) -> TransitionPlan:
    """Plan the effect of an action on a report.

    Pure function.

    Args:
        report: Current state of the report
        action: Parsed operator action
        now: Timestamp used for resolution times

    Returns:
        TransitionPlan to apply atomically

    Raises:
        InvalidTransition: If the action is not allowed from the current status
    """
    if report.status not in ALLOWED_FROM[action]:
        raise InvalidTransition(
            f"Cannot {action.value} report '{report.id}' in status '{report.status.value}'"
        )

    if action is ReportAction.ACCEPT:
        return TransitionPlan(action, report.status, ReportStatus.ACCEPTED)

    if action is ReportAction.REJECT:
        return TransitionPlan(action, report.status, ReportStatus.REJECTED)

    if action is ReportAction.CONFIRM:
        alert = AlertDraft(
            type=report.incident_type.value,
            title=alert_title(report, "Citizen report"),
            details=report.details,
            location=report.location,
            severity=Severity.MODERATE,
            status=AlertStatus.ACTIVE,
            source=PROVENANCE_CITIZEN_REPORT,
            report_id=report.id,
        )
        return TransitionPlan(action, report.status, None, alert)

    alert = AlertDraft(
        type=report.incident_type.value,
        title=alert_title(report, "Resolved"),
        details=report.details,
        location=report.location,
        severity=Severity.MODERATE,
        status=AlertStatus.RESOLVED,
        source=PROVENANCE_CITIZEN_REPORT,
        report_id=report.id,
        resolved_at=now,
    )
    return TransitionPlan(action, report.status, ReportStatus.RESOLVED, alert)
