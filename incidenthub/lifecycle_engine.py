"""Report Lifecycle Engine - Wires Functional Core and Imperative Shell.

Validates and submits reports, and applies operator actions to them. The
pure planner in incidenthub.core.lifecycle decides what an action does;
this module applies the plan with the report store's conditional writes
and creates the side-effect alert only when that write succeeded, so two
concurrent terminal transitions cannot produce two alerts. A failed alert
write puts the report back the way it was read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from incidenthub.core.errors import NotFound, TransitionConflict
from incidenthub.core.lifecycle import (
    ReportAction,
    TransitionPlan,
    parse_action,
    plan_transition,
)
from incidenthub.core.models import Alert, Report, ReportPriority, ReportStatus
from incidenthub.core.priority import PriorityResult
from incidenthub.core.stores import AlertStore, ReportStore
from incidenthub.core.validation import validate_report_submission


logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Acknowledgement of an applied transition.

    Attributes:
        report_id: The report acted on
        action: The applied action
        status: Resulting status, None when the report was deleted
        alert: Side-effect alert, if one was created
    """
    report_id: str
    action: ReportAction
    status: ReportStatus | None
    alert: Alert | None = None

    @property
    def alert_created(self) -> bool:
        return self.alert is not None


class ReportLifecycleEngine:
    """Owns report submission and the report state machine."""

    def __init__(
        self,
        report_store: ReportStore,
        alert_store: AlertStore,
        classify: Callable[[str], PriorityResult] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            report_store: Where reports live
            alert_store: Where side-effect alerts are created
            classify: Priority classifier for new reports (medium if None)
            clock: Source of the current time
        """
        self.report_store = report_store
        self.alert_store = alert_store
        self.classify = classify
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def submit(
        self,
        incident_type: Any,
        details: Any,
        latitude: Any,
        longitude: Any,
        submitted_by: str | None = None,
    ) -> Report:
        """Validate and persist a new pending report.

        Raises:
            ValidationError: Before anything is persisted
            BackendUnavailable: If the store fails
        """
        submission = validate_report_submission(
            incident_type, details, latitude, longitude, submitted_by,
        )

        priority = ReportPriority.MEDIUM
        if self.classify is not None:
            priority = self.classify(submission.details).priority

        report = self.report_store.create(submission, priority)

        logger.info(
            "Submitted report %s (%s, priority %s)",
            report.id,
            report.incident_type.value,
            report.priority.value,
        )
        return report

    def get(self, report_id: str) -> Report:
        """Fetch a report.

        Raises:
            NotFound: If the report does not exist
        """
        report = self.report_store.get(report_id)
        if report is None:
            raise NotFound("Report", report_id)
        return report

    def list_by_status(self, status: ReportStatus, limit: int) -> list[Report]:
        return self.report_store.list_by_status(status, limit)

    def transition(self, report_id: str, action: Any) -> TransitionResult:
        """Apply an operator action to a report.

        Args:
            report_id: Report identifier
            action: One of accept, reject, resolve, confirm

        Returns:
            TransitionResult acknowledging the change

        Raises:
            InvalidAction: If the action is not recognised
            NotFound: If the report does not exist
            InvalidTransition: If the action is not allowed from the current status
            TransitionConflict: If a concurrent transition changed the report first
            BackendUnavailable: If a store fails
        """
        parsed = parse_action(action)
        report = self.get(report_id)
        plan = plan_transition(report, parsed, self.clock())

        if plan.deletes_report:
            applied = self.report_store.delete_if_status(report_id, plan.expected_status)
        else:
            applied = self.report_store.compare_and_set_status(
                report_id, plan.expected_status, plan.next_status,
            )

        if not applied:
            logger.warning(
                "Report %s changed concurrently, %s not applied",
                report_id,
                parsed.value,
            )
            raise TransitionConflict(
                f"Report '{report_id}' was modified by another action"
            )

        alert = None
        if plan.alert is not None:
            try:
                alert = self.alert_store.create(plan.alert)
            except Exception as e:
                logger.error(
                    "Alert for report %s failed, reverting %s: %s",
                    report_id,
                    parsed.value,
                    str(e),
                )
                self._revert(report, plan)
                raise

        result = TransitionResult(
            report_id=report_id,
            action=parsed,
            status=plan.next_status,
            alert=alert,
        )

        logger.info(
            "Report %s: %s -> %s (alert created: %s)",
            report_id,
            parsed.value,
            plan.next_status.value if plan.next_status else "deleted",
            result.alert_created,
        )
        return result

    def _revert(self, report: Report, plan: TransitionPlan) -> None:
        """Undo an applied status change whose side-effect alert failed.

        The report ends up as it was read before the transition. Failures
        here are logged; the caller re-raises the alert error.
        """
        try:
            if plan.deletes_report:
                self.report_store.restore(report)
            elif not self.report_store.compare_and_set_status(
                report.id, plan.next_status, plan.expected_status,
            ):
                logger.error("Report %s changed again before it could be reverted", report.id)
        except Exception:
            logger.exception("Could not revert report %s", report.id)
