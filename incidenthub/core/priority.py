"""Report priority classification - Pure functions.

Builds the zero-shot classification request and interprets its response.
Priority is informational only; anything unexpected resolves to medium.
"""

from dataclasses import dataclass
from typing import Any

from incidenthub.core.models import ReportPriority


CANDIDATE_LABELS = ("high priority", "medium priority", "low priority")

LABEL_PRIORITY: dict[str, ReportPriority] = {
    "high priority": ReportPriority.HIGH,
    "medium priority": ReportPriority.MEDIUM,
    "low priority": ReportPriority.LOW,
}


@dataclass(frozen=True)
class PriorityResult:
    """Classifier verdict.

    Attributes:
        priority: Derived report priority
        score: Classifier confidence for that label (0 when defaulted)
    """
    priority: ReportPriority
    score: float = 0.0


DEFAULT_RESULT = PriorityResult(ReportPriority.MEDIUM, 0.0)


def build_request(text: str) -> dict[str, Any]:
    """Build the zero-shot classification request body."""
    return {
        "inputs": text,
        "parameters": {"candidate_labels": list(CANDIDATE_LABELS)},
    }


def parse_response(payload: Any) -> PriorityResult:
    """Interpret a zero-shot classification response.

    Pure function. The response lists labels with their scores, best first;
    some deployments wrap it in a one-element list.

    Args:
        payload: Decoded JSON response

    Returns:
        PriorityResult for the best label, or medium with score 0
    """
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if not isinstance(payload, dict):
        return DEFAULT_RESULT

    labels = payload.get("labels")
    scores = payload.get("scores")
    if not isinstance(labels, list) or not isinstance(scores, list):
        return DEFAULT_RESULT

    best: tuple[ReportPriority, float] | None = None
    for label, score in zip(labels, scores):
        if not isinstance(label, str) or isinstance(score, bool) or not isinstance(score, (int, float)):
            continue
        priority = LABEL_PRIORITY.get(label.strip().lower())
        if priority is None:
            continue
        if best is None or score > best[1]:
            best = (priority, float(score))

    if best is None:
        return DEFAULT_RESULT
    return PriorityResult(priority=best[0], score=best[1])
