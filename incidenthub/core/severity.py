"""Severity normalization - Pure functions.

Report priorities, feed categories and free-form alert input each speak
their own vocabulary. Everything is mapped into the canonical
high / moderate / low domain here and nowhere else.
"""

from typing import Any

from incidenthub.core.models import ReportPriority, Severity


PRIORITY_SEVERITY: dict[str, Severity] = {
    ReportPriority.CRITICAL.value: Severity.HIGH,
    ReportPriority.HIGH.value: Severity.HIGH,
    ReportPriority.MEDIUM.value: Severity.MODERATE,
    ReportPriority.LOW.value: Severity.LOW,
}

# Aliases accepted at the alert-creation boundary
SEVERITY_ALIASES: dict[str, Severity] = {
    "critical": Severity.HIGH,
    "severe": Severity.HIGH,
    "extreme": Severity.HIGH,
    "medium": Severity.MODERATE,
    "minor": Severity.LOW,
}

# EONET v2.1 numeric ids and v3 string ids for the high-severity categories
HIGH_SEVERITY_CATEGORY_IDS = {8, 10, 12, "wildfires", "severeStorms", "volcanoes"}
HIGH_SEVERITY_CATEGORY_KEYWORDS = ("wildfire", "volcano", "severe storm")


def coerce_severity(raw: Any, default: Severity = Severity.MODERATE) -> Severity:
    """Coerce arbitrary input into the canonical severity domain.

    Pure function.

    Args:
        raw: Severity value from any source (may be None or a non-string)
        default: Severity used when the input cannot be mapped

    Returns:
        A canonical Severity
    """
    if isinstance(raw, Severity):
        return raw
    if not isinstance(raw, str):
        return default

    value = raw.strip().lower()
    for severity in Severity:
        if value == severity.value:
            return severity

    return SEVERITY_ALIASES.get(value, default)


def priority_to_severity(priority: Any) -> Severity:
    """Map a report priority onto a severity.

    critical and high map to high, medium to moderate, low and anything
    unrecognised to low.
    """
    if isinstance(priority, ReportPriority):
        priority = priority.value
    if not isinstance(priority, str):
        return Severity.LOW

    return PRIORITY_SEVERITY.get(priority.strip().lower(), Severity.LOW)


def category_severity(category_id: Any, category_title: Any) -> Severity:
    """Classify a feed category as high or moderate severity.

    Wildfire, volcano and severe-storm categories are high; everything else
    is moderate. Either the id or the title may be missing.
    """
    if (
        isinstance(category_id, (int, str))
        and not isinstance(category_id, bool)
        and category_id in HIGH_SEVERITY_CATEGORY_IDS
    ):
        return Severity.HIGH

    if isinstance(category_title, str):
        title = category_title.lower()
        if any(keyword in title for keyword in HIGH_SEVERITY_CATEGORY_KEYWORDS):
            return Severity.HIGH

    return Severity.MODERATE
