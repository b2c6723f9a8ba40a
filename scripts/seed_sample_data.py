#!/usr/bin/env python3
"""Seed sample alerts, reports and relief centers.

Writes a handful of records around Kothamangalam, Kerala into the
configured store so the nearby view has something to show locally.

Usage:
    # Preview only, nothing written
    python scripts/seed_sample_data.py --dry-run

    # Seed the configured backend
    python scripts/seed_sample_data.py

    # Also accept the sample reports so they show up as verified
    python scripts/seed_sample_data.py --accept-reports

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from incidenthub.core.models import AlertDraft, ReportPriority, ReportStatus, Severity
from incidenthub.core.geo import GeoPoint
from incidenthub.core.validation import (
    validate_relief_center_input,
    validate_report_submission,
)
from incidenthub.services import build_stores
from incidenthub.shell.config_loader import load_config

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


SAMPLE_ALERTS = [
    AlertDraft(
        type="flood",
        title="Periyar river above warning level",
        details="Low-lying areas near the river bank should move to higher ground.",
        location=GeoPoint(longitude=76.628, latitude=10.068),
        severity=Severity.HIGH,
    ),
    AlertDraft(
        type="landslide",
        title="Landslide risk on Munnar road",
        details="Heavy rain has loosened slopes along the ghat section.",
        location=GeoPoint(longitude=77.087, latitude=10.089),
        severity=Severity.MODERATE,
    ),
]

# (type, details, latitude, longitude, priority)
SAMPLE_REPORTS = [
    ("flood", "Water entering houses near the market junction", 10.061, 76.632, ReportPriority.HIGH),
    ("accident", "Bus and car collision blocking the main road", 10.072, 76.615, ReportPriority.CRITICAL),
    ("medical", "Elderly resident needs evacuation assistance", 10.050, 76.640, ReportPriority.MEDIUM),
]

# (name, details, latitude, longitude)
SAMPLE_RELIEF_CENTERS = [
    ("Government HSS Camp", "Capacity 300, drinking water available", 10.064, 76.625),
    ("Town Hall Shelter", "Capacity 150, first aid on site", 10.080, 76.640),
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample data")
    parser.add_argument("--dry-run", action="store_true", help="Preview without writing")
    parser.add_argument(
        "--accept-reports",
        action="store_true",
        help="Mark the sample reports accepted",
    )
    args = parser.parse_args()

    config = load_config()

    if config.store_backend == "memory" and not args.dry_run:
        logger.warning("Memory backend selected; seeded data lives only in this process")

    if args.dry_run:
        for draft in SAMPLE_ALERTS:
            logger.info("Would create alert: %s", draft.title)
        for incident_type, details, *_ in SAMPLE_REPORTS:
            logger.info("Would create report: %s - %s", incident_type, details)
        for name, *_ in SAMPLE_RELIEF_CENTERS:
            logger.info("Would create relief center: %s", name)
        return 0

    alert_store, report_store, relief_center_store, connection = build_stores(config)

    try:
        for draft in SAMPLE_ALERTS:
            alert_store.create(draft)

        for incident_type, details, lat, lng, priority in SAMPLE_REPORTS:
            submission = validate_report_submission(incident_type, details, lat, lng)
            report = report_store.create(submission, priority)
            if args.accept_reports:
                report_store.compare_and_set_status(
                    report.id, ReportStatus.PENDING, ReportStatus.ACCEPTED,
                )

        for name, details, lat, lng in SAMPLE_RELIEF_CENTERS:
            relief_center_store.create(validate_relief_center_input(name, details, lat, lng))
    finally:
        if connection is not None:
            connection.close()

    logger.info(
        "Seeded %d alerts, %d reports, %d relief centers",
        len(SAMPLE_ALERTS),
        len(SAMPLE_REPORTS),
        len(SAMPLE_RELIEF_CENTERS),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
