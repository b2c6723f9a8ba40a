"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field


DEFAULT_FEED_URL = "https://eonet.gsfc.nasa.gov/api/v2.1/events"
DEFAULT_CLASSIFIER_URL = (
    "https://api-inference.huggingface.co/models/facebook/bart-large-mnli"
)

STORE_BACKENDS = ("firestore", "memory")


@dataclass
class FirestoreConfig:
    """Firestore store settings.

    Attributes:
        project: GCP project id (None for the environment default)
        database: Firestore database name (None for default)
        alerts_collection: Collection holding alerts
        reports_collection: Collection holding reports
        relief_centers_collection: Collection holding relief centers
        timeout_seconds: Per-call timeout for store queries
    """
    project: str | None = None
    database: str | None = None
    alerts_collection: str = "alerts"
    reports_collection: str = "reports"
    relief_centers_collection: str = "relief_centers"
    timeout_seconds: float = 10.0


@dataclass
class FeedConfig:
    """External event feed settings.

    Attributes:
        url: Events endpoint
        timeout_seconds: Bound on a single fetch, exceeding it degrades the feed
        event_limit: Number of open events requested per fetch
    """
    url: str = DEFAULT_FEED_URL
    timeout_seconds: float = 10.0
    event_limit: int = 20


@dataclass
class AggregationConfig:
    """Nearby query settings.

    Attributes:
        observer_radius_km: Default radius for the observer view
        responder_radius_km: Default radius for the responder view
        per_source_limit: Cap per store-backed source before merge
        total_limit: Cap on the merged result
        store_scan_limit: Page size for store radius and nearest scans
        max_workers: Threads used for the concurrent fan-out
    """
    observer_radius_km: float = 150.0
    responder_radius_km: float = 250.0
    per_source_limit: int = 25
    total_limit: int = 50
    store_scan_limit: int = 500
    max_workers: int = 3


@dataclass
class ClassifierConfig:
    """Report priority classifier settings.

    Attributes:
        url: Zero-shot classification inference endpoint
        api_token: Bearer token; without it every report is medium priority
        timeout_seconds: Bound on a single classification call
    """
    url: str = DEFAULT_CLASSIFIER_URL
    api_token: str | None = None
    timeout_seconds: float = 10.0


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        store_backend: "firestore" or "memory"
        firestore: Firestore settings
        feed: External feed settings
        aggregation: Nearby query settings
        classifier: Priority classifier settings
        report_list_limit: Cap on the report listing
        alert_list_limit: Cap on the active alert listing
        relief_center_list_limit: Cap on the relief center listing
        cors_origins: Origins allowed to call the HTTP API
        log_level: Root log level
    """
    store_backend: str = "firestore"
    firestore: FirestoreConfig = field(default_factory=FirestoreConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    report_list_limit: int = 100
    alert_list_limit: int = 50
    relief_center_list_limit: int = 100
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


@dataclass
class ConfigIssue:
    """A configuration validation problem.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ConfigIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[ConfigIssue]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ConfigIssue]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _require_positive(value: float, field_name: str) -> list[ConfigIssue]:
    if value <= 0:
        return [ConfigIssue(field=field_name, message=f"Must be positive, got {value}")]
    return []


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ConfigIssue] = []

    if config.store_backend not in STORE_BACKENDS:
        errors.append(ConfigIssue(
            field="store_backend",
            message=f"Unknown store backend '{config.store_backend}', expected one of {', '.join(STORE_BACKENDS)}",
        ))

    errors.extend(_require_positive(config.firestore.timeout_seconds, "firestore.timeout_seconds"))
    errors.extend(_require_positive(config.feed.timeout_seconds, "feed.timeout_seconds"))
    errors.extend(_require_positive(config.feed.event_limit, "feed.event_limit"))
    errors.extend(_require_positive(config.classifier.timeout_seconds, "classifier.timeout_seconds"))

    agg = config.aggregation
    errors.extend(_require_positive(agg.observer_radius_km, "aggregation.observer_radius_km"))
    errors.extend(_require_positive(agg.responder_radius_km, "aggregation.responder_radius_km"))
    errors.extend(_require_positive(agg.per_source_limit, "aggregation.per_source_limit"))
    errors.extend(_require_positive(agg.total_limit, "aggregation.total_limit"))
    errors.extend(_require_positive(agg.store_scan_limit, "aggregation.store_scan_limit"))
    errors.extend(_require_positive(agg.max_workers, "aggregation.max_workers"))

    if agg.per_source_limit > agg.total_limit:
        errors.append(ConfigIssue(
            field="aggregation.per_source_limit",
            message=f"per_source_limit ({agg.per_source_limit}) > total_limit ({agg.total_limit})",
            severity="warning",
        ))

    for field_name in ("report_list_limit", "alert_list_limit", "relief_center_list_limit"):
        errors.extend(_require_positive(getattr(config, field_name), field_name))

    token = config.classifier.api_token
    if not token or token.startswith("${"):
        errors.append(ConfigIssue(
            field="classifier.api_token",
            message="Classifier token not set, reports will default to medium priority",
            severity="warning",
        ))

    if not config.feed.url.startswith(("http://", "https://")):
        errors.append(ConfigIssue(
            field="feed.url",
            message=f"Feed URL must be http(s), got '{config.feed.url}'",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
