"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, FeedConfig, ...) are defined in incidenthub/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from incidenthub.core.config import (
    AggregationConfig,
    ClassifierConfig,
    Config,
    FeedConfig,
    FirestoreConfig,
)


logger = logging.getLogger(__name__)


_PLACEHOLDER = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def _resolve_value(value: Any) -> Any:
    """Resolve a ${ENV_VAR} placeholder.

    Unset variables leave the placeholder in place so validation can flag
    them.

    Args:
        value: Value to resolve (may be a ${...} placeholder)

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    match = _PLACEHOLDER.match(value.strip())
    if match is None:
        return value

    env_value = os.environ.get(match.group(1))
    if env_value:
        return env_value

    logger.warning("Environment variable %s not set", match.group(1))
    return value


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return {key: _resolve_value(value) for key, value in section.items()}


def _optional_str(value: Any) -> str | None:
    """Empty values and unresolved placeholders become None."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and _PLACEHOLDER.match(value.strip()):
        return None
    return str(value)


def _parse_firestore(data: dict[str, Any]) -> FirestoreConfig:
    defaults = FirestoreConfig()
    return FirestoreConfig(
        project=_optional_str(data.get("project")),
        database=_optional_str(data.get("database")),
        alerts_collection=data.get("alerts_collection", defaults.alerts_collection),
        reports_collection=data.get("reports_collection", defaults.reports_collection),
        relief_centers_collection=data.get(
            "relief_centers_collection", defaults.relief_centers_collection,
        ),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def _parse_feed(data: dict[str, Any]) -> FeedConfig:
    defaults = FeedConfig()
    return FeedConfig(
        url=data.get("url", defaults.url),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
        event_limit=int(data.get("event_limit", defaults.event_limit)),
    )


def _parse_aggregation(data: dict[str, Any]) -> AggregationConfig:
    defaults = AggregationConfig()
    return AggregationConfig(
        observer_radius_km=float(data.get("observer_radius_km", defaults.observer_radius_km)),
        responder_radius_km=float(data.get("responder_radius_km", defaults.responder_radius_km)),
        per_source_limit=int(data.get("per_source_limit", defaults.per_source_limit)),
        total_limit=int(data.get("total_limit", defaults.total_limit)),
        store_scan_limit=int(data.get("store_scan_limit", defaults.store_scan_limit)),
        max_workers=int(data.get("max_workers", defaults.max_workers)),
    )


def _parse_classifier(data: dict[str, Any]) -> ClassifierConfig:
    defaults = ClassifierConfig()
    return ClassifierConfig(
        url=data.get("url", defaults.url),
        api_token=_optional_str(data.get("api_token")),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    defaults = Config()

    cors_origins = data.get("cors_origins", defaults.cors_origins)
    if isinstance(cors_origins, str):
        cors_origins = [o.strip() for o in cors_origins.split(",") if o.strip()]

    return Config(
        store_backend=_resolve_value(data.get("store_backend", defaults.store_backend)),
        firestore=_parse_firestore(_section(data, "firestore")),
        feed=_parse_feed(_section(data, "feed")),
        aggregation=_parse_aggregation(_section(data, "aggregation")),
        classifier=_parse_classifier(_section(data, "classifier")),
        report_list_limit=int(data.get("report_list_limit", defaults.report_list_limit)),
        alert_list_limit=int(data.get("alert_list_limit", defaults.alert_list_limit)),
        relief_center_list_limit=int(
            data.get("relief_center_list_limit", defaults.relief_center_list_limit)
        ),
        cors_origins=list(cors_origins),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: backend=%s, feed=%s",
        config.store_backend,
        config.feed.url,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        STORE_BACKEND: firestore or memory
        GCP_PROJECT: Firestore project
        FIRESTORE_DATABASE: Firestore database name
        EONET_URL: Feed endpoint
        FEED_TIMEOUT_SECONDS: Feed fetch timeout
        HF_API_TOKEN: Priority classifier token
        CORS_ORIGINS: Comma-separated allowed origins
        LOG_LEVEL: Root log level

    Returns:
        Config object from environment
    """
    defaults = Config()

    firestore_config = FirestoreConfig(
        project=os.environ.get("GCP_PROJECT") or None,
        database=os.environ.get("FIRESTORE_DATABASE") or None,
    )

    feed = FeedConfig(
        url=os.environ.get("EONET_URL", FeedConfig().url),
        timeout_seconds=float(os.environ.get("FEED_TIMEOUT_SECONDS", FeedConfig().timeout_seconds)),
    )

    classifier = ClassifierConfig(api_token=os.environ.get("HF_API_TOKEN") or None)

    cors_env = os.environ.get("CORS_ORIGINS")
    cors_origins = (
        [o.strip() for o in cors_env.split(",") if o.strip()]
        if cors_env else defaults.cors_origins
    )

    return Config(
        store_backend=os.environ.get("STORE_BACKEND", defaults.store_backend),
        firestore=firestore_config,
        feed=feed,
        classifier=classifier,
        cors_origins=cors_origins,
        log_level=os.environ.get("LOG_LEVEL", defaults.log_level).upper(),
    )
