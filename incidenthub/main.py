"""Service Entry Point.

Thin wrapper that configures logging, loads configuration and exposes the
ASGI app. Run with `uvicorn main:app` from the repository root, or
`python -m incidenthub.main`.
"""

import logging
import os

import uvicorn

from incidenthub.api_handler import create_app
from incidenthub.core.config import Config, validate_config
from incidenthub.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        config = load_config(config_path)
    elif os.environ.get("STORE_BACKEND"):
        # Simple env-based config
        config = load_config_from_env()
    else:
        # Try default config path
        config = load_config()

    validation = validate_config(config)
    for issue in validation.warnings:
        logger.warning("Config warning: %s: %s", issue.field, issue.message)
    if not validation.valid:
        for issue in validation.critical_errors:
            logger.error("Config error: %s: %s", issue.field, issue.message)
        raise ValueError("Invalid configuration")

    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))
    return config


app = create_app(_get_config())


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
