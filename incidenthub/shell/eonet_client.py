"""NASA EONET Client - Imperative Shell.

This module handles HTTP communication with the NASA EONET hazard event
feed. All I/O is contained here; parsing is in the core module.
"""

import logging
from typing import Any

import requests

from incidenthub.core.errors import FeedDegraded
from incidenthub.core.feed import ExternalEvent, parse_events


logger = logging.getLogger(__name__)


# EONET v2.1 events endpoint
EONET_API_BASE = "https://eonet.gsfc.nasa.gov/api/v2.1/events"

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 10

DEFAULT_EVENT_LIMIT = 20


class EONETClient:
    """Client for fetching open hazard events from NASA EONET.

    This is part of the imperative shell - it handles HTTP I/O. Every
    failure mode (transport, HTTP status, bad JSON, wrong shape) surfaces as
    FeedDegraded so callers have one thing to handle.
    """

    def __init__(
        self,
        base_url: str = EONET_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        limit: int = DEFAULT_EVENT_LIMIT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize EONET client.

        Args:
            base_url: EONET events endpoint
            timeout: Request timeout in seconds
            limit: Number of open events to request
            session: Optional requests session (connection pooling)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.limit = limit
        self._session = session

    def _build_params(self) -> dict[str, str]:
        return {
            "status": "open",
            "limit": str(self.limit),
        }

    def fetch_raw(self) -> dict[str, Any]:
        """Fetch the raw feed document.

        This method performs HTTP I/O.

        Returns:
            Decoded JSON response

        Raises:
            FeedDegraded: If the request fails or the body is not JSON
        """
        params = self._build_params()

        logger.info(
            "Fetching open events from EONET",
            extra={"params": params},
        )

        getter = self._session.get if self._session is not None else requests.get

        try:
            response = getter(
                self.base_url,
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as e:
            raise FeedDegraded(f"EONET request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise FeedDegraded(f"EONET request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise FeedDegraded(f"EONET returned invalid JSON: {e}") from e

    def fetch_events(self) -> list[ExternalEvent]:
        """Fetch and parse open events.

        Events with unusable geometry are skipped and logged, never raised.

        Returns:
            Parsed events in feed order

        Raises:
            FeedDegraded: If the feed is unreachable or malformed as a whole
        """
        events, skipped = parse_events(self.fetch_raw())

        for skip in skipped:
            logger.debug("Skipped EONET event %s: %s", skip.event_id, skip.reason)

        if skipped:
            logger.info("Skipped %d EONET events with unusable data", len(skipped))

        logger.info("Fetched %d usable events from EONET", len(events))

        return events

    def close(self) -> None:
        """Close the underlying session, if any."""
        if self._session is not None:
            self._session.close()
