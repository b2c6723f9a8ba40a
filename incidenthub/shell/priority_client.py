"""Priority Classifier Client - Imperative Shell.

This module handles HTTP communication with a zero-shot text
classification endpoint (Hugging Face Inference API). All I/O is
contained here; request building and response parsing are in the core
module.
"""

import logging

import requests

from incidenthub.core.priority import (
    DEFAULT_RESULT,
    PriorityResult,
    build_request,
    parse_response,
)


logger = logging.getLogger(__name__)


# Default timeout for classification requests (seconds)
DEFAULT_TIMEOUT = 10


class PriorityClient:
    """Client that derives a report priority from its text.

    This is part of the imperative shell - it handles HTTP I/O. Priority
    is informational, so every failure resolves to medium instead of
    raising.
    """

    def __init__(
        self,
        url: str,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize priority client.

        Args:
            url: Inference endpoint URL
            api_token: Bearer token; None disables classification
            timeout: Request timeout in seconds
        """
        self.url = url
        self.api_token = api_token
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_token) and not self.api_token.startswith("${")

    def classify(self, text: str) -> PriorityResult:
        """Classify report text into high, medium or low priority.

        This method performs HTTP I/O.

        Args:
            text: Report details

        Returns:
            PriorityResult; medium with score 0 when disabled or failing
        """
        if not self.enabled:
            logger.debug("Priority classifier not configured, defaulting to medium")
            return DEFAULT_RESULT

        try:
            response = requests.post(
                self.url,
                json=build_request(text),
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_token}"},
            )
        except requests.Timeout:
            logger.warning("Priority classifier request timed out")
            return DEFAULT_RESULT
        except requests.RequestException as e:
            logger.warning("Priority classifier request failed: %s", str(e))
            return DEFAULT_RESULT

        if response.status_code != 200:
            logger.warning(
                "Priority classifier returned non-200: %d - %s",
                response.status_code,
                response.text,
            )
            return DEFAULT_RESULT

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Priority classifier returned invalid JSON")
            return DEFAULT_RESULT

        result = parse_response(payload)
        logger.info("Classified report as %s (%.2f)", result.priority.value, result.score)
        return result
