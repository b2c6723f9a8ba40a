"""Tests for the priority classifier client.

Uses the `responses` library to mock HTTP requests.
"""

import json

import pytest
import requests
import responses

from incidenthub.core.models import ReportPriority
from incidenthub.shell.priority_client import PriorityClient


CLASSIFIER_URL = "https://api-inference.example.com/models/zero-shot"


@pytest.fixture
def client():
    return PriorityClient(url=CLASSIFIER_URL, api_token="hf_test")


class TestPriorityClient:
    """Tests for PriorityClient.classify()."""

    @responses.activate
    def test_successful_classification(self, client):
        responses.add(
            responses.POST,
            CLASSIFIER_URL,
            json={
                "labels": ["high priority", "medium priority", "low priority"],
                "scores": [0.9, 0.07, 0.03],
            },
            status=200,
        )

        result = client.classify("Building collapsed with people trapped")

        assert result.priority == ReportPriority.HIGH
        assert result.score == pytest.approx(0.9)

        request = responses.calls[0].request
        assert request.headers["Authorization"] == "Bearer hf_test"
        body = json.loads(request.body)
        assert body["inputs"] == "Building collapsed with people trapped"

    def test_without_token_defaults_to_medium(self):
        result = PriorityClient(url=CLASSIFIER_URL).classify("anything")

        assert result.priority == ReportPriority.MEDIUM
        assert result.score == 0.0

    def test_unresolved_placeholder_token_is_disabled(self):
        assert not PriorityClient(url=CLASSIFIER_URL, api_token="${HF_API_TOKEN}").enabled

    @responses.activate
    def test_non_200_defaults_to_medium(self, client):
        responses.add(responses.POST, CLASSIFIER_URL, json={"error": "loading"}, status=503)

        assert client.classify("text").priority == ReportPriority.MEDIUM

    @responses.activate
    def test_timeout_defaults_to_medium(self, client):
        responses.add(responses.POST, CLASSIFIER_URL, body=requests.Timeout("slow"))

        assert client.classify("text").priority == ReportPriority.MEDIUM

    @responses.activate
    def test_invalid_json_defaults_to_medium(self, client):
        responses.add(responses.POST, CLASSIFIER_URL, body="not json", status=200)

        assert client.classify("text").priority == ReportPriority.MEDIUM
