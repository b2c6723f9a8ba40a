"""Unit tests for configuration validation.

Pure function tests - no mocks needed.
"""

from incidenthub.core.config import (
    AggregationConfig,
    ClassifierConfig,
    Config,
    FeedConfig,
    validate_config,
)


def _fields(result):
    return {e.field for e in result.critical_errors}


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_defaults_are_valid(self):
        result = validate_config(Config())

        assert result.valid
        assert result.critical_errors == []

    def test_missing_token_is_warning(self):
        result = validate_config(Config())
        assert "classifier.api_token" in {w.field for w in result.warnings}

    def test_token_set_has_no_warning(self):
        result = validate_config(Config(classifier=ClassifierConfig(api_token="hf_abc")))
        assert "classifier.api_token" not in {w.field for w in result.warnings}

    def test_unresolved_token_placeholder_is_warning(self):
        result = validate_config(Config(classifier=ClassifierConfig(api_token="${HF_API_TOKEN}")))
        assert "classifier.api_token" in {w.field for w in result.warnings}

    def test_unknown_backend(self):
        result = validate_config(Config(store_backend="postgres"))

        assert not result.valid
        assert "store_backend" in _fields(result)

    def test_non_positive_radius(self):
        result = validate_config(Config(aggregation=AggregationConfig(observer_radius_km=0)))

        assert not result.valid
        assert "aggregation.observer_radius_km" in _fields(result)

    def test_non_positive_feed_timeout(self):
        result = validate_config(Config(feed=FeedConfig(timeout_seconds=-1)))
        assert "feed.timeout_seconds" in _fields(result)

    def test_per_source_above_total_is_warning(self):
        result = validate_config(
            Config(aggregation=AggregationConfig(per_source_limit=60, total_limit=50))
        )

        assert result.valid
        assert "aggregation.per_source_limit" in {w.field for w in result.warnings}

    def test_feed_url_must_be_http(self):
        result = validate_config(Config(feed=FeedConfig(url="ftp://example.com/events")))
        assert "feed.url" in _fields(result)

    def test_zero_list_limit(self):
        result = validate_config(Config(report_list_limit=0))
        assert "report_list_limit" in _fields(result)
