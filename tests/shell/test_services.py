"""Tests for service graph construction."""

from unittest.mock import Mock, patch

import pytest

from incidenthub.core.aggregate import SortOrder
from incidenthub.core.config import Config, FirestoreConfig
from incidenthub.services import build_services, build_stores
from incidenthub.shell.firestore_stores import FirestoreAlertStore
from incidenthub.shell.memory_stores import MemoryAlertStore


class TestBuildStores:
    def test_memory_backend(self):
        alerts, _, _, connection = build_stores(Config(store_backend="memory"))

        assert isinstance(alerts, MemoryAlertStore)
        assert connection is None

    def test_firestore_backend_is_lazy(self):
        with patch("incidenthub.shell.firestore_stores.firestore.Client") as client_cls:
            alerts, _, _, connection = build_stores(
                Config(firestore=FirestoreConfig(alerts_collection="hub_alerts"))
            )

        assert isinstance(alerts, FirestoreAlertStore)
        assert alerts.collection_name == "hub_alerts"
        client_cls.assert_not_called()
        assert connection is not None

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_stores(Config(store_backend="mongodb"))


class TestServices:
    def test_views(self):
        services = build_services(Config(store_backend="memory"), feed_client=Mock())

        observer = services.view("observer")
        responder = services.view("responder")

        assert (observer.radius_km, observer.order) == (150.0, SortOrder.RECENT)
        assert (responder.radius_km, responder.order) == (250.0, SortOrder.DISTANCE)
        services.close()

    def test_close_releases_feed(self):
        feed = Mock()
        services = build_services(Config(store_backend="memory"), feed_client=feed)

        services.close()

        feed.close.assert_called_once()
