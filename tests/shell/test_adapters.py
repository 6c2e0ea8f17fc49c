"""Tests for feed adapters.

HTTP is mocked with `responses`; the blocking client call runs in a
worker thread, which `responses` patches as well.
"""

import pytest
import responses
from unittest.mock import Mock

from hazardwatch.core.config import EONET_EVENTS_URL, NWS_ALERTS_URL, USGS_API_BASE, FeedConfig
from hazardwatch.core.errors import FeedSchemaError, TransientFetchError
from hazardwatch.shell.adapters import (
    EONETFeedAdapter,
    NWSAlertsAdapter,
    StaticFeedAdapter,
    USGSFeedAdapter,
    build_adapter,
    build_adapters,
)
from hazardwatch.shell.usgs_client import USGSClient


USGS_PAYLOAD = {
    "type": "FeatureCollection",
    "features": [
        {
            "id": "us1",
            "properties": {"mag": 6.7, "place": "Tokyo", "time": 1702987200000},
            "geometry": {"type": "Point", "coordinates": [139.6503, 35.6762, 10.0]},
        },
        {
            "id": "broken",
            "properties": {"mag": 3.0},
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
        },
    ],
}


class TestUSGSFeedAdapter:
    """Tests for USGSFeedAdapter.fetch()."""

    @pytest.mark.asyncio
    async def test_fetch_returns_batch(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, USGS_API_BASE, json=USGS_PAYLOAD)
            adapter = USGSFeedAdapter("usgs", USGSClient())
            batch = await adapter.fetch()

        assert batch.feed == "usgs"
        assert [r.id for r in batch.records] == ["us1"]
        assert batch.records[0].severity == 5
        assert batch.dropped == 1

    @pytest.mark.asyncio
    async def test_network_failure_raises(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, USGS_API_BASE, status=502)
            adapter = USGSFeedAdapter("usgs", USGSClient())
            with pytest.raises(TransientFetchError):
                await adapter.fetch()

    @pytest.mark.asyncio
    async def test_wrong_shape_raises(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, USGS_API_BASE, json={"error": "nope"})
            adapter = USGSFeedAdapter("usgs", USGSClient())
            with pytest.raises(FeedSchemaError):
                await adapter.fetch()

    @pytest.mark.asyncio
    async def test_passes_query_settings(self):
        client = Mock()
        client.fetch_recent.return_value = {"features": []}

        await USGSFeedAdapter("usgs", client, lookback_hours=12, min_magnitude=2.5).fetch()

        client.fetch_recent.assert_called_once_with(min_magnitude=2.5, hours=12)


class TestOtherAdapters:
    @pytest.mark.asyncio
    async def test_nws(self):
        client = Mock()
        client.fetch_active_alerts.return_value = {"features": []}
        batch = await NWSAlertsAdapter("nws", client).fetch()
        assert batch.records == ()

    @pytest.mark.asyncio
    async def test_eonet_uses_default_severity(self):
        client = Mock()
        client.fetch_open_events.return_value = {
            "events": [{
                "id": "EONET_1",
                "title": "Etna",
                "categories": [{"id": "volcanoes", "title": "Volcanoes"}],
                "geometry": [{"date": "2024-06-01T00:00:00Z", "type": "Point", "coordinates": [15.0, 37.7]}],
            }],
        }

        batch = await EONETFeedAdapter("eonet", client, days=3, default_severity=4).fetch()

        client.fetch_open_events.assert_called_once_with(days=3)
        assert batch.records[0].severity == 4
        assert batch.records[0].category == "Volcano"

    @pytest.mark.asyncio
    async def test_static(self):
        adapter = StaticFeedAdapter("advisories", [{
            "id": "a1",
            "category": "Flood",
            "severity": 3,
            "latitude": 1.0,
            "longitude": 2.0,
            "observed_at": "2024-06-01T00:00:00Z",
        }])
        batch = await adapter.fetch()
        assert batch.records[0].key == ("advisories", "a1")


class TestBuildAdapter:
    """Tests for build_adapter()."""

    def test_usgs(self):
        adapter = build_adapter(FeedConfig(
            name="quakes",
            feed_type="usgs",
            url="https://mirror.example.com/query",
            lookback_hours=24,
        ))
        assert isinstance(adapter, USGSFeedAdapter)
        assert adapter.name == "quakes"
        assert adapter.client.feed == "quakes"
        assert adapter.client.base_url == "https://mirror.example.com/query"
        assert adapter.lookback_hours == 24

    def test_nws_default_url(self):
        adapter = build_adapter(FeedConfig(name="nws", feed_type="nws"))
        assert isinstance(adapter, NWSAlertsAdapter)
        assert adapter.client.base_url == NWS_ALERTS_URL

    def test_eonet(self):
        adapter = build_adapter(FeedConfig(name="eonet", feed_type="eonet", days=2))
        assert isinstance(adapter, EONETFeedAdapter)
        assert adapter.client.base_url == EONET_EVENTS_URL
        assert adapter.days == 2

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            build_adapter(FeedConfig(name="x", feed_type="rss"))

    def test_preserves_order(self):
        adapters = build_adapters([
            FeedConfig(name="b", feed_type="nws"),
            FeedConfig(name="a", feed_type="usgs"),
        ])
        assert [a.name for a in adapters] == ["b", "a"]
