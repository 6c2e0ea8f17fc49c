"""Tests for the Cloud Function entry point and local runner."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest

from hazardwatch.core.config import Config, FeedConfig
from hazardwatch.core.errors import FetchError
from hazardwatch.core.filters import FilterCriteria
from hazardwatch.main import criteria_from_args, hazard_snapshot, main


def static_config(**kwargs) -> Config:
    observed_at = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    records = (
        {
            "id": "adv-1",
            "category": "Flood",
            "severity": "severe",
            "latitude": 29.76,
            "longitude": -95.37,
            "location": "Houston, TX",
            "observed_at": observed_at,
            "description": "Flash flood advisory",
        },
        {
            "id": "adv-2",
            "category": "Fire",
            "severity": 2,
            "latitude": 34.05,
            "longitude": -118.24,
            "location": "Los Angeles, CA",
            "observed_at": observed_at,
            "description": "Brush fire, contained",
        },
    )
    return Config(feeds=[FeedConfig(name="advisories", feed_type="static", records=records)], **kwargs)


class FailingAdapter:
    name = "usgs"

    async def fetch(self):
        raise FetchError("usgs", "HTTP 500")


class TestCriteriaFromArgs:
    """Tests for criteria_from_args function."""

    def test_no_args_keeps_base(self):
        base = FilterCriteria()
        assert criteria_from_args({}, base) == base

    def test_overrides(self):
        criteria = criteria_from_args(
            {"categories": "earthquake,Fire", "min_severity": "4", "max_age_hours": "48"},
            FilterCriteria(),
        )
        assert criteria.active_categories == frozenset({"earthquake", "fire"})
        assert criteria.min_severity == 4
        assert criteria.max_age_hours == 48

    def test_empty_categories_means_none(self):
        criteria = criteria_from_args({"categories": ""}, FilterCriteria())
        assert criteria.active_categories == frozenset()

    @pytest.mark.parametrize("args", [
        {"min_severity": "abc"},
        {"min_severity": "7"},
        {"max_age_hours": "12"},
    ])
    def test_invalid_values(self, args):
        with pytest.raises(ValueError):
            criteria_from_args(args, FilterCriteria())


class TestHazardSnapshot:
    """Tests for the hazard_snapshot HTTP function."""

    @patch("hazardwatch.main._get_config")
    def test_success(self, mock_get_config):
        mock_get_config.return_value = static_config()
        request = Mock(args={})

        response, status = hazard_snapshot(request)

        assert status == 200
        assert response["status"] == "success"
        # Severity 2 is below the default minimum of 3
        assert [r["id"] for r in response["records"]] == ["adv-1"]
        assert response["records"][0]["severity"] == 4
        assert response["stats"]["total"] == 1

    @patch("hazardwatch.main._get_config")
    def test_query_string_criteria(self, mock_get_config):
        mock_get_config.return_value = static_config()
        request = Mock(args={"min_severity": "1", "categories": "fire"})

        response, status = hazard_snapshot(request)

        assert status == 200
        assert [r["id"] for r in response["records"]] == ["adv-2"]

    @patch("hazardwatch.main._get_config")
    def test_bad_criteria(self, mock_get_config):
        mock_get_config.return_value = static_config()
        request = Mock(args={"min_severity": "high"})

        response, status = hazard_snapshot(request)

        assert status == 400
        assert response["status"] == "error"

    @patch("hazardwatch.orchestrator.build_adapters")
    @patch("hazardwatch.main._get_config")
    def test_all_feeds_failed(self, mock_get_config, mock_build_adapters):
        mock_get_config.return_value = Config(feeds=[FeedConfig(name="usgs", feed_type="usgs")])
        mock_build_adapters.return_value = [FailingAdapter()]

        response, status = hazard_snapshot(Mock(args={}))

        assert status == 503
        assert "All feeds failed" in response["message"]

    @patch("hazardwatch.main._get_config")
    def test_unexpected_error(self, mock_get_config):
        mock_get_config.side_effect = RuntimeError("config exploded")

        response, status = hazard_snapshot(Mock(args={}))

        assert status == 500
        assert response["message"] == "config exploded"


class TestMain:
    """Tests for the command-line runner."""

    @patch("hazardwatch.main.load_config")
    def test_once_prints_snapshot(self, mock_load_config, capsys):
        mock_load_config.return_value = static_config()

        assert main(["--once"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["stats"]["total"] == 1

    @patch("hazardwatch.main.load_config")
    def test_invalid_config(self, mock_load_config):
        mock_load_config.return_value = Config(refresh_interval_seconds=0)

        assert main(["--once"]) == 1
