"""Unit tests for configuration models and validation.

Pure function tests - no mocks needed.
"""

from hazardwatch.core.config import (
    Config,
    FeedConfig,
    default_feeds,
    validate_config,
    validate_coordinates,
    validate_feed,
)
from hazardwatch.core.filters import FilterCriteria


class TestDefaults:
    def test_default_config_is_valid(self):
        result = validate_config(Config())
        assert result.valid
        assert result.errors == []

    def test_default_feeds(self):
        assert [f.feed_type for f in default_feeds()] == ["usgs", "nws"]

    def test_default_interval_is_five_minutes(self):
        assert Config().refresh_interval_seconds == 300


class TestValidateCoordinates:
    def test_valid(self):
        assert validate_coordinates(35.0, 139.0, "x") == []

    def test_out_of_range(self):
        errors = validate_coordinates(91, 181, "x")
        assert len(errors) == 2

    def test_not_numbers(self):
        errors = validate_coordinates(None, "east", "x")
        assert len(errors) == 1


class TestValidateFeed:
    def test_unknown_type(self):
        errors = validate_feed(FeedConfig(name="x", feed_type="rss"), "feeds[0]")
        assert errors[0].field == "feeds[0].type"

    def test_eonet_default_severity_range(self):
        errors = validate_feed(FeedConfig(name="e", feed_type="eonet", default_severity=7), "f")
        assert any(e.field == "f.default_severity" for e in errors)

    def test_static_without_records_warns(self):
        errors = validate_feed(FeedConfig(name="s", feed_type="static"), "f")
        assert [e.severity for e in errors] == ["warning"]

    def test_static_record_coordinates(self):
        feed = FeedConfig(
            name="s",
            feed_type="static",
            records=({"id": "a", "latitude": 100, "longitude": 0},),
        )
        errors = validate_feed(feed, "f")
        assert errors[0].field == "f.records[0]"


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_duplicate_feed_names(self):
        config = Config(feeds=[
            FeedConfig(name="quakes", feed_type="usgs"),
            FeedConfig(name="quakes", feed_type="usgs"),
        ])
        result = validate_config(config)
        assert not result.valid
        assert "Duplicate feed name" in result.critical_errors[0].message

    def test_no_feeds_is_warning(self):
        result = validate_config(Config(feeds=[]))
        assert result.valid
        assert result.warnings[0].field == "feeds"

    def test_bad_interval(self):
        result = validate_config(Config(refresh_interval_seconds=0))
        assert not result.valid

    def test_unresolved_webhook_warns(self):
        result = validate_config(Config(slack_webhook_url="${SLACK_WEBHOOK_URL}"))
        assert result.valid
        assert result.warnings[0].field == "notifications.slack_webhook_url"

    def test_unoffered_time_range_warns(self):
        config = Config(default_criteria=FilterCriteria(max_age_hours=12))
        result = validate_config(config)
        assert result.valid
        assert len(result.warnings) == 1

    def test_high_threshold_range(self):
        result = validate_config(Config(high_severity_threshold=6))
        assert not result.valid
