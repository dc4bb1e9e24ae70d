"""Tests for the check interval table."""
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from app.core.intervals import CheckInterval, INTERVAL_SECONDS, DEFAULT_INTERVAL_LABEL
from app.models.monitored_domain import MonitoredDomain


class TestCheckInterval:
    """Tests for label and seconds lookups."""

    def test_table_is_complete(self):
        assert [i.value for i in CheckInterval] == list(INTERVAL_SECONDS.keys())
        assert CheckInterval.FIVE_MINUTES.seconds == 300
        assert CheckInterval.ONE_HOUR.seconds == 3600
        assert CheckInterval.TWENTY_FOUR_HOURS.seconds == 86400

    def test_default_is_one_hour(self):
        assert DEFAULT_INTERVAL_LABEL == "1hour"
        assert CheckInterval.from_label(DEFAULT_INTERVAL_LABEL).seconds == 3600

    def test_unknown_label_lists_valid_ones(self):
        with pytest.raises(HTTPException) as exc_info:
            CheckInterval.from_label("90sec")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail["valid_intervals"] == list(INTERVAL_SECONDS.keys())

    def test_label_for_round_trips_and_defaults(self):
        assert CheckInterval.label_for(1800) == "30min"
        assert CheckInterval.label_for(1234) == "1hour"

    def test_choices(self):
        choices = CheckInterval.choices()
        assert len(choices) == 10
        assert choices[0] == {"label": "5min", "value": 300}


class TestIsDue:
    """Tests for MonitoredDomain.is_due."""

    def test_new_domain_waits_one_interval(self):
        created = datetime(2026, 1, 1, 12, 0, 0)
        domain = MonitoredDomain(domain="a.com", check_interval=300, created_at=created)

        assert not domain.is_due(created + timedelta(minutes=2))
        assert domain.is_due(created + timedelta(minutes=5))

    def test_checked_domain_uses_last_checked(self):
        created = datetime(2026, 1, 1, 12, 0, 0)
        domain = MonitoredDomain(
            domain="a.com",
            check_interval=3600,
            created_at=created,
            last_checked=created + timedelta(hours=5)
        )

        assert not domain.is_due(created + timedelta(hours=5, minutes=59))
        assert domain.is_due(created + timedelta(hours=6))
