from datetime import UTC, datetime

import pytest

from news_engine.domain.schedule import is_due, normalize_schedule_date, parse_utc


class TestNormalizeScheduleDate:
    def test_offset_zone(self):
        assert normalize_schedule_date("2026-05-01T09:30", "+02:00") == "2026-05-01T07:30:00+00:00"

    def test_negative_offset_without_colon(self):
        assert normalize_schedule_date("2026-05-01T09:30", "-0500") == "2026-05-01T14:30:00+00:00"

    def test_iana_zone(self):
        # Paris is on summer time (UTC+2) in May
        assert (
            normalize_schedule_date("2026-05-01 09:30:00", "Europe/Paris")
            == "2026-05-01T07:30:00+00:00"
        )

    def test_no_zone_is_utc(self):
        assert normalize_schedule_date("2026-05-01T09:30") == "2026-05-01T09:30:00+00:00"

    @pytest.mark.parametrize("zone", ["Z", "UTC", "utc"])
    def test_utc_aliases(self, zone):
        assert normalize_schedule_date("2026-05-01T09:30", zone) == "2026-05-01T09:30:00+00:00"

    def test_explicit_offset_wins_over_zone(self):
        assert (
            normalize_schedule_date("2026-05-01T09:30:00-05:00", "+02:00")
            == "2026-05-01T14:30:00+00:00"
        )

    def test_microseconds_dropped(self):
        assert normalize_schedule_date("2026-05-01T09:30:00.123456") == "2026-05-01T09:30:00+00:00"

    @pytest.mark.parametrize("value", ["", "   ", "tomorrow", "2026-13-01T00:00"])
    def test_malformed_dates(self, value):
        with pytest.raises(ValueError):
            normalize_schedule_date(value)

    def test_unknown_zone(self):
        with pytest.raises(ValueError, match="time zone"):
            normalize_schedule_date("2026-05-01T09:30", "Mars/Olympus")


class TestDue:
    NOW = datetime(2026, 5, 1, 8, 0, tzinfo=UTC)

    def test_parse_naive_as_utc(self):
        assert parse_utc("2026-05-01T07:30:00") == datetime(2026, 5, 1, 7, 30, tzinfo=UTC)

    def test_past_is_due(self):
        assert is_due("2026-05-01T07:30:00+00:00", self.NOW)

    def test_exact_instant_is_due(self):
        assert is_due("2026-05-01T08:00:00+00:00", self.NOW)

    def test_future_is_not_due(self):
        assert not is_due("2026-05-01T10:00:00+02:00", datetime(2026, 5, 1, 7, 59, tzinfo=UTC))

    def test_missing_is_not_due(self):
        assert not is_due(None, self.NOW)
