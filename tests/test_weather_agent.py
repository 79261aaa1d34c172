"""
Unit tests for agents/WeatherAgent.py
"""
from unittest.mock import patch

import requests

from conftest import make_response
from agents.WeatherAgent import daily_forecasts, fetch_forecast, forecast_days

# 2026-06-01 00:00 UTC
DAY_ONE = 1780272000


def _entries(days, per_day=8):
    step = 86400 // per_day
    return [{"dt": DAY_ONE + i * step, "main": {"temp": float(i)}} for i in range(days * per_day)]


class TestFetchForecast:
    def test_returns_payload(self):
        payload = {"list": _entries(1)}
        with patch("agents.WeatherAgent.requests.get", return_value=make_response(payload)) as mock_get:
            assert fetch_forecast(48.85, 2.35, "key") == payload

        params = mock_get.call_args.kwargs["params"]
        assert params["lat"] == 48.85
        assert params["appid"] == "key"
        assert params["units"] == "metric"

    def test_no_key_skips_request(self):
        with patch("agents.WeatherAgent.requests.get") as mock_get:
            assert fetch_forecast(48.85, 2.35, "") is None
        mock_get.assert_not_called()

    def test_network_failure_returns_none(self):
        with patch("agents.WeatherAgent.requests.get", side_effect=requests.ConnectionError("down")):
            assert fetch_forecast(48.85, 2.35, "key") is None

    def test_http_error_returns_none(self):
        with patch("agents.WeatherAgent.requests.get", return_value=make_response({}, status_code=401)):
            assert fetch_forecast(48.85, 2.35, "bad-key") is None


class TestDailyForecasts:
    def test_first_entry_per_day(self):
        daily = daily_forecasts(_entries(3), days=3)
        assert [d["dt"] for d in daily] == [DAY_ONE, DAY_ONE + 86400, DAY_ONE + 2 * 86400]

    def test_limited_to_requested_days(self):
        assert len(daily_forecasts(_entries(5), days=3)) == 3

    def test_fewer_days_available(self):
        assert len(daily_forecasts(_entries(2), days=7)) == 2

    def test_empty(self):
        assert daily_forecasts([], days=3) == []
        assert daily_forecasts(None) == []


class TestForecastDays:
    def test_multi_day_cycling_matches_trip_length(self):
        assert forecast_days("cycling", True, 5) == 5

    def test_capped_at_a_week(self):
        assert forecast_days("cycling", True, 12) == 7

    def test_single_day_cycling(self):
        assert forecast_days("cycling", False, 1) == 3

    def test_other_trip_types(self):
        assert forecast_days("hiking", False, 4) == 3
        assert forecast_days("driving", False, 1) == 3
