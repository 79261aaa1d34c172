"""OpenWeatherMap 5-day / 3-hour forecast for a coordinate."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger(__name__)

_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"

# The free forecast only reaches this far ahead.
MAX_FORECAST_DAYS = 7


def fetch_forecast(lat: float, lon: float, api_key: str, timeout: float = 20) -> Optional[Dict[str, Any]]:
    """Return the raw forecast payload, or None when it cannot be fetched."""
    if not api_key:
        log.warning("No weather API key configured; skipping forecast")
        return None
    params = {"lat": lat, "lon": lon, "appid": api_key, "units": "metric"}
    try:
        resp = requests.get(_FORECAST_URL, params=params, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as exc:
        log.warning("Weather forecast for (%s, %s) failed: %s", lat, lon, exc)
        return None


def daily_forecasts(entries: List[Dict[str, Any]], days: int = 3) -> List[Dict[str, Any]]:
    """Keep the first forecast entry seen for each calendar date (UTC)."""
    by_date: Dict[str, Dict[str, Any]] = {}
    for item in entries or []:
        day = datetime.fromtimestamp(item["dt"], tz=timezone.utc).date().isoformat()
        by_date.setdefault(day, item)
    return list(by_date.values())[:days]


def forecast_days(trip_type: str, is_multi_day: bool, number_of_days: int) -> int:
    """How many days of forecast are worth showing for a trip."""
    if trip_type == "cycling" and is_multi_day and number_of_days > 0:
        return min(number_of_days, MAX_FORECAST_DAYS)
    return 3
