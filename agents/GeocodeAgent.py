"""
Nominatim (OpenStreetMap) geocoding.

Resolves a free-text place name to the provider's single best match.  There is
no disambiguation: the first result is the answer, and no result (or a failed
request) is reported as ``None`` so the planner can say which endpoint failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

log = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"

# Address keys tried in order when picking a "city" for the stored trip.
_CITY_KEYS = ("city", "town", "village", "municipality", "hamlet", "county", "state")


@dataclass(frozen=True)
class Location:
    name: str
    raw_query: str
    coordinates: Tuple[float, float]  # (lon, lat)
    city: str = ""
    country: str = ""

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "rawQuery": self.raw_query,
            "coordinates": [self.lon, self.lat],
            "city": self.city,
            "country": self.country,
        }


def _city_and_country(result: Dict[str, Any], query: str) -> tuple[str, str]:
    address = result.get("address") or {}
    city = next((address[k] for k in _CITY_KEYS if address.get(k)), "")
    country = address.get("country", "")

    # Fall back to the comma-separated display name: "Paris, Île-de-France, France"
    parts = [p.strip() for p in result.get("display_name", "").split(",") if p.strip()]
    if not city:
        city = parts[0] if parts else query.split(",")[0].strip()
    if not country:
        country = parts[-1] if len(parts) > 1 else ""
    return city, country


def geocode(
    query: str,
    user_agent: str = "outdoor-trip-planner/1.0",
    timeout: float = 20,
) -> Optional[Location]:
    """Return the first Nominatim match for *query*, or None."""
    params = {"q": query, "format": "json", "limit": 1, "addressdetails": 1}
    headers = {"User-Agent": user_agent}
    try:
        resp = requests.get(NOMINATIM_URL, params=params, headers=headers, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        log.error("Geocoding request for %r failed: %s", query, exc)
        return None

    if not isinstance(data, list) or not data:
        log.warning("No geocoding results for %r", query)
        return None

    top = data[0]
    try:
        lon, lat = float(top["lon"]), float(top["lat"])
    except (KeyError, TypeError, ValueError):
        log.warning("Geocoding result for %r has no usable coordinates", query)
        return None

    city, country = _city_and_country(top, query)
    log.debug("Geocoded %r to (%s, %s)", query, lat, lon)
    return Location(
        name=top.get("display_name", query),
        raw_query=query,
        coordinates=(lon, lat),
        city=city,
        country=country,
    )
