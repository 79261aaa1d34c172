"""
Cover image for a trip, from the Unsplash search API.

A list of progressively vaguer queries is tried in order; the first one with
any result wins and one of its top five photos is picked at random.  Without
an access key, or when every query comes back empty or fails, a static image
chosen by trip type is returned instead.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

import requests

log = logging.getLogger(__name__)

_SEARCH_URL = "https://api.unsplash.com/search/photos"

TOP_RESULTS = 5

DEFAULT_IMAGES = {
    "hiking": "https://images.unsplash.com/photo-1551632811-561732d1e306?w=1080",
    "cycling": "https://images.unsplash.com/photo-1541625602330-2277a4c46182?w=1080",
    "driving": "https://images.unsplash.com/photo-1469854523086-cc02fe5d8800?w=1080",
    "default": "https://images.unsplash.com/photo-1501785888041-af3ef285b470?w=1080",
}

ACTIVITY_TERMS = {
    "hiking": ["hiking", "trail", "mountains"],
    "cycling": ["cycling", "bike path", "countryside road"],
    "driving": ["road trip", "scenic drive", "highway"],
}

SCENIC_TERMS = ["landscape", "nature", "scenery"]


def default_image(trip_type: str) -> str:
    return DEFAULT_IMAGES.get(trip_type, DEFAULT_IMAGES["default"])


def build_queries(location_text: str, trip_type: str) -> List[str]:
    """Ordered, de-duplicated search queries from most to least specific."""
    location = (location_text or "").strip()
    parts = [p.strip() for p in location.split(",") if p.strip()]
    city = parts[0] if parts else ""
    country = parts[-1] if len(parts) > 1 else ""
    activities = ACTIVITY_TERMS.get(trip_type, ["travel", "outdoors"])
    activity = activities[0]

    candidates = []
    if location:
        candidates.append(f"{location} {activity}")
    if city:
        candidates.append(f"{city} {activity}")
    if country:
        candidates.append(f"{country} {activity}")
    if location:
        candidates.extend(f"{location} {term}" for term in SCENIC_TERMS)
    candidates.extend([location, city, country])
    candidates.extend(activities)

    queries: List[str] = []
    for q in candidates:
        if q and q not in queries:
            queries.append(q)
    return queries


def _search(query: str, api_key: str, timeout: float) -> list:
    resp = requests.get(
        _SEARCH_URL,
        params={
            "query": query,
            "per_page": TOP_RESULTS,
            "orientation": "landscape",
            "content_filter": "high",
            "order_by": "relevant",
        },
        headers={"Authorization": f"Client-ID {api_key}"},
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json().get("results") or []


def find_trip_image(
    location_text: str,
    trip_type: str,
    api_key: str,
    rng: Optional[random.Random] = None,
    timeout: float = 20,
) -> str:
    """Return an image URL for the trip; never raises."""
    if not api_key:
        log.info("No Unsplash key configured; using default %s image", trip_type)
        return default_image(trip_type)

    rng = rng or random.Random()
    for query in build_queries(location_text, trip_type):
        try:
            results = _search(query, api_key, timeout)
            if not results:
                continue
            pick = results[rng.randrange(min(TOP_RESULTS, len(results)))]
            url = (pick.get("urls") or {}).get("regular")
            photographer = (pick.get("user") or {}).get("name", "Unknown")
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as exc:
            log.warning("Unsplash search for %r failed: %s", query, exc)
            continue
        if url:
            log.debug("Using Unsplash image for %r by %s", query, photographer)
            return url

    log.info("No Unsplash results for %r; using default %s image", location_text, trip_type)
    return default_image(trip_type)
