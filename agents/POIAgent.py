"""
Points of interest along a route, from the Overpass API (OpenStreetMap).

A few checkpoints are sampled along the route and each is searched with a tag
filter suited to the trip type; the destination gets its own search.  Results
are deduplicated by name and location rounded to three decimals, first
occurrence wins.  A failing search is logged and skipped; it never aborts the
others.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from geo import LatLon, route_checkpoints

log = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

CHECKPOINT_LIMIT = 4
DESTINATION_LIMIT = 5

# Transport failures plus bodies that are not the expected shape.
_SEARCH_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError, AttributeError)

# (key, value or None for "any", radius in metres)
TagFilter = Tuple[str, Optional[str], int]

_COMMON: List[TagFilter] = [
    ("tourism", None, 10000),
    ("historic", None, 10000),
]

ROUTE_FILTERS: Dict[str, List[TagFilter]] = {
    "hiking": _COMMON + [
        ("natural", "peak", 15000),
        ("natural", "spring", 10000),
        ("natural", "water", 10000),
        ("tourism", "viewpoint", 15000),
        ("tourism", "wilderness_hut", 15000),
        ("amenity", "shelter", 10000),
        ("leisure", "nature_reserve", 15000),
    ],
    "cycling": _COMMON + [
        ("shop", "bicycle", 10000),
        ("amenity", "bicycle_rental", 10000),
        ("amenity", "bicycle_repair_station", 10000),
        ("amenity", "cafe", 10000),
        ("amenity", "drinking_water", 10000),
        ("amenity", "shelter", 10000),
        ("tourism", "picnic_site", 10000),
    ],
    "driving": _COMMON + [
        ("amenity", "restaurant", 10000),
        ("amenity", "cafe", 10000),
        ("amenity", "hotel", 10000),
        ("amenity", "fuel", 10000),
        ("leisure", "park", 10000),
    ],
}

DESTINATION_FILTERS: Dict[str, List[TagFilter]] = {
    "hiking": _COMMON + [
        ("natural", "peak", 15000),
        ("tourism", "viewpoint", 15000),
        ("amenity", "restaurant", 10000),
        ("amenity", "cafe", 10000),
    ],
    "cycling": _COMMON + [
        ("amenity", "restaurant", 10000),
        ("amenity", "cafe", 10000),
        ("amenity", "hotel", 10000),
        ("shop", "bicycle", 10000),
    ],
    "driving": _COMMON + [
        ("amenity", "restaurant", 15000),
        ("amenity", "cafe", 15000),
        ("amenity", "hotel", 15000),
    ],
}

# Category rules, first match wins. "*" copies the tag value itself.
_ROUTE_CATEGORIES: Dict[str, List[Tuple[str, str, str]]] = {
    "hiking": [
        ("natural", "peak", "Mountain Peak"),
        ("natural", "water", "Water Source"),
        ("natural", "spring", "Spring"),
        ("tourism", "viewpoint", "Viewpoint"),
        ("tourism", "wilderness_hut", "Hut"),
        ("amenity", "shelter", "Shelter"),
        ("leisure", "nature_reserve", "Nature Reserve"),
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
    ],
    "cycling": [
        ("shop", "bicycle", "Bike Shop"),
        ("amenity", "bicycle_rental", "Bike Rental"),
        ("amenity", "bicycle_repair_station", "Bike Repair"),
        ("amenity", "cafe", "Cafe"),
        ("amenity", "drinking_water", "Water Source"),
        ("amenity", "shelter", "Rest Area"),
        ("tourism", "picnic_site", "Picnic Area"),
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
    ],
    "driving": [
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
        ("amenity", "restaurant", "Restaurant"),
        ("amenity", "cafe", "Cafe"),
        ("amenity", "hotel", "Hotel"),
        ("amenity", "fuel", "Gas Station"),
        ("leisure", "park", "Park"),
    ],
}

_DESTINATION_CATEGORIES: Dict[str, List[Tuple[str, str, str]]] = {
    "hiking": [
        ("natural", "peak", "Mountain Peak"),
        ("tourism", "viewpoint", "Viewpoint"),
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
        ("amenity", "restaurant", "Restaurant"),
        ("amenity", "cafe", "Cafe"),
    ],
    "cycling": [
        ("shop", "bicycle", "Bike Shop"),
        ("amenity", "restaurant", "Restaurant"),
        ("amenity", "cafe", "Cafe"),
        ("amenity", "hotel", "Hotel"),
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
    ],
    "driving": [
        ("tourism", "*", ""),
        ("historic", "*", "Historic Site"),
        ("amenity", "restaurant", "Restaurant"),
        ("amenity", "cafe", "Cafe"),
        ("amenity", "hotel", "Hotel"),
    ],
}


# ---------------------------------------------------------------------------
# Query building / parsing
# ---------------------------------------------------------------------------

def build_query(lat: float, lon: float, filters: Sequence[TagFilter]) -> str:
    parts = []
    for key, value, radius in filters:
        selector = f'["{key}"="{value}"]' if value else f'["{key}"]'
        parts.append(f"node{selector}(around:{radius},{lat},{lon});")
    body = "\n".join(parts)
    return f"""
[out:json];
(
{body}
);
out body;
"""


def categorize(tags: Dict[str, str], rules: Sequence[Tuple[str, str, str]]) -> str:
    for key, value, label in rules:
        tag = tags.get(key)
        if not tag:
            continue
        if value == "*":
            return tag
        if tag == value:
            return label
    return "Attraction"


def dedupe_key(poi: Dict[str, Any]) -> Tuple[str, float, float]:
    lat, lon = poi["location"]
    return (poi["name"], round(lat, 3), round(lon, 3))


def _overpass(query: str, timeout: float) -> List[Dict[str, Any]]:
    resp = requests.post(OVERPASS_URL, data={"data": query}, timeout=timeout)
    resp.raise_for_status()
    return resp.json().get("elements", [])


def _to_poi(element: Dict[str, Any], index: int, prefix: str, category: str,
            name: str, is_destination: bool) -> Dict[str, Any]:
    tags = element["tags"]
    return {
        # Unique within this planning run only.
        "id": f"{prefix}_{int(time.time() * 1000)}_{element.get('id')}_{index}",
        "name": name,
        "type": category,
        "location": [float(element["lat"]), float(element["lon"])],
        "description": tags.get("description", ""),
        "isDestination": is_destination,
    }


def _checkpoint_pois(elements: List[Dict[str, Any]], trip_type: str) -> List[Dict[str, Any]]:
    rules = _ROUTE_CATEGORIES[trip_type]
    out = []
    for index, el in enumerate(elements):
        tags = el.get("tags")
        if not tags or "lat" not in el or "lon" not in el:
            continue
        if not (tags.get("name") or tags.get("tourism") or tags.get("natural") or tags.get("historic")):
            continue
        out.append(_to_poi(el, index, "r", categorize(tags, rules),
                           tags.get("name") or "Unnamed Attraction", False))
    return out[:CHECKPOINT_LIMIT]


def _destination_pois(elements: List[Dict[str, Any]], trip_type: str) -> List[Dict[str, Any]]:
    rules = _DESTINATION_CATEGORIES[trip_type]
    out = []
    for index, el in enumerate(elements):
        tags = el.get("tags") or {}
        if not tags.get("name") or "lat" not in el or "lon" not in el:
            continue
        out.append(_to_poi(el, index, "d", categorize(tags, rules), tags["name"], True))
    return out[:DESTINATION_LIMIT]


# ---------------------------------------------------------------------------
# Core public API
# ---------------------------------------------------------------------------

def discover_points_of_interest(
    route: Sequence[LatLon],
    trip_type: str,
    num_points: int = 3,
    timeout: float = 30,
) -> List[Dict[str, Any]]:
    """Search around route checkpoints and the destination.

    Returns at most ``num_points * 4 + 5`` POIs, deduplicated.  Unsupported
    trip types and empty routes yield an empty list.
    """
    if trip_type not in ROUTE_FILTERS or not route:
        return []

    seen: set = set()
    pois: List[Dict[str, Any]] = []

    def _add(batch: List[Dict[str, Any]]) -> None:
        for poi in batch:
            key = dedupe_key(poi)
            if key not in seen:
                seen.add(key)
                pois.append(poi)

    for lat, lon in route_checkpoints(route, num_points):
        try:
            elements = _overpass(build_query(lat, lon, ROUTE_FILTERS[trip_type]), timeout)
            found = _checkpoint_pois(elements, trip_type)
        except _SEARCH_ERRORS as exc:
            log.warning("POI search around (%s, %s) failed: %s", lat, lon, exc)
            continue
        _add(found)

    dest_lat, dest_lon = route[-1][0], route[-1][1]
    try:
        elements = _overpass(build_query(dest_lat, dest_lon, DESTINATION_FILTERS[trip_type]), timeout)
        found = _destination_pois(elements, trip_type)
    except _SEARCH_ERRORS as exc:
        found = []
        log.warning("Destination POI search failed: %s", exc)
    _add(found)

    log.info("Found %d points of interest for %s trip", len(pois), trip_type)
    return pois
