"""
OpenRouteService directions for hiking, cycling and driving trips.

Requests a route between two coordinates, or a round trip of a given length
from a single coordinate, and returns the provider's compact polyline geometry.

Usage (from planning_agent):
    from agents.RouteAgent import request_directions

    result = request_directions([start, end], "cycling-regular", "recommended", api_key)
    route = result.coordinates()   # [(lat, lon), ...]

When the provider offers several candidate routes, one of them is picked at
random with the caller's RNG; it is deliberately not the first or the shortest.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from errors import NoRouteFoundError, ProviderError
from geo import LatLon, decode_polyline

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_DIRECTIONS_URL = "https://api.openrouteservice.org/v2/directions/{profile}"

# Waypoints the provider scatters around a round trip.
ROUND_TRIP_POINTS = 3


@dataclass
class DirectionsResult:
    geometry: str  # encoded polyline, precision 5
    alternative_count: int
    distance_m: Optional[float] = None

    def coordinates(self) -> List[LatLon]:
        return decode_polyline(self.geometry)


def _build_payload(
    coordinates: Sequence[Sequence[float]],
    preference: str,
    round_trip_length_m: Optional[float],
    rng: random.Random,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "preference": preference,
        "instructions": False,
    }
    if round_trip_length_m:
        # Round trips are requested from the start coordinate alone.
        payload["coordinates"] = [list(coordinates[0])]
        payload["options"] = {
            "round_trip": {
                "length": round_trip_length_m,
                "points": ROUND_TRIP_POINTS,
                "seed": rng.randint(0, 99),
            }
        }
    else:
        payload["coordinates"] = [list(c) for c in coordinates]
    return payload


def select_route(routes: List[Dict[str, Any]], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Pick one candidate route uniformly at random."""
    if not routes:
        raise NoRouteFoundError()
    rng = rng or random.Random()
    return routes[rng.randrange(len(routes))]


def request_directions(
    coordinates: Sequence[Sequence[float]],
    profile: str,
    preference: str,
    api_key: str,
    round_trip_length_m: Optional[float] = None,
    rng: Optional[random.Random] = None,
    timeout: float = 20,
) -> DirectionsResult:
    """Ask OpenRouteService for a route.

    Args:
        coordinates: (lon, lat) pairs, start first. Only the first is used for
            round trips.
        profile: Provider profile, e.g. "foot-hiking".
        preference: "recommended", "shortest" or "fastest".
        api_key: OpenRouteService key.
        round_trip_length_m: Desired loop length; turns the request into a
            round trip from the start coordinate.
        rng: Randomness source for the round-trip seed and route choice.

    Raises:
        NoRouteFoundError: the provider returned no routes.
        ProviderError: the request itself failed.
    """
    rng = rng or random.Random()
    payload = _build_payload(coordinates, preference, round_trip_length_m, rng)
    url = _DIRECTIONS_URL.format(profile=profile)
    headers = {"Authorization": api_key, "Content-Type": "application/json"}

    log.debug("Requesting %s directions: %s", profile, payload)
    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as exc:
        message = _provider_message(exc.response)
        raise ProviderError(f"Directions request failed: {message}") from exc
    except (requests.RequestException, ValueError) as exc:
        raise ProviderError(f"Directions request failed: {exc}") from exc

    if not isinstance(data, dict):
        raise ProviderError("Directions request failed: unexpected response body")
    routes = data.get("routes") or []
    if not isinstance(routes, list):
        raise ProviderError("Directions request failed: unexpected response body")
    if not routes:
        raise NoRouteFoundError()

    chosen = select_route(routes, rng)
    geometry = chosen.get("geometry") if isinstance(chosen, dict) else None
    if not isinstance(geometry, str) or not geometry:
        raise ProviderError("Directions request failed: route has no geometry")
    try:
        decode_polyline(geometry)
    except (ValueError, IndexError, TypeError) as exc:
        raise ProviderError(f"Directions request failed: undecodable geometry ({exc})") from exc

    log.info("Directions returned %d route(s) for %s", len(routes), profile)
    return DirectionsResult(
        geometry=geometry,
        alternative_count=len(routes),
        distance_m=(chosen.get("summary") or {}).get("distance"),
    )


def _provider_message(response: Optional[requests.Response]) -> str:
    if response is None:
        return "no response"
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}"
    return str(error or f"HTTP {response.status_code}")
