from __future__ import annotations

from typing import List, Sequence, Tuple
import math

import polyline

LatLon = Tuple[float, float]

# Mean earth radius, spherical model.
EARTH_RADIUS_M = 6371000.0


def haversine_m(a_lat: float, a_lon: float, b_lat: float, b_lon: float) -> float:
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lon - a_lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(s)))


def route_distance_km(route: Sequence[Sequence[float]]) -> float:
    """Total length of a (lat, lon) polyline in kilometres, unrounded."""
    if not route or len(route) < 2:
        return 0.0
    total = 0.0
    for i in range(1, len(route)):
        a_lat, a_lon = route[i - 1][0], route[i - 1][1]
        b_lat, b_lon = route[i][0], route[i][1]
        total += haversine_m(a_lat, a_lon, b_lat, b_lon)
    return total / 1000.0


def decode_polyline(encoded: str) -> List[LatLon]:
    """Decode a precision-5 encoded polyline into (lat, lon) pairs."""
    return [(float(lat), float(lon)) for lat, lon in polyline.decode(encoded, 5)]


def route_checkpoints(route: Sequence[LatLon], num_points: int = 3) -> List[LatLon]:
    """Evenly spaced sample points along a route, by vertex index.

    The endpoints themselves are never picked; a route with fewer than two
    points yields its only point (or nothing).
    """
    if len(route) < 2:
        return list(route[:1])

    checkpoints = []
    step = len(route) / (num_points + 1)
    for i in range(1, num_points + 1):
        index = math.floor(step * i)
        if index < len(route):
            checkpoints.append(tuple(route[index]))
    return checkpoints


def round1(value: float) -> float:
    """Round to one decimal place for presentation and persistence."""
    return round(value, 1)
