"""Client for the trip persistence API.

Payloads are checked locally before anything is sent; the server validates
again on its own, so passing here does not guarantee the save succeeds.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from config import Settings, get_settings
from errors import TripStoreError, TripValidationError

logger = logging.getLogger(__name__)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _check_location(trip: Dict[str, Any], key: str, label: str) -> None:
    loc = trip.get(key) or {}
    coords = loc.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) != 2:
        raise TripValidationError(f"{key}.coordinates", f"Invalid {label} location coordinates")
    if not _non_empty_str(loc.get("city")):
        raise TripValidationError(f"{key}.city", f"{label.capitalize()} location city is required")
    if not _non_empty_str(loc.get("country")):
        raise TripValidationError(f"{key}.country", f"{label.capitalize()} location country is required")


def normalize_points_of_interest(pois: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Check each POI and return clean copies."""
    clean = []
    for poi in pois:
        if not _non_empty_str(poi.get("id")):
            raise TripValidationError("pointsOfInterest.id", "Each POI must have a valid string ID")
        if not _non_empty_str(poi.get("name")):
            raise TripValidationError("pointsOfInterest.name", "Each POI must have a valid name")
        if not _non_empty_str(poi.get("type")):
            raise TripValidationError("pointsOfInterest.type", "Each POI must have a valid type")
        location = poi.get("location")
        if not isinstance(location, (list, tuple)) or len(location) != 2:
            raise TripValidationError("pointsOfInterest.location",
                                      "Each POI must have a valid location [lat, lng]")
        clean.append({
            "id": poi["id"],
            "name": poi["name"],
            "type": poi["type"],
            "location": list(location),
            "description": poi.get("description") or "",
            "isDestination": bool(poi.get("isDestination")),
        })
    return clean


def validate_trip_payload(trip: Dict[str, Any]) -> Dict[str, Any]:
    """Return a cleaned copy of *trip* or raise TripValidationError."""
    if not _non_empty_str(trip.get("name")) or not _non_empty_str(trip.get("type")):
        raise TripValidationError("name", "Missing required trip data: name and type are required")

    _check_location(trip, "startLocation", "start")
    _check_location(trip, "endLocation", "end")

    route = trip.get("route") or {}
    if not isinstance(route.get("coordinates"), list):
        raise TripValidationError("route.coordinates", "Invalid route coordinates")

    if not trip.get("startDate") or not trip.get("endDate"):
        raise TripValidationError("startDate", "Start and end dates are required")

    if not _non_empty_str(trip.get("description")):
        raise TripValidationError("description", "Trip description is required")

    cleaned = dict(trip)
    if isinstance(trip.get("pointsOfInterest"), list):
        cleaned["pointsOfInterest"] = normalize_points_of_interest(trip["pointsOfInterest"])
    return cleaned


class TripStoreClient:
    """Thin wrapper over the /trips endpoints, authenticated with a bearer token."""

    def __init__(self, base_url: str, token: str, http: Optional[httpx.Client] = None,
                 timeout: float = 20):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.http = http or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, token: str, settings: Optional[Settings] = None, **kwargs) -> "TripStoreClient":
        settings = settings or get_settings()
        return cls(settings.trip_api_url, token, timeout=settings.http_timeout, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, action: str, **kwargs) -> Any:
        try:
            resp = self.http.request(method, f"{self.base_url}{path}", headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Trip API %s %s failed: %s", method, path, exc)
            raise TripStoreError(f"Failed to {action}: {exc}") from exc

        if resp.status_code >= 400:
            raise self._error(resp, action)
        return resp.json()

    @staticmethod
    def _error(resp: httpx.Response, action: str) -> TripStoreError:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        errors = body.get("errors") or {}
        if errors:
            detail = ", ".join(f"{field}: {msg}" for field, msg in errors.items())
        else:
            detail = body.get("message") or body.get("detail") or resp.reason_phrase or "Server error"
        logger.error("Trip API error %s: %s", resp.status_code, detail)
        return TripStoreError(f"Failed to {action}: {detail}", status_code=resp.status_code, errors=errors)

    def save(self, trip: Dict[str, Any]) -> Dict[str, Any]:
        payload = validate_trip_payload(trip)
        saved = self._request("POST", "/trips", "save trip", json=payload)
        logger.info("Trip saved with id %s", saved.get("id"))
        return saved

    def list(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/trips", "fetch trips")

    def get(self, trip_id: str) -> Dict[str, Any]:
        """Full trip plus a fresh forecast: ``{"trip": ..., "weather": ...}``."""
        return self._request("GET", f"/trips/{trip_id}", "fetch trip details")

    def delete(self, trip_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/trips/{trip_id}", "delete trip")
