"""
Trip planning pipeline.

Runs the provider adapters in a fixed order and turns their output into a
trip plan:

  1. Geocode start + end      → mandatory, both tried before failing
  2. Directions               → mandatory, no retry
  3. Points of interest       → optional, [] on failure
  4. Weather                  → optional, None on failure
  5. Cover image              → optional, static default on failure
  6. Distance / day reconciliation

Reconciliation is done by ``reconcile()`` and nowhere else.  It runs once
when the route is known (advisory: the user sees the adjustment and may still
change the number of days) and again in ``build_trip_record()`` right before
saving, which is the pass that decides what is persisted.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, Generator, List, Optional

from config import Settings, get_settings
from errors import LocationNotFoundError, TripPlannerError
from geo import LatLon, round1, route_distance_km
from TripPlanRequest import TripPlanRequest, parse_start_date

from agents.GeocodeAgent import Location, geocode
from agents.ImageAgent import find_trip_image
from agents.POIAgent import discover_points_of_interest
from agents.RouteAgent import request_directions
from agents.WeatherAgent import daily_forecasts, fetch_forecast, forecast_days

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Distance / day reconciliation
# ---------------------------------------------------------------------------

@dataclass
class AdjustmentNotice:
    original_days: int
    adjusted_days: int
    total_distance_km: float
    became_multi_day: bool

    @property
    def message(self) -> str:
        return (
            f"This trip is about {round1(self.total_distance_km)} km and needs at least "
            f"{self.adjusted_days} days; the plan was adjusted from {self.original_days}."
        )

    def to_dict(self) -> dict:
        return {
            "originalDays": self.original_days,
            "adjustedDays": self.adjusted_days,
            "totalDistance": round1(self.total_distance_km),
            "becameMultiDay": self.became_multi_day,
            "message": self.message,
        }


@dataclass
class Reconciliation:
    total_distance_km: float
    minimum_days: int
    effective_days: int
    daily_distances: List[Dict[str, Any]]
    notice: Optional[AdjustmentNotice] = None

    @property
    def adjusted(self) -> bool:
        return self.notice is not None


def calculate_minimum_days(total_distance_km: float, trip_type: str, max_distance_per_day: float) -> int:
    """Fewest days a trip can be done in. Only cycling trips are ever split."""
    if trip_type == "cycling" and max_distance_per_day > 0:
        return max(1, math.ceil(total_distance_km / max_distance_per_day))
    return 1


def split_daily_distances(total_distance_km: float, days: int) -> List[Dict[str, Any]]:
    """Even split of the total over *days*; no terrain or elevation weighting."""
    per_day = round1(total_distance_km / days)
    return [{"day": day, "distance": per_day} for day in range(1, days + 1)]


def reconcile(
    total_distance_km: float,
    trip_type: str,
    max_distance_per_day: float,
    requested_days: int,
    is_multi_day: bool = False,
) -> Reconciliation:
    """Reconcile the requested trip length with the per-day distance cap.

    Cycling trips are always stretched to the minimum feasible number of
    days, whatever their multi-day flag says.  Other trips keep the requested
    days only when multi-day, otherwise they are single-day.
    """
    requested_days = max(1, int(requested_days))
    minimum_days = calculate_minimum_days(total_distance_km, trip_type, max_distance_per_day)

    if trip_type == "cycling":
        effective_days = max(requested_days, minimum_days)
    else:
        effective_days = requested_days if is_multi_day else 1

    notice = None
    if effective_days > requested_days:
        notice = AdjustmentNotice(
            original_days=requested_days,
            adjusted_days=effective_days,
            total_distance_km=total_distance_km,
            became_multi_day=not is_multi_day and effective_days > 1,
        )

    return Reconciliation(
        total_distance_km=total_distance_km,
        minimum_days=minimum_days,
        effective_days=effective_days,
        daily_distances=split_daily_distances(total_distance_km, effective_days),
        notice=notice,
    )


# ---------------------------------------------------------------------------
# Plan result
# ---------------------------------------------------------------------------

@dataclass
class TripPlan:
    request: TripPlanRequest
    start: Location
    end: Location
    route: List[LatLon]
    total_distance_km: float
    reconciliation: Reconciliation
    alternative_count: int = 1
    points_of_interest: List[Dict[str, Any]] = field(default_factory=list)
    weather: Optional[Dict[str, Any]] = None
    daily_weather: List[Dict[str, Any]] = field(default_factory=list)
    image_url: str = ""

    @property
    def is_multi_day(self) -> bool:
        return self.request.is_multi_day or self.reconciliation.effective_days > 1

    def to_dict(self) -> Dict[str, Any]:
        rec = self.reconciliation
        return {
            "tripType": self.request.trip_type,
            "startLocation": self.start.to_dict(),
            "endLocation": self.end.to_dict(),
            "route": [list(p) for p in self.route],
            "alternativeCount": self.alternative_count,
            "totalDistance": round1(self.total_distance_km),
            "isCircular": self.request.is_circular,
            "isMultiDay": self.is_multi_day,
            "numberOfDays": rec.effective_days,
            "minimumDays": rec.minimum_days,
            "dailyDistances": rec.daily_distances,
            "adjustment": rec.notice.to_dict() if rec.notice else None,
            "pointsOfInterest": self.points_of_interest,
            "weather": self.daily_weather if self.weather is not None else None,
            "imageUrl": self.image_url,
        }


def _normalize_poi(poi: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": poi["id"],
        "name": poi["name"],
        "type": poi["type"],
        "location": list(poi["location"]),
        "description": poi.get("description") or "",
        "isDestination": bool(poi.get("isDestination")),
    }


def _point(location: Location) -> Dict[str, Any]:
    return {
        "type": "Point",
        "coordinates": [location.lon, location.lat],
        "city": location.city,
        "country": location.country,
    }


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TripPlanner:
    """Runs one planning request at a time against the configured providers."""

    def __init__(self, settings: Optional[Settings] = None, rng: Optional[random.Random] = None):
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

    # -- steps ---------------------------------------------------------------

    def _geocode_endpoints(self, request: TripPlanRequest) -> tuple[Location, Location]:
        s = self.settings
        start = geocode(request.start_location, user_agent=s.nominatim_user_agent, timeout=s.http_timeout)
        end = geocode(request.effective_end_location(), user_agent=s.nominatim_user_agent,
                      timeout=s.http_timeout)
        if start is None and end is None:
            raise LocationNotFoundError("both")
        if start is None:
            raise LocationNotFoundError("start")
        if end is None:
            raise LocationNotFoundError("end")
        return start, end

    def _steps(self, request: TripPlanRequest) -> Generator[Dict[str, Any], None, None]:
        s = self.settings
        request.validate()

        yield {"type": "progress", "agent": "Geocoder", "status": "running",
               "message": f"Looking up {request.start_location} and {request.effective_end_location()}..."}
        start, end = self._geocode_endpoints(request)
        yield {"type": "progress", "agent": "Geocoder", "status": "done",
               "message": f"Found {start.city or start.name} and {end.city or end.name}"}

        yield {"type": "progress", "agent": "Directions", "status": "running",
               "message": f"Planning {request.route_preference} {request.trip_type} route..."}
        round_trip_m = request.max_distance_per_day * 1000 if request.is_circular else None
        directions = request_directions(
            [start.coordinates, end.coordinates],
            profile=request.profile,
            preference=request.route_preference,
            api_key=s.ors_api_key,
            round_trip_length_m=round_trip_m,
            rng=self.rng,
            timeout=s.http_timeout,
        )
        route = directions.coordinates()
        total_km = route_distance_km(route)

        # Advisory pass: surfaced to the user before they decide to save.
        rec = reconcile(total_km, request.trip_type, request.max_distance_per_day,
                        request.number_of_days, is_multi_day=request.is_multi_day)
        if rec.notice:
            logger.warning("Day count adjusted from %d to %d for %.1f km %s trip",
                           rec.notice.original_days, rec.notice.adjusted_days,
                           total_km, request.trip_type)
        yield {"type": "progress", "agent": "Directions", "status": "done",
               "message": f"Route is {round1(total_km)} km over {rec.effective_days} day(s)",
               "adjustment": rec.notice.to_dict() if rec.notice else None}

        yield {"type": "progress", "agent": "PointsOfInterest", "status": "running",
               "message": "Searching for points of interest along the route..."}
        pois = discover_points_of_interest(route, request.trip_type,
                                           num_points=s.poi_checkpoints, timeout=s.http_timeout)
        yield {"type": "progress", "agent": "PointsOfInterest", "status": "done",
               "message": f"Found {len(pois)} points of interest"}

        yield {"type": "progress", "agent": "Weather", "status": "running",
               "message": f"Fetching the forecast for {start.city or start.name}..."}
        weather = fetch_forecast(start.lat, start.lon, s.weather_api_key, timeout=s.http_timeout)
        multi_day = request.is_multi_day or rec.effective_days > 1
        daily = []
        if weather is not None:
            try:
                daily = daily_forecasts(weather.get("list", []),
                                        forecast_days(request.trip_type, multi_day, rec.effective_days))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Withholding malformed forecast: %s", exc)
                weather, daily = None, []
        yield {"type": "progress", "agent": "Weather", "status": "done" if weather else "skipped",
               "message": f"{len(daily)} day(s) of forecast" if weather else "Forecast unavailable"}

        image_url = find_trip_image(request.effective_end_location(), request.trip_type,
                                    s.unsplash_access_key, rng=self.rng, timeout=s.http_timeout)

        plan = TripPlan(
            request=request,
            start=start,
            end=end,
            route=route,
            total_distance_km=total_km,
            reconciliation=rec,
            alternative_count=directions.alternative_count,
            points_of_interest=pois,
            weather=weather,
            daily_weather=daily,
            image_url=image_url,
        )
        logger.info("Planned %.1f km %s trip in %d day(s)", total_km, request.trip_type, rec.effective_days)
        yield {"type": "complete", "agent": "Orchestrator", "status": "complete",
               "message": "Trip plan ready", "plan": plan}

    # -- public API ----------------------------------------------------------

    def plan_trip(self, request: TripPlanRequest) -> TripPlan:
        """Plan a trip, raising on geocoding/directions failures."""
        for event in self._steps(request):
            if event["type"] == "complete":
                return event["plan"]
            logger.debug("%s: %s", event["agent"], event["message"])
        raise TripPlannerError("Planning finished without a result")

    def plan_trip_stream(self, request: TripPlanRequest) -> Generator[Dict[str, Any], None, None]:
        """Generator that yields progress events while planning."""
        try:
            for event in self._steps(request):
                if event["type"] == "complete":
                    event = {**event, "plan": event["plan"].to_dict()}
                yield event
        except TripPlannerError as exc:
            yield {"type": "error", "agent": "Orchestrator", "status": "error",
                   "error": type(exc).__name__, "message": str(exc)}

    def build_trip_record(
        self,
        plan: TripPlan,
        number_of_days: Optional[int] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        start_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Assemble the document sent to the trip store.

        Reconciles again with the days the user ended up choosing; this is the
        pass that decides what gets saved.
        """
        request = plan.request
        requested_days = number_of_days if number_of_days is not None else request.number_of_days
        rec = reconcile(plan.total_distance_km, request.trip_type, request.max_distance_per_day,
                        requested_days, is_multi_day=request.is_multi_day)
        if rec.notice:
            logger.warning("Saving with %d day(s) instead of the requested %d",
                           rec.effective_days, requested_days)

        day_one = parse_start_date(start_date) if start_date else request.trip_start_date()
        starts_at = datetime.combine(day_one, time.min, tzinfo=timezone.utc)
        ends_at = starts_at + timedelta(days=rec.effective_days)
        total = round1(plan.total_distance_km)

        return {
            "name": name or request.default_name(),
            "description": description or request.description
            or f"{total} km {request.trip_type} trip over {rec.effective_days} day(s)",
            "type": request.trip_type,
            "startLocation": _point(plan.start),
            "endLocation": _point(plan.end),
            "route": {"type": "LineString", "coordinates": [list(p) for p in plan.route]},
            "totalDistance": total,
            "isCircular": request.is_circular,
            "isMultiDay": request.is_multi_day or rec.effective_days > 1,
            "maxDistancePerDay": request.max_distance_per_day,
            "numberOfDays": rec.effective_days,
            "dailyDistances": rec.daily_distances,
            "pointsOfInterest": [_normalize_poi(p) for p in plan.points_of_interest],
            "imageUrl": plan.image_url,
            "startDate": starts_at.isoformat(),
            "endDate": ends_at.isoformat(),
        }
