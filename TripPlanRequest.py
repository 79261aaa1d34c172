from dataclasses import dataclass
from datetime import date, datetime

from dataclasses_json import dataclass_json

from errors import PlanRequestError

TRIP_TYPES = ("hiking", "cycling", "driving")
ROUTE_PREFERENCES = ("recommended", "shortest", "fastest")

# Directions-provider profile names, also accepted as trip types on input.
PROFILES = {
    "hiking": "foot-hiking",
    "cycling": "cycling-regular",
    "driving": "driving-car",
}
_PROFILE_TO_TYPE = {v: k for k, v in PROFILES.items()}


def parse_start_date(value: str) -> date:
    """Parse a YYYY-MM-DD date (a full ISO timestamp is also accepted)."""
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        raise PlanRequestError(f"Invalid start date: {value!r}")


def normalize_trip_type(trip_type: str) -> str:
    """Map a provider profile ("cycling-regular") or alias to its trip type."""
    value = (trip_type or "").strip().lower()
    if value == "bicycling":
        return "cycling"
    return _PROFILE_TO_TYPE.get(value, value)


@dataclass_json
@dataclass
class TripPlanRequest:
    trip_type: str
    start_location: str
    end_location: str = ""
    route_preference: str = "recommended"
    is_circular: bool = False
    is_multi_day: bool = False
    max_distance_per_day: float = 50.0
    min_distance_per_day: float = 5.0
    number_of_days: int = 1
    name: str = ""
    description: str = ""
    start_date: str = ""  # YYYY-MM-DD, defaults to today

    def __post_init__(self):
        self.trip_type = normalize_trip_type(self.trip_type)
        # Flags only mean something for the trip type they belong to.
        if self.trip_type != "hiking":
            self.is_circular = False
        if self.trip_type != "cycling":
            self.is_multi_day = False

    @property
    def profile(self) -> str:
        return PROFILES[self.trip_type]

    def effective_end_location(self) -> str:
        """The end query actually geocoded; a circular hike ends where it starts."""
        if self.is_circular:
            return self.start_location
        return self.end_location

    def trip_start_date(self) -> date:
        if self.start_date:
            return parse_start_date(self.start_date)
        return date.today()

    def validate(self) -> "TripPlanRequest":
        """Raise PlanRequestError on the first invalid field; return self."""
        if self.trip_type not in TRIP_TYPES:
            raise PlanRequestError(f"Unsupported trip type: {self.trip_type!r}")
        if self.route_preference not in ROUTE_PREFERENCES:
            raise PlanRequestError(f"Unsupported route preference: {self.route_preference!r}")
        if not self.start_location or not self.start_location.strip():
            raise PlanRequestError("Start location is required")
        if not self.is_circular and not (self.end_location or "").strip():
            raise PlanRequestError("End location is required unless the trip is circular")
        if self.max_distance_per_day <= 0:
            raise PlanRequestError("Maximum distance per day must be positive")
        if self.trip_type == "hiking" and self.min_distance_per_day <= 0:
            raise PlanRequestError("Minimum distance per day must be positive")
        if self.number_of_days < 1:
            raise PlanRequestError("Number of days must be at least 1")
        if self.start_date:
            parse_start_date(self.start_date)
        return self

    def default_name(self) -> str:
        end = self.effective_end_location()
        return self.name or f"{self.trip_type.title()} trip from {self.start_location} to {end}"
