import os
import random
import sys
import tempfile

import polyline
import pytest

# Project root, so top-level modules and the agents package import by name.
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

# Settings are resolved once per process; pin them before anything reads them.
_tmp_dir = tempfile.mkdtemp(prefix="trip-planner-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp_dir, "trips.db")
os.environ["SECRET_KEY"] = "test-secret"
for _key in ("ORS_API_KEY", "OPENWEATHERMAP_API_KEY", "UNSPLASH_ACCESS_KEY"):
    os.environ[_key] = ""

from config import Settings  # noqa: E402
from TripPlanRequest import TripPlanRequest  # noqa: E402
from agents.GeocodeAgent import Location  # noqa: E402


# Paris -> a bit north-east, as (lat, lon)
ROUTE = [(48.8566, 2.3522), (48.8700, 2.3800), (48.9000, 2.4200), (48.9300, 2.4600), (48.9500, 2.5000)]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def settings():
    return Settings(
        ors_api_key="ors-key",
        weather_api_key="weather-key",
        unsplash_access_key="",
        database_url=os.environ["DATABASE_URL"],
    )


@pytest.fixture
def route():
    return list(ROUTE)


@pytest.fixture
def encoded_route():
    return polyline.encode(ROUTE, 5)


@pytest.fixture
def paris():
    return Location(name="Paris, Île-de-France, France", raw_query="Paris, France",
                    coordinates=(2.3522, 48.8566), city="Paris", country="France")


@pytest.fixture
def lyon():
    return Location(name="Lyon, Auvergne-Rhône-Alpes, France", raw_query="Lyon, France",
                    coordinates=(4.8357, 45.7640), city="Lyon", country="France")


@pytest.fixture
def cycling_request():
    return TripPlanRequest(
        trip_type="cycling",
        start_location="Paris, France",
        end_location="Lyon, France",
        max_distance_per_day=50,
        number_of_days=1,
        start_date="2026-06-01",
    )


@pytest.fixture
def hiking_request():
    return TripPlanRequest(
        trip_type="hiking",
        start_location="Chamonix, France",
        end_location="Zermatt, Switzerland",
        is_circular=True,
        max_distance_per_day=12,
        min_distance_per_day=5,
        number_of_days=2,
    )


@pytest.fixture
def trip_payload():
    """A trip document that passes client and server validation."""
    return {
        "name": "Cycling trip from Paris to Lyon",
        "description": "465.2 km cycling trip over 10 day(s)",
        "type": "cycling",
        "startLocation": {"type": "Point", "coordinates": [2.3522, 48.8566], "city": "Paris", "country": "France"},
        "endLocation": {"type": "Point", "coordinates": [4.8357, 45.7640], "city": "Lyon", "country": "France"},
        "route": {"type": "LineString", "coordinates": [[48.8566, 2.3522], [45.7640, 4.8357]]},
        "totalDistance": 465.2,
        "isCircular": False,
        "isMultiDay": True,
        "maxDistancePerDay": 50,
        "numberOfDays": 10,
        "dailyDistances": [{"day": d, "distance": 46.5} for d in range(1, 11)],
        "pointsOfInterest": [
            {"id": "r_1_100_0", "name": "Bike Hub", "type": "Bike Shop", "location": [47.0, 3.0]},
            {"id": "d_1_200_0", "name": "Musée des Beaux-Arts", "type": "museum",
             "location": [45.767, 4.834], "description": "Art museum", "isDestination": True},
        ],
        "imageUrl": "https://images.example.com/lyon.jpg",
        "startDate": "2026-06-01T00:00:00+00:00",
        "endDate": "2026-06-11T00:00:00+00:00",
    }


def make_response(json_data=None, status_code=200):
    """A stand-in for requests.Response."""
    from unittest.mock import MagicMock
    import requests

    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    if status_code >= 400:
        err = requests.HTTPError(f"{status_code} Error")
        err.response = resp
        resp.raise_for_status.side_effect = err
    else:
        resp.raise_for_status.return_value = None
    return resp
