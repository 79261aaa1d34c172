"""FastAPI backend - trip persistence API plus the planning endpoints"""
import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from icalendar import Calendar, Event as ICalEvent
from jose import JWTError, jwt
from pydantic import BaseModel, Field, field_validator

from config import get_settings
from database import Trip, get_db, init_db
from errors import LocationNotFoundError, NoRouteFoundError, PlanRequestError, ProviderError
from TripPlanRequest import TRIP_TYPES, TripPlanRequest, normalize_trip_type
from agents.planning_agent import TripPlanner
from agents.WeatherAgent import fetch_forecast

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()

# Initialize database
init_db(settings.database_url)

app = FastAPI(
    title="Outdoor Trip Planner API",
    description="Plan hiking, cycling and driving trips and keep them for later",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

planner = TripPlanner(settings)

# Security - tokens are issued by the auth service, we only check them
SECRET_KEY = settings.secret_key
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

bearer_scheme = HTTPBearer(auto_error=False)


# Pydantic models
class LocationIn(BaseModel):
    type: str = "Point"
    coordinates: List[float]  # [lon, lat]
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)

    @field_validator("coordinates")
    @classmethod
    def two_coordinates(cls, v: List[float]):
        if len(v) != 2:
            raise ValueError("coordinates must be [longitude, latitude]")
        return v

    @field_validator("city", "country")
    @classmethod
    def not_blank(cls, v: str):
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class RouteIn(BaseModel):
    type: str = "LineString"
    coordinates: List[List[float]]


class DailyDistanceIn(BaseModel):
    day: int = Field(ge=1)
    distance: float = Field(ge=0)


class PointOfInterestIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    location: List[float]  # [lat, lng]
    description: Optional[str] = None
    isDestination: Optional[Any] = None

    @field_validator("location")
    @classmethod
    def lat_lng(cls, v: List[float]):
        if len(v) != 2:
            raise ValueError("Location must be an array of two numbers [latitude, longitude]")
        return v

    def normalized(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "location": self.location,
            "description": self.description or "",
            "isDestination": bool(self.isDestination),
        }


def _trip_type(v: str) -> str:
    value = normalize_trip_type(v)
    if value not in TRIP_TYPES:
        raise ValueError(f"type must be one of {', '.join(TRIP_TYPES)}")
    return value


class TripCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    type: str
    startLocation: LocationIn
    endLocation: LocationIn
    route: RouteIn
    totalDistance: float = Field(ge=0)
    isCircular: bool = False
    isMultiDay: bool = False
    maxDistancePerDay: float = 0
    numberOfDays: int = Field(default=1, ge=1)
    dailyDistances: List[DailyDistanceIn] = []
    pointsOfInterest: List[PointOfInterestIn] = []
    imageUrl: Optional[str] = None
    startDate: datetime
    endDate: datetime

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str):
        return _trip_type(v)


class TripUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None
    startLocation: Optional[LocationIn] = None
    endLocation: Optional[LocationIn] = None
    route: Optional[RouteIn] = None
    totalDistance: Optional[float] = Field(default=None, ge=0)
    isCircular: Optional[bool] = None
    isMultiDay: Optional[bool] = None
    maxDistancePerDay: Optional[float] = None
    numberOfDays: Optional[int] = Field(default=None, ge=1)
    dailyDistances: Optional[List[DailyDistanceIn]] = None
    pointsOfInterest: Optional[List[PointOfInterestIn]] = None
    imageUrl: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None

    @field_validator("type")
    @classmethod
    def known_type(cls, v: Optional[str]):
        return _trip_type(v) if v is not None else v


class PlanRequestIn(BaseModel):
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
    start_date: str = ""


# API field -> Trip column
_COLUMNS = {
    "name": "name",
    "description": "description",
    "type": "type",
    "startLocation": "start_location",
    "endLocation": "end_location",
    "route": "route",
    "totalDistance": "total_distance",
    "isCircular": "is_circular",
    "isMultiDay": "is_multi_day",
    "maxDistancePerDay": "max_distance_per_day",
    "numberOfDays": "number_of_days",
    "dailyDistances": "daily_distances",
    "pointsOfInterest": "points_of_interest",
    "imageUrl": "image_url",
    "startDate": "start_date",
    "endDate": "end_date",
}


def _to_columns(body: BaseModel, exclude_unset: bool = False) -> Dict[str, Any]:
    data = body.model_dump(mode="json", exclude_unset=exclude_unset)
    if "pointsOfInterest" in data and data["pointsOfInterest"] is not None:
        data["pointsOfInterest"] = [p.normalized() for p in body.pointsOfInterest]
    for key in ("startDate", "endDate"):
        if data.get(key) is not None:
            value = getattr(body, key)
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            data[key] = value.replace(tzinfo=None)
    return {_COLUMNS[k]: v for k, v in data.items() if k in _COLUMNS}


# Helper functions
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def get_current_user_id(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated",
                            headers={"WWW-Authenticate": "Bearer"})
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token",
                            headers={"WWW-Authenticate": "Bearer"})
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token",
                            headers={"WWW-Authenticate": "Bearer"})
    return user_id


def _get_owned_trip(db, trip_id: str, user_id: str) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id, Trip.user_id == user_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"] if p != "body")
        errors[field or "body"] = err["msg"]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


# Trip endpoints
@app.get("/trips")
def get_trips(user_id: str = Depends(get_current_user_id)):
    db = get_db()
    try:
        trips = (db.query(Trip).filter(Trip.user_id == user_id)
                 .order_by(Trip.created_at.desc()).all())
        return [t.to_dict(summary=True) for t in trips]
    finally:
        db.close()


@app.post("/trips", status_code=201)
def create_trip(trip: TripCreate, user_id: str = Depends(get_current_user_id)):
    db = get_db()
    try:
        db_trip = Trip(user_id=user_id, **_to_columns(trip))
        db.add(db_trip)
        db.commit()
        db.refresh(db_trip)
        logger.info("Trip %s created for user %s", db_trip.id, user_id)
        return db_trip.to_dict()
    finally:
        db.close()


@app.get("/trips/{trip_id}")
def get_trip(trip_id: str, user_id: str = Depends(get_current_user_id)):
    db = get_db()
    try:
        trip = _get_owned_trip(db, trip_id, user_id)
        data = trip.to_dict()
    finally:
        db.close()

    lon, lat = data["startLocation"]["coordinates"]
    weather = fetch_forecast(lat, lon, settings.weather_api_key, timeout=settings.http_timeout)
    return {"trip": data, "weather": weather}


@app.patch("/trips/{trip_id}")
def update_trip(trip_id: str, body: TripUpdate, user_id: str = Depends(get_current_user_id)):
    db = get_db()
    try:
        trip = _get_owned_trip(db, trip_id, user_id)
        for column, value in _to_columns(body, exclude_unset=True).items():
            if value is None and column in ("name", "type", "start_location", "end_location",
                                            "route", "total_distance", "start_date", "end_date"):
                continue
            setattr(trip, column, value)
        db.commit()
        db.refresh(trip)
        return trip.to_dict()
    finally:
        db.close()


@app.delete("/trips/{trip_id}")
def delete_trip(trip_id: str, user_id: str = Depends(get_current_user_id)):
    db = get_db()
    try:
        trip = _get_owned_trip(db, trip_id, user_id)
        db.delete(trip)
        db.commit()
        return {"message": "Trip deleted successfully"}
    finally:
        db.close()


@app.get("/trips/{trip_id}/ical")
def get_trip_ical(trip_id: str, user_id: str = Depends(get_current_user_id)):
    """Download an iCal (.ics) file with one all-day event per trip day."""
    db = get_db()
    try:
        trip = _get_owned_trip(db, trip_id, user_id)
        data = trip.to_dict()
    finally:
        db.close()

    cal = Calendar()
    cal.add("prodid", "-//Outdoor Trip Planner//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", data["name"])

    first_day: date = datetime.fromisoformat(data["startDate"]).date()
    start_city = data["startLocation"].get("city", "")
    end_city = data["endLocation"].get("city", "")
    for entry in data["dailyDistances"] or [{"day": 1, "distance": data["totalDistance"]}]:
        day = entry["day"]
        ev = ICalEvent()
        ev.add("summary", f"{data['name']} - day {day} ({entry['distance']} km)")
        ev.add("description", f"{data['type'].title()} {start_city} to {end_city}")
        ev.add("dtstart", first_day + timedelta(days=day - 1))
        ev.add("dtend", first_day + timedelta(days=day))
        ev.add("uid", f"{data['id']}-{day}@outdoor-trip-planner")
        cal.add_component(ev)

    safe_name = data["name"].replace(" ", "_")
    return Response(
        content=cal.to_ical(),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{safe_name}.ics"'},
    )


# ---------------------------------------------------------------------------
# Planning endpoints
# ---------------------------------------------------------------------------

@app.post("/plan")
def plan_trip(body: PlanRequestIn):
    """Run the planning pipeline and return the plan plus a ready-to-save draft."""
    request = TripPlanRequest.from_dict(body.model_dump())
    try:
        plan = planner.plan_trip(request)
    except PlanRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (LocationNotFoundError, NoRouteFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {"plan": plan.to_dict(), "draft": planner.build_trip_record(plan)}


@app.post("/plan/stream")
def stream_plan(body: PlanRequestIn):
    """SSE endpoint - streams planning progress events."""
    request = TripPlanRequest.from_dict(body.model_dump())

    def event_generator():
        for event in planner.plan_trip_stream(request):
            yield f"data: {json.dumps(event, default=str)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# Health check
@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "version": "1.0.0",
        "providers": {
            "directions": bool(settings.ors_api_key),
            "weather": bool(settings.weather_api_key),
            "images": bool(settings.unsplash_access_key),
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
