"""
Trip store - SQLAlchemy over SQLite by default (any DATABASE_URL works).

Nested parts of a trip (locations, route, POIs, daily distances) live in JSON
columns, so a row reads back as the same document that was posted.
"""
from sqlalchemy import create_engine, Column, String, Integer, Float, Boolean, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime, timezone
import uuid

from config import get_settings

Base = declarative_base()

_engine = None
_Session = None


def generate_id():
    return uuid.uuid4().hex


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    type = Column(String, nullable=False)  # hiking, cycling, driving
    start_location = Column(JSON, nullable=False)  # {type, coordinates: [lon, lat], city, country}
    end_location = Column(JSON, nullable=False)
    route = Column(JSON, nullable=False)  # {type: LineString, coordinates: [[lat, lon], ...]}
    total_distance = Column(Float, nullable=False)
    is_circular = Column(Boolean, default=False)
    is_multi_day = Column(Boolean, default=False)
    max_distance_per_day = Column(Float, default=0)
    number_of_days = Column(Integer, default=1)
    daily_distances = Column(JSON, default=list)  # [{day, distance}]
    points_of_interest = Column(JSON, default=list)
    image_url = Column(String, nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self, summary=False):
        route = dict(self.route or {})
        if summary:
            # List views skip the heavy geometry.
            route.pop("coordinates", None)
        return {
            "id": self.id,
            "ownerId": self.user_id,
            "name": self.name,
            "description": self.description or "",
            "type": self.type,
            "startLocation": self.start_location,
            "endLocation": self.end_location,
            "route": route,
            "totalDistance": self.total_distance,
            "isCircular": bool(self.is_circular),
            "isMultiDay": bool(self.is_multi_day),
            "maxDistancePerDay": self.max_distance_per_day,
            "numberOfDays": self.number_of_days,
            "dailyDistances": self.daily_distances or [],
            "pointsOfInterest": self.points_of_interest or [],
            "imageUrl": self.image_url,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


def init_db(database_url=None):
    """Create the engine (once per URL) and the tables."""
    global _engine, _Session
    url = database_url or get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    _engine = create_engine(url, connect_args=connect_args)
    _Session = sessionmaker(bind=_engine)
    Base.metadata.create_all(bind=_engine)
    return _engine


def get_db():
    if _Session is None:
        init_db()
    return _Session()
