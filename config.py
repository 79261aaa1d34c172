"""Configuration for the trip planner.

Environment variables (optionally from a ``.env`` file) are read once into a
frozen ``Settings`` object which is then passed to whatever needs it.
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    ors_api_key: str = ""
    weather_api_key: str = ""
    unsplash_access_key: str = ""
    nominatim_user_agent: str = "outdoor-trip-planner/1.0"
    secret_key: str = "trip-planner-secret-key"
    database_url: str = "sqlite:///./trip_planner.db"
    trip_api_url: str = "http://localhost:8000"
    http_timeout: float = 20.0
    poi_checkpoints: int = 3


def load_settings() -> Settings:
    """Build a Settings object from the current environment."""
    return Settings(
        ors_api_key=os.getenv("ORS_API_KEY", ""),
        weather_api_key=os.getenv("OPENWEATHERMAP_API_KEY", ""),
        unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY", ""),
        nominatim_user_agent=os.getenv("NOMINATIM_USER_AGENT", Settings.nominatim_user_agent),
        secret_key=os.getenv("SECRET_KEY", Settings.secret_key),
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        trip_api_url=os.getenv("TRIP_API_URL", Settings.trip_api_url),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", str(Settings.http_timeout))),
        poi_checkpoints=int(os.getenv("POI_CHECKPOINTS", str(Settings.poi_checkpoints))),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, resolved on first use."""
    return load_settings()
