from config import Settings, load_settings


def test_defaults(monkeypatch):
    for key in ("ORS_API_KEY", "OPENWEATHERMAP_API_KEY", "UNSPLASH_ACCESS_KEY", "NOMINATIM_USER_AGENT",
                "SECRET_KEY", "DATABASE_URL", "TRIP_API_URL", "HTTP_TIMEOUT", "POI_CHECKPOINTS"):
        monkeypatch.delenv(key, raising=False)
    assert load_settings() == Settings()


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("ORS_API_KEY", "ors")
    monkeypatch.setenv("HTTP_TIMEOUT", "5")
    monkeypatch.setenv("POI_CHECKPOINTS", "4")
    monkeypatch.setenv("TRIP_API_URL", "https://trips.example.com")

    settings = load_settings()

    assert settings.ors_api_key == "ors"
    assert settings.http_timeout == 5.0
    assert settings.poi_checkpoints == 4
    assert settings.trip_api_url == "https://trips.example.com"
