import os

# must be set before geopulse builds its engine and settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["AI_GATEWAY_API_KEY"] = "test-key"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from geopulse.api.deps import get_ai_client, get_weather_client
from geopulse.core.config import get_settings
from geopulse.core.exceptions import UpstreamServiceError
from geopulse.db.database import Base, SessionLocal, engine
from geopulse.main import app
from geopulse.models.models import MonitoringThreshold, WeatherObservation


class FakeAIClient:
    """Stands in for AIGatewayClient; records every prompt it gets."""

    def __init__(self, reply="Heavy rainfall expected. Move to higher ground.", error=None, enabled=True):
        self.reply = reply
        self.error = error
        self.enabled = enabled
        self.calls = []

    def chat_completion(self, messages, model, temperature=None, max_tokens=None):
        self.calls.append({"messages": messages, "model": model,
                           "temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.reply


class FakeWeatherClient:
    """Returns a fixed Open-Meteo payload; fails for latitudes in failing_lats."""

    def __init__(self, current=None, failing_lats=()):
        self.current = current or {
            "temperature_2m": 31.5,
            "relative_humidity_2m": 78,
            "rain": 12.4,
            "wind_speed_10m": 18.0,
            "soil_moisture_0_to_7cm": 0.31,
        }
        self.failing_lats = set(failing_lats)
        self.calls = []

    def fetch_forecast(self, lat, lng):
        self.calls.append((lat, lng))
        if lat in self.failing_lats:
            raise UpstreamServiceError("Open-Meteo API error: 503")
        return {"latitude": lat, "longitude": lng, "current": dict(self.current), "daily": {}}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class FakeSession:
    """requests.Session replacement that answers every call with one response."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        return self.response

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        return self.response


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def ai_client():
    fake = FakeAIClient()
    app.dependency_overrides[get_ai_client] = lambda: fake
    return fake


@pytest.fixture
def weather_client():
    fake = FakeWeatherClient()
    app.dependency_overrides[get_weather_client] = lambda: fake
    return fake


@pytest.fixture
def client():
    return TestClient(app)


def make_token(user_id="user-1", secret="test-secret", audience="authenticated", expires_in=3600):
    claims = {
        "sub": user_id,
        "aud": audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id="user-1"):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def add_threshold(db, **overrides):
    fields = {
        "user_id": "user-1",
        "region_name": "Accra, Ghana",
        "lat": 5.6037,
        "lng": -0.1870,
        "hazard_type": "heatwave",
        "metric": "temperature_c",
        "operator": ">",
        "threshold_value": 35.0,
        "is_active": True,
    }
    fields.update(overrides)
    threshold = MonitoringThreshold(**fields)
    db.add(threshold)
    db.commit()
    db.refresh(threshold)
    return threshold


def add_observation(db, observed_at=None, **overrides):
    fields = {
        "region_name": "Accra, Ghana",
        "lat": 5.6037,
        "lng": -0.1870,
        "observation_date": observed_at or datetime.now(timezone.utc),
        "data_source": "open-meteo",
    }
    fields.update(overrides)
    observation = WeatherObservation(**fields)
    db.add(observation)
    db.commit()
    db.refresh(observation)
    return observation
