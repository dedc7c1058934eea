import pytest

from geopulse.core.config import DEFAULT_MONITORING_LOCATIONS
from geopulse.core.exceptions import UpstreamServiceError
from geopulse.models.models import WeatherObservation
from geopulse.models.schemas import MonitoringLocation
from geopulse.services.ingestion_service import WeatherIngestionService
from geopulse.services.weather_client import OpenMeteoClient

from conftest import FakeResponse, FakeSession, FakeWeatherClient


def test_defaults_used_when_no_locations(db, settings):
    weather = FakeWeatherClient()

    result = WeatherIngestionService(db, settings, weather).ingest()

    assert result.success is True
    assert result.ingested == len(DEFAULT_MONITORING_LOCATIONS)
    assert result.failed == 0
    assert len(weather.calls) == len(DEFAULT_MONITORING_LOCATIONS)
    assert db.query(WeatherObservation).count() == len(DEFAULT_MONITORING_LOCATIONS)


def test_observation_fields_mapped_from_current_conditions(db, settings):
    locations = [MonitoringLocation(name="Accra, Ghana", lat=5.6037, lng=-0.1870)]

    result = WeatherIngestionService(db, settings, FakeWeatherClient()).ingest(locations)

    stored = db.query(WeatherObservation).one()
    assert stored.region_name == "Accra, Ghana"
    assert stored.temperature_c == 31.5
    assert stored.rainfall_mm == 12.4
    assert stored.soil_moisture == 0.31
    assert stored.wind_speed_kmh == 18.0
    assert stored.humidity_percent == 78
    assert stored.data_source == "open-meteo"
    assert stored.raw_data["current"]["rain"] == 12.4
    assert result.results[0].location == "Accra, Ghana"
    assert result.results[0].status == "success"
    assert result.results[0].data["temperature_c"] == 31.5


def test_failing_location_does_not_stop_others(db, settings):
    locations = [
        MonitoringLocation(name="Accra, Ghana", lat=5.6037, lng=-0.1870),
        MonitoringLocation(name="Lagos, Nigeria", lat=6.5244, lng=3.3792),
        MonitoringLocation(name="Nairobi, Kenya", lat=-1.2921, lng=36.8219),
    ]
    weather = FakeWeatherClient(failing_lats=[6.5244])

    result = WeatherIngestionService(db, settings, weather).ingest(locations)

    assert result.ingested == 2
    assert result.failed == 1
    assert result.errors[0].location == "Lagos, Nigeria"
    assert "503" in result.errors[0].error
    assert {r.location for r in result.results} == {"Accra, Ghana", "Nairobi, Kenya"}
    assert db.query(WeatherObservation).count() == 2


def test_missing_current_values_stored_as_null(db, settings):
    weather = FakeWeatherClient(current={"temperature_2m": 22.0})
    locations = [MonitoringLocation(name="Kampala, Uganda", lat=0.3476, lng=32.5825)]

    WeatherIngestionService(db, settings, weather).ingest(locations)

    stored = db.query(WeatherObservation).one()
    assert stored.temperature_c == 22.0
    assert stored.rainfall_mm is None
    assert stored.soil_moisture is None


def test_latest_observations_filtered_by_region(db, settings):
    service = WeatherIngestionService(db, settings, FakeWeatherClient())
    service.ingest()

    rows = service.latest_observations(region_name="Lusaka, Zambia")

    assert len(rows) == 1
    assert rows[0].region_name == "Lusaka, Zambia"


def test_open_meteo_client_request(settings):
    session = FakeSession(FakeResponse(payload={"current": {"temperature_2m": 29.1}}))
    client = OpenMeteoClient(settings, session=session)

    payload = client.fetch_forecast(5.6037, -0.1870)

    assert payload["current"]["temperature_2m"] == 29.1
    url, kwargs = session.requests[0]
    assert url == settings.WEATHER_API_URL
    assert kwargs["params"]["latitude"] == 5.6037
    assert kwargs["params"]["past_days"] == 7
    assert kwargs["params"]["forecast_days"] == 3
    assert "soil_moisture_0_to_7cm" in kwargs["params"]["current"]


def test_open_meteo_client_error_status(settings):
    client = OpenMeteoClient(settings, session=FakeSession(FakeResponse(status_code=429)))

    with pytest.raises(UpstreamServiceError) as exc:
        client.fetch_forecast(5.6, -0.18)
    assert exc.value.message == "Open-Meteo API error: 429"


def test_real_client_failure_recorded_per_location(db, settings):
    client = OpenMeteoClient(settings, session=FakeSession(FakeResponse(status_code=500)))
    locations = [MonitoringLocation(name="Accra, Ghana", lat=5.6037, lng=-0.1870)]

    result = WeatherIngestionService(db, settings, client).ingest(locations)

    assert result.success is True
    assert result.ingested == 0
    assert result.errors[0].error == "Open-Meteo API error: 500"


def test_empty_location_list_ingests_nothing(db, settings):
    weather = FakeWeatherClient()

    result = WeatherIngestionService(db, settings, weather).ingest([])

    assert result.success is True
    assert result.ingested == 0
    assert result.failed == 0
    assert weather.calls == []
    assert db.query(WeatherObservation).count() == 0
