"""
Weather ingestion - fetch current conditions per monitored region and store them
One failing location is recorded and the rest continue.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from geopulse.core.config import Settings, DEFAULT_MONITORING_LOCATIONS
from geopulse.core.exceptions import GeoPulseError
from geopulse.models.models import WeatherObservation
from geopulse.models.schemas import (
    MonitoringLocation, IngestionResponse, IngestionResult, IngestionError
)
from geopulse.services.weather_client import OpenMeteoClient

logger = logging.getLogger(__name__)


def default_locations() -> List[MonitoringLocation]:
    return [MonitoringLocation(**loc) for loc in DEFAULT_MONITORING_LOCATIONS]


class WeatherIngestionService:
    """
    Sequential fetch-and-insert over a list of monitoring locations.
    """

    def __init__(self, db: Session, settings: Settings, weather_client: Optional[OpenMeteoClient] = None):
        self.db = db
        self.settings = settings
        self.weather_client = weather_client or OpenMeteoClient(settings)

    def build_observation(self, location: MonitoringLocation, payload: Dict[str, Any]) -> WeatherObservation:
        """Map an Open-Meteo payload onto an observation row"""
        current = payload.get("current") or {}
        return WeatherObservation(
            region_name=location.name,
            lat=location.lat,
            lng=location.lng,
            observation_date=datetime.now(timezone.utc),
            temperature_c=current.get("temperature_2m"),
            rainfall_mm=current.get("rain"),
            soil_moisture=current.get("soil_moisture_0_to_7cm"),
            wind_speed_kmh=current.get("wind_speed_10m"),
            humidity_percent=current.get("relative_humidity_2m"),
            data_source=self.settings.WEATHER_DATA_SOURCE,
            raw_data=payload,
        )

    @staticmethod
    def observation_summary(observation: WeatherObservation) -> Dict[str, Any]:
        return {
            "id": observation.id,
            "region_name": observation.region_name,
            "lat": observation.lat,
            "lng": observation.lng,
            "observation_date": observation.observation_date.isoformat() if observation.observation_date else None,
            "temperature_c": observation.temperature_c,
            "rainfall_mm": observation.rainfall_mm,
            "soil_moisture": observation.soil_moisture,
            "wind_speed_kmh": observation.wind_speed_kmh,
            "humidity_percent": observation.humidity_percent,
            "data_source": observation.data_source,
        }

    def ingest_location(self, location: MonitoringLocation) -> WeatherObservation:
        """
        Fetch and store one location.

        Raises:
            GeoPulseError: If the provider call fails
            SQLAlchemyError: If the insert fails
        """
        payload = self.weather_client.fetch_forecast(location.lat, location.lng)
        observation = self.build_observation(location, payload)
        try:
            self.db.add(observation)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(observation)
        return observation

    def ingest(self, locations: Optional[List[MonitoringLocation]] = None) -> IngestionResponse:
        """
        Ingest every location; failures land in errors.
        None means the default cities, an empty list ingests nothing.
        """
        if locations is None:
            locations = default_locations()

        logger.info(f"Ingesting weather for {len(locations)} location(s)")

        results: List[IngestionResult] = []
        errors: List[IngestionError] = []

        for location in locations:
            try:
                observation = self.ingest_location(location)
            except GeoPulseError as e:
                logger.warning(f"Weather ingestion failed for '{location.name}': {e.message}")
                errors.append(IngestionError(location=location.name, error=e.message))
                continue
            except SQLAlchemyError as e:
                logger.warning(f"Storing observation failed for '{location.name}': {e}")
                errors.append(IngestionError(location=location.name, error=str(e.__cause__ or e)))
                continue

            results.append(IngestionResult(
                location=location.name,
                status="success",
                data=self.observation_summary(observation),
            ))

        logger.info(f"Ingestion complete: {len(results)} stored, {len(errors)} failed")

        return IngestionResponse(
            success=True,
            ingested=len(results),
            failed=len(errors),
            results=results,
            errors=errors,
        )

    def latest_observations(self, region_name: Optional[str] = None, limit: int = 50) -> List[WeatherObservation]:
        query = self.db.query(WeatherObservation)
        if region_name:
            query = query.filter(WeatherObservation.region_name == region_name)
        return query.order_by(desc(WeatherObservation.observation_date)).limit(limit).all()
