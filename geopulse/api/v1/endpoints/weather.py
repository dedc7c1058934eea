"""
Weather ingestion and observation endpoints
"""
from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import ValidationError
import logging

from geopulse.api.deps import get_weather_client
from geopulse.core.config import Settings, get_settings_dependency
from geopulse.core.exceptions import InputValidationError
from geopulse.db.database import get_db
from geopulse.models.schemas import IngestionResponse, MonitoringLocation, WeatherObservationResponse
from geopulse.services.ingestion_service import WeatherIngestionService
from geopulse.services.weather_client import OpenMeteoClient

logger = logging.getLogger(__name__)
router = APIRouter()


def get_ingestion_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dependency),
    weather_client: OpenMeteoClient = Depends(get_weather_client),
) -> WeatherIngestionService:
    """Dependency injection for WeatherIngestionService"""
    return WeatherIngestionService(db, settings, weather_client)


async def _requested_locations(request: Request) -> Optional[List[MonitoringLocation]]:
    """
    Locations from an optional {"locations": [...]} body.
    No body, unreadable JSON, or a non-list value means the defaults.
    """
    try:
        body = await request.json()
    except ValueError:
        return None

    if not isinstance(body, dict) or not isinstance(body.get("locations"), list):
        return None

    try:
        return [MonitoringLocation.model_validate(loc) for loc in body["locations"]]
    except ValidationError as e:
        raise InputValidationError(f"Invalid location: {e.errors()[0].get('msg')}")


@router.post("/ingest", response_model=IngestionResponse)
async def ingest_weather(
    request: Request,
    service: WeatherIngestionService = Depends(get_ingestion_service),
):
    """
    Fetch current weather for each location and store one observation per location.

    Body (optional): {"locations": [{"name": ..., "lat": ..., "lng": ...}]}
    """
    locations = await _requested_locations(request)
    return await run_in_threadpool(service.ingest, locations)


@router.get("/observations", response_model=List[WeatherObservationResponse])
async def list_observations(
    region: Optional[str] = Query(None, description="Exact region name"),
    limit: int = Query(50, ge=1, le=500),
    service: WeatherIngestionService = Depends(get_ingestion_service),
):
    """
    Newest observations first, optionally for one region
    """
    return service.latest_observations(region_name=region, limit=limit)
