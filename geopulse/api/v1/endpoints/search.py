"""
AI-backed search, satellite analysis and GeoJSON location import
"""
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Optional, Dict, Any

from geopulse.api.deps import get_ai_client
from geopulse.core.config import Settings, get_settings_dependency
from geopulse.core.security import get_optional_user_id
from geopulse.db.database import get_db
from geopulse.models.schemas import (
    SearchRequest, SearchResponse,
    SatelliteAnalysisRequest, SatelliteAnalysisResponse,
    LocationImportResponse,
)
from geopulse.services.ai_gateway import AIGatewayClient
from geopulse.services.analysis_service import SatelliteAnalysisService
from geopulse.services.location_import_service import import_locations
from geopulse.services.search_service import SearchService

router = APIRouter()


def get_search_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dependency),
    ai_client: AIGatewayClient = Depends(get_ai_client),
) -> SearchService:
    return SearchService(db, settings, ai_client)


def get_analysis_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dependency),
    ai_client: AIGatewayClient = Depends(get_ai_client),
) -> SatelliteAnalysisService:
    return SatelliteAnalysisService(db, settings, ai_client)


@router.post("/search", response_model=SearchResponse, tags=["Search"])
def process_search(
    request: SearchRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: SearchService = Depends(get_search_service),
):
    """
    Interpret a natural-language environmental query.

    Empty or oversized queries are rejected with 400 before the AI call.
    """
    return service.search(request.query, user_id=user_id)


@router.post("/analysis/satellite", response_model=SatelliteAnalysisResponse, tags=["Analysis"])
def analyze_satellite(
    request: SatelliteAnalysisRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: SatelliteAnalysisService = Depends(get_analysis_service),
):
    """
    AI-written satellite analysis for an event type, region and period
    """
    return service.analyze(request, user_id=user_id)


@router.post("/locations/import", response_model=LocationImportResponse, tags=["Locations"])
def import_geojson_locations(document: Dict[str, Any] = Body(...)):
    """
    Convert a GeoJSON FeatureCollection into monitoring locations.
    The result's locations can be posted to /weather/ingest as-is.
    """
    return import_locations(document)
