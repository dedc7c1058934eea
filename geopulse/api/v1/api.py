"""
API router for GeoPulse.
"""
from fastapi import APIRouter

from geopulse.api.v1.endpoints import alerts, hazards, search, thresholds, weather

api_router = APIRouter()

api_router.include_router(hazards.router, prefix="/hazards", tags=["Hazards"])
api_router.include_router(weather.router, prefix="/weather", tags=["Weather"])
api_router.include_router(thresholds.router, prefix="/thresholds", tags=["Thresholds"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["Alerts"])
api_router.include_router(search.router)
