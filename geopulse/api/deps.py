"""
Shared FastAPI dependencies: outbound clients built from the injected settings.
"""
from fastapi import Depends

from geopulse.core.config import Settings, get_settings_dependency
from geopulse.services.ai_gateway import AIGatewayClient
from geopulse.services.weather_client import OpenMeteoClient


def get_ai_client(settings: Settings = Depends(get_settings_dependency)) -> AIGatewayClient:
    """Dependency injection for the AI gateway client"""
    return AIGatewayClient(settings)


def get_weather_client(settings: Settings = Depends(get_settings_dependency)) -> OpenMeteoClient:
    """Dependency injection for the weather provider client"""
    return OpenMeteoClient(settings)
