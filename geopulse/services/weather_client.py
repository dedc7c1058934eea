"""
Open-Meteo forecast client (free, no API key needed)
"""
from typing import Any, Dict, Optional
import logging

import requests

from geopulse.core.config import Settings
from geopulse.core.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

CURRENT_VARIABLES = [
    "temperature_2m",
    "relative_humidity_2m",
    "rain",
    "wind_speed_10m",
    "soil_moisture_0_to_7cm",
]

DAILY_VARIABLES = [
    "temperature_2m_max",
    "temperature_2m_min",
    "rain_sum",
    "wind_speed_10m_max",
]


class OpenMeteoClient:
    """Fetches current conditions plus a week of history and a short forecast."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.url = settings.WEATHER_API_URL
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def fetch_forecast(self, lat: float, lng: float) -> Dict[str, Any]:
        """
        Get the raw forecast payload for a point.

        Raises:
            UpstreamServiceError: On network errors or a non-2xx status
        """
        params = {
            "latitude": lat,
            "longitude": lng,
            "current": ",".join(CURRENT_VARIABLES),
            "daily": ",".join(DAILY_VARIABLES),
            "timezone": "auto",
            "past_days": 7,
            "forecast_days": 3,
        }

        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamServiceError(f"Open-Meteo request failed: {e}") from e

        if not response.ok:
            raise UpstreamServiceError(f"Open-Meteo API error: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamServiceError("Open-Meteo returned invalid JSON") from e
