"""
Satellite analysis - AI-written environmental assessment for an event, region and period
"""
from typing import Optional, Any
from datetime import datetime, timezone
import json
import re
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from geopulse.core.config import Settings
from geopulse.core.exceptions import InputValidationError
from geopulse.models.models import AnalysisResult
from geopulse.models.schemas import SatelliteAnalysisRequest, SatelliteAnalysisResponse
from geopulse.services.ai_gateway import AIGatewayClient

logger = logging.getLogger(__name__)

AREA_PATTERN = re.compile(r"(\d+[,.\d]*)\s*km²", re.IGNORECASE)
PERCENT_PATTERN = re.compile(r"(\d+\.?\d*)\s*%")

SATELLITE_SYSTEM_PROMPT = """You are an expert environmental scientist specializing in satellite imagery analysis and geospatial data interpretation.
You analyze environmental changes including deforestation, floods, droughts, wildfires, urbanization, climate change impacts, and more.
Provide scientific, data-driven insights with specific metrics and recommendations."""


def extract_area(text: str) -> Optional[str]:
    match = AREA_PATTERN.search(text)
    return match.group(0) if match else None


def extract_change_percent(text: str) -> Optional[float]:
    match = PERCENT_PATTERN.search(text)
    return float(match.group(1)) if match else None


def _required(value: Any, field: str, max_length: int = 200) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(f"{field} is required")
    if len(value) > max_length:
        raise InputValidationError(f"{field} must be {max_length} characters or less")
    return value.strip()


class SatelliteAnalysisService:

    def __init__(self, db: Session, settings: Settings, ai_client: Optional[AIGatewayClient] = None):
        self.db = db
        self.settings = settings
        self.ai_client = ai_client or AIGatewayClient(settings)

    def analyze(self, request: SatelliteAnalysisRequest, user_id: Optional[str] = None) -> SatelliteAnalysisResponse:
        """
        Request an analysis and store it.

        Raises:
            InputValidationError: If event type or region is missing
            ConfigurationError / UpstreamServiceError: From the gateway call
        """
        event_type = _required(request.eventType, "eventType")
        region = _required(request.region, "region")

        logger.info(f"Analyzing {event_type} in {region} from {request.startDate} to {request.endDate}")

        user_prompt = (
            f"Analyze satellite data for {event_type} event in {region}, Africa.\n"
            f"Time period: {request.startDate} to {request.endDate}\n"
            f"Coordinates: {json.dumps(request.coordinates)}\n\n"
            "Provide a comprehensive analysis including:\n"
            "1. Area affected (in km²)\n"
            "2. Percentage change from baseline\n"
            "3. Key environmental impacts\n"
            "4. Trend analysis\n"
            "5. Severity assessment\n"
            "6. Actionable recommendations\n"
            "7. Reference to relevant satellite data sources"
        )
        analysis = self.ai_client.chat_completion(
            [
                {"role": "system", "content": SATELLITE_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            model=self.settings.SATELLITE_ANALYSIS_MODEL,
            temperature=0.7,
            max_tokens=2000,
        )

        result = SatelliteAnalysisResponse(
            eventType=event_type,
            region=region,
            startDate=request.startDate,
            endDate=request.endDate,
            areaAnalyzed=extract_area(analysis) or "Analysis in progress",
            changePercent=extract_change_percent(analysis),
            summary=analysis.split("\n")[0],
            fullAnalysis=analysis,
            coordinates=request.coordinates,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        record = AnalysisResult(
            user_id=user_id,
            event_type=result.eventType,
            region=result.region,
            start_date=result.startDate,
            end_date=result.endDate,
            area_analyzed=result.areaAnalyzed,
            change_percent=result.changePercent,
            summary=result.summary,
            ai_analysis={"fullAnalysis": result.fullAnalysis},
            coordinates=result.coordinates,
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store analysis result: {e}")
            raise

        return result
