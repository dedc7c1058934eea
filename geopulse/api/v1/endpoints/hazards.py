"""
Hazard evaluation endpoint
Runs one evaluation pass over all active thresholds
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from geopulse.api.deps import get_ai_client
from geopulse.core.config import Settings, get_settings_dependency
from geopulse.db.database import get_db
from geopulse.models.schemas import EvaluationResponse
from geopulse.services.ai_gateway import AIGatewayClient
from geopulse.services.hazard_service import HazardEvaluationService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_hazard_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dependency),
    ai_client: AIGatewayClient = Depends(get_ai_client),
) -> HazardEvaluationService:
    """Dependency injection for HazardEvaluationService"""
    return HazardEvaluationService(db, settings, ai_client)


@router.post("/evaluate", response_model=EvaluationResponse, response_model_exclude_none=True)
def evaluate_hazards(service: HazardEvaluationService = Depends(get_hazard_service)):
    """
    Evaluate every active monitoring threshold against its region's newest observation.

    - Thresholds without an observation or metric value are skipped
    - A threshold with an unresolved alert never gets a second one
    - The AI risk note is optional; its failure never blocks an alert
    """
    return service.evaluate()
