"""
Monitoring threshold endpoints (authenticated, user-scoped)
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List

from geopulse.core.security import get_current_user_id
from geopulse.db.database import get_db
from geopulse.models.schemas import ThresholdCreate, ThresholdResponse
from geopulse.services.alert_service import ThresholdService

router = APIRouter()


def get_threshold_service(db: Session = Depends(get_db)) -> ThresholdService:
    """Dependency injection for ThresholdService"""
    return ThresholdService(db)


@router.post("/", response_model=ThresholdResponse, status_code=status.HTTP_201_CREATED)
async def create_threshold(
    threshold_data: ThresholdCreate,
    user_id: str = Depends(get_current_user_id),
    service: ThresholdService = Depends(get_threshold_service),
):
    """
    Create a monitoring threshold

    - **metric**: observation column, e.g. rainfall_mm or temperature_c
    - **operator**: one of >, <, >=, <=
    - **threshold_value**: numeric bound
    """
    return service.create_threshold(user_id, threshold_data)


@router.get("/", response_model=List[ThresholdResponse])
async def list_thresholds(
    active_only: bool = Query(False, description="Return only active thresholds"),
    user_id: str = Depends(get_current_user_id),
    service: ThresholdService = Depends(get_threshold_service),
):
    """
    List the caller's thresholds
    """
    return service.list_thresholds(user_id, active_only=active_only)


@router.post("/{threshold_id}/deactivate", response_model=ThresholdResponse)
async def deactivate_threshold(
    threshold_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ThresholdService = Depends(get_threshold_service),
):
    """
    Stop evaluating a threshold. Its alerts are kept.
    """
    threshold = service.deactivate_threshold(user_id, threshold_id)
    if not threshold:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Threshold with ID {threshold_id} not found"
        )
    return threshold
