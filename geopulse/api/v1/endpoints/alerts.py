"""
Alert API Endpoints
Handles the caller's hazard alert inbox
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List

from geopulse.core.security import get_current_user_id
from geopulse.db.database import get_db
from geopulse.models.schemas import HazardAlertResponse, AlertSeverity
from geopulse.services.alert_service import AlertService

router = APIRouter()


def get_alert_service(db: Session = Depends(get_db)) -> AlertService:
    """Dependency injection for AlertService"""
    return AlertService(db)


def _not_found(alert_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Alert with ID {alert_id} not found"
    )


@router.get("/", response_model=List[HazardAlertResponse])
async def list_alerts(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of records to return"),
    resolved: Optional[bool] = Query(None, description="Filter by resolution state"),
    severity: Optional[AlertSeverity] = Query(None, description="Filter by severity"),
    user_id: str = Depends(get_current_user_id),
    service: AlertService = Depends(get_alert_service),
):
    """
    List the caller's alerts, newest first

    **Filters:**
    - resolved: true / false
    - severity: low, moderate, high, critical
    """
    return service.list_alerts(
        user_id,
        skip=skip,
        limit=limit,
        resolved=resolved,
        severity=severity.value if severity else None,
    )


@router.get("/{alert_id}", response_model=HazardAlertResponse)
async def get_alert(
    alert_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AlertService = Depends(get_alert_service),
):
    alert = service.get_alert(user_id, alert_id)
    if not alert:
        raise _not_found(alert_id)
    return alert


@router.post("/{alert_id}/read", response_model=HazardAlertResponse)
async def mark_alert_read(
    alert_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AlertService = Depends(get_alert_service),
):
    alert = service.mark_read(user_id, alert_id)
    if not alert:
        raise _not_found(alert_id)
    return alert


@router.post("/{alert_id}/resolve", response_model=HazardAlertResponse)
async def resolve_alert(
    alert_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AlertService = Depends(get_alert_service),
):
    """
    Mark an alert as resolved; the next evaluation may raise a new one
    """
    alert = service.resolve_alert(user_id, alert_id)
    if not alert:
        raise _not_found(alert_id)
    return alert
