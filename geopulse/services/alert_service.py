"""
Alert Service - user-scoped management of thresholds and hazard alerts
"""
from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy import desc

from geopulse.models.models import MonitoringThreshold, HazardAlert
from geopulse.models.schemas import ThresholdCreate


class ThresholdService:
    """
    Service class for threshold operations
    """

    def __init__(self, db: Session):
        self.db = db

    def create_threshold(self, user_id: str, threshold_data: ThresholdCreate) -> MonitoringThreshold:
        """Create new threshold owned by user_id"""
        data = threshold_data.model_dump()
        data["operator"] = threshold_data.operator.value

        threshold = MonitoringThreshold(user_id=user_id, is_active=True, **data)

        self.db.add(threshold)
        self.db.commit()
        self.db.refresh(threshold)

        return threshold

    def get_threshold(self, user_id: str, threshold_id: str) -> Optional[MonitoringThreshold]:
        """Get a threshold the user owns"""
        return (
            self.db.query(MonitoringThreshold)
            .filter(MonitoringThreshold.id == threshold_id, MonitoringThreshold.user_id == user_id)
            .first()
        )

    def list_thresholds(self, user_id: str, active_only: bool = False) -> List[MonitoringThreshold]:
        query = self.db.query(MonitoringThreshold).filter(MonitoringThreshold.user_id == user_id)

        if active_only:
            query = query.filter(MonitoringThreshold.is_active.is_(True))

        return query.order_by(desc(MonitoringThreshold.created_at)).all()

    def deactivate_threshold(self, user_id: str, threshold_id: str) -> Optional[MonitoringThreshold]:
        """Thresholds are deactivated, never deleted"""
        threshold = self.get_threshold(user_id, threshold_id)
        if not threshold:
            return None

        threshold.is_active = False

        self.db.commit()
        self.db.refresh(threshold)

        return threshold


class AlertService:
    """
    Service class for alert operations
    """

    def __init__(self, db: Session):
        self.db = db

    def get_alert(self, user_id: str, alert_id: str) -> Optional[HazardAlert]:
        return (
            self.db.query(HazardAlert)
            .filter(HazardAlert.id == alert_id, HazardAlert.user_id == user_id)
            .first()
        )

    def list_alerts(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 100,
        resolved: Optional[bool] = None,
        severity: Optional[str] = None,
    ) -> List[HazardAlert]:
        """
        List the user's alerts, newest first
        """
        query = self.db.query(HazardAlert).filter(HazardAlert.user_id == user_id)

        if resolved is not None:
            query = query.filter(HazardAlert.is_resolved.is_(resolved))
        if severity:
            query = query.filter(HazardAlert.severity == severity)

        return query.order_by(desc(HazardAlert.created_at)).offset(skip).limit(limit).all()

    def mark_read(self, user_id: str, alert_id: str) -> Optional[HazardAlert]:
        alert = self.get_alert(user_id, alert_id)
        if not alert:
            return None

        alert.is_read = True

        self.db.commit()
        self.db.refresh(alert)

        return alert

    def resolve_alert(self, user_id: str, alert_id: str) -> Optional[HazardAlert]:
        """Mark alert as resolved; its threshold may alert again on the next run"""
        alert = self.get_alert(user_id, alert_id)
        if not alert:
            return None

        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = datetime.now(timezone.utc)

        self.db.commit()
        self.db.refresh(alert)

        return alert
