"""
Hazard Service - evaluates monitoring thresholds against weather observations
Loads active thresholds, matches each to its region's newest observation,
decides trigger and severity, and persists new alerts.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import operator
import logging

from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from geopulse.core.config import Settings, OBSERVATION_METRICS
from geopulse.core.exceptions import GeoPulseError
from geopulse.models.models import MonitoringThreshold, WeatherObservation, HazardAlert
from geopulse.models.schemas import EvaluationResponse, HazardAlertResponse, SkippedThreshold
from geopulse.services.ai_gateway import AIGatewayClient

logger = logging.getLogger(__name__)


OPERATORS = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}

# (lower bound of the deviation ratio, severity), checked top-down
SEVERITY_CUTOFFS = [
    (1.5, "critical"),
    (0.75, "high"),
    (0.3, "moderate"),
]

RISK_ANALYST_PROMPT = (
    "You are a disaster risk analyst specializing in African environmental hazards. "
    "Provide concise, actionable risk assessments in 2-3 sentences."
)


def evaluate_operator(value: float, op: str, threshold: float) -> bool:
    """
    Compare an observed value against a bound.
    Unknown operators compare as ">".
    """
    compare = OPERATORS.get(op)
    if compare is None:
        logger.warning(f"Unknown threshold operator {op!r}, evaluating as '>'")
        compare = operator.gt
    return compare(value, threshold)


def deviation_ratio(value: float, threshold: float) -> float:
    return abs(value - threshold) / max(abs(threshold), 1)


def determine_severity(value: float, threshold: float) -> str:
    """
    Bucket the distance from the threshold:
    critical >= 1.5, high >= 0.75, moderate >= 0.3, else low.
    Operator and hazard type play no part.
    """
    ratio = deviation_ratio(value, threshold)
    for cutoff, severity in SEVERITY_CUTOFFS:
        if ratio >= cutoff:
            return severity
    return "low"


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_alert_title(hazard_type: str, region_name: str) -> str:
    return f"{hazard_type[:1].upper()}{hazard_type[1:]} Warning: {region_name}"


def build_alert_description(metric: str, value: float, threshold: float, op: str) -> str:
    return (
        f"{metric} reading of {_format_number(value)} has exceeded the threshold of "
        f"{_format_number(threshold)} ({op})."
    )


def get_ai_analysis(
    client: Optional[AIGatewayClient],
    model: str,
    hazard_type: str,
    metric_name: str,
    metric_value: float,
    threshold_value: float,
    region_name: str,
) -> Optional[Dict[str, Any]]:
    """
    Ask the gateway for a short risk note.

    Returns:
        {"assessment", "model", "generated_at"}, or None on any failure
    """
    if client is None or not client.enabled:
        return None

    messages = [
        {"role": "system", "content": RISK_ANALYST_PROMPT},
        {
            "role": "user",
            "content": (
                f"A {hazard_type} hazard threshold has been triggered in {region_name}. "
                f"The {metric_name} reading is {_format_number(metric_value)} "
                f"(threshold: {_format_number(threshold_value)}). "
                "Provide a brief risk assessment and recommended actions."
            ),
        },
    ]

    try:
        assessment = client.chat_completion(messages, model=model)
    except GeoPulseError as e:
        logger.info(f"Risk note unavailable for {region_name}: {e.message}")
        return None
    except Exception as e:
        logger.warning(f"Risk note request failed for {region_name}: {e}")
        return None

    return {
        "assessment": assessment,
        "model": model.split("/")[-1],
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


class HazardEvaluationService:
    """
    Runs one sequential evaluation pass over all active thresholds.
    """

    def __init__(self, db: Session, settings: Settings, ai_client: Optional[AIGatewayClient] = None):
        self.db = db
        self.settings = settings
        self.ai_client = ai_client

    # ---- Threshold Loader ----
    def load_active_thresholds(self) -> List[MonitoringThreshold]:
        """All thresholds with is_active = true"""
        return (
            self.db.query(MonitoringThreshold)
            .filter(MonitoringThreshold.is_active.is_(True))
            .all()
        )

    # ---- Observation Matcher ----
    def latest_observation(self, region_name: str) -> Optional[WeatherObservation]:
        """Newest observation for the exact region name"""
        return (
            self.db.query(WeatherObservation)
            .filter(WeatherObservation.region_name == region_name)
            .order_by(desc(WeatherObservation.observation_date), desc(WeatherObservation.created_at))
            .first()
        )

    @staticmethod
    def metric_value(observation: WeatherObservation, metric: str) -> Optional[float]:
        if metric not in OBSERVATION_METRICS:
            return None
        value = getattr(observation, metric, None)
        return float(value) if value is not None else None

    # ---- Trigger/Severity Decider ----
    def has_unresolved_alert(self, threshold_id: str) -> bool:
        return (
            self.db.query(HazardAlert.id)
            .filter(HazardAlert.threshold_id == threshold_id, HazardAlert.is_resolved.is_(False))
            .first()
            is not None
        )

    def _persist_alert(self, alert: HazardAlert) -> bool:
        """
        Insert one alert. False when a concurrent run already holds the
        open alert for this threshold or the insert fails.
        """
        try:
            self.db.add(alert)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if alert.threshold_id and self.has_unresolved_alert(alert.threshold_id):
                logger.info(f"Threshold {alert.threshold_id} already has an open alert, skipping")
            else:
                logger.warning(f"Alert for threshold {alert.threshold_id} violated a constraint: {e.orig}")
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to store alert for threshold {alert.threshold_id}: {e}")
            return False
        self.db.refresh(alert)
        return True

    def evaluate_threshold(self, threshold: MonitoringThreshold) -> Dict[str, Any]:
        """
        Evaluate one threshold.

        Returns:
            {"alert": HazardAlert} when a new alert was stored, else {"skipped": reason}
        """
        observation = self.latest_observation(threshold.region_name)
        if observation is None:
            logger.info(f"No observations for region '{threshold.region_name}', skipping threshold {threshold.id}")
            return {"skipped": "no_observation"}

        value = self.metric_value(observation, threshold.metric)
        if value is None:
            logger.info(f"Metric '{threshold.metric}' missing for '{threshold.region_name}', skipping threshold {threshold.id}")
            return {"skipped": "metric_missing"}

        if not evaluate_operator(value, threshold.operator, threshold.threshold_value):
            return {"skipped": "not_triggered"}

        if self.has_unresolved_alert(threshold.id):
            return {"skipped": "unresolved_alert_exists"}

        severity = determine_severity(value, threshold.threshold_value)

        ai_analysis = get_ai_analysis(
            self.ai_client,
            self.settings.HAZARD_ANALYSIS_MODEL,
            threshold.hazard_type,
            threshold.metric,
            value,
            threshold.threshold_value,
            threshold.region_name,
        )

        alert = HazardAlert(
            user_id=threshold.user_id,
            threshold_id=threshold.id,
            region_name=threshold.region_name,
            lat=threshold.lat,
            lng=threshold.lng,
            hazard_type=threshold.hazard_type,
            severity=severity,
            title=build_alert_title(threshold.hazard_type, threshold.region_name),
            description=build_alert_description(threshold.metric, value, threshold.threshold_value, threshold.operator),
            metric_name=threshold.metric,
            metric_value=value,
            threshold_value=threshold.threshold_value,
            ai_analysis=ai_analysis,
        )

        if not self._persist_alert(alert):
            return {"skipped": "insert_failed"}

        logger.info(f"Alert {alert.id} ({severity}) raised for threshold {threshold.id} in '{threshold.region_name}'")
        return {"alert": alert}

    def evaluate(self) -> EvaluationResponse:
        """
        Evaluate every active threshold, one after the other.
        """
        thresholds = self.load_active_thresholds()
        if not thresholds:
            logger.info("No active thresholds to evaluate")
            return EvaluationResponse(
                success=True,
                message="No active thresholds to evaluate",
                thresholds_evaluated=0,
                alerts_created=0,
                alerts=[],
            )

        logger.info(f"Evaluating {len(thresholds)} active threshold(s)")

        created: List[HazardAlertResponse] = []
        skipped: List[SkippedThreshold] = []

        for threshold in thresholds:
            outcome = self.evaluate_threshold(threshold)
            if "alert" in outcome:
                created.append(HazardAlertResponse.model_validate(outcome["alert"]))
            else:
                skipped.append(SkippedThreshold(threshold_id=threshold.id, reason=outcome["skipped"]))

        logger.info(f"Evaluation complete: {len(created)} alert(s) created from {len(thresholds)} threshold(s)")

        return EvaluationResponse(
            success=True,
            thresholds_evaluated=len(thresholds),
            alerts_created=len(created),
            alerts=created,
            skipped=skipped,
        )
