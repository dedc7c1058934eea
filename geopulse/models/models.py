# geopulse/models/models.py
from sqlalchemy import Column, String, DateTime, JSON, Boolean, ForeignKey, Float, Text, Index, text
from sqlalchemy.sql import func
from geopulse.db.database import Base
import uuid
import logging

logger = logging.getLogger(__name__)


def _uuid() -> str:
    return str(uuid.uuid4())


# ========================================
# Weather observations
# ========================================
class WeatherObservation(Base):
    """
    One reading for one region from the weather provider.
    Append-only; the newest observation_date wins at read time.
    """
    __tablename__ = "weather_observations"

    id = Column(String(36), primary_key=True, default=_uuid)
    region_name = Column(Text, nullable=False, index=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    observation_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    # Metrics (each optional)
    temperature_c = Column(Float, nullable=True)
    rainfall_mm = Column(Float, nullable=True)
    soil_moisture = Column(Float, nullable=True)
    wind_speed_kmh = Column(Float, nullable=True)
    humidity_percent = Column(Float, nullable=True)
    ndvi_value = Column(Float, nullable=True)
    ndwi_value = Column(Float, nullable=True)
    nbr_value = Column(Float, nullable=True)

    data_source = Column(String(50), default="open-meteo")
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<WeatherObservation(region='{self.region_name}', date={self.observation_date})>"


# ========================================
# Monitoring thresholds
# ========================================
class MonitoringThreshold(Base):
    """
    A user's rule: alert when <metric> <operator> <threshold_value> in a region.
    Deactivated rather than deleted.
    """
    __tablename__ = "monitoring_thresholds"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    region_name = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    hazard_type = Column(Text, nullable=False)  # flood, drought, fire, storm, heatwave
    metric = Column(Text, nullable=False)  # rainfall_mm, temperature_c, ndvi_value, ...
    operator = Column(String(2), nullable=False, default=">")  # >, <, >=, <=
    threshold_value = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<MonitoringThreshold(id={self.id}, region='{self.region_name}', "
            f"rule='{self.metric} {self.operator} {self.threshold_value}')>"
        )


# ========================================
# Hazard alerts
# ========================================
class HazardAlert(Base):
    """
    Raised when a threshold trips. ai_analysis holds the optional risk note
    as {"assessment", "model", "generated_at"}.
    """
    __tablename__ = "hazard_alerts"
    __table_args__ = (
        # at most one unresolved alert per threshold
        Index(
            "uq_hazard_alerts_open_threshold",
            "threshold_id",
            unique=True,
            postgresql_where=text("NOT is_resolved"),
            sqlite_where=text("NOT is_resolved"),
        ),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    threshold_id = Column(String(36), ForeignKey("monitoring_thresholds.id", ondelete="SET NULL"), nullable=True)
    region_name = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    hazard_type = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False, default="moderate")  # low, moderate, high, critical
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    metric_name = Column(Text, nullable=True)
    metric_value = Column(Float, nullable=True)
    threshold_value = Column(Float, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<HazardAlert(id={self.id}, severity='{self.severity}', resolved={self.is_resolved})>"


# ========================================
# AI-backed search and analysis history
# ========================================
class SearchQuery(Base):
    __tablename__ = "search_queries"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    query = Column(Text, nullable=False)
    ai_interpretation = Column(Text, nullable=True)
    results = Column(JSON, nullable=True)  # findings, locations, recommendations
    confidence_level = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class AnalysisResult(Base):
    __tablename__ = "analysis_results"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    event_type = Column(Text, nullable=False)
    region = Column(Text, nullable=False)
    start_date = Column(String(32), nullable=True)
    end_date = Column(String(32), nullable=True)
    area_analyzed = Column(Text, nullable=True)
    change_percent = Column(Float, nullable=True)
    summary = Column(Text, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    coordinates = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


logger.info("Models WeatherObservation, MonitoringThreshold, HazardAlert, SearchQuery, AnalysisResult defined.")
