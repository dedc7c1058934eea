"""
Pydantic schemas for the GeoPulse API
Handles request/response validation
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from geopulse.core.config import OBSERVATION_METRICS


# Enums for validation
class AlertSeverity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class ThresholdOperator(str, Enum):
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="


# Monitoring locations
class MonitoringLocation(BaseModel):
    """A named point weather ingestion fetches observations for"""
    name: str = Field(..., min_length=1, max_length=255)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# Weather observations
class WeatherObservationResponse(BaseModel):
    id: str
    region_name: str
    lat: float
    lng: float
    observation_date: datetime
    temperature_c: Optional[float] = None
    rainfall_mm: Optional[float] = None
    soil_moisture: Optional[float] = None
    wind_speed_kmh: Optional[float] = None
    humidity_percent: Optional[float] = None
    ndvi_value: Optional[float] = None
    ndwi_value: Optional[float] = None
    nbr_value: Optional[float] = None
    data_source: Optional[str] = None

    class Config:
        from_attributes = True


class IngestionResult(BaseModel):
    location: str
    status: str = "success"
    data: Dict[str, Any]


class IngestionError(BaseModel):
    location: str
    error: str


class IngestionResponse(BaseModel):
    success: bool
    ingested: int
    failed: int
    results: List[IngestionResult]
    errors: List[IngestionError]


# Monitoring thresholds
class ThresholdCreate(BaseModel):
    """Schema for creating thresholds"""
    region_name: str = Field(..., min_length=1, max_length=255)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    hazard_type: str = Field(..., min_length=1, max_length=50)
    metric: str
    operator: ThresholdOperator = ThresholdOperator.GT
    threshold_value: float

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v):
        if v not in OBSERVATION_METRICS:
            raise ValueError(f"metric must be one of: {', '.join(OBSERVATION_METRICS)}")
        return v

    @field_validator("hazard_type")
    @classmethod
    def normalize_hazard_type(cls, v):
        return v.strip().lower()


class ThresholdResponse(BaseModel):
    id: str
    user_id: str
    region_name: str
    lat: float
    lng: float
    hazard_type: str
    metric: str
    operator: str
    threshold_value: float
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Hazard alerts
class HazardAlertResponse(BaseModel):
    id: str
    user_id: str
    threshold_id: Optional[str] = None
    region_name: str
    lat: float
    lng: float
    hazard_type: str
    severity: AlertSeverity
    title: str
    description: Optional[str] = None
    metric_name: Optional[str] = None
    metric_value: Optional[float] = None
    threshold_value: Optional[float] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    is_read: bool = False
    is_resolved: bool = False
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SkippedThreshold(BaseModel):
    threshold_id: str
    reason: str


class EvaluationResponse(BaseModel):
    success: bool
    thresholds_evaluated: int
    alerts_created: int
    alerts: List[HazardAlertResponse]
    skipped: List[SkippedThreshold] = []
    message: Optional[str] = None


# Location import
class LocationBounds(BaseModel):
    minLat: float
    maxLat: float
    minLng: float
    maxLng: float


class LocationImportResponse(BaseModel):
    locations: List[MonitoringLocation]
    properties: List[Dict[str, Any]]
    bounds: Optional[LocationBounds] = None


# Search and analysis
class SearchRequest(BaseModel):
    query: Optional[str] = None


class SearchResponse(BaseModel):
    query: str
    interpretation: str
    findings: List[Any] = []
    locations: List[Any] = []
    confidenceLevel: float
    recommendations: List[Any] = []
    timestamp: str


class SatelliteAnalysisRequest(BaseModel):
    eventType: Optional[str] = None
    region: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    coordinates: Optional[Any] = None


class SatelliteAnalysisResponse(BaseModel):
    eventType: str
    region: str
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    areaAnalyzed: str
    changePercent: Optional[float] = None
    summary: str
    fullAnalysis: str
    coordinates: Optional[Any] = None
    timestamp: str
