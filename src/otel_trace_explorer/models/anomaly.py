"""
Models for anomaly detection configuration and results.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class AnomalyType(str, Enum):
    """Detector that produced an anomaly."""
    DURATION = "Duration"
    TRACE_DURATION = "TraceDuration"
    SPIKE = "Spike"


class AnomalyResult(BaseModel):
    """Represents an anomaly detected in trace data."""
    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(..., description="Trace containing the anomalous span")
    span_id: str = Field(..., description="Anomalous span, or the root span for trace-level anomalies")
    anomaly_type: AnomalyType = Field(..., description="Detector that flagged the span")
    description: str = Field(..., description="Human-readable explanation")
    severity: float = Field(..., ge=0.0, le=1.0, description="Severity on a 0-1 scale")
    expected_value: Optional[float] = Field(None, description="Expected duration in milliseconds")
    actual_value: Optional[float] = Field(None, description="Observed duration in milliseconds")


class AnomalyDetectionConfig(BaseModel):
    """Configuration for anomaly detection."""
    model_config = ConfigDict(frozen=True)

    confidence_level: float = Field(0.95, gt=0.0, lt=1.0, description="Statistical confidence level")
    min_samples_required: int = Field(10, ge=1, description="Minimum samples before detecting anything")
    duration_threshold_multiplier: float = Field(
        2.0, gt=0.0, description="Flag durations above this multiple of the mean"
    )
