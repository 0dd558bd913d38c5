"""
Core data models for distributed trace analysis.
"""

from .span import Span, SpanEvent, SpanStatus, NO_PARENT_ID
from .trace import Trace, TraceFile, TraceFileType
from .filter import TraceFilter
from .anomaly import AnomalyResult, AnomalyType, AnomalyDetectionConfig
from .file_event import FileEvent, FileEventKind

__all__ = [
    "Span",
    "SpanEvent",
    "SpanStatus",
    "NO_PARENT_ID",
    "Trace",
    "TraceFile",
    "TraceFileType",
    "TraceFilter",
    # Anomalies
    "AnomalyResult",
    "AnomalyType",
    "AnomalyDetectionConfig",
    # File watching
    "FileEvent",
    "FileEventKind",
]
