"""
OpenTelemetry Trace Explorer - load, stitch, search and triage trace files.

This package provides tools and utilities for:
- Parsing spans from block-formatted .log files and JSON Lines .jsonl files
- Stitching spans from many files into traces
- Filtering traces with a compound AND query language
- Flagging statistically anomalous span and trace durations
- Keeping a session current as trace files change on disk
"""

__version__ = "0.1.0"

from .models import (
    Span,
    SpanEvent,
    SpanStatus,
    Trace,
    TraceFile,
    TraceFileType,
    TraceFilter,
    AnomalyResult,
    AnomalyType,
    AnomalyDetectionConfig,
    FileEvent,
    FileEventKind,
)
from .parsers import TraceParser, LogFileParser, JsonlFileParser, TraceParserFactory
from .trace_service import TraceService
from .search_service import SearchService
from .anomaly_service import AnomalyDetectionService
from .explorer import TraceExplorer
from .config import ExplorerConfig

__all__ = [
    "Span",
    "SpanEvent",
    "SpanStatus",
    "Trace",
    "TraceFile",
    "TraceFileType",
    "TraceFilter",
    "AnomalyResult",
    "AnomalyType",
    "AnomalyDetectionConfig",
    "FileEvent",
    "FileEventKind",
    # Parsers
    "TraceParser",
    "LogFileParser",
    "JsonlFileParser",
    "TraceParserFactory",
    # Services
    "TraceService",
    "SearchService",
    "AnomalyDetectionService",
    "TraceExplorer",
    "ExplorerConfig",
]
