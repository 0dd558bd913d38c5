# Parsers module
from .interfaces import TraceParser
from .log_file import LogFileParser
from .jsonl_file import JsonlFileParser
from .factory import TraceParserFactory
from .utils import parse_timestamp, epoch_to_datetime, parse_duration_ms, parse_status

__all__ = [
    "TraceParser",
    "LogFileParser",
    "JsonlFileParser",
    "TraceParserFactory",
    "parse_timestamp",
    "epoch_to_datetime",
    "parse_duration_ms",
    "parse_status",
]
