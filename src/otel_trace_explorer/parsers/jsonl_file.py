"""
Parser for .jsonl files (JSON Lines) containing OpenTelemetry spans.
"""

from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta
import json
import logging
import os

from .interfaces import TraceParser
from .utils import (
    epoch_to_datetime,
    nanoseconds_to_timedelta,
    parse_duration_ms,
    parse_status,
    parse_timestamp,
    stringify_value,
)
from ..models import NO_PARENT_ID, Span, SpanEvent, SpanStatus

# Candidate keys per logical field, tried in order
TRACE_ID_KEYS = ("traceId", "trace_id")
SPAN_ID_KEYS = ("spanId", "span_id")
PARENT_ID_KEYS = ("parentId", "parent_id", "parentSpanId")
NAME_KEYS = ("name", "operationName")
TIMESTAMP_KEYS = ("timestamp", "startTime", "start_time", "time")
TAG_KEYS = ("tags", "attributes", "resource")
EVENT_NAME_KEYS = ("name", "message")
EVENT_TIMESTAMP_KEYS = ("timestamp", "time")

_STATUS_CODES = {
    1: SpanStatus.OK,
    2: SpanStatus.ERROR,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_string_property(record: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    """Return the first string value found under any of the keys."""
    for key in keys:
        value = record.get(key)
        if isinstance(value, str):
            return value
    return None


def flatten_attributes(value: Any) -> Dict[str, str]:
    """Flatten a JSON object into string key/value pairs."""
    if not isinstance(value, dict):
        return {}
    return {str(key): stringify_value(item) for key, item in value.items()}


class JsonlFileParser(TraceParser):
    """
    Parses .jsonl files where every non-blank line is one span object.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def supported_extensions(self) -> Tuple[str, ...]:
        return (".jsonl",)

    def parse(self, file_path: str) -> List[Span]:
        spans: List[Span] = []
        file_name = os.path.basename(file_path)

        for line_number, line in enumerate(self.read_lines(file_path), start=1):
            if not line.strip():
                continue

            try:
                span = self._parse_line(line, line_number, file_name)
            except (ValueError, TypeError, OverflowError) as e:
                self.logger.debug(f"Skipping line {line_number} in {file_name}: {e}")
                continue
            if span is not None:
                spans.append(span)

        self.logger.debug(f"Parsed {len(spans)} spans from {file_name}")
        return spans

    def _parse_line(self, line: str, line_number: int, file_name: str) -> Optional[Span]:
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            self.logger.debug(f"Failed to parse JSON at line {line_number} in {file_name}: {e}")
            return None

        if not isinstance(record, dict):
            self.logger.debug(f"Skipping line {line_number} in {file_name}: not a JSON object")
            return None

        trace_id = get_string_property(record, TRACE_ID_KEYS)
        span_id = get_string_property(record, SPAN_ID_KEYS)
        name = get_string_property(record, NAME_KEYS)
        if not trace_id or not span_id or not name:
            self.logger.debug(
                f"Skipping line {line_number} in {file_name}: missing required fields (traceId, spanId, or name)"
            )
            return None

        return Span(
            trace_id=trace_id,
            span_id=span_id,
            parent_id=get_string_property(record, PARENT_ID_KEYS) or NO_PARENT_ID,
            name=name,
            duration=self._parse_duration(record),
            status=self._parse_status(record.get("status")),
            timestamp=self._parse_timestamp(record, TIMESTAMP_KEYS) or datetime.min,
            tags=self._parse_tags(record),
            events=self._parse_events(record.get("events")),
        )

    @staticmethod
    def _parse_duration(record: Dict[str, Any]) -> timedelta:
        """
        Read the span duration.

        Accepts a numeric duration in nanoseconds, a '<n>ms' string, or
        startTime/endTime timestamps. Falls back to zero.
        """
        duration = record.get("duration")
        if _is_number(duration):
            return nanoseconds_to_timedelta(duration)
        if isinstance(duration, str) and duration.strip().endswith("ms"):
            return parse_duration_ms(duration)

        start = parse_timestamp(record.get("startTime"))
        end = parse_timestamp(record.get("endTime"))
        if start is not None and end is not None and end >= start:
            return end - start

        return timedelta(0)

    @staticmethod
    def _parse_status(status: Any) -> SpanStatus:
        if isinstance(status, dict):
            code = status.get("code")
            if _is_number(code):
                try:
                    return _STATUS_CODES.get(int(code), SpanStatus.UNSET)
                except (ValueError, OverflowError):
                    return SpanStatus.UNSET
            if isinstance(code, str):
                return parse_status(code.lower().replace("status_code_", ""))
            return SpanStatus.UNSET
        if isinstance(status, str):
            return parse_status(status)
        return SpanStatus.UNSET

    @staticmethod
    def _parse_timestamp(record: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[datetime]:
        for key in keys:
            value = record.get(key)
            if isinstance(value, str):
                parsed = parse_timestamp(value)
                if parsed is not None:
                    return parsed
            elif _is_number(value):
                parsed = epoch_to_datetime(value)
                if parsed is not None:
                    return parsed
        return None

    @staticmethod
    def _parse_tags(record: Dict[str, Any]) -> Dict[str, str]:
        tags: Dict[str, str] = {}
        for key in TAG_KEYS:
            tags.update(flatten_attributes(record.get(key)))
        return tags

    def _parse_events(self, events: Any) -> List[SpanEvent]:
        if not isinstance(events, list):
            return []

        parsed: List[SpanEvent] = []
        for entry in events:
            if not isinstance(entry, dict):
                continue
            parsed.append(SpanEvent(
                timestamp=self._parse_timestamp(entry, EVENT_TIMESTAMP_KEYS) or datetime.min,
                name=get_string_property(entry, EVENT_NAME_KEYS) or "event",
                attributes=flatten_attributes(entry.get("attributes")),
            ))
        return parsed
