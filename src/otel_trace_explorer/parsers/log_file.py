"""
Parser for .log files written in the block-per-span text format.

Each span is a block of lines terminated by a dashed rule::

    [2026-01-30 20:16:00.949] TRACE
    TraceId: 7b93d1d92e416e89ce4ab528ef924a71
    SpanId: b568718bd3b5076b
    ParentId: 0000000000000000
    Name: GET /api/users
    Duration: 177.2474ms
    Status: Error
    Tags:
      http.request.method = GET
    Events:
      [20:16:00.951234] exception
        exception.message = Boom
    ----------------------------------------------------------------
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timedelta
import logging
import os
import re

from .interfaces import TraceParser
from .utils import parse_duration_ms, parse_status, parse_time_of_day, parse_timestamp
from ..models import NO_PARENT_ID, Span, SpanEvent

BLOCK_TERMINATOR = "---"
HEADER_MARKER = "] TRACE"

_HEADER_TIMESTAMP = re.compile(r"\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d+)\]")
_EVENT_HEADER = re.compile(r"^\s*\[(\d{2}:\d{2}:\d{2}\.\d+)\]\s*(.+)$")

_FIELD_KEYS = ("TraceId", "SpanId", "ParentId", "Name", "Duration", "Status")


class _Section(Enum):
    NONE = 0
    TAGS = 1
    EVENTS = 2


class _BlockState:
    """Mutable accumulator for one span block."""

    def __init__(self):
        self.fields: Dict[str, str] = {}
        self.timestamp: datetime = datetime.min
        self.tags: Dict[str, str] = {}
        self.events: List[SpanEvent] = []
        self.section = _Section.NONE
        self.event_header: Optional[Tuple[datetime, str]] = None
        self.event_attributes: Dict[str, str] = {}

    def flush_event(self):
        if self.event_header is not None:
            timestamp, name = self.event_header
            self.events.append(SpanEvent(timestamp=timestamp, name=name, attributes=self.event_attributes))
        self.event_header = None
        self.event_attributes = {}


def _split_assignment(text: str) -> Optional[Tuple[str, str]]:
    """Split 'key = value'; None when the line has no ' = ' separator."""
    index = text.find(" = ")
    if index <= 0:
        return None
    return text[:index], text[index + 3:]


class LogFileParser(TraceParser):
    """
    Parses .log trace files with a line-classification state machine.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def supported_extensions(self) -> Tuple[str, ...]:
        return (".log",)

    def parse(self, file_path: str) -> List[Span]:
        spans: List[Span] = []
        block: List[str] = []
        block_number = 0
        file_name = os.path.basename(file_path)

        for line in self.read_lines(file_path):
            if line.startswith(BLOCK_TERMINATOR):
                if block:
                    block_number += 1
                    span = self._parse_block(block, block_number, file_name)
                    if span is not None:
                        spans.append(span)
                    block = []
            else:
                block.append(line)

        if block:
            block_number += 1
            span = self._parse_block(block, block_number, file_name)
            if span is not None:
                spans.append(span)

        self.logger.debug(f"Parsed {len(spans)} spans from {block_number} blocks in {file_name}")
        return spans

    def _parse_block(self, lines: List[str], block_number: int, file_name: str) -> Optional[Span]:
        try:
            return self._build_span(lines, block_number, file_name)
        except (ValueError, TypeError, OverflowError) as e:
            self.logger.debug(f"Skipping span block {block_number} in {file_name}: {e}")
            return None

    def _build_span(self, lines: List[str], block_number: int, file_name: str) -> Optional[Span]:
        """
        Turn one block of lines into a Span.

        Args:
            lines: Lines of the block, terminator excluded
            block_number: 1-based position of the block, for diagnostics
            file_name: Name of the file, for diagnostics

        Returns:
            The span, or None if TraceId, SpanId or Name is missing
        """
        state = _BlockState()

        for line in lines:
            self._classify_line(state, line)

        state.flush_event()

        trace_id = state.fields.get("TraceId")
        span_id = state.fields.get("SpanId")
        name = state.fields.get("Name")
        if not trace_id or not span_id or not name:
            self.logger.debug(
                f"Skipping span block {block_number} in {file_name}: missing required fields "
                f"(TraceId={trace_id}, SpanId={span_id}, Name={name})"
            )
            return None

        return Span(
            trace_id=trace_id,
            span_id=span_id,
            parent_id=state.fields.get("ParentId") or NO_PARENT_ID,
            name=name,
            duration=parse_duration_ms(state.fields.get("Duration", "")),
            status=parse_status(state.fields.get("Status")),
            timestamp=state.timestamp,
            tags=state.tags,
            events=state.events,
        )

    def _classify_line(self, state: _BlockState, line: str):
        if line.startswith("[") and HEADER_MARKER in line:
            match = _HEADER_TIMESTAMP.search(line)
            if match:
                state.timestamp = parse_timestamp(match.group(1)) or datetime.min
            return

        for key in _FIELD_KEYS:
            prefix = f"{key}:"
            if line.startswith(prefix):
                state.fields[key] = line[len(prefix):].strip()
                state.section = _Section.NONE
                return

        if line.startswith("Tags:"):
            state.section = _Section.TAGS
        elif line.startswith("Events:"):
            state.flush_event()
            state.section = _Section.EVENTS
        elif state.section == _Section.TAGS and line.startswith("  "):
            pair = _split_assignment(line.lstrip())
            if pair:
                state.tags[pair[0]] = pair[1]
        elif state.section == _Section.EVENTS:
            self._parse_event_line(state, line)

    @staticmethod
    def _parse_event_line(state: _BlockState, line: str):
        header = _EVENT_HEADER.match(line)
        if header:
            state.flush_event()
            offset = parse_time_of_day(header.group(1)) or timedelta(0)
            midnight = datetime.combine(state.timestamp.date(), datetime.min.time())
            state.event_header = (midnight + offset, header.group(2))
            return

        if not line.startswith("    ") or state.event_header is None:
            return

        pair = _split_assignment(line.lstrip())
        if pair:
            state.event_attributes[pair[0]] = pair[1]
        elif state.event_attributes:
            # Multi-line value such as a stack trace
            last_key = next(reversed(state.event_attributes))
            state.event_attributes[last_key] += "\n" + line.lstrip()
