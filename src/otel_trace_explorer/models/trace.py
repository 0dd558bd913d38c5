"""
Trace model for representing complete traces as trees of spans.
"""

import os
from enum import Enum
from typing import Iterator, List, Set, Tuple
from datetime import timedelta
from pydantic import BaseModel, ConfigDict, Field

from .span import Span, SpanStatus


class Trace(BaseModel):
    """Represents a complete trace as a tree of spans."""
    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(..., description="Unique identifier for the trace")
    root_span: Span = Field(..., description="Span elected as the root of the trace")
    all_spans: List[Span] = Field(default_factory=list, description="List of spans in the trace")

    @property
    def total_duration(self) -> timedelta:
        return self.root_span.duration

    @property
    def total_duration_ms(self) -> float:
        return self.root_span.duration_ms

    @property
    def status(self) -> SpanStatus:
        """Error if any span failed, Ok if every span succeeded, Unset otherwise."""
        if any(span.status == SpanStatus.ERROR for span in self.all_spans):
            return SpanStatus.ERROR
        if all(span.status == SpanStatus.OK for span in self.all_spans):
            return SpanStatus.OK
        return SpanStatus.UNSET

    @property
    def entry_point(self) -> str:
        return self.root_span.name

    @property
    def span_count(self) -> int:
        return len(self.all_spans)

    def get_children(self, parent: Span) -> List[Span]:
        """Get the direct children of the given span."""
        return [span for span in self.all_spans if span.parent_id == parent.span_id]

    def iter_hierarchy(self) -> Iterator[Tuple[int, Span]]:
        """
        Walk the span tree depth-first starting at the root.

        Spans already visited are never revisited, so a parent-id cycle
        terminates. Spans that cannot be reached from the root are yielded
        afterwards at depth 0.

        Yields:
            Tuples of (depth, span)
        """
        root_index = next(
            (i for i, span in enumerate(self.all_spans) if span is self.root_span),
            next((i for i, span in enumerate(self.all_spans) if span == self.root_span), None),
        )
        if root_index is None:
            yield 0, self.root_span

        visited: Set[int] = set()
        stack: List[Tuple[int, int]] = [] if root_index is None else [(0, root_index)]

        while stack:
            depth, index = stack.pop()
            if index in visited:
                continue
            visited.add(index)
            span = self.all_spans[index]
            yield depth, span

            children = [
                i for i, child in enumerate(self.all_spans)
                if child.parent_id == span.span_id and i not in visited
            ]
            for child_index in reversed(children):
                stack.append((depth + 1, child_index))

        for index, span in enumerate(self.all_spans):
            if index not in visited:
                visited.add(index)
                yield 0, span


class TraceFileType(str, Enum):
    """Supported trace file formats."""
    LOG = "Log"
    JSONL = "Jsonl"


class TraceFile(BaseModel):
    """Represents a loaded trace file and the spans parsed from it."""

    file_path: str = Field(..., description="Path of the trace file")
    file_type: TraceFileType = Field(..., description="Format of the trace file")
    spans: List[Span] = Field(default_factory=list, description="Spans parsed from the file")

    @property
    def file_name(self) -> str:
        return os.path.basename(self.file_path)

    @property
    def span_count(self) -> int:
        return len(self.spans)
