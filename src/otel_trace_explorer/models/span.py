"""
Span model for representing individual spans in distributed traces.
"""

from enum import Enum
from typing import Dict, List
from datetime import datetime, timedelta
from pydantic import BaseModel, ConfigDict, Field

NO_PARENT_ID = "0000000000000000"


class SpanStatus(str, Enum):
    """Status of a span as reported by the instrumented application."""
    UNSET = "Unset"
    OK = "Ok"
    ERROR = "Error"


class SpanEvent(BaseModel):
    """Represents an event within a span (e.g. an exception or log message)."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Time the event occurred")
    name: str = Field(..., description="Name of the event")
    attributes: Dict[str, str] = Field(default_factory=dict, description="Event attributes")


class Span(BaseModel):
    """Represents a single span in a distributed trace."""
    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(..., description="Identifier for the trace this span belongs to")
    span_id: str = Field(..., description="Unique identifier for the span")
    parent_id: str = Field(NO_PARENT_ID, description="Identifier of the parent span")
    name: str = Field(..., description="Name of the span")
    duration: timedelta = Field(timedelta(0), description="Duration of the span")
    status: SpanStatus = Field(SpanStatus.UNSET, description="Status of the span")
    timestamp: datetime = Field(datetime.min, description="Start time of the span")
    tags: Dict[str, str] = Field(default_factory=dict, description="Span tags")
    events: List[SpanEvent] = Field(default_factory=list, description="Events recorded within the span")
    source_file: str = Field("", description="Path of the file the span was read from")

    @property
    def is_root(self) -> bool:
        """True if this span has no parent."""
        return not self.parent_id or self.parent_id == NO_PARENT_ID

    @property
    def duration_ms(self) -> float:
        return self.duration / timedelta(milliseconds=1)

    def with_source(self, file_path: str) -> "Span":
        """Return a copy of the span tagged with its originating file."""
        return self.model_copy(update={"source_file": file_path})
