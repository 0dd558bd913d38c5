"""
Filter model produced by parsing a search query.
"""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from .span import SpanStatus


class TraceFilter(BaseModel):
    """Represents a parsed search filter. Every set field must match."""
    model_config = ConfigDict(frozen=True)

    status: Optional[SpanStatus] = Field(None, description="Required trace status")
    min_duration_ms: Optional[float] = Field(None, description="Minimum total duration in milliseconds")
    max_duration_ms: Optional[float] = Field(None, description="Maximum total duration in milliseconds")
    name_contains: Optional[str] = Field(None, description="Substring that some span name must contain")
    tag_filters: Dict[str, str] = Field(default_factory=dict, description="Tag key to value substring")
    has_error: bool = Field(False, description="Only traces with an error status")
    has_anomalies: bool = Field(False, description="Only traces flagged as anomalous")
    raw_query: Optional[str] = Field(None, description="The query text the filter was parsed from")

    @property
    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.min_duration_ms is None
            and self.max_duration_ms is None
            and not self.name_contains
            and not self.tag_filters
            and not self.has_error
            and not self.has_anomalies
        )
