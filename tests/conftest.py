"""
Shared fixtures for trace explorer tests.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional

import pytest

from otel_trace_explorer.models import NO_PARENT_ID, Span, SpanStatus, Trace


def make_span(
    trace_id: str = "trace-1",
    span_id: str = "span-1",
    parent_id: str = NO_PARENT_ID,
    name: str = "GET /api/users",
    duration_ms: float = 100.0,
    status: SpanStatus = SpanStatus.OK,
    timestamp: Optional[datetime] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Span:
    return Span(
        trace_id=trace_id,
        span_id=span_id,
        parent_id=parent_id,
        name=name,
        duration=timedelta(milliseconds=duration_ms),
        status=status,
        timestamp=timestamp or datetime(2026, 1, 30, 20, 16, 0),
        tags=tags or {},
    )


def make_trace(trace_id: str, duration_ms: float = 100.0, status: SpanStatus = SpanStatus.OK,
               name: str = "GET /api/users", **kwargs) -> Trace:
    root = make_span(trace_id=trace_id, span_id=f"{trace_id}-root", name=name,
                     duration_ms=duration_ms, status=status, **kwargs)
    return Trace(trace_id=trace_id, root_span=root, all_spans=[root])


@pytest.fixture
def span_factory():
    return make_span


@pytest.fixture
def trace_factory():
    return make_trace


SAMPLE_LOG = """[2026-01-30 20:16:00.949] TRACE
TraceId: abc123
SpanId: def456
ParentId: 0000000000000000
Name: TestOperation
Duration: 100.5ms
Status: Ok
Tags:
  test.key = test.value
--------------------------------------------------------------------------------
"""


@pytest.fixture
def sample_log_file(tmp_path):
    path = tmp_path / "sample.log"
    path.write_text(SAMPLE_LOG, encoding="utf-8")
    return str(path)
