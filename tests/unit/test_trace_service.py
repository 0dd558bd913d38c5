"""
Unit tests for loading trace files and stitching spans into traces.
"""

import itertools
import json
import logging
import pytest
from datetime import datetime, timedelta

from otel_trace_explorer.models import NO_PARENT_ID, TraceFile, TraceFileType
from otel_trace_explorer.trace_service import TraceService
from conftest import make_span

T0 = datetime(2026, 1, 30, 20, 0, 0)


@pytest.fixture
def service():
    return TraceService()


def trace_file(path, *spans):
    return TraceFile(file_path=path, file_type=TraceFileType.JSONL, spans=list(spans))


def signature(traces):
    return {trace.trace_id: frozenset(span.span_id for span in trace.all_spans) for trace in traces}


class TestLoadFiles:
    """Test cases for TraceService.load_files."""

    def test_loads_supported_and_skips_bad_files(self, service, sample_log_file, tmp_path, caplog):
        jsonl = tmp_path / "spans.jsonl"
        jsonl.write_text(json.dumps({"traceId": "t", "spanId": "s", "name": "n"}) + "\n", encoding="utf-8")
        unsupported = tmp_path / "notes.txt"
        unsupported.write_text("hello", encoding="utf-8")
        missing = tmp_path / "missing.log"

        with caplog.at_level(logging.WARNING):
            files = service.load_files([sample_log_file, str(unsupported), str(missing), str(jsonl)])

        assert [f.file_path for f in files] == [sample_log_file, str(jsonl)]
        assert [f.file_type for f in files] == [TraceFileType.LOG, TraceFileType.JSONL]
        assert "No parser found" in caplog.text
        assert "Error loading file" in caplog.text

    def test_stamps_source_file_on_spans(self, service, sample_log_file):
        trace_file = service.load_file(sample_log_file)

        assert trace_file.span_count == 1
        assert trace_file.spans[0].source_file == sample_log_file

    def test_load_file_returns_none_for_unsupported(self, service):
        assert service.load_file("trace.csv") is None


class TestStitchTraces:
    """Test cases for TraceService.stitch_traces."""

    def test_merges_spans_across_files(self, service):
        root = make_span(trace_id="t1", span_id="a")
        child = make_span(trace_id="t1", span_id="b", parent_id="a")
        other = make_span(trace_id="t2", span_id="c")

        traces = service.stitch_traces([trace_file("one.jsonl", root, other), trace_file("two.jsonl", child)])

        assert signature(traces) == {"t1": {"a", "b"}, "t2": {"c"}}

    def test_prefers_explicit_root(self, service):
        child = make_span(span_id="b", parent_id="a")
        root = make_span(span_id="a", parent_id="")

        trace = service.stitch_traces([trace_file("f.jsonl", child, root)])[0]

        assert trace.root_span.span_id == "a"

    def test_root_is_span_whose_parent_is_outside_trace(self, service):
        child = make_span(span_id="b", parent_id="a")
        partial_root = make_span(span_id="a", parent_id="upstream-service")

        trace = service.stitch_traces([trace_file("f.jsonl", child, partial_root)])[0]

        assert trace.root_span.span_id == "a"

    def test_cyclic_group_falls_back_to_earliest_span(self, service, caplog):
        late = make_span(span_id="a", parent_id="b", timestamp=T0 + timedelta(seconds=5))
        early = make_span(span_id="b", parent_id="a", timestamp=T0)

        with caplog.at_level(logging.WARNING):
            trace = service.stitch_traces([trace_file("f.jsonl", late, early)])[0]

        assert trace.root_span.span_id == "b"
        assert "No root span found" in caplog.text

    def test_orders_by_root_timestamp_descending(self, service):
        spans = [
            make_span(trace_id=f"t{i}", span_id=f"s{i}", timestamp=T0 + timedelta(minutes=i))
            for i in range(3)
        ]

        traces = service.stitch_traces([trace_file("f.jsonl", *spans)])

        assert [trace.trace_id for trace in traces] == ["t2", "t1", "t0"]

    def test_stitching_is_order_independent(self, service):
        files = [
            trace_file("a.jsonl", make_span(trace_id="t1", span_id="a"), make_span(trace_id="t2", span_id="x")),
            trace_file("b.jsonl", make_span(trace_id="t1", span_id="b", parent_id="a")),
            trace_file("c.jsonl", make_span(trace_id="t2", span_id="y", parent_id="x"),
                       make_span(trace_id="t3", span_id="z")),
        ]

        expected = service.stitch_traces(files)
        for permutation in itertools.permutations(files):
            traces = service.stitch_traces(list(permutation))
            assert signature(traces) == signature(expected)
            assert [trace.trace_id for trace in traces] == [trace.trace_id for trace in expected]

    def test_no_files_gives_no_traces(self, service):
        assert service.stitch_traces([]) == []

    def test_root_with_sentinel_parent(self, service):
        root = make_span(span_id="a", parent_id=NO_PARENT_ID)

        trace = service.stitch_traces([trace_file("f.jsonl", root)])[0]

        assert trace.root_span == root
        assert trace.span_count == 1
