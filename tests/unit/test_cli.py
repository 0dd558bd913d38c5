"""
Unit tests for the command-line entry point.
"""

import json

import pytest

from otel_trace_explorer.cli import expand_paths, format_trace, main
from otel_trace_explorer.exceptions import NothingToDoError
from otel_trace_explorer.models import Trace
from otel_trace_explorer.parsers import TraceParserFactory

from conftest import make_span


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CONFIDENCE", "MIN_SAMPLES", "MULTIPLIER", "LOG_LEVEL", "DEBOUNCE_MS"):
        monkeypatch.delenv(f"TRACE_EXPLORER_{name}", raising=False)


def write_spans(path, durations_ms):
    lines = [
        json.dumps({"traceId": f"t{i:02d}", "spanId": f"s{i:02d}", "name": "GET /api/users",
                    "duration": f"{d}ms", "status": "Ok"})
        for i, d in enumerate(durations_ms)
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


class TestExpandPaths:

    def test_expands_directories(self, tmp_path):
        (tmp_path / "b.jsonl").write_text("", encoding="utf-8")
        (tmp_path / "a.log").write_text("", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("", encoding="utf-8")

        paths = expand_paths([str(tmp_path)], TraceParserFactory())

        assert paths == [str(tmp_path / "a.log"), str(tmp_path / "b.jsonl")]

    def test_nothing_to_do(self, tmp_path):
        with pytest.raises(NothingToDoError):
            expand_paths([str(tmp_path / "notes.txt")], TraceParserFactory())


class TestFormatTrace:

    def test_tree_lists_children_indented(self):
        root = make_span(span_id="root", name="GET /orders")
        child = make_span(span_id="child", parent_id="root", name="SELECT orders", duration_ms=40)
        trace = Trace(trace_id="trace-1", root_span=root, all_spans=[root, child])

        lines = format_trace(trace, tree=True).splitlines()

        assert lines[0].startswith("trace-1")
        assert lines[1] == "  GET /orders [Ok] 100.0ms"
        assert lines[2] == "    SELECT orders [Ok] 40.0ms"


class TestMain:

    def test_prints_matching_traces(self, tmp_path, capsys):
        path = write_spans(tmp_path / "spans.jsonl", [100, 900])

        exit_code = main([path, "--query", "Duration>500ms"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "1 of 2 traces match" in out
        assert "t01" in out

    def test_reports_anomalies(self, tmp_path, capsys):
        path = write_spans(tmp_path / "spans.jsonl", [100] * 19 + [1000])

        exit_code = main([path, "--anomalies", "--query", "HasAnomalies"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "in 1 traces" in out
        assert "1 of 20 traces match" in out

    def test_nothing_to_do_exits_with_error(self, tmp_path):
        assert main([str(tmp_path / "notes.txt")]) == 1

    @pytest.mark.parametrize("option, value, field", [
        ("--confidence", "1.5", "confidence_level"),
        ("--min-samples", "0", "min_samples_required"),
        ("--multiplier", "-1", "duration_threshold_multiplier"),
    ])
    def test_invalid_detection_settings_exit_with_usage_error(self, tmp_path, capsys, option, value, field):
        path = write_spans(tmp_path / "spans.jsonl", [100])

        with pytest.raises(SystemExit) as exc_info:
            main([path, option, value])

        assert exc_info.value.code == 2
        assert f"invalid {field}" in capsys.readouterr().err
