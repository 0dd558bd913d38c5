"""
Unit tests for parser selection by file extension.
"""

import pytest

from otel_trace_explorer.exceptions import UnsupportedFileTypeError
from otel_trace_explorer.models import TraceFileType
from otel_trace_explorer.parsers import JsonlFileParser, LogFileParser, TraceParserFactory


@pytest.fixture
def factory():
    return TraceParserFactory()


class TestTraceParserFactory:

    @pytest.mark.parametrize("path", ["traces.log", "/var/log/App.LOG", "dir.d/x.Log"])
    def test_log_files_use_log_parser(self, factory, path):
        assert isinstance(factory.get_parser(path), LogFileParser)

    @pytest.mark.parametrize("path", ["spans.jsonl", "SPANS.JSONL"])
    def test_jsonl_files_use_jsonl_parser(self, factory, path):
        assert isinstance(factory.get_parser(path), JsonlFileParser)

    @pytest.mark.parametrize("path", ["spans.json", "notes.txt", "no_extension", "archive.log.gz"])
    def test_unsupported_files(self, factory, path):
        assert factory.get_parser(path) is None
        assert factory.is_supported(path) is False

    def test_require_parser_raises_for_unsupported(self, factory):
        with pytest.raises(UnsupportedFileTypeError):
            factory.require_parser("spans.csv")

    def test_supported_extensions(self, factory):
        assert sorted(factory.supported_extensions) == [".jsonl", ".log"]

    def test_file_types(self, factory):
        assert factory.get_file_type("a.log") == TraceFileType.LOG
        assert factory.get_file_type("a.JSONL") == TraceFileType.JSONL
