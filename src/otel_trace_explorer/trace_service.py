"""
Loading of trace files and stitching of their spans into traces.
"""

from typing import Dict, Iterable, List, Optional
from collections import OrderedDict
import logging

from .exceptions import TraceFileReadError
from .models import Span, Trace, TraceFile
from .parsers import TraceParserFactory


class TraceService:
    """
    Loads trace files and stitches the spans they contain into traces.
    """

    def __init__(self, parser_factory: Optional[TraceParserFactory] = None):
        """
        Initialize the TraceService.

        Args:
            parser_factory: Factory used to pick a parser per file
        """
        self.parser_factory = parser_factory or TraceParserFactory()
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_file(self, file_path: str) -> Optional[TraceFile]:
        """
        Parse a single trace file.

        Args:
            file_path: Path to a .log or .jsonl file

        Returns:
            The loaded TraceFile, or None if the file is unsupported or unreadable
        """
        parser = self.parser_factory.get_parser(file_path)
        if parser is None:
            self.logger.warning(f"No parser found for file: {file_path}")
            return None

        self.logger.info(f"Parsing file: {file_path}")
        try:
            spans = parser.parse(file_path)
        except TraceFileReadError as e:
            self.logger.error(f"Error loading file: {e}")
            return None
        except Exception as e:
            self.logger.error(f"Unexpected error loading file '{file_path}': {e}", exc_info=True)
            return None

        trace_file = TraceFile(
            file_path=file_path,
            file_type=self.parser_factory.get_file_type(file_path),
            spans=[span.with_source(file_path) for span in spans],
        )
        self.logger.info(f"Loaded {trace_file.span_count} spans from {file_path}")
        return trace_file

    def load_files(self, file_paths: Iterable[str]) -> List[TraceFile]:
        """
        Parse several trace files. A bad file is logged and skipped.

        Args:
            file_paths: Paths to load, in order

        Returns:
            The successfully loaded files
        """
        trace_files = []
        for file_path in file_paths:
            trace_file = self.load_file(file_path)
            if trace_file is not None:
                trace_files.append(trace_file)
        return trace_files

    def stitch_traces(self, trace_files: Iterable[TraceFile]) -> List[Trace]:
        """
        Group spans from all files by trace ID and build Trace aggregates.

        Args:
            trace_files: Loaded files whose spans should be merged

        Returns:
            Traces ordered by root span timestamp, most recent first
        """
        spans_by_trace_id: Dict[str, List[Span]] = OrderedDict()
        span_count = 0
        for trace_file in trace_files:
            for span in trace_file.spans:
                spans_by_trace_id.setdefault(span.trace_id, []).append(span)
                span_count += 1

        self.logger.info(f"Stitching {span_count} spans into traces")

        traces = [
            Trace(trace_id=trace_id, root_span=self._elect_root(trace_id, spans), all_spans=spans)
            for trace_id, spans in spans_by_trace_id.items()
        ]

        self.logger.info(f"Created {len(traces)} traces")
        traces.sort(key=lambda trace: trace.trace_id)
        traces.sort(key=lambda trace: trace.root_span.timestamp, reverse=True)
        return traces

    def _elect_root(self, trace_id: str, spans: List[Span]) -> Span:
        """
        Pick the root span of a trace.

        Prefers an explicit root, then a span whose parent is not part of the
        trace, and finally the earliest span.
        """
        for span in spans:
            if span.is_root:
                return span

        span_ids = {span.span_id for span in spans}
        for span in spans:
            if span.parent_id not in span_ids:
                return span

        self.logger.warning(f"No root span found for trace {trace_id}, using earliest span")
        return min(spans, key=lambda span: span.timestamp)

    def clear(self):
        """Reset accumulated state. Parsers keep nothing between files."""
        self.logger.info("Cleared all trace data")
