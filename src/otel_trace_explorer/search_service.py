"""
Search query parsing and trace filtering.

Queries combine conditions with AND, e.g. ``HasError AND Name:"GET /api"``.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional
import logging
import re

from .models import SpanStatus, Trace, TraceFilter

_AND_SPLIT = re.compile(r"\s+AND\s+", re.IGNORECASE)
_STATUS = re.compile(r"(?<![\w.])Status(?:\s*:\s*|\s+)(\w+)", re.IGNORECASE)
_DURATION = re.compile(r"Duration\s*([><]=?)\s*(\d+(?:\.\d+)?)\s*(?:ms)?", re.IGNORECASE)
_NAME = re.compile(r"(?<![\w.])Name\s*:\s*\"?([^\"]+)\"?", re.IGNORECASE)
_HAS_ERROR = re.compile(r"\b(?:HasError|Errors?)\b", re.IGNORECASE)
_HAS_ANOMALIES = re.compile(r"\b(?:HasAnomal(?:y|ies)|Anomal(?:y|ies))\b", re.IGNORECASE)
_TAG = re.compile(r"([\w.]+)\s*=\s*\"?([^\"\s]+)\"?")

_RESERVED_KEYS = {"status", "duration", "name"}
_STATUS_VALUES = {
    "error": SpanStatus.ERROR,
    "ok": SpanStatus.OK,
    "unset": SpanStatus.UNSET,
}


class SearchService:
    """
    Parses search queries into filters and applies them to traces.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._anomalous_trace_ids: FrozenSet[str] = frozenset()

    def set_anomalous_trace_ids(self, trace_ids: Iterable[str]):
        """
        Replace the set of trace IDs matched by HasAnomalies.

        Args:
            trace_ids: IDs published by the anomaly detector
        """
        self._anomalous_trace_ids = frozenset(trace_ids)
        self.logger.debug(f"Updated anomalous trace IDs: {len(self._anomalous_trace_ids)} traces")

    def parse_query(self, query: Optional[str]) -> TraceFilter:
        """
        Parse a search query into a filter.

        Args:
            query: Conditions joined by AND

        Returns:
            The merged filter; empty for a blank query
        """
        if not query or not query.strip():
            return TraceFilter()

        parts = [part.strip() for part in _AND_SPLIT.split(query) if part.strip()]

        merged: Dict[str, object] = {}
        tag_filters: Dict[str, str] = {}
        for part in parts:
            condition = self._parse_condition(part)
            for key, value in condition.items():
                if key == "tag_filters":
                    tag_filters.update(value)
                elif key in ("has_error", "has_anomalies"):
                    merged[key] = merged.get(key, False) or value
                else:
                    merged[key] = value

        trace_filter = TraceFilter(raw_query=query, tag_filters=tag_filters, **merged)

        self.logger.debug(
            f"Parsed query '{query}' into filter: status={trace_filter.status}, "
            f"min_duration={trace_filter.min_duration_ms}, max_duration={trace_filter.max_duration_ms}, "
            f"name={trace_filter.name_contains}, has_error={trace_filter.has_error}, "
            f"tags={len(trace_filter.tag_filters)}"
        )
        return trace_filter

    @staticmethod
    def _parse_condition(condition: str) -> Dict[str, object]:
        """
        Recognize every filter a single condition expresses.

        Recognizers are independent, so one condition may set several fields.
        """
        fields: Dict[str, object] = {}

        status_match = _STATUS.search(condition)
        if status_match:
            status = _STATUS_VALUES.get(status_match.group(1).lower())
            if status is not None:
                fields["status"] = status

        duration_match = _DURATION.search(condition)
        if duration_match:
            operator, value = duration_match.group(1), float(duration_match.group(2))
            if operator.startswith(">"):
                fields["min_duration_ms"] = value
            else:
                fields["max_duration_ms"] = value

        name_match = _NAME.search(condition)
        if name_match:
            name = name_match.group(1).strip().strip('"')
            if name:
                fields["name_contains"] = name

        if _HAS_ERROR.search(condition):
            fields["has_error"] = True

        if _HAS_ANOMALIES.search(condition):
            fields["has_anomalies"] = True

        tags = {}
        for key, value in _TAG.findall(condition):
            if key.lower() not in _RESERVED_KEYS:
                tags[key] = value.strip('"')
        if tags:
            fields["tag_filters"] = tags

        return fields

    def filter_traces(self, traces: Iterable[Trace], trace_filter: TraceFilter) -> List[Trace]:
        """
        Filter traces, preserving their order.

        Args:
            traces: Traces to filter
            trace_filter: Filter from parse_query

        Returns:
            Traces matching every set constraint
        """
        if trace_filter.is_empty:
            return list(traces)

        anomalous_ids = self._anomalous_trace_ids
        result = [trace for trace in traces if self._matches(trace, trace_filter, anomalous_ids)]
        self.logger.debug(f"Filtered traces: {len(result)} matches")
        return result

    @staticmethod
    def _matches(trace: Trace, trace_filter: TraceFilter, anomalous_ids: FrozenSet[str]) -> bool:
        if trace_filter.status is not None and trace.status != trace_filter.status:
            return False

        if trace_filter.has_error and trace.status != SpanStatus.ERROR:
            return False

        if trace_filter.has_anomalies and trace.trace_id not in anomalous_ids:
            return False

        # >, >= and <, <= are not distinguished: both bounds are inclusive
        duration_ms = trace.total_duration_ms
        if trace_filter.min_duration_ms is not None and duration_ms < trace_filter.min_duration_ms:
            return False
        if trace_filter.max_duration_ms is not None and duration_ms > trace_filter.max_duration_ms:
            return False

        if trace_filter.name_contains:
            needle = trace_filter.name_contains.lower()
            if not any(needle in span.name.lower() for span in trace.all_spans):
                return False

        for key, value in trace_filter.tag_filters.items():
            needle = value.lower()
            if not any(key in span.tags and needle in span.tags[key].lower() for span in trace.all_spans):
                return False

        return True
