"""
Statistical and streaming anomaly detection over span and trace durations.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple
from collections import OrderedDict
import asyncio
import logging
import threading

import numpy as np

from .models import AnomalyDetectionConfig, AnomalyResult, AnomalyType, Span, Trace
from .spike_detection import IidSpikeDetector

# Spike detection needs this many samples in a group
MIN_SPIKE_SAMPLES = 12
MAX_PVALUE_HISTORY = 50


def z_score_threshold(confidence_level: float) -> float:
    """Two-sided z threshold for common confidence levels."""
    if confidence_level >= 0.99:
        return 2.576
    if confidence_level >= 0.95:
        return 1.96
    return 1.645


def mean_and_std(values: Sequence[float]) -> Tuple[float, float]:
    """Sample mean and Bessel-corrected standard deviation (0 for n <= 1)."""
    data = np.asarray(values, dtype=float)
    if len(data) == 0:
        return 0.0, 0.0
    mean = float(data.mean())
    std = float(data.std(ddof=1)) if len(data) > 1 else 0.0
    return mean, std


def deduplicate(results: Iterable[AnomalyResult]) -> List[AnomalyResult]:
    """Keep the most severe result per (trace_id, span_id), in first-seen order."""
    best: Dict[Tuple[str, str], AnomalyResult] = OrderedDict()
    for result in results:
        key = (result.trace_id, result.span_id)
        current = best.get(key)
        if current is None or result.severity > current.severity:
            best[key] = result
    return list(best.values())


class AnomalyDetectionService:
    """
    Detects duration anomalies in traces and tracks which traces are anomalous.

    Detection runs group by group in worker threads and yields to the event
    loop in between, so cancelling the awaiting task stops the pass. The
    anomalous trace IDs are only replaced once a pass completes.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self._anomalous_trace_ids: FrozenSet[str] = frozenset()

    async def detect_anomalies(
        self,
        traces: Sequence[Trace],
        config: Optional[AnomalyDetectionConfig] = None,
    ) -> List[AnomalyResult]:
        """
        Analyze traces for span-level and trace-level duration anomalies.

        Args:
            traces: Traces to analyze
            config: Detection settings; defaults apply when omitted

        Returns:
            Detected anomalies; empty, with the published IDs cleared, when there are too few traces

        Raises:
            asyncio.CancelledError: If the pass is cancelled; earlier results stay published
        """
        config = config or AnomalyDetectionConfig()
        if len(traces) < config.min_samples_required:
            self.logger.warning(
                f"Not enough traces for anomaly detection. Need {config.min_samples_required}, have {len(traces)}"
            )
            self._publish(())
            return []

        results: List[AnomalyResult] = []
        for name, spans in self._group_spans_by_name(traces, config.min_samples_required).items():
            self.logger.debug(f"Analyzing {len(spans)} spans named '{name}'")
            results.extend(await asyncio.to_thread(self._detect_duration_anomalies, spans, config))

        results.extend(await asyncio.to_thread(self._detect_trace_duration_anomalies, traces, config))

        self._publish(result.trace_id for result in results)
        self.logger.info(
            f"Detected {len(results)} anomalies across {len(self.get_anomalous_trace_ids())} traces"
        )
        return results

    async def detect_span_anomalies(
        self,
        spans: Sequence[Span],
        config: Optional[AnomalyDetectionConfig] = None,
    ) -> List[AnomalyResult]:
        """
        Detect anomalies within spans of the same name/type.

        Does not change the published anomalous trace IDs.
        """
        config = config or AnomalyDetectionConfig()
        if len(spans) < config.min_samples_required:
            return []
        return await asyncio.to_thread(self._detect_duration_anomalies, list(spans), config)

    def get_anomalous_trace_ids(self) -> FrozenSet[str]:
        """Get the trace IDs flagged by the last completed detection pass."""
        with self._lock:
            return self._anomalous_trace_ids

    def clear(self):
        self._publish(())

    def _publish(self, trace_ids: Iterable[str]):
        snapshot = frozenset(trace_ids)
        with self._lock:
            self._anomalous_trace_ids = snapshot

    @staticmethod
    def _group_spans_by_name(traces: Sequence[Trace], min_samples: int) -> Dict[str, List[Span]]:
        groups: Dict[str, List[Span]] = OrderedDict()
        for trace in traces:
            for span in trace.all_spans:
                groups.setdefault(span.name, []).append(span)
        return OrderedDict((name, spans) for name, spans in groups.items() if len(spans) >= min_samples)

    def _detect_duration_anomalies(self, spans: List[Span], config: AnomalyDetectionConfig) -> List[AnomalyResult]:
        durations = [span.duration_ms for span in spans]
        mean, std_dev = mean_and_std(durations)
        threshold = z_score_threshold(config.confidence_level)

        results = []
        for span, duration in zip(spans, durations):
            z_score = abs(duration - mean) / std_dev if std_dev > 0 else 0.0
            if z_score > threshold or duration > mean * config.duration_threshold_multiplier:
                results.append(AnomalyResult(
                    trace_id=span.trace_id,
                    span_id=span.span_id,
                    anomaly_type=AnomalyType.DURATION,
                    description=f"Span '{span.name}' has unusual duration ({duration:.0f}ms vs avg {mean:.0f}ms)",
                    severity=min(1.0, z_score / (threshold * 2)),
                    expected_value=mean,
                    actual_value=duration,
                ))

        if len(spans) >= MIN_SPIKE_SAMPLES:
            try:
                results.extend(self._detect_spikes(spans, durations, config))
            except Exception as e:
                self.logger.warning(
                    f"Spike detection failed for '{spans[0].name}', using statistical results only: {e}"
                )

        return deduplicate(results)

    @staticmethod
    def _detect_spikes(
        spans: List[Span], durations: List[float], config: AnomalyDetectionConfig
    ) -> List[AnomalyResult]:
        history_length = min(len(spans) // 2, MAX_PVALUE_HISTORY)
        detector = IidSpikeDetector(config.confidence_level, history_length)
        significance = 1.0 - config.confidence_level

        results = []
        for span, prediction in zip(spans, detector.detect(durations)):
            if prediction.alert and prediction.p_value < significance:
                results.append(AnomalyResult(
                    trace_id=span.trace_id,
                    span_id=span.span_id,
                    anomaly_type=AnomalyType.SPIKE,
                    description=f"Spike detected in '{span.name}' (p-value: {prediction.p_value:.4f})",
                    severity=min(1.0, max(0.0, 1.0 - prediction.p_value)),
                    actual_value=prediction.score,
                ))
        return results

    def _detect_trace_duration_anomalies(
        self, traces: Sequence[Trace], config: AnomalyDetectionConfig
    ) -> List[AnomalyResult]:
        durations = [trace.total_duration_ms for trace in traces]
        mean, std_dev = mean_and_std(durations)
        threshold = z_score_threshold(config.confidence_level)

        results = []
        for trace, duration in zip(traces, durations):
            z_score = abs(duration - mean) / std_dev if std_dev > 0 else 0.0
            if z_score > threshold:
                results.append(AnomalyResult(
                    trace_id=trace.trace_id,
                    span_id=trace.root_span.span_id,
                    anomaly_type=AnomalyType.TRACE_DURATION,
                    description=f"Trace has unusual total duration ({duration:.0f}ms vs avg {mean:.0f}ms)",
                    severity=min(1.0, z_score / (threshold * 2)),
                    expected_value=mean,
                    actual_value=duration,
                ))
        return results
