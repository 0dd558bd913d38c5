"""
Streaming IID spike detection over a sequence of values.

Every point is compared against a bounded window of the points before it.
The window is smoothed with a Gaussian kernel and the point's two-sided
tail probability under that density is its p-value.
"""

from typing import List, NamedTuple, Sequence

import numpy as np
from scipy.stats import norm

# Points with less history than this are never flagged
MIN_HISTORY = 2


class SpikePrediction(NamedTuple):
    """Detector output for one point."""
    alert: bool
    score: float
    p_value: float


class IidSpikeDetector:
    """
    Detects spikes in a sequence assumed to be independent and identically distributed.
    """

    def __init__(self, confidence: float, pvalue_history_length: int):
        """
        Initialize the detector.

        Args:
            confidence: Confidence level in (0, 1); a point alerts when its
                p-value is below 1 - confidence
            pvalue_history_length: Number of preceding points a point is compared against
        """
        if not 0.0 < confidence < 1.0:
            raise ValueError(f"confidence must be in (0, 1), got {confidence}")
        if pvalue_history_length < MIN_HISTORY:
            raise ValueError(f"pvalue_history_length must be at least {MIN_HISTORY}, got {pvalue_history_length}")
        self.confidence = confidence
        self.pvalue_history_length = pvalue_history_length

    def detect(self, values: Sequence[float]) -> List[SpikePrediction]:
        """
        Score every point of the sequence.

        Args:
            values: The sequence, in arrival order

        Returns:
            One prediction per input point
        """
        data = np.asarray(values, dtype=float)
        if not np.all(np.isfinite(data)):
            raise ValueError("spike detection requires finite values")

        alert_threshold = 1.0 - self.confidence
        predictions = []
        for i, value in enumerate(data):
            history = data[max(0, i - self.pvalue_history_length):i]
            if len(history) < MIN_HISTORY:
                predictions.append(SpikePrediction(False, float(value), 0.5))
                continue

            p_value = self._kernel_p_value(value, history)
            predictions.append(SpikePrediction(p_value < alert_threshold, float(value), p_value))

        return predictions

    @staticmethod
    def _kernel_p_value(value: float, history: np.ndarray) -> float:
        bandwidth = 1.06 * history.std(ddof=1) * len(history) ** -0.2
        if bandwidth <= 0.0:
            # Constant history: any departure is maximally surprising
            bandwidth = max(abs(float(history[0])) * 1e-6, 1e-9)

        cdf = float(norm.cdf((value - history) / bandwidth).mean())
        return float(min(1.0, 2.0 * min(cdf, 1.0 - cdf)))
