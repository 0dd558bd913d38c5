"""
Runtime configuration for the trace explorer.
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
import logging
import os

from dotenv import load_dotenv

from .models import AnomalyDetectionConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRACE_EXPLORER_"

T = TypeVar("T")


def _env(name: str, default: T, convert: Callable[[str], T]) -> T:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        logger.warning(f"Invalid value '{raw}' for {ENV_PREFIX}{name}, using default {default}")
        return default


@dataclass
class ExplorerConfig:
    """Configuration for a trace exploration session."""
    debounce_seconds: float = 0.5
    confidence_level: float = 0.95
    min_samples_required: int = 10
    duration_threshold_multiplier: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ExplorerConfig":
        """
        Build a configuration from TRACE_EXPLORER_* environment variables.

        A .env file is loaded first if present; real environment variables win.
        """
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            debounce_seconds=_env("DEBOUNCE_MS", defaults.debounce_seconds * 1000, float) / 1000,
            confidence_level=_env("CONFIDENCE", defaults.confidence_level, float),
            min_samples_required=_env("MIN_SAMPLES", defaults.min_samples_required, int),
            duration_threshold_multiplier=_env("MULTIPLIER", defaults.duration_threshold_multiplier, float),
            log_level=_env("LOG_LEVEL", defaults.log_level, str.upper),
        )

    def anomaly_config(self) -> AnomalyDetectionConfig:
        return AnomalyDetectionConfig(
            confidence_level=self.confidence_level,
            min_samples_required=self.min_samples_required,
            duration_threshold_multiplier=self.duration_threshold_multiplier,
        )
