"""Metrics interface and provider selection.

Provides a thin metrics interface with a safe no-op default (NoopMetrics) and
a Prometheus-based implementation selected by configuration.

Interface methods:
  - define_counter(name, description, labels: list | None = None)
  - define_histogram(name, description, labels: list | None = None, buckets=None)
  - inc(name, value: int = 1, labels: dict | None = None)
  - observe(name, value: float, labels: dict | None = None)

Environment variables:
  - OBS_ENABLE_PROMETHEUS=false (default, uses NoopMetrics)
  - PROMETHEUS_PORT=8001
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .null_metrics import NoopMetrics

# Global state for degraded mode tracking
_degraded_mode = False
_degraded_reasons: List[str] = []


@runtime_checkable
class Metrics(Protocol):
    def define_counter(self, name: str, description: str, labels: Optional[list] = None) -> None: ...
    def define_histogram(
        self, name: str, description: str, labels: Optional[list] = None, buckets: Optional[tuple] = None
    ) -> None: ...
    def inc(self, name: str, value: int = 1, labels: Optional[dict] = None) -> None: ...
    def observe(self, name: str, value: float, labels: Optional[dict] = None) -> None: ...


def get_metrics(config: Optional[Dict[str, Any]] = None) -> Metrics:
    """Return a metrics provider selected by configuration.

    - OBS_ENABLE_PROMETHEUS=true: Prometheus, falling back to Noop if the
      exporter cannot start
    - otherwise: NoopMetrics
    """
    global _degraded_mode

    logger = logging.getLogger(__name__)
    config = config or {}

    if "OBS_ENABLE_PROMETHEUS" in config:
        prometheus_enabled = bool(config["OBS_ENABLE_PROMETHEUS"])
    else:
        prometheus_enabled = os.getenv("OBS_ENABLE_PROMETHEUS", "false").lower() == "true"

    if not prometheus_enabled:
        logger.info("📊 Prometheus disabled by config: using NoopMetrics", extra={"subsys": "metrics"})
        return NoopMetrics()

    from .prometheus_metrics import PrometheusMetrics

    port = int(config.get("PROMETHEUS_PORT", os.getenv("PROMETHEUS_PORT", "8001")))
    try:
        metrics_instance = PrometheusMetrics(port=port)
    except OSError as e:
        # Port bind failure and the like
        reason = f"Prometheus init failed: {e}"
        _degraded_mode = True
        _degraded_reasons.append(reason)
        logger.warning(
            f"📊 Prometheus failed to initialize, falling back to NoopMetrics: {reason}",
            extra={"subsys": "metrics"},
        )
        return NoopMetrics()

    logger.info("📊 Prometheus metrics initialized successfully", extra={"subsys": "metrics"})
    return metrics_instance


def is_degraded_mode() -> bool:
    """Return True if Prometheus was requested but failed to initialize."""
    return _degraded_mode


def get_degraded_reasons() -> List[str]:
    return _degraded_reasons.copy()


def reset_degraded_mode() -> None:
    """Reset degraded mode state (for testing/recovery scenarios)."""
    global _degraded_mode
    _degraded_mode = False
    _degraded_reasons.clear()


# Standard metric name constants [CMV]
METRIC_CACHE_HITS = "reupload_cache_hits_total"
METRIC_CACHE_MISSES = "reupload_cache_misses_total"
METRIC_ASSETS_STORED = "reupload_assets_stored_total"
METRIC_ASSETS_FAILED = "reupload_assets_failed_total"
METRIC_REUPLOAD_FAILURES = "reupload_failures_total"
METRIC_REUPLOAD_DURATION = "reupload_duration_seconds"
