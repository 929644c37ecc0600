"""Prometheus-based metrics implementation for reupload monitoring."""

import logging
import re
from typing import Dict, List, Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Prometheus-based metrics provider."""

    def __init__(self, port: int = 8001, enable_http_server: bool = True):
        """Initialize Prometheus metrics with optional HTTP server for scraping.

        Args:
            port: Port for the metrics HTTP server
            enable_http_server: Whether to start the HTTP server for scraping
        """
        self.port = port
        self._counters: Dict[str, Counter] = {}
        self._histograms: Dict[str, Histogram] = {}

        if enable_http_server:
            start_http_server(port)
            logger.info(
                f"✅ Prometheus HTTP server started on port {port}",
                extra={"subsys": "metrics"},
            )

    def define_counter(self, name: str, description: str, labels: Optional[list] = None) -> None:
        norm_name = self._normalize_metric_name(name)
        if norm_name not in self._counters:
            self._counters[norm_name] = Counter(
                name=norm_name,
                documentation=description,
                labelnames=self._normalize_label_names(labels or []),
            )
            logger.debug(f"📈 Defined counter: {norm_name}", extra={"subsys": "metrics"})

    def define_histogram(
        self,
        name: str,
        description: str,
        labels: Optional[list] = None,
        buckets: Optional[tuple] = None,
    ) -> None:
        norm_name = self._normalize_metric_name(name)
        if norm_name not in self._histograms:
            kwargs = {
                "name": norm_name,
                "documentation": description,
                "labelnames": self._normalize_label_names(labels or []),
            }
            if buckets:
                kwargs["buckets"] = buckets
            self._histograms[norm_name] = Histogram(**kwargs)
            logger.debug(f"📊 Defined histogram: {norm_name}", extra={"subsys": "metrics"})

    def inc(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        norm_name = self._normalize_metric_name(name)
        counter = self._counters.get(norm_name)
        if counter is None:
            logger.warning(f"⚠️  Counter '{name}' not defined", extra={"subsys": "metrics"})
            return
        if labels:
            counter.labels(**labels).inc(value)
        else:
            counter.inc(value)

    def observe(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        norm_name = self._normalize_metric_name(name)
        histogram = self._histograms.get(norm_name)
        if histogram is None:
            logger.warning(f"⚠️  Histogram '{name}' not defined", extra={"subsys": "metrics"})
            return
        if labels:
            histogram.labels(**labels).observe(value)
        else:
            histogram.observe(value)

    @staticmethod
    def _normalize_metric_name(name: str) -> str:
        """Coerce a name into Prometheus' [a-zA-Z_:][a-zA-Z0-9_:]* form."""
        norm = re.sub(r"[^a-zA-Z0-9_:]", "_", name)
        if not re.match(r"[a-zA-Z_:]", norm[:1]):
            norm = "_" + norm
        return norm

    @staticmethod
    def _normalize_label_names(labels: List[str]) -> List[str]:
        return [re.sub(r"[^a-zA-Z0-9_]", "_", label) for label in labels]
