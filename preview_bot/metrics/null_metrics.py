"""No-op metrics implementation that provides safe no-op methods."""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class NoopMetrics:
    """Metrics provider that does nothing but implements the full interface."""

    def __init__(self):
        logger.debug("📊 Prometheus disabled: using NoopMetrics", extra={"subsys": "metrics"})

    def define_counter(self, name: str, description: str, labels: Optional[list] = None) -> None:
        pass

    def define_histogram(
        self, name: str, description: str, labels: Optional[list] = None, buckets: Optional[tuple] = None
    ) -> None:
        pass

    def inc(self, name: str, value: int = 1, labels: Optional[dict] = None) -> None:
        pass

    def observe(self, name: str, value: float, labels: Optional[dict] = None) -> None:
        pass
