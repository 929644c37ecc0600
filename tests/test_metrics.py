"""
Metrics provider selection and the Prometheus adapter.
"""

from unittest.mock import patch

from prometheus_client import REGISTRY

from preview_bot.metrics import (
    get_degraded_reasons,
    get_metrics,
    is_degraded_mode,
    reset_degraded_mode,
)
from preview_bot.metrics.null_metrics import NoopMetrics
from preview_bot.metrics.prometheus_metrics import PrometheusMetrics


def test_disabled_by_config():
    assert isinstance(get_metrics({"OBS_ENABLE_PROMETHEUS": False}), NoopMetrics)


def test_bind_failure_degrades_to_noop():
    reset_degraded_mode()
    with patch(
        "preview_bot.metrics.prometheus_metrics.PrometheusMetrics",
        side_effect=OSError("address in use"),
    ):
        metrics = get_metrics({"OBS_ENABLE_PROMETHEUS": True, "PROMETHEUS_PORT": 1})
    assert isinstance(metrics, NoopMetrics)
    assert is_degraded_mode()
    assert "address in use" in get_degraded_reasons()[0]
    reset_degraded_mode()


def test_prometheus_counter_and_histogram():
    metrics = PrometheusMetrics(enable_http_server=False)
    metrics.define_counter("test_widgets_total", "widgets seen", labels=["kind"])
    metrics.define_histogram("test widget seconds", "time per widget")

    metrics.inc("test_widgets_total", labels={"kind": "video"})
    metrics.inc("test_widgets_total", 2, labels={"kind": "video"})
    metrics.observe("test widget seconds", 0.2)

    assert REGISTRY.get_sample_value("test_widgets_total", {"kind": "video"}) == 3.0
    assert REGISTRY.get_sample_value("test_widget_seconds_count") == 1.0


def test_undefined_metric_ignored():
    metrics = PrometheusMetrics(enable_http_server=False)
    metrics.inc("test_never_defined_total")
    metrics.observe("test_never_defined_seconds", 1.0)
