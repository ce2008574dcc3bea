"""
Prometheus metrics for the Hallway service.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Optional, Sequence, Tuple, Type

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info, generate_latest

# key -> (type, exposed name, help, labels)
MetricSpec = Tuple[Type, str, str, Sequence[str]]

COMMON_METRICS: Dict[str, MetricSpec] = {
    "http_requests_total": (
        Counter, "http_requests_total", "Total HTTP requests", ("method", "endpoint", "status_code"),
    ),
    "http_request_duration_seconds": (
        Histogram, "http_request_duration_seconds", "HTTP request duration in seconds", ("method", "endpoint"),
    ),
    "health_check_total": (
        Counter, "health_check_total", "Total health check requests", ("status",),
    ),
    "errors_total": (
        Counter, "errors_total", "Total errors by code", ("error_type", "service"),
    ),
}

HALLWAY_METRICS: Dict[str, MetricSpec] = {
    "render_cache_hits_total": (
        Counter, "hallway_render_cache_hits_total", "Pages served from the render cache", (),
    ),
    "render_cache_misses_total": (
        Counter, "hallway_render_cache_misses_total", "Pages rendered because the cache had no entry", (),
    ),
    "render_cache_evictions_total": (
        Counter, "hallway_render_cache_evictions_total", "Cache entries removed by the sweeper", (),
    ),
    "render_cache_entries": (
        Gauge, "hallway_render_cache_entries", "Rendered pages currently cached", (),
    ),
    "render_duration_seconds": (
        Histogram, "hallway_render_duration_seconds", "Page render duration in seconds", (),
    ),
    "unregistered_identities_total": (
        Counter, "hallway_unregistered_identities_total", "Visitors not mentioned in any policy", (),
    ),
    "access_table_identities": (
        Gauge, "hallway_access_table_identities", "Known identities with a precomputed view", (),
    ),
}


class MetricsCollector:
    """Metrics for one service, registered in the collector's own registry.

    Each collector owns a ``CollectorRegistry`` unless one is given, so
    several service instances (as in tests) never clash on metric names.
    Helpers look metrics up by key and ignore keys this service lacks.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}

        info = Info("service_info", "Service information", registry=self.registry)
        info.info({"service": service_name, "version": "1.0.0"})
        self._metrics["service_info"] = info

        self._register(COMMON_METRICS)
        if service_name == "hallway":
            self._register(HALLWAY_METRICS)

    def _register(self, specs: Dict[str, MetricSpec]):
        for key, (metric_type, name, documentation, labels) in specs.items():
            self._metrics[key] = metric_type(name, documentation, list(labels), registry=self.registry)

    def export(self) -> bytes:
        """Registry contents in the Prometheus text format."""
        return generate_latest(self.registry)

    def _child(self, name: str, labels: Dict[str, str]):
        metric = self._metrics.get(name)
        if metric is None:
            return None
        return metric.labels(**labels) if labels else metric

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self._child(
            "http_requests_total",
            {"method": method, "endpoint": endpoint, "status_code": str(status_code)},
        ).inc()
        self._child(
            "http_request_duration_seconds", {"method": method, "endpoint": endpoint}
        ).observe(duration)

    def record_health_check(self, status: str):
        self._child("health_check_total", {"status": status}).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        self._child("errors_total", {"error_type": error_type, "service": service or self.service_name}).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Observe the duration of the enclosed block in a histogram."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            metric = self._child(operation_name, labels)
            if metric is not None:
                metric.observe(time.perf_counter() - start_time)

    def increment_counter(self, metric_name: str, amount: float = 1, **labels):
        metric = self._child(metric_name, labels)
        if metric is not None:
            metric.inc(amount)

    def set_gauge(self, metric_name: str, value: float, **labels):
        metric = self._child(metric_name, labels)
        if metric is not None:
            metric.set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
