"""
Shared metrics configuration for the response cache layer.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import threading


class MetricsCollector:
    """Centralized metrics collector for cache middleware instances."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # A private registry keeps several collectors in one process from
        # colliding on metric names.
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""
        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Total cache lookups",
            ["service", "result"],
            registry=self.registry
        )

        self._metrics["cache_bypass_total"] = Counter(
            "cache_bypass_total",
            "Total requests that skipped caching because the TTL is zero",
            ["service"],
            registry=self.registry
        )

        self._metrics["cache_key_errors_total"] = Counter(
            "cache_key_errors_total",
            "Total requests aborted by a failing key function",
            ["service"],
            registry=self.registry
        )

        self._metrics["cache_writes_total"] = Counter(
            "cache_writes_total",
            "Total captured responses by persistence outcome",
            ["service", "result"],
            registry=self.registry
        )

        self._metrics["cache_payload_bytes"] = Histogram(
            "cache_payload_bytes",
            "Size of persisted payloads in bytes",
            ["service"],
            buckets=(64, 256, 1024, 4096, 16384, 65536, 262144, 1048576),
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_lookup(self, result: str):
        """Record a lookup outcome (hit, miss or error)."""
        self.increment_counter("cache_lookups_total", result=result)

    def record_bypass(self):
        """Record a request served without caching."""
        self.increment_counter("cache_bypass_total")

    def record_key_error(self):
        """Record a request aborted during key derivation."""
        self.increment_counter("cache_key_errors_total")

    def record_write(self, result: str, size: Optional[int] = None):
        """Record a persistence outcome (stored, skipped or error)."""
        self.increment_counter("cache_writes_total", result=result)
        if size is not None:
            self.observe_histogram("cache_payload_bytes", size)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(service=self.service_name, **labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(service=self.service_name, **labels).observe(value)

    def sample(self, metric_name: str, **labels) -> float:
        """Read back the current value of a counter sample."""
        value = self.registry.get_sample_value(metric_name, {"service": self.service_name, **labels})
        return value or 0.0


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
