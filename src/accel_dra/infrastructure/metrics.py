"""Prometheus metrics for the DRA driver."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info, start_http_server


class MetricsRegistry:
    """Discovery and publication metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY

        self.reconcile_total = Counter("accel_dra_reconcile_total", "Reconciliation cycles", ["result"], registry=self._registry)
        self.reconcile_duration_seconds = Histogram("accel_dra_reconcile_duration_seconds", "Reconciliation duration", buckets=(0.01, 0.05, 0.1, 0.5, 1, 5, 30), registry=self._registry)
        self.discovered_devices = Gauge("accel_dra_discovered_devices", "Devices found by the last scan", ["type"], registry=self._registry)
        self.device_scan_errors_total = Counter("accel_dra_device_scan_errors_total", "Devices dropped for unreadable attributes", ["device"], registry=self._registry)
        self.slice_upserts_total = Counter("accel_dra_slice_upserts_total", "ResourceSlice writes", ["outcome"], registry=self._registry)

        self.info = Info("accel_dra", "Driver info", registry=self._registry)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry


_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8080, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    global _metrics
    _metrics = MetricsRegistry(registry)
    start_http_server(port, registry=registry or REGISTRY)
    return _metrics


def get_metrics() -> MetricsRegistry:
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
