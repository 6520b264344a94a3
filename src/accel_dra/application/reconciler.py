"""Device discovery to ResourceSlice reconciliation.

The reconciler runs scan, build and publish as one cycle. Cycles never
overlap: a caller arriving while a cycle is in flight blocks on the lock.
The periodic loop ticks on a fixed period; ticks missed while a slow cycle
ran are dropped rather than queued.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace

from accel_dra.domain.services.device_scanner import DeviceScanError, DeviceScanner
from accel_dra.domain.services.slice_builder import ResourceSliceBuilder
from accel_dra.infrastructure.logging import get_logger
from accel_dra.infrastructure.metrics import MetricsRegistry
from accel_dra.infrastructure.tracing import get_tracer
from accel_dra.ports.outbound import ResourceSliceStore, SliceStoreError, UpsertOutcome

logger = get_logger(__name__)


class ReconcileError(Exception):
    """A reconciliation cycle could not complete."""
    pass


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation cycle."""
    devices: int
    created: int = 0
    updated: int = 0
    failed: int = 0

    @property
    def published(self) -> int:
        return self.created + self.updated


class Reconciler:
    """Keep ResourceSlices in sync with the devices found in sysfs."""

    def __init__(
        self,
        scanner: DeviceScanner,
        builder: ResourceSliceBuilder,
        store: ResourceSliceStore,
        rescan_interval: float = 30.0,
        metrics: Optional[MetricsRegistry] = None,
        tracer: Optional[trace.Tracer] = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            scanner: Device scanner for this node.
            builder: ResourceSlice builder for this node.
            store: Where slices are persisted.
            rescan_interval: Seconds between periodic cycles.
            metrics: Optional Prometheus metrics.
            tracer: Optional tracer; the global tracer is used if None.
        """
        if rescan_interval <= 0:
            raise ValueError(f"rescan_interval must be positive, got {rescan_interval}")

        self._scanner = scanner
        self._builder = builder
        self._store = store
        self._rescan_interval = rescan_interval
        self._metrics = metrics
        self._tracer = tracer or get_tracer()

        self._reconcile_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._last_device_count = 0
        self._cycles = 0

    @property
    def rescan_interval(self) -> float:
        return self._rescan_interval

    @property
    def cycles(self) -> int:
        """Number of cycles started, successful or not."""
        return self._cycles

    def reconcile(self) -> ReconcileResult:
        """Run one scan, build and publish cycle.

        Blocks until any cycle already in flight finishes.

        Returns:
            Counts of devices found and slices written.

        Raises:
            ReconcileError: If the device directory could not be enumerated.
        """
        with self._reconcile_lock:
            self._cycles += 1
            started = time.perf_counter()
            with self._tracer.start_as_current_span("reconcile") as span:
                try:
                    result = self._reconcile_locked()
                except ReconcileError:
                    self._record("error", started)
                    raise
                span.set_attribute("accel_dra.devices", result.devices)
                span.set_attribute("accel_dra.slices_published", result.published)
                span.set_attribute("accel_dra.slices_failed", result.failed)
                self._record("success" if result.failed == 0 else "partial", started)
                return result

    def _reconcile_locked(self) -> ReconcileResult:
        logger.debug("reconcile_started", cycle=self._cycles)

        try:
            devices = self._scanner.scan()
        except DeviceScanError as e:
            logger.error("device_scan_failed", error=str(e))
            raise ReconcileError(f"failed to scan devices: {e}") from e

        if self._last_device_count != len(devices):
            logger.info("device_count_changed", previous=self._last_device_count, current=len(devices))
            self._last_device_count = len(devices)
        else:
            logger.debug("devices_scanned", count=len(devices), changed=False)

        if self._metrics:
            virtual = sum(1 for d in devices.values() if d.is_virtual)
            self._metrics.discovered_devices.labels(type="pf").set(len(devices) - virtual)
            self._metrics.discovered_devices.labels(type="vf").set(virtual)
            for name in self._scanner.last_errors:
                self._metrics.device_scan_errors_total.labels(device=name).inc()

        slices = self._builder.build(devices)
        logger.debug("slices_built", count=len(slices))

        created = updated = failed = 0
        for resource_slice in slices:
            try:
                outcome = self._store.upsert(resource_slice)
            except SliceStoreError as e:
                failed += 1
                logger.error("slice_upsert_failed", slice=resource_slice.name, error=str(e))
                if self._metrics:
                    self._metrics.slice_upserts_total.labels(outcome="error").inc()
                continue

            if outcome is UpsertOutcome.CREATED:
                created += 1
            else:
                updated += 1
            if self._metrics:
                self._metrics.slice_upserts_total.labels(outcome=outcome.value).inc()

        result = ReconcileResult(devices=len(devices), created=created, updated=updated, failed=failed)
        logger.debug(
            "reconcile_complete",
            devices=result.devices,
            created=result.created,
            updated=result.updated,
            failed=result.failed,
        )
        return result

    def _record(self, result: str, started: float) -> None:
        if self._metrics:
            self._metrics.reconcile_total.labels(result=result).inc()
            self._metrics.reconcile_duration_seconds.observe(time.perf_counter() - started)

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Reconcile now, then on every tick until stopped.

        A failed cycle is logged and the loop carries on. Setting the stop
        event prevents the next cycle; a cycle in progress runs to the end.

        Args:
            stop_event: Event that ends the loop. Defaults to the event
                set by stop().
        """
        stop = stop_event if stop_event is not None else self._stop_event
        logger.info("reconciler_starting", interval_seconds=self._rescan_interval)

        self._safe_reconcile("initial")

        next_tick = time.monotonic() + self._rescan_interval
        while not stop.wait(max(0.0, next_tick - time.monotonic())):
            self._safe_reconcile("periodic")

            # Skip ticks that elapsed during a slow cycle instead of bursting
            now = time.monotonic()
            next_tick += self._rescan_interval
            if next_tick <= now:
                missed = int((now - next_tick) // self._rescan_interval) + 1
                next_tick += missed * self._rescan_interval
                logger.warning("reconcile_ticks_missed", missed=missed)

        logger.info("reconciler_stopped", cycles=self._cycles)

    def stop(self) -> None:
        """Ask run() to return after the current cycle."""
        self._stop_event.set()

    def _safe_reconcile(self, trigger: str) -> None:
        try:
            self.reconcile()
        except ReconcileError as e:
            logger.error("reconcile_failed", trigger=trigger, error=str(e))
        except Exception as e:
            # Keep ticking; the next cycle retries
            logger.exception("reconcile_crashed", trigger=trigger, error=str(e))
