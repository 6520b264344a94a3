"""Dependency injection container for the DRA driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import structlog
from opentelemetry import trace

from accel_dra.adapters.outbound.kubernetes_store import KubernetesResourceSliceStore
from accel_dra.adapters.outbound.memory_store import InMemoryResourceSliceStore
from accel_dra.application.reconciler import Reconciler
from accel_dra.domain.services.device_scanner import DeviceScanner
from accel_dra.domain.services.slice_builder import ResourceSliceBuilder
from accel_dra.infrastructure.config import Config, get_config
from accel_dra.infrastructure.logging import setup_logging
from accel_dra.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from accel_dra.infrastructure.tracing import setup_tracing
from accel_dra.ports.outbound import ResourceSliceStore
from accel_dra.version import get_full_version


@dataclass
class Container:
    """Dependency injection container for DRA driver components."""

    config: Config
    logger: structlog.BoundLogger
    tracer: trace.Tracer
    metrics: MetricsRegistry

    _instance: ClassVar[Optional[Container]] = None

    @classmethod
    def create(cls, config: Optional[Config] = None, serve_metrics: bool = False) -> Container:
        """Create and initialize the container with all dependencies.

        Args:
            config: Configuration to use instead of the environment.
            serve_metrics: Start the Prometheus HTTP exporter.
        """
        if cls._instance is not None:
            return cls._instance

        config = config or get_config()
        logger = setup_logging(config.observability.log_level, config.observability.log_format)
        tracer = setup_tracing(config)
        if serve_metrics and config.server.enable_metrics:
            metrics = setup_metrics(config.server.metrics_port)
        else:
            metrics = get_metrics()
        metrics.info.info({
            "version": get_full_version(),
            "driver": config.driver.name,
            "node": config.driver.node_name,
        })

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
        )

        logger.info(
            "accel_dra_container_initialized",
            environment=config.observability.environment,
            driver=config.driver.name,
            node=config.driver.node_name,
        )

        return cls._instance

    @classmethod
    def get(cls) -> Container:
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None

    def build_store(self) -> ResourceSliceStore:
        """Create the ResourceSlice store selected by configuration."""
        k8s = self.config.kubernetes
        if k8s.dry_run:
            self.logger.info("dry_run_enabled", store="memory")
            return InMemoryResourceSliceStore()
        return KubernetesResourceSliceStore.from_environment(
            kubeconfig=k8s.kubeconfig,
            request_timeout=k8s.request_timeout_seconds,
        )

    def build_reconciler(self, store: Optional[ResourceSliceStore] = None) -> Reconciler:
        """Wire scanner, builder and store into a reconciler."""
        driver = self.config.driver
        if not driver.node_name:
            raise ValueError("node name must be set (NODE_NAME or ACCEL_DRA_DRIVER__NODE_NAME)")

        scanner = DeviceScanner(self.config.discovery.sysfs_path, driver.node_name)
        builder = ResourceSliceBuilder(driver.node_name, driver.name)
        return Reconciler(
            scanner=scanner,
            builder=builder,
            store=store if store is not None else self.build_store(),
            rescan_interval=self.config.discovery.rescan_interval_seconds,
            metrics=self.metrics,
            tracer=self.tracer,
        )


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
