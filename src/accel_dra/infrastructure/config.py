"""Configuration for the accelerator DRA driver."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from accel_dra.domain.services.device_scanner import DEFAULT_SYSFS_PATH
from accel_dra.domain.value_objects.identifiers import DRIVER_NAME


class DriverConfig(BaseModel):
    """Driver identity configuration."""

    name: str = Field(default=DRIVER_NAME, min_length=1, description="DRA driver name")
    node_name: str = Field(default="", description="Kubernetes node this agent runs on")


class DiscoveryConfig(BaseModel):
    """Device discovery configuration."""

    sysfs_path: Path = Field(default=DEFAULT_SYSFS_PATH, description="Device class directory")
    rescan_interval_seconds: float = Field(default=30.0, gt=0, description="Interval between rescans")


class KubernetesConfig(BaseModel):
    """Kubernetes API configuration."""

    kubeconfig: Path | None = Field(default=None, description="Kubeconfig file, in-cluster if unset")
    request_timeout_seconds: float | None = Field(default=None, gt=0, description="Per-request timeout")
    dry_run: bool = Field(default=False, description="Keep slices in memory instead of the API server")


class ServerConfig(BaseModel):
    """Server configuration."""

    enable_metrics: bool = Field(default=True)
    metrics_port: int = Field(default=8080, ge=1, le=65535, description="Prometheus metrics port")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    otel_endpoint: str | None = Field(default=None)
    environment: str = Field(default="development")


class Config(BaseSettings):
    """Main configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCEL_DRA_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    driver: DriverConfig = Field(default_factory=DriverConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    return Config()
