"""ResourceSlice entities published to the Kubernetes API.

A ResourceSlice advertises the devices a driver offers on one node to the
Dynamic Resource Allocation scheduler. This driver publishes one slice per
device, each in its own pool, so the objects here always carry a single
Device entry.

References:
    - Kubernetes resource.k8s.io/v1 API (ResourceSlice, Device, DeviceAttribute)
    - k8s.io/apimachinery resource.Quantity canonical formatting
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

RESOURCE_API_GROUP = "resource.k8s.io"
RESOURCE_API_VERSION = "v1"
RESOURCE_SLICE_KIND = "ResourceSlice"
RESOURCE_SLICE_PLURAL = "resourceslices"

_BINARY_SUFFIXES = ("Ki", "Mi", "Gi", "Ti", "Pi", "Ei")


class QuantityFormat(Enum):
    """Suffix family used when rendering a quantity."""
    BINARY_SI = "BinarySI"     # Ki, Mi, Gi, ...
    DECIMAL_SI = "DecimalSI"   # k, M, G, ...


@dataclass(frozen=True)
class Quantity:
    """Exact integer quantity with a Kubernetes rendering format."""
    value: int
    format: QuantityFormat = QuantityFormat.BINARY_SI

    def __str__(self) -> str:
        if self.format is not QuantityFormat.BINARY_SI or self.value == 0:
            return str(self.value)
        value = self.value
        suffix = ""
        for candidate in _BINARY_SUFFIXES:
            if value % 1024 != 0:
                break
            value //= 1024
            suffix = candidate
        return f"{value}{suffix}"


@dataclass(frozen=True)
class DeviceAttribute:
    """Typed attribute value; exactly one field is set."""
    string_value: Optional[str] = None
    int_value: Optional[int] = None
    bool_value: Optional[bool] = None
    version_value: Optional[str] = None

    def __post_init__(self) -> None:
        if sum(v is not None for v in self._values()) != 1:
            raise ValueError("DeviceAttribute must carry exactly one value")

    def _values(self) -> tuple[Any, ...]:
        return (self.string_value, self.int_value, self.bool_value, self.version_value)

    @property
    def value(self) -> Any:
        return next(v for v in self._values() if v is not None)

    def to_dict(self) -> dict[str, Any]:
        keys = ("string", "int", "bool", "version")
        return {k: v for k, v in zip(keys, self._values()) if v is not None}


@dataclass(frozen=True)
class DeviceCapacity:
    """Allocatable capacity of a device."""
    value: Quantity

    def to_dict(self) -> dict[str, Any]:
        return {"value": str(self.value)}


@dataclass
class Device:
    """Device entry inside a ResourceSlice."""
    name: str
    attributes: dict[str, DeviceAttribute] = field(default_factory=dict)
    capacity: dict[str, DeviceCapacity] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "attributes": {k: a.to_dict() for k, a in sorted(self.attributes.items())},
            "capacity": {k: c.to_dict() for k, c in sorted(self.capacity.items())},
        }


@dataclass(frozen=True)
class ResourcePool:
    """Pool a slice belongs to."""
    name: str
    generation: int = 1
    resource_slice_count: int = 1


@dataclass
class ResourceSlice:
    """One advertised device, ready to be persisted."""
    name: str
    driver: str
    node_name: str
    pool: ResourcePool
    devices: list[Device] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None  # Set by the API server

    def to_manifest(self) -> dict[str, Any]:
        """Render the resource.k8s.io/v1 object body."""
        metadata: dict[str, Any] = {
            "name": self.name,
            "labels": dict(self.labels),
        }
        if self.resource_version is not None:
            metadata["resourceVersion"] = self.resource_version

        return {
            "apiVersion": f"{RESOURCE_API_GROUP}/{RESOURCE_API_VERSION}",
            "kind": RESOURCE_SLICE_KIND,
            "metadata": metadata,
            "spec": {
                "driver": self.driver,
                "nodeName": self.node_name,
                "pool": {
                    "name": self.pool.name,
                    "generation": self.pool.generation,
                    "resourceSliceCount": self.pool.resource_slice_count,
                },
                "devices": [d.to_dict() for d in self.devices],
            },
        }
