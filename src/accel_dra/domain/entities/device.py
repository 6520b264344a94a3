"""Accelerator device entities discovered from sysfs.

A DiscoveredDevice is a snapshot of one physical or virtual accelerator
function as the kernel driver exposes it. Devices are rebuilt from sysfs
on every scan and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from accel_dra.domain.value_objects.identifiers import DeviceName, NUMANodeId, PCIAddress


@dataclass(frozen=True)
class PrimaryFunction:
    """Physical (PF) accelerator function."""

    token = "pf"

    @property
    def physfn(self) -> str:
        return ""


@dataclass(frozen=True)
class VirtualFunction:
    """SR-IOV virtual function carved out of a primary function."""

    physfn: str  # Name of the parent PF device

    token = "vf"

    def __post_init__(self) -> None:
        if not self.physfn:
            raise ValueError("virtual function requires a parent device name")


DeviceType = Union[PrimaryFunction, VirtualFunction]


@dataclass(frozen=True)
class DiscoveredDevice:
    """One accelerator function observed on the host."""
    name: DeviceName
    uuid: str
    memory_size: int              # Device memory in bytes
    numa_node: NUMANodeId         # -1 if the platform reports no affinity
    device_type: DeviceType
    pci_address: PCIAddress       # e.g., "0000:11:00.0"
    capabilities: int = 0         # Capability bitfield (uint32)

    def __post_init__(self) -> None:
        if self.memory_size < 0:
            raise ValueError(f"memory_size must be non-negative, got {self.memory_size}")

    @property
    def is_virtual(self) -> bool:
        return isinstance(self.device_type, VirtualFunction)

    @property
    def physfn(self) -> str:
        """Parent PF name for virtual functions, empty for primaries."""
        return self.device_type.physfn
