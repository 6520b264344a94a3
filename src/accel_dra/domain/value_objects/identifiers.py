"""Device and slice identifiers.

These value objects provide type safety for identifiers that travel
between the scanner, the slice builder and the Kubernetes API,
using Python's NewType for zero-runtime overhead.
"""

from __future__ import annotations

from typing import NewType

# Device directory name under the sysfs class (e.g., "mock0", "mock0_vf1")
DeviceName = NewType("DeviceName", str)

# Kubernetes node name
NodeName = NewType("NodeName", str)

# NUMA node identifier (-1 when the platform reports no affinity)
NUMANodeId = NewType("NUMANodeId", int)

# PCI bus address (e.g., "0000:11:00.0")
PCIAddress = NewType("PCIAddress", str)

# ResourceSlice object name
SliceName = NewType("SliceName", str)

DRIVER_NAME = "mock-accel.example.com"

NO_NUMA_NODE = NUMANodeId(-1)


def create_slice_name(driver_name: str, node_name: str, device_name: str) -> SliceName:
    """Create the ResourceSlice name for one device on one node."""
    return SliceName(f"{driver_name}-{node_name}-{device_name}")


def qualified_name(driver_name: str, name: str) -> str:
    """Qualify an attribute or capacity name with the driver domain."""
    return f"{driver_name}/{name}"
