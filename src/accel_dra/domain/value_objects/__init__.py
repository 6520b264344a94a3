"""Domain value objects for the accelerator DRA driver.

Value objects are immutable identifiers shared by discovery and
ResourceSlice publication.
"""

from accel_dra.domain.value_objects.identifiers import (
    DRIVER_NAME,
    NO_NUMA_NODE,
    DeviceName,
    NodeName,
    NUMANodeId,
    PCIAddress,
    SliceName,
    create_slice_name,
    qualified_name,
)

__all__ = [
    "DRIVER_NAME",
    "NO_NUMA_NODE",
    "DeviceName",
    "NodeName",
    "NUMANodeId",
    "PCIAddress",
    "SliceName",
    "create_slice_name",
    "qualified_name",
]
